from typing import Optional


class SyslogKitError(Exception):
    """Base class for all syslogkit errors"""


class BindError(SyslogKitError):
    """A listener socket could not be bound or put into listening state"""

    def __init__(self, protocol: str, host: str, port: int, reason: Optional[BaseException] = None) -> None:
        self.protocol: str = protocol
        self.host: str = host
        self.port: int = port
        self.reason: Optional[BaseException] = reason
        super().__init__(f"Could not bind {protocol} socket on {host}:{port}: {reason}")


class StorageError(SyslogKitError):
    """Base class for log storage failures"""


class StoreOpenError(StorageError):
    """The backing database could not be opened or initialized"""


class StoreWriteError(StorageError):
    """A message could not be appended to the log"""


class StoreQueryError(StorageError):
    """A query could not be executed (distinct from a query with no matches)"""
