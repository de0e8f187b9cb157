"""
SyslogKit Package

Receive syslog messages over UDP and TCP, encode and decode the
RFC 3164 style wire format, and keep a queryable SQLite log of
everything received.
"""

from .exceptions import (
    BindError,
    StorageError,
    StoreOpenError,
    StoreQueryError,
    StoreWriteError,
    SyslogKitError,
)
from .log_storage import LogFilter, LogStorage
from .pollable_socket import PollableSocket
from .syslog_codec import SyslogCodec
from .syslog_message import FACILITY_MAP, SEVERITY_MAP, SyslogMessage
from .syslog_sender import SyslogSender
from .syslog_server import BackpressurePolicy, ServerState, SyslogServer

__all__ = [
    'BackpressurePolicy',
    'BindError',
    'FACILITY_MAP',
    'LogFilter',
    'LogStorage',
    'PollableSocket',
    'SEVERITY_MAP',
    'ServerState',
    'StorageError',
    'StoreOpenError',
    'StoreQueryError',
    'StoreWriteError',
    'SyslogCodec',
    'SyslogKitError',
    'SyslogMessage',
    'SyslogSender',
    'SyslogServer',
]

__version__ = '1.0.0'
