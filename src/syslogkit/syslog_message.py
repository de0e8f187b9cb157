import dataclasses
from dataclasses import dataclass
from typing import Any, Dict

# Syslog severity levels
SEVERITY_MAP: Dict[int, str] = {
    0: 'emergency',
    1: 'alert',
    2: 'critical',
    3: 'error',
    4: 'warning',
    5: 'notice',
    6: 'info',
    7: 'debug'
}

# Syslog facilities
FACILITY_MAP: Dict[int, str] = {
    0: 'kern', 1: 'user', 2: 'mail', 3: 'daemon',
    4: 'auth', 5: 'syslog', 6: 'lpr', 7: 'news',
    8: 'uucp', 9: 'cron', 10: 'authpriv', 11: 'ftp',
    12: 'ntp', 13: 'security', 14: 'console', 15: 'solaris-cron',
    16: 'local0', 17: 'local1', 18: 'local2', 19: 'local3',
    20: 'local4', 21: 'local5', 22: 'local6', 23: 'local7'
}

FACILITY_USER = 1
SEVERITY_INFO = 6


@dataclass(frozen=True)
class SyslogMessage:
    """
    A single syslog message.

    facility and severity are stored as plain integers so that codes outside
    the named tables (e.g. facility 99) survive a round trip unchanged.
    The priority is always derived, never stored.
    """
    facility: int = FACILITY_USER
    severity: int = SEVERITY_INFO
    timestamp: str = ''
    hostname: str = ''
    app_name: str = ''
    message: str = ''

    @property
    def priority(self) -> int:
        return self.facility * 8 + self.severity

    @property
    def facility_name(self) -> str:
        return FACILITY_MAP.get(self.facility, 'unknown')

    @property
    def severity_name(self) -> str:
        return SEVERITY_MAP.get(self.severity, 'unknown')

    def replace(self, **changes: Any) -> 'SyslogMessage':
        """Return a copy with the given fields changed"""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data['priority'] = self.priority
        return data
