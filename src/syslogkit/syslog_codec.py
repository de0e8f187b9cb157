import logging
import re
import time
from typing import Optional, Pattern, Tuple, Union

from .syslog_message import FACILITY_USER, SEVERITY_INFO, SyslogMessage

logger = logging.getLogger(__name__)


class SyslogCodec:
    """
    Build and parse the RFC 3164 style wire format

        <PRI>TIMESTAMP HOSTNAME[ APP:] MESSAGE

    PRI is facility * 8 + severity written as a bare decimal.
    Neither direction raises: malformed input degrades to default field values.
    """
    DEFAULT_HOSTNAME: str = 'localhost'

    MONTHS: Tuple[str, ...] = (
        'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
        'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'
    )

    # More than 10 digits is not a priority, that text stays in the body
    PRI_PATTERN: Pattern[str] = re.compile(r'^<(?P<pri>\d{1,10})>')

    """
    Timestamps recognised at the start of the header.
    RFC 3164 writes "Mmm dd hh:mm:ss" with a space padded day ("Jan  1"),
    many senders drop the padding ("Jan 1"), and RFC 5424 style senders
    put a single ISO 8601 token there instead.
    """
    TIMESTAMP_PATTERN: Pattern[str] = re.compile(
        r'^(?P<timestamp>[A-Z][a-z]{2} {1,2}\d{1,2} \d{2}:\d{2}:\d{2}'
        r'|\d{4}-\d{2}-\d{2}T\S+)(?: |$)'
    )

    # TAG: or TAG[pid]: right after the hostname
    TAG_PATTERN: Pattern[str] = re.compile(r'^(?P<app>[^\s\[\]:]+)(?:\[[^\]]*\])?: ')

    @classmethod
    def format_timestamp(cls, when: Optional[float] = None) -> str:
        """Local time as "Mon D HH:MM:SS" with a space padded day"""
        tm = time.localtime(when)
        return (f"{cls.MONTHS[tm.tm_mon - 1]} {tm.tm_mday:2d} "
                f"{tm.tm_hour:02d}:{tm.tm_min:02d}:{tm.tm_sec:02d}")

    @classmethod
    def build(cls, message: SyslogMessage) -> str:
        """
        Serialize a message for sending.
        No line delimiter is appended; framing belongs to the transport.
        """
        timestamp = message.timestamp or cls.format_timestamp()
        hostname = message.hostname or cls.DEFAULT_HOSTNAME

        parts = [f"<{message.priority}>{timestamp} {hostname} "]
        if message.app_name:
            parts.append(f"{message.app_name}: ")
        parts.append(message.message)

        return ''.join(parts)

    @classmethod
    def parse(cls, raw: Union[bytes, str]) -> SyslogMessage:
        """
        Parse a received message.

        The header is scanned left to right: PRI, then a timestamp, a hostname
        and an optional tag. Scanning stops at the first part that does not
        look like a header field and whatever is left becomes the message body.
        Fields that were not found stay empty; the caller fills in the hostname
        from the transport's peer address.
        """
        if isinstance(raw, bytes):
            text = raw.decode('utf-8', errors='replace')
        else:
            text = raw

        facility = FACILITY_USER
        severity = SEVERITY_INFO
        rest = text

        pri_match = cls.PRI_PATTERN.match(text)
        if pri_match:
            pri = int(pri_match.group('pri'))
            facility, severity = divmod(pri, 8)
            rest = text[pri_match.end():]
        elif text.startswith('<'):
            logger.debug(f"Invalid priority in message, using defaults: {text[:32]!r}")

        timestamp, hostname, app_name, body = cls._scan_header(rest)

        return SyslogMessage(
            facility=facility,
            severity=severity,
            timestamp=timestamp,
            hostname=hostname,
            app_name=app_name,
            message=body
        )

    @classmethod
    def _scan_header(cls, rest: str) -> Tuple[str, str, str, str]:
        """Internal: split TIMESTAMP HOSTNAME [APP:] off the front of rest"""
        ts_match = cls.TIMESTAMP_PATTERN.match(rest)
        if not ts_match:
            return '', '', '', rest

        timestamp = ts_match.group('timestamp')
        rest = rest[ts_match.end():]

        # A token ending in ':' is a tag, meaning the sender left out the hostname
        hostname = ''
        token, _, tail = rest.partition(' ')
        if token and not token.endswith(':'):
            hostname = token
            rest = tail

        app_name = ''
        tag_match = cls.TAG_PATTERN.match(rest)
        if tag_match:
            app_name = tag_match.group('app')
            rest = rest[tag_match.end():]

        return timestamp, hostname, app_name, rest
