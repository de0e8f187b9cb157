import logging
import socket

from .syslog_codec import SyslogCodec
from .syslog_message import SyslogMessage

logger = logging.getLogger(__name__)


class SyslogSender:
    """Send SyslogMessages to a receiver over UDP or TCP"""

    def __init__(self, host: str = '127.0.0.1', port: int = 5140, timeout: float = 5.0) -> None:
        self.host: str = host
        self.port: int = port
        self.timeout: float = timeout

    def send_udp(self, message: SyslogMessage) -> str:
        """Send one message as a single datagram and return the wire text"""
        payload = SyslogCodec.build(message)
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.sendto(payload.encode('utf-8'), (self.host, self.port))
        logger.debug(f"Sent UDP message to {self.host}:{self.port}")
        return payload

    def send_tcp(self, message: SyslogMessage) -> str:
        """
        Send one message on a fresh connection, newline terminated.
        The receiver reads a single buffer per connection, so one connection
        is used per message.
        """
        payload = SyslogCodec.build(message)
        with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
            sock.sendall(payload.encode('utf-8') + b'\n')
        logger.debug(f"Sent TCP message to {self.host}:{self.port}")
        return payload

    def send(self, message: SyslogMessage, protocol: str = 'udp') -> str:
        protocol = protocol.lower()
        if protocol == 'udp':
            return self.send_udp(message)
        if protocol == 'tcp':
            return self.send_tcp(message)
        raise ValueError(f"Unsupported protocol: {protocol}")
