"""
Test helpers shared by the integration and scenario tests
"""
import socket
import threading
import time
from typing import List

from syslogkit.syslog_message import SyslogMessage


def find_free_port() -> int:
    """Find a port that is currently free for both UDP and TCP on localhost"""
    for _ in range(50):
        tcp_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        tcp_sock.bind(('127.0.0.1', 0))
        port = tcp_sock.getsockname()[1]
        udp_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            udp_sock.bind(('127.0.0.1', port))
        except OSError:
            continue
        finally:
            udp_sock.close()
            tcp_sock.close()
        return port
    raise RuntimeError("No free port found")


def send_udp(port: int, payload: bytes) -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.sendto(payload, ('127.0.0.1', port))
    sock.close()


def send_tcp(port: int, payload: bytes) -> None:
    with socket.create_connection(('127.0.0.1', port), timeout=2) as sock:
        sock.sendall(payload)


class MessageCollector:
    """Callback that records every message it receives"""

    def __init__(self) -> None:
        self.messages: List[SyslogMessage] = []
        self.condition = threading.Condition()

    def __call__(self, message: SyslogMessage) -> None:
        with self.condition:
            self.messages.append(message)
            self.condition.notify_all()

    def wait_for(self, count: int, timeout: float = 2.0) -> List[SyslogMessage]:
        """Wait until at least count messages arrived, return what arrived"""
        deadline = time.time() + timeout
        with self.condition:
            while len(self.messages) < count:
                remaining = deadline - time.time()
                if remaining <= 0:
                    break
                self.condition.wait(remaining)
            return list(self.messages)
