import logging
import select
import socket
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

Address = Tuple[str, int]


class PollableSocket:
    """
    Thin wrapper around a bound socket with a bounded-wait readability poll.

    The poll is the only place a listener worker waits, which lets the worker
    check its stop flag every poll_timeout seconds.
    """

    def __init__(self, sock: socket.socket, poll_timeout: float = 0.05) -> None:
        self.sock: socket.socket = sock
        self.poll_timeout: float = poll_timeout
        self.closed: bool = False

    @classmethod
    def bind_udp(cls, host: str, port: int, poll_timeout: float = 0.05) -> 'PollableSocket':
        """Create a UDP socket bound to host:port with address reuse"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return cls(sock, poll_timeout)

    @classmethod
    def bind_tcp(cls, host: str, port: int, backlog: int = 5,
                 poll_timeout: float = 0.05) -> 'PollableSocket':
        """Create a listening TCP socket on host:port with address reuse"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(backlog)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return cls(sock, poll_timeout)

    @property
    def port(self) -> int:
        """Port actually bound (useful after binding port 0)"""
        return self.sock.getsockname()[1]

    def poll(self, timeout: Optional[float] = None) -> bool:
        """Wait up to timeout seconds for the socket to become readable"""
        if timeout is None:
            timeout = self.poll_timeout
        readable, _, _ = select.select([self.sock], [], [], timeout)
        return bool(readable)

    def recvfrom(self, bufsize: int) -> Tuple[bytes, Address]:
        return self.sock.recvfrom(bufsize)

    def accept(self, recv_timeout: float = 1.0) -> Tuple[socket.socket, Address]:
        """
        Accept one pending connection.
        The client socket is blocking with recv_timeout so a silent peer
        cannot hold the worker forever.
        """
        client_sock, client_addr = self.sock.accept()
        client_sock.setblocking(True)
        client_sock.settimeout(recv_timeout)
        return client_sock, client_addr

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket: {e}")

    def __enter__(self) -> 'PollableSocket':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
