import logging
import queue
import socket
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .exceptions import BindError
from .pollable_socket import PollableSocket
from .syslog_codec import SyslogCodec
from .syslog_message import SyslogMessage

logger = logging.getLogger(__name__)

MessageCallback = Callable[[SyslogMessage], Any]

# Marks the end of the message stream for the dispatcher
_SHUTDOWN = object()


class ServerState(Enum):
    STOPPED = 'stopped'
    STARTING = 'starting'
    RUNNING = 'running'


class BackpressurePolicy(Enum):
    """
    What a worker does when the channel to the dispatcher is full.

    BLOCK: wait for room, so nothing already received is lost, while the
           socket itself may overflow (UDP) or queue connections (TCP).
    DROP_OLDEST: discard the oldest undelivered message to make room.
    """
    BLOCK = 'block'
    DROP_OLDEST = 'drop_oldest'


class SyslogServer:
    """
    Receive syslog messages over UDP and TCP on the same port number.

    One worker thread per enabled protocol polls its socket, parses what
    arrives and puts the result on a bounded queue. A single dispatcher
    thread takes messages off the queue and invokes the registered callback,
    so the callback is never called concurrently with itself.
    """

    UDP_BUFFER_SIZE = 2048
    TCP_BUFFER_SIZE = 4096

    def __init__(self,
                 callback: Optional[MessageCallback] = None,
                 poll_timeout: float = 0.05,
                 queue_size: int = 1024,
                 backpressure: BackpressurePolicy = BackpressurePolicy.BLOCK,
                 tcp_recv_timeout: float = 0.5,
                 join_timeout: float = 2.0) -> None:
        """
        Initialize the server.

        Args:
            callback: Called with every parsed SyslogMessage on the dispatcher thread
            poll_timeout: Seconds each worker waits for readability before
                          checking the stop flag again
            queue_size: Capacity of the channel between workers and dispatcher
            backpressure: Policy applied when that channel is full
            tcp_recv_timeout: Longest wait for data on an accepted TCP connection
            join_timeout: Longest wait for each thread in stop()
        """
        self.callback: Optional[MessageCallback] = callback
        self.poll_timeout: float = poll_timeout
        self.queue_size: int = queue_size
        self.backpressure: BackpressurePolicy = backpressure
        self.tcp_recv_timeout: float = tcp_recv_timeout
        self.join_timeout: float = join_timeout

        self.state: ServerState = ServerState.STOPPED
        self.running: threading.Event = threading.Event()
        self.bound_ports: Dict[str, int] = {}
        self.dropped_count: int = 0

        self.messages: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self.workers: List[threading.Thread] = []
        self.dispatcher: Optional[threading.Thread] = None

        # Serializes start/stop; drop counting has its own lock
        self.lifecycle_lock: threading.Lock = threading.Lock()
        self.stats_lock: threading.Lock = threading.Lock()

    def set_callback(self, callback: Optional[MessageCallback]) -> None:
        """Register the single message callback, replacing any previous one"""
        self.callback = callback

    def is_running(self) -> bool:
        return self.state == ServerState.RUNNING

    def start(self, port: int, enable_udp: bool = True, enable_tcp: bool = True,
              host: str = '0.0.0.0') -> None:
        """
        Bind the enabled sockets and start receiving.

        Binding happens here, on the caller's thread, so a port that is in use
        raises BindError immediately and nothing is left running. A server
        that is already running is stopped first.
        """
        with self.lifecycle_lock:
            if self.state != ServerState.STOPPED:
                self._stop_locked()

            self.state = ServerState.STARTING
            sockets: Dict[str, PollableSocket] = {}

            try:
                if enable_udp:
                    try:
                        sockets['udp'] = PollableSocket.bind_udp(host, port, poll_timeout=self.poll_timeout)
                    except OSError as e:
                        raise BindError('UDP', host, port, e) from e
                if enable_tcp:
                    try:
                        sockets['tcp'] = PollableSocket.bind_tcp(host, port, poll_timeout=self.poll_timeout)
                    except OSError as e:
                        raise BindError('TCP', host, port, e) from e
            except BindError as e:
                logger.error(str(e))
                for sock in sockets.values():
                    sock.close()
                self.state = ServerState.STOPPED
                raise

            if not sockets:
                logger.warning("SyslogServer started with both UDP and TCP disabled")

            self.bound_ports = {name: sock.port for name, sock in sockets.items()}
            self.messages = queue.Queue(maxsize=self.queue_size)
            self.running.set()

            self.dispatcher = threading.Thread(
                target=self._dispatch_loop, name='syslog-dispatch', daemon=True
            )
            self.dispatcher.start()

            self.workers = []
            if 'udp' in sockets:
                self.workers.append(threading.Thread(
                    target=self._udp_loop, args=(sockets['udp'],), name='syslog-udp', daemon=True
                ))
            if 'tcp' in sockets:
                self.workers.append(threading.Thread(
                    target=self._tcp_loop, args=(sockets['tcp'],), name='syslog-tcp', daemon=True
                ))
            for worker in self.workers:
                worker.start()

            self.state = ServerState.RUNNING
            for name, bound_port in self.bound_ports.items():
                logger.info(f"{name.upper()} syslog receiver listening on {host}:{bound_port}")

    def stop(self) -> None:
        """
        Stop receiving and wait for all threads to exit.
        Messages received before the call are still delivered; once stop()
        returns the callback is not invoked again.
        """
        with self.lifecycle_lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        """Internal: stop() body, lifecycle_lock must be held"""
        if self.state == ServerState.STOPPED:
            return

        self.running.clear()

        for worker in self.workers:
            worker.join(timeout=self.join_timeout)
            if worker.is_alive():
                logger.warning(f"Worker {worker.name} did not exit within {self.join_timeout}s")
        self.workers = []

        if self.dispatcher is not None:
            try:
                self.messages.put(_SHUTDOWN, timeout=self.join_timeout)
            except queue.Full:
                logger.warning("Message queue still full, dispatcher was not signalled")
            if self.dispatcher is not threading.current_thread():
                self.dispatcher.join(timeout=self.join_timeout)
                if self.dispatcher.is_alive():
                    logger.warning(f"Dispatcher did not exit within {self.join_timeout}s")
            self.dispatcher = None

        self.bound_ports = {}
        self.state = ServerState.STOPPED
        logger.info("Syslog server stopped")

    def _udp_loop(self, sock: PollableSocket) -> None:
        """Worker: one datagram is one message"""
        try:
            while self.running.is_set():
                try:
                    if not sock.poll():
                        continue
                    data, addr = sock.recvfrom(self.UDP_BUFFER_SIZE)
                except BlockingIOError:
                    continue
                except OSError as e:
                    if self.running.is_set():
                        logger.error(f"Error receiving UDP message: {e}")
                    continue

                if data:
                    self._process_message(data, addr[0])
        finally:
            sock.close()
            logger.debug("UDP worker exited")

    def _tcp_loop(self, sock: PollableSocket) -> None:
        """
        Worker: one connection carries one message.
        Exactly one read is made per connection; anything the peer writes
        after that first read, or beyond TCP_BUFFER_SIZE, is discarded.
        """
        try:
            while self.running.is_set():
                try:
                    if not sock.poll():
                        continue
                    client_sock, client_addr = sock.accept(recv_timeout=self.tcp_recv_timeout)
                except BlockingIOError:
                    continue
                except OSError as e:
                    if self.running.is_set():
                        logger.error(f"Error accepting TCP connection: {e}")
                    continue

                try:
                    data = client_sock.recv(self.TCP_BUFFER_SIZE)
                except socket.timeout:
                    logger.warning(f"No data from {client_addr[0]} within {self.tcp_recv_timeout}s")
                    data = b''
                except OSError as e:
                    logger.error(f"Error reading from {client_addr}: {e}")
                    data = b''
                finally:
                    client_sock.close()

                # The line delimiter is framing, not part of the message
                data = data.rstrip(b'\r\n\x00')
                if data:
                    self._process_message(data, client_addr[0])
        finally:
            sock.close()
            logger.debug("TCP worker exited")

    def _process_message(self, data: bytes, source_ip: str) -> None:
        """Parse a received payload and hand it to the dispatcher"""
        message = SyslogCodec.parse(data)
        if not message.hostname:
            message = message.replace(hostname=source_ip)
        self._enqueue(message)

    def _enqueue(self, message: SyslogMessage) -> None:
        if self.backpressure == BackpressurePolicy.DROP_OLDEST:
            while True:
                try:
                    self.messages.put_nowait(message)
                    return
                except queue.Full:
                    try:
                        self.messages.get_nowait()
                    except queue.Empty:
                        continue
                    self._count_drop()
                    logger.warning("Message queue full, dropped oldest message")

        try:
            self.messages.put_nowait(message)
            return
        except queue.Full:
            pass

        while self.running.is_set():
            try:
                self.messages.put(message, timeout=self.poll_timeout)
                return
            except queue.Full:
                continue

        self._count_drop()
        logger.warning(f"Dropped message from {message.hostname} received during shutdown")

    def _count_drop(self) -> None:
        with self.stats_lock:
            self.dropped_count += 1

    def _dispatch_loop(self) -> None:
        """Dispatcher: deliver queued messages in order until the shutdown marker"""
        while True:
            item = self.messages.get()
            if item is _SHUTDOWN:
                break

            callback = self.callback
            if callback is None:
                logger.debug("No callback registered, message discarded")
                continue

            try:
                callback(item)
            except Exception as e:
                logger.error(f"Message callback failed: {e}", exc_info=True)

        logger.debug("Dispatcher exited")

    def __enter__(self) -> 'SyslogServer':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.stop()
        return False
