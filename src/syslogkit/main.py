#!/usr/bin/env python3
"""
SyslogKit Server - Main Entry Point
Receives syslog messages over UDP and TCP, parses them, and appends them
to a SQLite log that can be queried later.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import BindError, StoreOpenError
from .log_storage import LogStorage
from .syslog_server import BackpressurePolicy, SyslogServer

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _env_bool(env: Mapping[str, str], name: str, default: str) -> bool:
    value = env.get(name, default).strip().lower()
    if value in ('true', '1', 'yes', 'on'):
        return True
    if value in ('false', '0', 'no', 'off'):
        return False
    raise ValueError(f"{name} must be true or false, got {value!r}")


def _env_int(env: Mapping[str, str], name: str, default: str) -> int:
    value = env.get(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class ServerConfig:
    """Server settings, read from SYSLOG_* environment variables"""
    host: str = '0.0.0.0'
    port: int = 5140
    enable_udp: bool = True
    enable_tcp: bool = True
    db_path: str = 'syslogkit.db'
    queue_size: int = 1024
    backpressure: BackpressurePolicy = BackpressurePolicy.BLOCK
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        if env is None:
            env = os.environ

        port = _env_int(env, 'SYSLOG_PORT', '5140')
        if not 0 <= port <= 65535:
            raise ValueError(f"SYSLOG_PORT out of range: {port}")

        queue_size = _env_int(env, 'SYSLOG_QUEUE_SIZE', '1024')
        if queue_size <= 0:
            raise ValueError(f"SYSLOG_QUEUE_SIZE must be positive, got {queue_size}")

        backpressure_name = env.get('SYSLOG_BACKPRESSURE', 'block').strip().lower()
        try:
            backpressure = BackpressurePolicy(backpressure_name)
        except ValueError:
            raise ValueError(
                f"SYSLOG_BACKPRESSURE must be 'block' or 'drop_oldest', got {backpressure_name!r}"
            ) from None

        log_level = env.get('SYSLOG_LOG_LEVEL', 'INFO').strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"SYSLOG_LOG_LEVEL is not a logging level: {log_level!r}")

        return cls(
            host=env.get('SYSLOG_HOST', '0.0.0.0'),
            port=port,
            enable_udp=_env_bool(env, 'SYSLOG_ENABLE_UDP', 'true'),
            enable_tcp=_env_bool(env, 'SYSLOG_ENABLE_TCP', 'true'),
            db_path=env.get('SYSLOG_DB_PATH', 'syslogkit.db'),
            queue_size=queue_size,
            backpressure=backpressure,
            log_level=log_level
        )


def build_server(config: ServerConfig, storage: LogStorage) -> SyslogServer:
    """Create a server whose callback appends every message to storage"""
    server = SyslogServer(queue_size=config.queue_size, backpressure=config.backpressure)
    server.set_callback(storage.write)
    return server


def main() -> int:
    """Main entry point"""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Invalid configuration: {e}")
        return 2

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    logger.info("Starting SyslogKit server")
    logger.info(f"Port: {config.port} (UDP enabled: {config.enable_udp}, TCP enabled: {config.enable_tcp})")
    logger.info(f"Database: {config.db_path}")

    try:
        storage = LogStorage(config.db_path)
    except StoreOpenError as e:
        logger.error(str(e))
        return 1

    server = build_server(config, storage)
    try:
        server.start(config.port, config.enable_udp, config.enable_tcp, host=config.host)
    except BindError:
        storage.close()
        return 1

    # Keep running
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.stop()
        storage.close()

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
