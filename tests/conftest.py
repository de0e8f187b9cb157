"""Pytest configuration and shared fixtures for test suite"""

import os
import tempfile
from typing import Generator, Tuple

import pytest

from helpers import MessageCollector, find_free_port
from syslogkit.log_storage import LogStorage
from syslogkit.syslog_server import SyslogServer


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests requiring network")
    config.addinivalue_line("markers", "scenario: Real-world scenario and performance tests")
    config.addinivalue_line("markers", "slow: Tests that take longer than 1 second")


@pytest.fixture
def temp_db_dir() -> Generator[str, None, None]:
    """Create temporary directory for database files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_db_path(temp_db_dir: str) -> str:
    return os.path.join(temp_db_dir, 'test_logs.db')


@pytest.fixture
def log_storage(temp_db_path: str) -> Generator[LogStorage, None, None]:
    """Create LogStorage instance backed by a temporary file"""
    storage = LogStorage(temp_db_path)
    yield storage
    storage.close()


@pytest.fixture
def collector() -> MessageCollector:
    return MessageCollector()


@pytest.fixture
def server_with_port(collector: MessageCollector) -> Generator[Tuple[SyslogServer, int], None, None]:
    """Create a running server (UDP and TCP) on an available port"""
    port = find_free_port()
    server = SyslogServer(callback=collector)
    server.start(port, enable_udp=True, enable_tcp=True, host='127.0.0.1')

    yield server, port

    server.stop()


@pytest.fixture
def storing_server_with_port(log_storage: LogStorage) -> Generator[Tuple[SyslogServer, int], None, None]:
    """Create a running server whose callback writes to log_storage"""
    port = find_free_port()
    server = SyslogServer(callback=log_storage.write)
    server.start(port, enable_udp=True, enable_tcp=True, host='127.0.0.1')

    yield server, port

    server.stop()


@pytest.fixture
def sample_syslog_messages() -> dict:
    """Sample syslog messages for testing various scenarios"""
    return {
        'rfc3164_emergency': '<8>Jan 15 10:30:45 server1 kernel: System panic - critical failure',
        'rfc3164_error': '<11>Jan 15 10:30:48 server1 app: Failed to process request',
        'rfc3164_info': '<14>Jan 15 10:30:51 server1 app: User logged in: admin',
        'rfc3164_padded_day': '<14>Jan  5 10:30:51 server1 app: Padded day',
        'iso_timestamp': '<14>2025-11-17T10:30:45.123Z server1 app: ISO timestamp',

        'malformed_no_priority': 'Jan 15 10:30:45 server1 app: Missing priority tag',
        'malformed_invalid_priority': '<>Jan 15 10:30:45 server1 app: Empty priority',
        'malformed_high_priority': '<999>Jan 15 10:30:45 server1 app: Priority too high',

        'empty': '',
    }


@pytest.fixture
def real_world_log_samples() -> dict:
    """Real-world log message examples from various systems"""
    return {
        'nginx_access': '<14>Jan 15 10:30:45 web01 nginx: 192.168.1.100 - - [15/Jan/2025:10:30:45 +0000] "GET /api/v1/users HTTP/1.1" 200 1234',
        'mysql_error': '<11>Jan 15 10:30:45 db01 mysqld: [ERROR] InnoDB: Cannot allocate memory for the buffer pool',
        'ssh_auth_success': '<14>Jan 15 10:30:45 server1 sshd[12345]: Accepted publickey for admin from 192.168.1.50 port 54321 ssh2',
        'ssh_auth_failure': '<12>Jan 15 10:30:45 server1 sshd[12346]: Failed password for invalid user hacker from 203.0.113.100',
        'kernel_oom': '<8>Jan 15 10:30:45 server1 kernel: Out of memory: Kill process 12345 (java) score 789',
        'systemd_service': '<14>Jan 15 10:30:45 server1 systemd[1]: Started My Application Service.',
        'cron_job': '<78>Jan 15 10:30:45 server1 CRON[12345]: (root) CMD (/usr/local/bin/backup.sh)',
    }


@pytest.fixture
def performance_test_config() -> dict:
    """Configuration for performance testing"""
    return {
        'burst_count': 100,  # Messages in burst
        'concurrent_connections': 10,
        'writer_threads': 8,
        'writes_per_thread': 50,
    }
