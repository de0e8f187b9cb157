"""Integration tests for SyslogSender"""

from typing import Tuple

import pytest

from helpers import MessageCollector
from syslogkit.syslog_message import SyslogMessage
from syslogkit.syslog_sender import SyslogSender


@pytest.mark.integration
class TestSyslogSender:
    """Tests sending built messages to a running server"""

    def test_send_udp(self, server_with_port: Tuple, collector: MessageCollector):
        server, port = server_with_port
        sender = SyslogSender(host='127.0.0.1', port=port)
        message = SyslogMessage(
            facility=3, severity=4, timestamp='Jan 15 10:30:45',
            hostname='web01', app_name='nginx', message='Slow upstream'
        )

        wire = sender.send_udp(message)

        assert wire == '<28>Jan 15 10:30:45 web01 nginx: Slow upstream'
        assert collector.wait_for(1)[0] == message

    def test_send_tcp(self, server_with_port: Tuple, collector: MessageCollector):
        server, port = server_with_port
        sender = SyslogSender(host='127.0.0.1', port=port)
        message = SyslogMessage(timestamp='Jan 15 10:30:45', hostname='db01', app_name='mysqld', message='ready')

        sender.send(message, protocol='TCP')

        assert collector.wait_for(1)[0] == message

    def test_send_fills_defaults(self, server_with_port: Tuple, collector: MessageCollector):
        """Test an empty timestamp and hostname are filled in by the codec"""
        server, port = server_with_port
        sender = SyslogSender(host='127.0.0.1', port=port)

        sender.send(SyslogMessage(message='defaults'))

        received = collector.wait_for(1)[0]
        assert received.hostname == 'localhost'
        assert received.timestamp != ''
        assert received.message == 'defaults'

    def test_send_unsupported_protocol(self):
        with pytest.raises(ValueError):
            SyslogSender().send(SyslogMessage(message='x'), protocol='tls')
