"""
错误处理器测试
"""
import pytest
import socket
import ssl

import dns.resolver
import requests

from site_status_monitor.services.error_handler import (
    ProbeErrorHandler, SnapshotWriteError, SiteMonitorError, ConfigurationError
)


class TestProbeErrorHandler:
    """探测错误处理器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.handler = ProbeErrorHandler()

    def test_is_timeout(self):
        """测试超时判断"""
        assert self.handler.is_timeout(socket.timeout("timed out")) is True
        assert self.handler.is_timeout(TimeoutError()) is True
        assert self.handler.is_timeout(requests.exceptions.ReadTimeout()) is True
        assert self.handler.is_timeout(OSError("The read operation timed out")) is True
        assert self.handler.is_timeout(ConnectionRefusedError()) is False

    def test_handle_probe_error(self):
        """测试探测错误处理"""
        error = ConnectionRefusedError("Connection refused")

        error_info = self.handler.handle_probe_error('tls', "example.com", error)

        assert error_info['probe'] == 'tls'
        assert error_info['target'] == "example.com"
        assert error_info['error_type'] == "ConnectionRefusedError"
        assert error_info['error_message'] == "Connection refused"
        assert error_info['is_timeout'] is False
        assert 'timestamp' in error_info
        assert error_info['suggested_action'] == "检查目标服务器是否运行，端口是否正确"

    def test_suggested_actions(self):
        """测试建议处理方案"""
        test_cases = [
            (socket.timeout("timed out"), "检查网络连接，考虑增加超时时间"),
            (socket.gaierror("Name or service not known"), "检查域名是否正确，DNS服务器是否可用"),
            (dns.resolver.NXDOMAIN(), "检查域名是否正确，DNS服务器是否可用"),
            (ssl.SSLError("handshake failure"), "SSL握手失败，检查SSL/TLS版本兼容性"),
            (ssl.SSLError("wrong version number"), "SSL连接问题，检查服务器SSL配置"),
            (requests.exceptions.ConnectionError("reset"), "HTTP连接失败，检查服务器状态和网络"),
            (OSError("No route to host"), "无法路由到主机，检查防火墙和网络配置"),
            (ValueError("boom"), "检查网络连接和服务器状态"),
        ]

        for error, expected in test_cases:
            assert self.handler._get_suggested_action(error) == expected, f"{type(error).__name__}"

    def test_error_statistics_empty(self):
        """测试空错误统计"""
        stats = self.handler.get_error_statistics([])

        assert stats['total_errors'] == 0
        assert stats['most_common_error'] is None

    def test_error_statistics(self):
        """测试错误统计"""
        errors = [
            self.handler.handle_probe_error('dns', "a.com", dns.resolver.NXDOMAIN()),
            self.handler.handle_probe_error('tls', "a.com", socket.timeout("timed out")),
            self.handler.handle_probe_error('http', "https://a.com/", socket.timeout("timed out")),
        ]

        stats = self.handler.get_error_statistics(errors)

        assert stats['total_errors'] == 3
        assert stats['timeout_errors'] == 2
        assert stats['errors_by_probe'] == {'dns': 1, 'tls': 1, 'http': 1}
        assert stats['most_common_error'] in ("timeout", "TimeoutError")
        assert stats['most_common_error_count'] == 2


class TestExceptions:
    """异常类型测试类"""

    def test_snapshot_write_error(self):
        """测试快照写入异常"""
        cause = PermissionError("Permission denied")
        error = SnapshotWriteError("/readonly/status.json", cause)

        assert isinstance(error, SiteMonitorError)
        assert error.location == "/readonly/status.json"
        assert error.cause is cause
        assert "PermissionError" in str(error)
        assert "/readonly/status.json" in str(error)

    def test_configuration_error(self):
        """测试配置异常"""
        assert issubclass(ConfigurationError, SiteMonitorError)
