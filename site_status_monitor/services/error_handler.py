"""
错误处理服务
"""
import socket
import ssl
from typing import Any, Dict, List
from datetime import datetime, timezone
import logging

import dns.exception
import dns.resolver
import requests


class SiteMonitorError(Exception):
    """站点监控基础异常"""


class ConfigurationError(SiteMonitorError):
    """配置无效（致命）"""


class SnapshotWriteError(SiteMonitorError):
    """快照无法写入（致命）"""

    def __init__(self, location: str, cause: Exception):
        self.location = location
        self.cause = cause
        super().__init__(f"无法写入快照 {location}: {type(cause).__name__}: {cause}")


class ProbeErrorHandler:
    """探测错误处理器

    探测失败只记录并转换为结果数据，不重试也不向上抛出。
    """

    # 超时类错误
    timeout_errors = (
        socket.timeout,
        TimeoutError,
        requests.exceptions.Timeout,
        dns.exception.Timeout,
    )

    def __init__(self):
        """初始化探测错误处理器"""
        self.logger = logging.getLogger(__name__)

    def is_timeout(self, error: Exception) -> bool:
        """
        判断错误是否为超时

        Args:
            error: 异常对象

        Returns:
            bool: 是否超时
        """
        if isinstance(error, self.timeout_errors):
            return True
        return 'timed out' in str(error).lower()

    def handle_probe_error(self, probe: str, target: str, error: Exception) -> Dict[str, Any]:
        """
        处理探测错误

        Args:
            probe: 探测类型（dns/tls/http）
            target: 主机名或URL
            error: 异常对象

        Returns:
            Dict[str, Any]: 错误处理结果
        """
        error_info = {
            'probe': probe,
            'target': target,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'is_timeout': self.is_timeout(error),
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'suggested_action': self._get_suggested_action(error)
        }

        if error_info['is_timeout']:
            self.logger.warning(f"{probe} 探测超时 - {target}: {error_info['error_message']}")
        else:
            self.logger.warning(
                f"{probe} 探测失败 - {target}: {error_info['error_type']}: {error_info['error_message']}"
            )

        return error_info

    def _get_suggested_action(self, error: Exception) -> str:
        """
        获取错误的建议处理方案

        Args:
            error: 异常对象

        Returns:
            str: 建议的处理方案
        """
        error_message = str(error).lower()

        if self.is_timeout(error):
            return "检查网络连接，考虑增加超时时间"
        elif isinstance(error, (socket.gaierror, dns.resolver.NXDOMAIN, dns.resolver.NoNameservers)):
            return "检查域名是否正确，DNS服务器是否可用"
        elif isinstance(error, ConnectionRefusedError):
            return "检查目标服务器是否运行，端口是否正确"
        elif isinstance(error, ssl.SSLError):
            if 'handshake failure' in error_message:
                return "SSL握手失败，检查SSL/TLS版本兼容性"
            return "SSL连接问题，检查服务器SSL配置"
        elif isinstance(error, requests.exceptions.ConnectionError):
            return "HTTP连接失败，检查服务器状态和网络"
        elif 'network is unreachable' in error_message:
            return "网络不可达，检查网络连接和路由"
        elif 'no route to host' in error_message:
            return "无法路由到主机，检查防火墙和网络配置"
        else:
            return "检查网络连接和服务器状态"

    def get_error_statistics(self, error_list: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        获取错误统计信息

        Args:
            error_list: 错误信息列表

        Returns:
            Dict[str, Any]: 错误统计
        """
        if not error_list:
            return {
                'total_errors': 0,
                'timeout_errors': 0,
                'errors_by_probe': {},
                'error_types': {},
                'most_common_error': None
            }

        error_types = {}
        errors_by_probe = {}
        timeout_count = 0

        for error_info in error_list:
            error_type = error_info.get('error_type', 'Unknown')
            error_types[error_type] = error_types.get(error_type, 0) + 1

            probe = error_info.get('probe', 'unknown')
            errors_by_probe[probe] = errors_by_probe.get(probe, 0) + 1

            if error_info.get('is_timeout', False):
                timeout_count += 1

        most_common_error = max(error_types.items(), key=lambda x: x[1])

        return {
            'total_errors': len(error_list),
            'timeout_errors': timeout_count,
            'errors_by_probe': errors_by_probe,
            'error_types': error_types,
            'most_common_error': most_common_error[0],
            'most_common_error_count': most_common_error[1]
        }
