"""
DNS解析探测服务
"""
import logging
import time

import dns.exception
import dns.resolver

from ..interfaces import ResolverProbeInterface
from ..models import ResolverResult
from .error_handler import ProbeErrorHandler


class DNSResolverProbe(ResolverProbeInterface):
    """DNS解析探测器实现"""

    def __init__(self, timeout: float = 12.0):
        """
        初始化DNS解析探测器

        Args:
            timeout: 解析总超时时间（秒）
        """
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self.error_handler = ProbeErrorHandler()

    def resolve(self, hostname: str) -> ResolverResult:
        """
        解析主机名，先查询A记录，没有A记录时查询AAAA记录

        两次查询共用同一个超时时间。

        Args:
            hostname: 主机名

        Returns:
            ResolverResult: 解析结果，任何错误都视为解析失败
        """
        deadline = time.monotonic() + self.timeout

        try:
            resolver = dns.resolver.Resolver(configure=True)
            resolver.timeout = self.timeout
            resolver.lifetime = self.timeout

            try:
                answer = resolver.resolve(hostname, 'A', lifetime=self.timeout)
            except dns.resolver.NoAnswer:
                # AAAA查询只使用剩余时间
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise dns.exception.Timeout(timeout=self.timeout)
                answer = resolver.resolve(hostname, 'AAAA', lifetime=remaining)
        except Exception as e:
            error_info = self.error_handler.handle_probe_error('dns', hostname, e)
            return ResolverResult(hostname=hostname, ok=False, error_info=error_info)

        addresses = [str(record) for record in answer]
        self.logger.debug(f"域名 {hostname} 解析成功: {', '.join(addresses)}")
        return ResolverResult(hostname=hostname, ok=True)
