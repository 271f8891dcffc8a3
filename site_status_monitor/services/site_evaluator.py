"""
站点评估服务
"""
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import urlsplit
import logging

from ..interfaces import ResolverProbeInterface, CertificateProbeInterface, PageProbeInterface
from ..models import SiteCheck, SiteEvaluation
from .ssl_state import CertificateStateClassifier


class SiteEvaluator:
    """站点评估器：依次执行DNS、TLS和页面探测并计算证书状态"""

    def __init__(self, resolver: ResolverProbeInterface, certificate_probe: CertificateProbeInterface,
                 page_probe: PageProbeInterface, classifier: CertificateStateClassifier,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        初始化站点评估器

        Args:
            resolver: DNS解析探测器
            certificate_probe: TLS证书探测器
            page_probe: 页面探测器
            classifier: 证书状态分类器
            clock: 返回当前UTC时间的函数
        """
        self.resolver = resolver
        self.certificate_probe = certificate_probe
        self.page_probe = page_probe
        self.classifier = classifier
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logging.getLogger(__name__)

    def evaluate(self, url: str, previous: Optional[SiteCheck] = None) -> SiteEvaluation:
        """
        评估单个站点

        Args:
            url: 站点URL
            previous: 上一次快照中同一url的记录

        Returns:
            SiteEvaluation: 站点检查结果及探测错误
        """
        hostname = urlsplit(url).hostname or ""

        dns_result = self.resolver.resolve(hostname)
        tls_result = self.certificate_probe.check_certificate(hostname)
        page_result = self.page_probe.fetch(url)

        now = self.clock()
        expires_at = tls_result.expires_at if tls_result.ok else None

        site = SiteCheck(
            url=url,
            checked_at=now,
            dns_ok=dns_result.ok,
            tls_ok=tls_result.ok,
            http_ok=page_result.http_ok,
            http_status=page_result.status,
            page_ok=self.page_probe.page_looks_ok(page_result.status, page_result.body),
            ssl_expires_at=expires_at,
            ssl_days_left=self.classifier.calculate_days_left(expires_at, now),
            ssl_issuer=tls_result.issuer if tls_result.ok else None,
            ssl_serial=tls_result.serial if tls_result.ok else None,
        )
        site.ssl_state = self.classifier.classify(site, previous)

        errors = [
            result.error_info for result in (dns_result, tls_result, page_result)
            if result.error_info
        ]
        return SiteEvaluation(site=site, errors=errors)
