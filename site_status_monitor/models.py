"""
数据模型定义
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any


class SSLState(str, Enum):
    """证书状态（派生字段）"""
    OK = "ok"
    RENEWAL = "renewal"
    ACTION = "action"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """
    将时间格式化为ISO-8601（UTC，毫秒精度，Z后缀）

    Args:
        value: 时间

    Returns:
        Optional[str]: 格式化后的字符串
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    解析ISO-8601时间字符串

    Args:
        value: 时间字符串

    Returns:
        Optional[datetime]: 解析结果，无法解析时返回None
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class ResolverResult:
    """DNS解析结果"""
    hostname: str
    ok: bool
    error_info: Optional[Dict[str, Any]] = None


@dataclass
class CertificateProbeResult:
    """TLS证书探测结果"""
    hostname: str
    ok: bool
    expires_at: Optional[datetime] = None
    issuer: Optional[str] = None
    serial: Optional[str] = None
    error_info: Optional[Dict[str, Any]] = None


@dataclass
class PageProbeResult:
    """页面探测结果"""
    url: str
    ok: bool
    status: Optional[int] = None
    body: str = ""
    error_info: Optional[Dict[str, Any]] = None

    @property
    def http_ok(self) -> bool:
        """请求完成且状态码小于400"""
        return self.ok and self.status is not None and self.status < 400


@dataclass
class SiteCheck:
    """单个站点的一次检查结果"""
    url: str
    checked_at: datetime
    dns_ok: bool
    tls_ok: bool
    http_ok: bool
    http_status: Optional[int]
    page_ok: bool
    ssl_expires_at: Optional[datetime] = None
    ssl_days_left: Optional[int] = None
    ssl_issuer: Optional[str] = None
    ssl_serial: Optional[str] = None
    ssl_state: SSLState = SSLState.OK

    @property
    def is_healthy(self) -> bool:
        """DNS、TLS、HTTP和页面内容全部正常"""
        return self.dns_ok and self.tls_ok and self.http_ok and self.page_ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'checkedAt': format_timestamp(self.checked_at),
            'dnsOk': self.dns_ok,
            'tlsOk': self.tls_ok,
            'httpOk': self.http_ok,
            'httpStatus': self.http_status,
            'pageOk': self.page_ok,
            'sslExpiresAt': format_timestamp(self.ssl_expires_at),
            'sslDaysLeft': self.ssl_days_left,
            'sslIssuer': self.ssl_issuer,
            'sslSerial': self.ssl_serial,
            'sslState': self.ssl_state.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SiteCheck':
        """
        从快照JSON记录构建

        Args:
            data: JSON记录

        Returns:
            SiteCheck: 检查结果

        Raises:
            ValueError: 记录缺少url或格式错误
        """
        if not isinstance(data, dict):
            raise ValueError(f"站点记录格式无效: {data!r}")

        url = data.get('url')
        if not isinstance(url, str) or not url:
            raise ValueError("站点记录缺少url")

        expires_at = parse_timestamp(data.get('sslExpiresAt'))
        days_left = data.get('sslDaysLeft')
        if expires_at is None or not isinstance(days_left, int) or isinstance(days_left, bool):
            expires_at, days_left = None, None

        try:
            state = SSLState(data.get('sslState', SSLState.OK.value))
        except ValueError:
            state = SSLState.OK

        status = data.get('httpStatus')
        serial = data.get('sslSerial')
        issuer = data.get('sslIssuer')

        return cls(
            url=url,
            checked_at=parse_timestamp(data.get('checkedAt')) or datetime.now(timezone.utc),
            dns_ok=bool(data.get('dnsOk', False)),
            tls_ok=bool(data.get('tlsOk', False)),
            http_ok=bool(data.get('httpOk', False)),
            http_status=status if isinstance(status, int) else None,
            page_ok=bool(data.get('pageOk', False)),
            ssl_expires_at=expires_at,
            ssl_days_left=days_left,
            ssl_issuer=issuer if isinstance(issuer, str) and issuer else None,
            ssl_serial=serial if isinstance(serial, str) and serial else None,
            ssl_state=state,
        )


@dataclass
class SiteEvaluation:
    """站点评估结果及探测过程中的错误"""
    site: SiteCheck
    errors: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class Snapshot:
    """一次运行的全部站点检查结果"""
    generated_at: datetime
    sites: List[SiteCheck] = field(default_factory=list)

    def find(self, url: str) -> Optional[SiteCheck]:
        """按url查找站点记录"""
        for site in self.sites:
            if site.url == url:
                return site
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generatedAt': format_timestamp(self.generated_at),
            'sites': [site.to_dict() for site in self.sites],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        """
        从快照JSON构建

        Args:
            data: 快照JSON对象

        Returns:
            Snapshot: 快照

        Raises:
            ValueError: 快照结构无效
        """
        if not isinstance(data, dict):
            raise ValueError("快照必须是JSON对象")

        raw_sites = data.get('sites')
        if not isinstance(raw_sites, list):
            raise ValueError("快照缺少sites列表")

        generated_at = parse_timestamp(data.get('generatedAt'))
        if generated_at is None:
            raise ValueError("快照缺少有效的generatedAt")

        return cls(
            generated_at=generated_at,
            sites=[SiteCheck.from_dict(item) for item in raw_sites],
        )


@dataclass
class PublishResult:
    """发布运行结果统计"""
    total_sites: int
    healthy_sites: int
    unhealthy_sites: int
    renewal_sites: List[str]
    action_sites: List[str]
    errors: List[str]
    execution_time: float
    snapshot_written: bool
    snapshot: Optional[Snapshot] = None
