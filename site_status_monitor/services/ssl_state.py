"""
证书状态分类服务
"""
import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Dict

from ..models import SiteCheck, SSLState
from .site_config import DEFAULT_RENEWAL_ISSUERS


class CertificateStateClassifier:
    """证书状态分类器

    根据本次检查结果和上一次快照中同一url的记录判断证书状态：
    默认ok；中间证书签发、剩余天数在续期窗口内且序列号变化时为renewal；
    剩余天数不超过阈值时强制为action。
    """

    def __init__(self, renewal_issuers: Iterable[str] = DEFAULT_RENEWAL_ISSUERS,
                 renewal_window_min_days: int = 30, renewal_window_max_days: int = 45,
                 action_threshold_days: int = 30):
        """
        初始化证书状态分类器

        Args:
            renewal_issuers: 已知中间证书名称
            renewal_window_min_days: 续期窗口下界（不含）
            renewal_window_max_days: 续期窗口上界（含）
            action_threshold_days: 需要处理的剩余天数阈值（含）
        """
        self.renewal_issuers = frozenset(renewal_issuers)
        self.renewal_window_min_days = renewal_window_min_days
        self.renewal_window_max_days = renewal_window_max_days
        self.action_threshold_days = action_threshold_days

    def calculate_days_left(self, expires_at: Optional[datetime],
                            now: Optional[datetime] = None) -> Optional[int]:
        """
        计算距离过期的天数（向上取整）

        Args:
            expires_at: 过期时间
            now: 当前时间，默认为UTC当前时间

        Returns:
            Optional[int]: 剩余天数（负数表示已过期），过期时间为空时返回None
        """
        if expires_at is None:
            return None
        now = now or datetime.now(timezone.utc)
        seconds = (expires_at - now).total_seconds()
        return math.ceil(seconds / 86400)

    def is_renewal_in_progress(self, current: SiteCheck, previous: Optional[SiteCheck]) -> bool:
        """
        判断是否正在轮换证书

        Args:
            current: 本次检查结果
            previous: 上一次快照中同一url的记录

        Returns:
            bool: 是否满足续期条件
        """
        days_left = current.ssl_days_left
        return (
            current.ssl_issuer in self.renewal_issuers
            and days_left is not None
            and self.renewal_window_min_days < days_left <= self.renewal_window_max_days
            and previous is not None
            and bool(previous.ssl_serial)
            and bool(current.ssl_serial)
            and previous.ssl_serial != current.ssl_serial
        )

    def requires_action(self, current: SiteCheck) -> bool:
        """判断证书是否即将过期需要处理"""
        return current.ssl_days_left is not None and current.ssl_days_left <= self.action_threshold_days

    def classify(self, current: SiteCheck, previous: Optional[SiteCheck] = None) -> SSLState:
        """
        计算证书状态

        Args:
            current: 本次检查结果
            previous: 上一次快照中同一url的记录

        Returns:
            SSLState: 证书状态
        """
        state = SSLState.OK

        if self.is_renewal_in_progress(current, previous):
            state = SSLState.RENEWAL

        if self.requires_action(current):
            state = SSLState.ACTION

        return state

    def categorize_sites(self, sites: List[SiteCheck]) -> Dict[str, List[SiteCheck]]:
        """
        按证书状态对站点分类

        Args:
            sites: 站点检查结果

        Returns:
            dict: 分类结果
        """
        return {
            SSLState.OK.value: [site for site in sites if site.ssl_state == SSLState.OK],
            SSLState.RENEWAL.value: [site for site in sites if site.ssl_state == SSLState.RENEWAL],
            SSLState.ACTION.value: [site for site in sites if site.ssl_state == SSLState.ACTION],
        }

    def get_state_summary(self, sites: List[SiteCheck]) -> str:
        """
        获取证书状态摘要

        Args:
            sites: 站点检查结果

        Returns:
            str: 摘要信息
        """
        categorized = self.categorize_sites(sites)

        summary_parts = [f"总计: {len(sites)} 个站点"]

        if categorized['action']:
            summary_parts.append(f"需要处理({self.action_threshold_days}天内): {len(categorized['action'])} 个")

        if categorized['renewal']:
            summary_parts.append(f"续期中: {len(categorized['renewal'])} 个")

        if categorized['ok']:
            summary_parts.append(f"正常: {len(categorized['ok'])} 个")

        return ", ".join(summary_parts)
