"""
站点配置管理服务
"""
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlsplit
import logging

from .error_handler import ConfigurationError


DEFAULT_SITES = (
    "https://www.kearney.com/",
    "https://www.de.kearney.com/",
    "https://www.es.kearney.com/",
    "https://www.jp.kearney.com/",
    "https://www.kearney.cn/",
    "https://www.kearney.co.kr/",
    "https://www.middle-east.kearney.com/",
    "https://www.prokura.com/",
    "https://www.jp.prokura.com/",
    "https://www.de.prokura.com/",
)

# Let's Encrypt 中间证书
DEFAULT_RENEWAL_ISSUERS = ("E7", "R3", "R10", "R11")

DEFAULT_SOFT_FAILURE_PHRASES = (
    "application error",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
    "error 500",
    "error 502",
    "error 503",
    "error 504",
)

DEFAULT_PROBE_TIMEOUT = 12.0
DEFAULT_MAX_WORKERS = 5
DEFAULT_SNAPSHOT_PATH = "docs/status.json"
DEFAULT_SNAPSHOT_KEY = "status.json"


@dataclass(frozen=True)
class MonitorConfig:
    """监控配置（进程启动时加载，运行期间不可变）"""
    sites: Tuple[str, ...] = DEFAULT_SITES
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    snapshot_path: str = DEFAULT_SNAPSHOT_PATH
    snapshot_bucket: Optional[str] = None
    snapshot_key: str = DEFAULT_SNAPSHOT_KEY
    dashboard_path: Optional[str] = None
    renewal_issuers: Tuple[str, ...] = DEFAULT_RENEWAL_ISSUERS
    soft_failure_phrases: Tuple[str, ...] = DEFAULT_SOFT_FAILURE_PHRASES
    renewal_window_min_days: int = 30
    renewal_window_max_days: int = 45
    action_threshold_days: int = 30


class SiteConfigManager:
    """站点配置管理器"""

    def __init__(self, env_var_name: str = "SITES"):
        """
        初始化站点配置管理器

        Args:
            env_var_name: 站点列表环境变量名称，默认为"SITES"
        """
        self.env_var_name = env_var_name
        self.logger = logging.getLogger(__name__)

        # 主机名格式验证正则表达式
        self.hostname_pattern = re.compile(
            r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$'
        )

        self.default_sites = list(DEFAULT_SITES)

    def get_sites(self) -> List[str]:
        """
        从环境变量获取站点URL列表（逗号分隔），保持配置顺序

        Returns:
            List[str]: 站点URL列表
        """
        sites_str = os.getenv(self.env_var_name, "")

        if not sites_str.strip():
            self.logger.warning(f"环境变量 {self.env_var_name} 为空，使用默认站点列表")
            return self.default_sites.copy()

        valid_sites = []
        for raw in sites_str.split(','):
            url = raw.strip()
            if not url:
                continue
            if not self.validate_url(url):
                self.logger.warning(f"跳过无效站点: {url}")
                continue
            if url in valid_sites:
                self.logger.warning(f"跳过重复站点: {url}")
                continue
            valid_sites.append(url)

        if not valid_sites:
            self.logger.warning("没有找到有效的站点，使用默认站点列表")
            return self.default_sites.copy()

        self.logger.info(f"成功加载 {len(valid_sites)} 个站点")
        return valid_sites

    def validate_url(self, url: str) -> bool:
        """
        验证站点URL（必须是https且主机名有效）

        Args:
            url: 站点URL

        Returns:
            bool: URL是否有效
        """
        if not url or not isinstance(url, str):
            return False

        try:
            parts = urlsplit(url)
        except ValueError:
            return False

        if parts.scheme.lower() != 'https':
            return False

        return self.validate_hostname(parts.hostname or "")

    def validate_hostname(self, hostname: str) -> bool:
        """
        验证主机名格式

        Args:
            hostname: 主机名

        Returns:
            bool: 主机名是否有效
        """
        if not hostname or len(hostname) > 253:
            return False
        if hostname.startswith('.') or hostname.endswith('.'):
            return False
        return bool(self.hostname_pattern.match(hostname))

    def load_config(self) -> MonitorConfig:
        """
        从环境变量加载完整配置

        Returns:
            MonitorConfig: 监控配置

        Raises:
            ConfigurationError: 数值配置无效
        """
        probe_timeout = self._read_number('PROBE_TIMEOUT', DEFAULT_PROBE_TIMEOUT, float)
        if probe_timeout <= 0:
            raise ConfigurationError(f"PROBE_TIMEOUT 必须大于0: {probe_timeout}")

        max_workers = self._read_number('MAX_WORKERS', DEFAULT_MAX_WORKERS, int)
        if max_workers < 1:
            raise ConfigurationError(f"MAX_WORKERS 必须至少为1: {max_workers}")

        bucket = os.getenv('SNAPSHOT_BUCKET', '').strip() or None

        return MonitorConfig(
            sites=tuple(self.get_sites()),
            probe_timeout=probe_timeout,
            max_workers=max_workers,
            snapshot_path=os.getenv('SNAPSHOT_PATH', '').strip() or DEFAULT_SNAPSHOT_PATH,
            snapshot_bucket=bucket,
            snapshot_key=os.getenv('SNAPSHOT_KEY', '').strip() or DEFAULT_SNAPSHOT_KEY,
            dashboard_path=os.getenv('DASHBOARD_PATH', '').strip() or None,
            renewal_issuers=self._read_list('RENEWAL_ISSUERS', DEFAULT_RENEWAL_ISSUERS),
            soft_failure_phrases=tuple(
                phrase.lower() for phrase in self._read_list('SOFT_FAILURE_PHRASES', DEFAULT_SOFT_FAILURE_PHRASES)
            ),
        )

    def _read_number(self, name: str, default, cast):
        value = os.getenv(name, '').strip()
        if not value:
            return default
        try:
            return cast(value)
        except ValueError:
            raise ConfigurationError(f"环境变量 {name} 格式无效: {value}")

    def _read_list(self, name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
        value = os.getenv(name, '')
        items = tuple(item.strip() for item in value.split(',') if item.strip())
        return items or default
