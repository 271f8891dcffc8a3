"""
站点配置管理器测试
"""
import pytest
import os
from dataclasses import FrozenInstanceError
from unittest.mock import patch

from site_status_monitor.services.site_config import (
    SiteConfigManager, MonitorConfig, DEFAULT_SITES, DEFAULT_RENEWAL_ISSUERS, DEFAULT_SOFT_FAILURE_PHRASES
)
from site_status_monitor.services.error_handler import ConfigurationError


class TestSiteConfigManager:
    """站点配置管理器测试类"""

    def setup_method(self):
        """测试前准备"""
        self.manager = SiteConfigManager()

    def test_validate_url_valid(self):
        """测试有效URL"""
        valid_urls = [
            "https://example.com/",
            "https://www.example.com",
            "https://sub.example.co.kr/path?x=1",
            "https://www.middle-east.kearney.com/",
            "https://example.com:8443/"
        ]

        for url in valid_urls:
            assert self.manager.validate_url(url) is True, f"URL {url} 应该是有效的"

    def test_validate_url_invalid(self):
        """测试无效URL"""
        invalid_urls = [
            "",
            None,
            "http://example.com/",
            "example.com",
            "https://",
            "https://192.168.1.1/",
            "https://-example.com/",
            "ftp://example.com/"
        ]

        for url in invalid_urls:
            assert self.manager.validate_url(url) is False, f"URL {url} 应该是无效的"

    @patch.dict(os.environ, {'SITES': 'https://b.example.com/, http://bad.example.com/, https://a.example.com/'})
    def test_get_sites_from_env_keeps_order(self):
        """测试从环境变量获取站点并保持顺序"""
        assert self.manager.get_sites() == ['https://b.example.com/', 'https://a.example.com/']

    @patch.dict(os.environ, {'SITES': 'https://a.example.com/,https://b.example.com/,https://a.example.com/'})
    def test_get_sites_drops_duplicates(self):
        """测试去除重复站点"""
        assert self.manager.get_sites() == ['https://a.example.com/', 'https://b.example.com/']

    @patch.dict(os.environ, {'SITES': ''})
    def test_get_sites_empty_env(self):
        """测试环境变量为空时使用默认列表"""
        assert self.manager.get_sites() == list(DEFAULT_SITES)

    @patch.dict(os.environ, {'SITES': 'not-a-url, http://plain.example.com'})
    def test_get_sites_all_invalid(self):
        """测试全部无效时使用默认列表"""
        assert self.manager.get_sites() == list(DEFAULT_SITES)

    @patch.dict(os.environ, {}, clear=True)
    def test_load_config_defaults(self):
        """测试默认配置"""
        config = self.manager.load_config()

        assert config.sites == DEFAULT_SITES
        assert config.probe_timeout == 12.0
        assert config.max_workers == 5
        assert config.snapshot_path == "docs/status.json"
        assert config.snapshot_bucket is None
        assert config.snapshot_key == "status.json"
        assert config.dashboard_path is None
        assert config.renewal_issuers == DEFAULT_RENEWAL_ISSUERS
        assert config.soft_failure_phrases == DEFAULT_SOFT_FAILURE_PHRASES

    @patch.dict(os.environ, {
        'SITES': 'https://a.example.com/',
        'PROBE_TIMEOUT': '3.5',
        'MAX_WORKERS': '2',
        'SNAPSHOT_PATH': '/tmp/out/status.json',
        'SNAPSHOT_BUCKET': 'status-bucket',
        'SNAPSHOT_KEY': 'dash/status.json',
        'DASHBOARD_PATH': '/tmp/out/dashboard.json',
        'RENEWAL_ISSUERS': 'R3, E5',
        'SOFT_FAILURE_PHRASES': 'Maintenance,Bad Gateway'
    }, clear=True)
    def test_load_config_from_env(self):
        """测试从环境变量加载配置"""
        config = self.manager.load_config()

        assert config.sites == ('https://a.example.com/',)
        assert config.probe_timeout == 3.5
        assert config.max_workers == 2
        assert config.snapshot_path == '/tmp/out/status.json'
        assert config.snapshot_bucket == 'status-bucket'
        assert config.snapshot_key == 'dash/status.json'
        assert config.dashboard_path == '/tmp/out/dashboard.json'
        assert config.renewal_issuers == ('R3', 'E5')
        assert config.soft_failure_phrases == ('maintenance', 'bad gateway')

    @patch.dict(os.environ, {'PROBE_TIMEOUT': 'abc'}, clear=True)
    def test_load_config_invalid_timeout(self):
        """测试超时时间格式无效"""
        with pytest.raises(ConfigurationError):
            self.manager.load_config()

    @patch.dict(os.environ, {'PROBE_TIMEOUT': '0'}, clear=True)
    def test_load_config_non_positive_timeout(self):
        """测试超时时间必须大于0"""
        with pytest.raises(ConfigurationError):
            self.manager.load_config()

    @patch.dict(os.environ, {'MAX_WORKERS': '0'}, clear=True)
    def test_load_config_invalid_workers(self):
        """测试并发数必须至少为1"""
        with pytest.raises(ConfigurationError):
            self.manager.load_config()

    def test_config_is_immutable(self):
        """测试配置不可修改"""
        config = MonitorConfig()

        with pytest.raises(FrozenInstanceError):
            config.probe_timeout = 1
