"""
服务接口定义
"""
from abc import ABC, abstractmethod
from typing import Optional
from .models import ResolverResult, CertificateProbeResult, PageProbeResult, SiteCheck, Snapshot


class ResolverProbeInterface(ABC):
    """DNS解析探测接口"""

    @abstractmethod
    def resolve(self, hostname: str) -> ResolverResult:
        """解析主机名"""
        pass


class CertificateProbeInterface(ABC):
    """TLS证书探测接口"""

    @abstractmethod
    def check_certificate(self, hostname: str) -> CertificateProbeResult:
        """获取主机的证书信息"""
        pass


class PageProbeInterface(ABC):
    """页面探测接口"""

    @abstractmethod
    def fetch(self, url: str) -> PageProbeResult:
        """请求页面"""
        pass

    @abstractmethod
    def page_looks_ok(self, status: Optional[int], body: str) -> bool:
        """判断页面内容是否正常"""
        pass


class SnapshotStoreInterface(ABC):
    """快照存储接口"""

    @abstractmethod
    def load(self) -> Optional[Snapshot]:
        """读取上一次的快照，不存在或损坏时返回None"""
        pass

    @abstractmethod
    def save(self, snapshot: Snapshot) -> str:
        """写入快照，返回存储位置"""
        pass


class LoggerServiceInterface(ABC):
    """日志服务接口"""

    @abstractmethod
    def log_run_start(self, site_count: int):
        """记录运行开始"""
        pass

    @abstractmethod
    def log_site_check(self, site: SiteCheck):
        """记录站点检查结果"""
        pass

    @abstractmethod
    def log_error(self, target: str, error: Exception):
        """记录错误信息"""
        pass
