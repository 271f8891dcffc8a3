"""
快照发布器
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional

from .interfaces import SnapshotStoreInterface
from .models import PublishResult, SiteCheck, SiteEvaluation, Snapshot, SSLState
from .services.dns_resolver import DNSResolverProbe
from .services.logger import LoggerService
from .services.page_checker import PageChecker
from .services.site_config import MonitorConfig
from .services.site_evaluator import SiteEvaluator
from .services.snapshot_store import create_snapshot_store
from .services.ssl_checker import SSLCertificateChecker
from .services.ssl_state import CertificateStateClassifier


class SnapshotPublisher:
    """快照发布器：检查全部站点并写入新快照"""

    def __init__(self, config: MonitorConfig, store: Optional[SnapshotStoreInterface] = None,
                 evaluator: Optional[SiteEvaluator] = None,
                 logger_service: Optional[LoggerService] = None):
        """
        初始化发布器

        Args:
            config: 监控配置
            store: 快照存储，默认根据配置创建
            evaluator: 站点评估器，默认根据配置创建
            logger_service: 日志服务
        """
        self.config = config
        self.logger_service = logger_service or LoggerService()
        self.store = store or create_snapshot_store(config)
        self.classifier = CertificateStateClassifier(
            renewal_issuers=config.renewal_issuers,
            renewal_window_min_days=config.renewal_window_min_days,
            renewal_window_max_days=config.renewal_window_max_days,
            action_threshold_days=config.action_threshold_days
        )
        self.evaluator = evaluator or SiteEvaluator(
            resolver=DNSResolverProbe(timeout=config.probe_timeout),
            certificate_probe=SSLCertificateChecker(timeout=config.probe_timeout),
            page_probe=PageChecker(timeout=config.probe_timeout,
                                   soft_failure_phrases=config.soft_failure_phrases),
            classifier=self.classifier
        )

    def execute(self) -> PublishResult:
        """
        执行一次检查并写入快照

        Returns:
            PublishResult: 运行结果

        Raises:
            SnapshotWriteError: 快照无法写入
        """
        self.logger_service.reset_stats()
        start_time = datetime.now(timezone.utc)
        sites = list(self.config.sites)

        previous = self.store.load()
        if previous is None:
            self.logger_service.logger.info("没有上一次的快照，本次不做证书轮换判断")

        self.logger_service.log_run_start(len(sites))

        evaluations = self._evaluate_sites(sites, previous)
        checks = [evaluation.site for evaluation in evaluations]

        snapshot = Snapshot(generated_at=datetime.now(timezone.utc), sites=checks)
        location = self.store.save(snapshot)
        self.logger_service.log_snapshot_written(location, len(checks))

        self.logger_service.log_run_end()
        self.logger_service.logger.info(self.classifier.get_state_summary(checks))
        self.logger_service.log_execution_summary()

        execution_time = (datetime.now(timezone.utc) - start_time).total_seconds()

        return PublishResult(
            total_sites=len(checks),
            healthy_sites=len([site for site in checks if site.is_healthy]),
            unhealthy_sites=len([site for site in checks if not site.is_healthy]),
            renewal_sites=[site.url for site in checks if site.ssl_state == SSLState.RENEWAL],
            action_sites=[site.url for site in checks if site.ssl_state == SSLState.ACTION],
            errors=[
                f"{error['target']}: {error['error_type']}: {error['error_message']}"
                for evaluation in evaluations for error in evaluation.errors
            ],
            execution_time=execution_time,
            snapshot_written=True,
            snapshot=snapshot
        )

    def _evaluate_sites(self, sites: List[str], previous: Optional[Snapshot]) -> List[SiteEvaluation]:
        """
        并发评估站点，结果按配置顺序返回

        Args:
            sites: 站点URL列表
            previous: 上一次的快照

        Returns:
            List[SiteEvaluation]: 评估结果
        """
        if not sites:
            return []

        def evaluate(url: str) -> SiteEvaluation:
            prev_site = previous.find(url) if previous else None
            try:
                evaluation = self.evaluator.evaluate(url, prev_site)
            except Exception as e:
                self.logger_service.log_error(url, e)
                evaluation = SiteEvaluation(site=self._failed_check(url))
            return evaluation

        workers = min(self.config.max_workers, len(sites))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="site-check") as executor:
            evaluations = list(executor.map(evaluate, sites))

        for evaluation in evaluations:
            self.logger_service.log_probe_errors(evaluation.errors)
            self.logger_service.log_site_check(evaluation.site)

        return evaluations

    def _failed_check(self, url: str) -> SiteCheck:
        """评估过程发生意外错误时的站点记录"""
        return SiteCheck(
            url=url,
            checked_at=datetime.now(timezone.utc),
            dns_ok=False,
            tls_ok=False,
            http_ok=False,
            http_status=None,
            page_ok=False
        )
