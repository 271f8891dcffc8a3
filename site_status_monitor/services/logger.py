"""
日志服务
"""
import os
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List
from ..interfaces import LoggerServiceInterface
from ..models import SiteCheck, SSLState
from .error_handler import ProbeErrorHandler


class LoggerService(LoggerServiceInterface):
    """日志服务实现"""

    def __init__(self, logger_name: str = "site_status_monitor", log_level: Optional[str] = None):
        """
        初始化日志服务

        Args:
            logger_name: 日志器名称
            log_level: 日志级别，如果为None则从环境变量读取
        """
        self.logger_name = logger_name
        self.log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')

        self.logger = logging.getLogger(logger_name)
        self._configure_logger()

        self.reset_stats()

    def _configure_logger(self):
        """配置日志器"""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        self.logger.setLevel(level)

        # 避免重复添加处理器
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)

            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)

            self.logger.addHandler(handler)

        self.logger.propagate = False

    def log_run_start(self, site_count: int):
        """
        记录运行开始

        Args:
            site_count: 要检查的站点数量
        """
        self.execution_stats['start_time'] = datetime.now(timezone.utc)
        self.execution_stats['total_sites'] = site_count

        self.logger.info(f"开始站点状态检查，共 {site_count} 个站点")
        self.logger.info(f"检查开始时间: {self.execution_stats['start_time'].isoformat()}")

    def log_site_check(self, site: SiteCheck):
        """
        记录站点检查结果

        Args:
            site: 站点检查结果
        """
        days_left = site.ssl_days_left if site.ssl_days_left is not None else "未知"
        details = (
            f"站点: {site.url}, "
            f"DNS: {'OK' if site.dns_ok else 'FAIL'}, "
            f"TLS: {'OK' if site.tls_ok else 'FAIL'}, "
            f"HTTP: {site.http_status if site.http_status is not None else 'FAIL'}, "
            f"页面: {'OK' if site.page_ok else 'FAIL'}, "
            f"证书剩余天数: {days_left}, "
            f"证书状态: {site.ssl_state.value}, "
            f"颁发者: {site.ssl_issuer or '未知'}"
        )

        if site.is_healthy:
            self.execution_stats['healthy_sites'] += 1
        else:
            self.execution_stats['unhealthy_sites'] += 1

        if not site.is_healthy or site.ssl_state == SSLState.ACTION:
            self.logger.warning(f"站点异常 - {details}")
        elif site.ssl_state == SSLState.RENEWAL:
            self.logger.info(f"证书续期中 - {details}")
        else:
            self.logger.info(f"站点正常 - {details}")

    def log_probe_errors(self, errors: List[Dict[str, Any]]):
        """
        记录探测错误（已由探测器转换为错误信息）

        Args:
            errors: 错误信息列表
        """
        self.execution_stats['errors'].extend(errors)

    def log_error(self, target: str, error: Exception):
        """
        记录错误信息

        Args:
            target: 站点或存储位置
            error: 异常对象
        """
        error_info = {
            'probe': 'run',
            'target': target,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'timestamp': datetime.now(timezone.utc).isoformat()
        }

        self.execution_stats['errors'].append(error_info)

        self.logger.error(f"{target} 发生错误: {type(error).__name__}: {str(error)}")
        self.logger.debug(f"{target} 错误堆栈跟踪:\n{traceback.format_exc()}")

    def log_snapshot_written(self, location: str, site_count: int):
        """记录快照写入"""
        self.logger.info(f"快照写入成功: {location}，站点数量: {site_count}")

    def log_run_end(self):
        """记录运行结束"""
        self.execution_stats['end_time'] = datetime.now(timezone.utc)

        if self.execution_stats['start_time']:
            duration = (self.execution_stats['end_time'] - self.execution_stats['start_time']).total_seconds()
        else:
            duration = 0

        self.logger.info("站点状态检查完成")
        self.logger.info(f"总执行时间: {duration:.2f} 秒")
        self.logger.info(
            f"检查统计: 总计 {self.execution_stats['total_sites']} 个站点, "
            f"正常 {self.execution_stats['healthy_sites']} 个, "
            f"异常 {self.execution_stats['unhealthy_sites']} 个"
        )

    def log_configuration_info(self, config: Dict[str, Any]):
        """
        记录配置信息

        Args:
            config: 配置信息字典
        """
        safe_config = self._sanitize_config(config)

        self.logger.info("系统配置信息:")
        for key, value in safe_config.items():
            self.logger.info(f"  {key}: {value}")

    def _sanitize_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        清理配置信息中的敏感数据

        Args:
            config: 原始配置

        Returns:
            Dict[str, Any]: 清理后的配置
        """
        safe_config = {}
        for key, value in config.items():
            key_lower = key.lower()

            is_sensitive = (
                key_lower in ('password', 'secret', 'token', 'key') or
                key_lower.endswith('_secret') or
                key_lower.endswith('_password') or
                key_lower.endswith('_token') or
                key_lower.endswith('access_key')
            )

            if is_sensitive and isinstance(value, str) and value:
                safe_config[key] = value[:3] + "***" if len(value) > 3 else "***"
            else:
                safe_config[key] = value

        return safe_config

    def get_execution_summary(self) -> Dict[str, Any]:
        """
        获取执行摘要

        Returns:
            Dict[str, Any]: 执行摘要信息
        """
        stats = self.execution_stats
        duration = 0
        if stats['start_time'] and stats['end_time']:
            duration = (stats['end_time'] - stats['start_time']).total_seconds()

        return {
            'start_time': stats['start_time'].isoformat() if stats['start_time'] else None,
            'end_time': stats['end_time'].isoformat() if stats['end_time'] else None,
            'duration_seconds': duration,
            'total_sites': stats['total_sites'],
            'healthy_sites': stats['healthy_sites'],
            'unhealthy_sites': stats['unhealthy_sites'],
            'health_rate': (
                stats['healthy_sites'] / stats['total_sites']
                if stats['total_sites'] > 0 else 0
            ),
            'error_count': len(stats['errors']),
            'errors': stats['errors'],
            'error_statistics': ProbeErrorHandler().get_error_statistics(stats['errors'])
        }

    def log_execution_summary(self):
        """记录执行摘要"""
        summary = self.get_execution_summary()

        self.logger.info("=" * 50)
        self.logger.info("执行摘要")
        self.logger.info("=" * 50)

        if summary['start_time']:
            self.logger.info(f"开始时间: {summary['start_time']}")
        if summary['end_time']:
            self.logger.info(f"结束时间: {summary['end_time']}")

        self.logger.info(f"执行时长: {summary['duration_seconds']:.2f} 秒")
        self.logger.info(f"总站点数: {summary['total_sites']}")
        self.logger.info(f"正常站点: {summary['healthy_sites']}")
        self.logger.info(f"异常站点: {summary['unhealthy_sites']}")
        self.logger.info(f"正常率: {summary['health_rate']:.1%}")

        if summary['errors']:
            self.logger.info(f"错误数量: {summary['error_count']}")
            for i, error in enumerate(summary['errors'][:5], 1):
                self.logger.info(
                    f"  错误 {i}: [{error.get('probe', 'unknown')}] {error['target']} - "
                    f"{error['error_type']}: {error['error_message']}"
                )

            if len(summary['errors']) > 5:
                self.logger.info(f"  ... 还有 {len(summary['errors']) - 5} 个错误")

        self.logger.info("=" * 50)

    def reset_stats(self):
        """重置执行统计"""
        self.execution_stats = {
            'start_time': None,
            'end_time': None,
            'total_sites': 0,
            'healthy_sites': 0,
            'unhealthy_sites': 0,
            'errors': []
        }
