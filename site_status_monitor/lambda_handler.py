"""
运行入口：AWS Lambda函数和命令行
"""
import argparse
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from .publisher import SnapshotPublisher
from .services.config_validator import ConfigValidator
from .services.dashboard_view import write_dashboard
from .services.error_handler import SiteMonitorError
from .services.logger import LoggerService
from .services.site_config import MonitorConfig, SiteConfigManager


def _log_configuration(logger_service: LoggerService, config: MonitorConfig):
    """记录系统配置信息"""
    logger_service.log_configuration_info({
        'sites': len(config.sites),
        'probe_timeout': config.probe_timeout,
        'max_workers': config.max_workers,
        'snapshot_location': (
            f"s3://{config.snapshot_bucket}/{config.snapshot_key}"
            if config.snapshot_bucket else config.snapshot_path
        ),
        'dashboard_path': config.dashboard_path or '未配置',
        'renewal_issuers': ','.join(config.renewal_issuers)
    })


def run_once(config: Optional[MonitorConfig] = None,
             logger_service: Optional[LoggerService] = None) -> Dict[str, Any]:
    """
    加载配置并执行一次发布

    Args:
        config: 监控配置，为None时从环境变量加载
        logger_service: 日志服务

    Returns:
        dict: 运行摘要

    Raises:
        SiteMonitorError: 配置无效、快照或仪表盘数据无法写入
    """
    logger_service = logger_service or LoggerService()
    config = config or SiteConfigManager().load_config()
    _log_configuration(logger_service, config)

    result = SnapshotPublisher(config, logger_service=logger_service).execute()

    if config.dashboard_path and result.snapshot:
        write_dashboard(result.snapshot, config.dashboard_path)

    return {
        'total_sites': result.total_sites,
        'healthy_sites': result.healthy_sites,
        'unhealthy_sites': result.unhealthy_sites,
        'renewal_sites': result.renewal_sites,
        'action_sites': result.action_sites,
        'execution_time_seconds': result.execution_time,
        'errors': result.errors[:5],
        'generated_at': result.snapshot.to_dict()['generatedAt'] if result.snapshot else None
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda函数入口点

    Args:
        event: EventBridge触发事件
        context: Lambda运行时上下文

    Returns:
        dict: 执行结果和统计信息
    """
    logger_service = LoggerService()

    try:
        summary = run_once(logger_service=logger_service)
    except Exception as e:
        logger_service.logger.error(f"站点状态检查失败: {type(e).__name__}: {str(e)}")
        return {
            'statusCode': 500,
            'body': {
                'message': 'Site status monitor failed to publish snapshot',
                'error': str(e),
                'timestamp': datetime.now(timezone.utc).isoformat()
            }
        }

    return {
        'statusCode': 200,
        'body': {
            'message': 'Site status monitor executed successfully',
            'summary': summary,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
    }


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行入口

    Args:
        argv: 命令行参数

    Returns:
        int: 进程退出码，快照写入成功为0
    """
    parser = argparse.ArgumentParser(
        prog="site-status-monitor",
        description="检查站点DNS、TLS证书、HTTP和页面内容，并写入状态快照"
    )
    parser.add_argument("--output", help="快照文件路径（覆盖SNAPSHOT_PATH）")
    parser.add_argument("--dashboard", help="仪表盘数据文件路径（覆盖DASHBOARD_PATH）")
    parser.add_argument("--check-config", action="store_true", help="只验证配置，不执行检查")
    args = parser.parse_args(argv)

    if args.check_config:
        validator = ConfigValidator()
        print(validator.get_configuration_summary())
        return 0 if validator.validate_all_configurations()['is_valid'] else 1

    logger_service = LoggerService()

    try:
        config = SiteConfigManager().load_config()
        if args.output:
            config = replace(config, snapshot_path=args.output, snapshot_bucket=None)
        if args.dashboard:
            config = replace(config, dashboard_path=args.dashboard)
        run_once(config, logger_service)
    except SiteMonitorError as e:
        logger_service.logger.error(f"站点状态检查失败: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
