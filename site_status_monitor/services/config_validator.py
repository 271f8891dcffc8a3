"""
配置验证服务
"""
import os
import re
from typing import Dict, Any
import logging

from .site_config import SiteConfigManager


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        """初始化配置验证器"""
        self.logger = logging.getLogger(__name__)
        self.site_manager = SiteConfigManager()

        # 可选的环境变量（均有默认值）
        self.optional_env_vars = {
            'SITES': '站点URL列表（逗号分隔）',
            'PROBE_TIMEOUT': '单次探测超时时间（秒）',
            'MAX_WORKERS': '并发检查站点数',
            'SNAPSHOT_PATH': '快照文件路径',
            'SNAPSHOT_BUCKET': '快照S3存储桶',
            'SNAPSHOT_KEY': '快照S3对象键',
            'DASHBOARD_PATH': '仪表盘数据文件路径',
            'RENEWAL_ISSUERS': '已知中间证书名称（逗号分隔）',
            'SOFT_FAILURE_PHRASES': '软失败页面短语（逗号分隔）',
            'LOG_LEVEL': '日志级别'
        }

    def validate_all_configurations(self) -> Dict[str, Any]:
        """
        验证所有配置

        Returns:
            Dict[str, Any]: 验证结果
        """
        validation_result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'configurations': {}
        }

        validators = {
            'environment': self.validate_environment_variables,
            'sites': self.validate_sites_configuration,
            'probes': self.validate_probe_configuration,
            'storage': self.validate_storage_configuration,
        }

        for name, validator in validators.items():
            result = validator()
            validation_result['configurations'][name] = result
            if not result['is_valid']:
                validation_result['is_valid'] = False
            validation_result['errors'].extend(result['errors'])
            validation_result['warnings'].extend(result['warnings'])

        return validation_result

    def validate_environment_variables(self) -> Dict[str, Any]:
        """
        验证环境变量

        Returns:
            Dict[str, Any]: 环境变量验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'missing_optional': [],
            'present_vars': {}
        }

        for var_name, description in self.optional_env_vars.items():
            value = os.getenv(var_name)
            if not value:
                result['missing_optional'].append({
                    'name': var_name,
                    'description': description
                })
            else:
                result['present_vars'][var_name] = value

        if not os.getenv('SITES'):
            result['warnings'].append("SITES未设置，将使用默认站点列表")

        return result

    def validate_sites_configuration(self) -> Dict[str, Any]:
        """
        验证站点配置

        Returns:
            Dict[str, Any]: 站点配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'total_sites': 0,
            'valid_sites': [],
            'invalid_sites': [],
            'duplicate_sites': []
        }

        sites_str = os.getenv('SITES', '')
        if not sites_str.strip():
            result['valid_sites'] = self.site_manager.default_sites.copy()
            result['total_sites'] = len(result['valid_sites'])
            return result

        raw_sites = [site.strip() for site in sites_str.split(',') if site.strip()]
        result['total_sites'] = len(raw_sites)

        for site in raw_sites:
            if not self.site_manager.validate_url(site):
                result['invalid_sites'].append(site)
                result['warnings'].append(f"站点URL无效（必须是https）: {site}")
            elif site in result['valid_sites']:
                result['duplicate_sites'].append(site)
                result['warnings'].append(f"站点重复: {site}")
            else:
                result['valid_sites'].append(site)

        if not result['valid_sites']:
            result['valid_sites'] = self.site_manager.default_sites.copy()
            result['warnings'].append("没有找到有效的站点URL，将使用默认站点列表")

        return result

    def validate_probe_configuration(self) -> Dict[str, Any]:
        """
        验证探测配置

        Returns:
            Dict[str, Any]: 探测配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'probe_timeout': None,
            'max_workers': None
        }

        timeout = os.getenv('PROBE_TIMEOUT')
        if timeout:
            try:
                timeout_seconds = float(timeout)
                result['probe_timeout'] = timeout_seconds

                if timeout_seconds <= 0:
                    result['is_valid'] = False
                    result['errors'].append(f"PROBE_TIMEOUT必须大于0: {timeout}")
                elif timeout_seconds > 60:
                    result['warnings'].append(f"探测超时时间过长: {timeout_seconds}秒")

            except ValueError:
                result['is_valid'] = False
                result['errors'].append(f"PROBE_TIMEOUT格式无效: {timeout}")

        workers = os.getenv('MAX_WORKERS')
        if workers:
            try:
                worker_count = int(workers)
                result['max_workers'] = worker_count

                if worker_count < 1:
                    result['is_valid'] = False
                    result['errors'].append(f"MAX_WORKERS必须至少为1: {workers}")
                elif worker_count > 50:
                    result['warnings'].append(f"并发数过大: {worker_count}")

            except ValueError:
                result['is_valid'] = False
                result['errors'].append(f"MAX_WORKERS格式无效: {workers}")

        return result

    def validate_storage_configuration(self) -> Dict[str, Any]:
        """
        验证快照存储配置

        Returns:
            Dict[str, Any]: 存储配置验证结果
        """
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'backend': 'file',
            'location': None
        }

        bucket = os.getenv('SNAPSHOT_BUCKET', '').strip()
        if bucket:
            result['backend'] = 's3'
            result['location'] = f"s3://{bucket}/{os.getenv('SNAPSHOT_KEY', '').strip() or 'status.json'}"

            bucket_pattern = r'^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$'
            if not re.match(bucket_pattern, bucket):
                result['is_valid'] = False
                result['errors'].append(f"S3存储桶名称无效: {bucket}")
        else:
            path = os.getenv('SNAPSHOT_PATH', '').strip() or 'docs/status.json'
            result['location'] = path
            if os.path.isdir(path):
                result['is_valid'] = False
                result['errors'].append(f"SNAPSHOT_PATH指向目录: {path}")

        return result

    def get_configuration_summary(self) -> str:
        """
        获取配置摘要

        Returns:
            str: 配置摘要文本
        """
        validation_result = self.validate_all_configurations()

        lines = [
            "配置验证摘要",
            "=" * 30
        ]

        if validation_result['is_valid']:
            lines.append("✅ 配置验证通过")
        else:
            lines.append("❌ 配置验证失败")

        if validation_result['errors']:
            lines.append("\n错误:")
            for error in validation_result['errors']:
                lines.append(f"  • {error}")

        if validation_result['warnings']:
            lines.append("\n警告:")
            for warning in validation_result['warnings']:
                lines.append(f"  • {warning}")

        lines.append("\n配置详情:")

        env_config = validation_result['configurations'].get('environment', {})
        if env_config.get('present_vars'):
            lines.append("  环境变量:")
            for var_name, var_value in env_config['present_vars'].items():
                lines.append(f"    {var_name}: {var_value}")

        sites_config = validation_result['configurations'].get('sites', {})
        lines.append(f"  有效站点数量: {len(sites_config.get('valid_sites', []))}")

        storage_config = validation_result['configurations'].get('storage', {})
        lines.append(f"  快照位置: {storage_config.get('location')}")

        return "\n".join(lines)
