"""
仪表盘视图模型

将快照JSON转换为每个站点卡片的展示数据，所有可选字段都可能缺失。
"""
import json
import logging
import os
from typing import Any, Dict, Optional

from ..models import Snapshot
from .error_handler import SiteMonitorError


def ssl_class(days_left: Optional[int], state: Optional[str] = None) -> str:
    """证书剩余天数对应的颜色"""
    if state == 'renewal':
        return "blue"
    if days_left is None or days_left <= 30:
        return "red"
    if days_left <= 90:
        return "yellow"
    return "green"


def bar_width(days_left: Optional[int]) -> float:
    """过期进度条宽度（百分比），未知时为100"""
    if days_left is None:
        return 100
    pct = min(days_left / 365 * 100, 100)
    return max(pct, 2)


def _status_label(ok: Any) -> str:
    return "OK" if ok else "FAIL"


def build_site_card(site: Dict[str, Any]) -> Dict[str, Any]:
    """
    构建单个站点卡片

    Args:
        site: 快照中的站点记录

    Returns:
        Dict[str, Any]: 卡片展示数据
    """
    overall_ok = all(site.get(key) for key in ('dnsOk', 'tlsOk', 'httpOk', 'pageOk'))
    days_left = site.get('sslDaysLeft')
    if not isinstance(days_left, int) or isinstance(days_left, bool):
        days_left = None
    status = site.get('httpStatus')

    return {
        'url': site.get('url', ''),
        'badge': "ok" if overall_ok else "bad",
        'badgeText': "OK" if overall_ok else "ISSUE",
        'dns': _status_label(site.get('dnsOk')),
        'tls': _status_label(site.get('tlsOk')),
        'http': str(status) if status is not None else "FAIL",
        'page': _status_label(site.get('pageOk')),
        'sslState': site.get('sslState') or 'ok',
        'sslClass': ssl_class(days_left, site.get('sslState')),
        'barWidth': bar_width(days_left),
        'daysLabel': str(days_left) if days_left is not None else "unknown",
    }


def build_dashboard(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    """
    构建仪表盘数据

    Args:
        snapshot: 快照JSON对象

    Returns:
        Dict[str, Any]: 生成时间和卡片列表
    """
    sites = snapshot.get('sites') if isinstance(snapshot, dict) else None
    if not isinstance(sites, list):
        sites = []

    return {
        'generatedAt': snapshot.get('generatedAt') if isinstance(snapshot, dict) else None,
        'cards': [build_site_card(site) for site in sites if isinstance(site, dict)],
    }


def write_dashboard(snapshot: Snapshot, path: str) -> str:
    """
    根据快照写入仪表盘数据文件

    Args:
        snapshot: 本次运行的快照
        path: 仪表盘数据文件路径

    Returns:
        str: 文件路径

    Raises:
        SiteMonitorError: 文件无法写入
    """
    dashboard = build_dashboard(snapshot.to_dict())
    try:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(dashboard, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise SiteMonitorError(f"无法写入仪表盘数据 {path}: {type(e).__name__}: {str(e)}") from e

    logging.getLogger(__name__).info(f"仪表盘数据已写入 {path}，共 {len(dashboard['cards'])} 个站点")
    return path
