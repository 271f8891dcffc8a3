"""
页面探测服务
"""
import time
from typing import Iterable, Optional
import logging

import requests

from ..interfaces import PageProbeInterface
from ..models import PageProbeResult
from .error_handler import ProbeErrorHandler
from .site_config import DEFAULT_SOFT_FAILURE_PHRASES


MAX_BODY_BYTES = 200000
USER_AGENT = "site-status-bot/1.0"


def page_looks_ok(status: Optional[int], body: str, phrases: Iterable[str] = DEFAULT_SOFT_FAILURE_PHRASES) -> bool:
    """
    页面内容启发式检查

    Args:
        status: HTTP状态码
        body: 响应内容
        phrases: 软失败短语（小写）

    Returns:
        bool: 状态码小于400且内容不含任何软失败短语
    """
    if not status or status >= 400:
        return False
    lowered = (body or "").lower()
    return not any(phrase in lowered for phrase in phrases)


class PageChecker(PageProbeInterface):
    """页面探测器实现"""

    def __init__(self, timeout: float = 12.0, max_body_bytes: int = MAX_BODY_BYTES,
                 soft_failure_phrases: Iterable[str] = DEFAULT_SOFT_FAILURE_PHRASES):
        """
        初始化页面探测器

        Args:
            timeout: 请求超时时间（秒），同时限制读取响应内容的总时长
            max_body_bytes: 最多保留的响应字节数
            soft_failure_phrases: 软失败短语
        """
        self.timeout = timeout
        self.max_body_bytes = max_body_bytes
        self.soft_failure_phrases = tuple(phrase.lower() for phrase in soft_failure_phrases)
        self.logger = logging.getLogger(__name__)
        self.error_handler = ProbeErrorHandler()

    def fetch(self, url: str) -> PageProbeResult:
        """
        GET请求页面，只保留前max_body_bytes字节

        非2xx状态码不视为失败，只有传输层错误才返回ok=False。

        Args:
            url: 页面URL

        Returns:
            PageProbeResult: 探测结果
        """
        try:
            status, body = self._get_page(url)
        except Exception as e:
            error_info = self.error_handler.handle_probe_error('http', url, e)
            return PageProbeResult(url=url, ok=False, error_info=error_info)

        self.logger.debug(f"页面 {url} 返回状态码 {status}，读取 {len(body)} 个字符")
        return PageProbeResult(url=url, ok=True, status=status, body=body)

    def _get_page(self, url: str):
        """
        请求页面并读取有限长度的内容

        Args:
            url: 页面URL

        Returns:
            tuple: (状态码, 响应内容)

        Raises:
            requests.exceptions.RequestException: 连接失败或超时
        """
        deadline = time.monotonic() + self.timeout

        with requests.get(
            url,
            headers={'User-Agent': USER_AGENT},
            timeout=self.timeout,
            stream=True,
            allow_redirects=True
        ) as response:
            status = response.status_code
            chunks = []
            size = 0

            for chunk in response.iter_content(chunk_size=8192):
                if time.monotonic() > deadline:
                    raise requests.exceptions.ReadTimeout(f"读取 {url} 超时（{self.timeout}秒）")
                remaining = self.max_body_bytes - size
                if chunk and remaining > 0:
                    chunks.append(chunk[:remaining])
                    size += len(chunks[-1])
                if size >= self.max_body_bytes:
                    break

            encoding = response.encoding or 'utf-8'

        raw = b''.join(chunks)
        try:
            body = raw.decode(encoding, errors='replace')
        except LookupError:
            body = raw.decode('utf-8', errors='replace')
        return status, body

    def page_looks_ok(self, status: Optional[int], body: str) -> bool:
        """按配置的软失败短语检查页面"""
        return page_looks_ok(status, body, self.soft_failure_phrases)
