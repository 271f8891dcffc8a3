"""
SSL证书探测服务
"""
import ssl
import socket
from datetime import datetime, timezone
from typing import List, Optional
import logging

from cryptography import x509
from cryptography.x509.oid import NameOID

from ..interfaces import CertificateProbeInterface
from ..models import CertificateProbeResult
from .error_handler import ProbeErrorHandler


class SSLCertificateChecker(CertificateProbeInterface):
    """SSL证书探测器实现"""

    def __init__(self, timeout: float = 12.0, port: int = 443):
        """
        初始化SSL证书探测器

        Args:
            timeout: 连接及握手超时时间（秒）
            port: SSL端口，默认443
        """
        self.timeout = timeout
        self.port = port
        self.logger = logging.getLogger(__name__)
        self.error_handler = ProbeErrorHandler()

    def check_certificate(self, hostname: str) -> CertificateProbeResult:
        """
        建立TLS连接并读取叶子证书信息

        连接失败或超时返回ok=False且其余字段为空；
        连接成功但没有证书数据时返回ok=True且过期时间为空。

        Args:
            hostname: 主机名（同时用作SNI）

        Returns:
            CertificateProbeResult: 探测结果
        """
        try:
            leaf_der, chain = self._get_peer_certificates(hostname)
        except Exception as e:
            error_info = self.error_handler.handle_probe_error('tls', hostname, e)
            return CertificateProbeResult(hostname=hostname, ok=False, error_info=error_info)

        leaf = self._load_certificate(leaf_der)
        if leaf is None:
            self.logger.warning(f"域名 {hostname} TLS连接成功，但没有可用的证书数据")
            return CertificateProbeResult(hostname=hostname, ok=True)

        issuer_cert = self._load_certificate(chain[1]) if len(chain) > 1 else None

        result = CertificateProbeResult(
            hostname=hostname,
            ok=True,
            expires_at=self._parse_expiry_date(leaf),
            issuer=self._parse_issuer(leaf, issuer_cert),
            serial=self._format_serial(leaf.serial_number)
        )

        self.logger.debug(
            f"域名 {hostname} 证书 - 过期时间: {result.expires_at}, "
            f"颁发者: {result.issuer}, 序列号: {result.serial}"
        )
        return result

    def _get_peer_certificates(self, hostname: str):
        """
        获取对端证书（DER格式）及未验证的证书链

        证书校验关闭，使TLS连接结果与证书是否有效相互独立。

        Args:
            hostname: 主机名

        Returns:
            tuple: (叶子证书DER或None, 证书链DER列表)

        Raises:
            Exception: 连接失败、握手失败或超时
        """
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        with socket.create_connection((hostname, self.port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=hostname) as ssock:
                leaf_der = ssock.getpeercert(binary_form=True)
                chain = self._get_unverified_chain(ssock)

        return leaf_der, chain

    def _get_unverified_chain(self, ssock: ssl.SSLSocket) -> List[bytes]:
        """
        读取服务器发送的证书链（Python 3.13+ 提供）

        Args:
            ssock: SSL套接字

        Returns:
            List[bytes]: 证书链DER列表，不可用时为空
        """
        get_chain = getattr(ssock, 'get_unverified_chain', None)
        if not callable(get_chain):
            return []

        chain = get_chain() or []
        return [bytes(item) for item in chain if isinstance(item, (bytes, bytearray))]

    def _load_certificate(self, der: Optional[bytes]) -> Optional[x509.Certificate]:
        if not der:
            return None
        try:
            return x509.load_der_x509_certificate(der)
        except ValueError as e:
            self.logger.warning(f"无法解析证书: {str(e)}")
            return None

    def _parse_expiry_date(self, cert: x509.Certificate) -> datetime:
        """
        解析证书过期时间（notAfter，UTC）

        Args:
            cert: 证书

        Returns:
            datetime: 过期时间
        """
        return cert.not_valid_after_utc.astimezone(timezone.utc)

    def _parse_issuer(self, cert: x509.Certificate,
                      issuer_cert: Optional[x509.Certificate] = None) -> Optional[str]:
        """
        解析证书颁发者

        顺序：叶子证书颁发者组织名称、颁发者通用名称、
        证书链中颁发者证书的主题组织名称、主题通用名称，取第一个非空值。

        Args:
            cert: 叶子证书
            issuer_cert: 证书链中的颁发者证书

        Returns:
            Optional[str]: 证书颁发者
        """
        candidates = [
            self._name_attribute(cert.issuer, NameOID.ORGANIZATION_NAME),
            self._name_attribute(cert.issuer, NameOID.COMMON_NAME),
        ]
        if issuer_cert is not None:
            candidates.append(self._name_attribute(issuer_cert.subject, NameOID.ORGANIZATION_NAME))
            candidates.append(self._name_attribute(issuer_cert.subject, NameOID.COMMON_NAME))

        for candidate in candidates:
            if candidate:
                return candidate
        return None

    def _name_attribute(self, name: x509.Name, oid) -> Optional[str]:
        for attribute in name.get_attributes_for_oid(oid):
            value = attribute.value
            if isinstance(value, bytes):
                value = value.decode('utf-8', errors='replace')
            value = value.strip()
            if value:
                return value
        return None

    def _format_serial(self, serial_number: int) -> str:
        """
        将序列号格式化为大写十六进制（按字节补齐）

        Args:
            serial_number: 序列号

        Returns:
            str: 十六进制序列号
        """
        serial = format(serial_number, 'X')
        if len(serial) % 2:
            serial = '0' + serial
        return serial
