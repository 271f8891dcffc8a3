"""
集成测试
"""
import pytest
import json
import socket
from unittest.mock import patch, MagicMock
from datetime import datetime, timezone, timedelta

import boto3
from moto import mock_aws
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from site_status_monitor.publisher import SnapshotPublisher
from site_status_monitor.services.site_config import MonitorConfig
from site_status_monitor.services.snapshot_store import S3SnapshotStore
from site_status_monitor.services.ssl_checker import SSLCertificateChecker


SITES = ("https://a.example.com/", "https://b.example.com/", "https://c.example.com/")


def certificate_der(days_left: int, serial: int, issuer_cn: str = "R3") -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "example.com")]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)]))
        .public_key(key.public_key())
        .serial_number(serial)
        .not_valid_before(now - timedelta(days=50))
        .not_valid_after(now + timedelta(days=days_left, hours=-1))
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


def page_response(status=200, body=b"<html>ok</html>"):
    response = MagicMock()
    response.status_code = status
    response.encoding = "utf-8"
    response.iter_content.side_effect = lambda chunk_size: iter([body])
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


class FakeNetwork:
    """按主机名返回预设结果的网络模拟"""

    def __init__(self):
        self.certificates = {}
        self.pages = {}
        self.tls_errors = {}

    def peer_certificates(self, hostname):
        if hostname in self.tls_errors:
            raise self.tls_errors[hostname]
        der = self.certificates.get(hostname)
        return der, [der] if der else []

    def get(self, url, **kwargs):
        return self.pages.get(url) or page_response()


class TestEndToEnd:
    """端到端测试类"""

    def setup_method(self):
        """测试前准备"""
        self.network = FakeNetwork()
        for i, url in enumerate(SITES):
            hostname = url.split("/")[2]
            self.network.certificates[hostname] = certificate_der(days_left=120, serial=0x100 + i)

        self.patches = [
            patch('site_status_monitor.services.dns_resolver.dns.resolver.Resolver'),
            patch.object(SSLCertificateChecker, '_get_peer_certificates',
                         side_effect=self.network.peer_certificates),
            patch('site_status_monitor.services.page_checker.requests.get', side_effect=self.network.get),
        ]
        mock_resolver_cls = self.patches[0].start()
        mock_resolver_cls.return_value.resolve.return_value = ["192.0.2.1"]
        for p in self.patches[1:]:
            p.start()

    def teardown_method(self):
        """测试后清理"""
        for p in self.patches:
            p.stop()

    def run(self, tmp_path):
        config = MonitorConfig(sites=SITES, probe_timeout=2, max_workers=3,
                               snapshot_path=str(tmp_path / "docs" / "status.json"))
        SnapshotPublisher(config).execute()
        return json.loads((tmp_path / "docs" / "status.json").read_text(encoding="utf-8"))

    def test_healthy_run(self, tmp_path):
        """测试全部站点正常"""
        data = self.run(tmp_path)

        assert [site['url'] for site in data['sites']] == list(SITES)
        for site in data['sites']:
            assert site['dnsOk'] and site['tlsOk'] and site['httpOk'] and site['pageOk']
            assert site['httpStatus'] == 200
            assert site['sslDaysLeft'] == 120
            assert site['sslIssuer'] == "R3"
            assert site['sslState'] == "ok"

    def test_tls_timeout_still_writes_snapshot(self, tmp_path):
        """测试TLS超时仍然写入快照"""
        self.network.tls_errors["b.example.com"] = socket.timeout("timed out")

        data = self.run(tmp_path)

        site = data['sites'][1]
        assert site['tlsOk'] is False
        assert site['sslExpiresAt'] is None
        assert site['sslDaysLeft'] is None
        assert site['sslSerial'] is None
        assert data['sites'][0]['tlsOk'] is True

    def test_soft_failure_and_error_status(self, tmp_path):
        """测试软失败页面和错误状态码"""
        self.network.pages[SITES[0]] = page_response(200, b"<h1>Bad Gateway</h1>")
        self.network.pages[SITES[1]] = page_response(503, b"<html>fine</html>")

        data = self.run(tmp_path)

        assert data['sites'][0]['httpOk'] is True
        assert data['sites'][0]['pageOk'] is False
        assert data['sites'][1]['httpOk'] is False
        assert data['sites'][1]['httpStatus'] == 503
        assert data['sites'][1]['pageOk'] is False
        assert data['sites'][2]['pageOk'] is True

    def test_two_runs_are_idempotent(self, tmp_path):
        """测试远端无变化时两次运行结果一致"""
        for hostname in ("a.example.com", "b.example.com"):
            self.network.certificates[hostname] = certificate_der(days_left=40, serial=0xAA)

        first = self.run(tmp_path)
        second = self.run(tmp_path)

        fields = ('url', 'dnsOk', 'tlsOk', 'httpOk', 'httpStatus', 'pageOk', 'sslDaysLeft',
                  'sslIssuer', 'sslSerial', 'sslState')
        for a, b in zip(first['sites'], second['sites']):
            assert {k: a[k] for k in fields} == {k: b[k] for k in fields}

    def test_certificate_rotation_detected(self, tmp_path):
        """测试证书轮换在第二次运行时被识别"""
        self.network.certificates["a.example.com"] = certificate_der(days_left=40, serial=0xA1)
        self.network.certificates["b.example.com"] = certificate_der(days_left=40, serial=0xB1)

        first = self.run(tmp_path)
        assert first['sites'][0]['sslState'] == "ok"

        self.network.certificates["a.example.com"] = certificate_der(days_left=40, serial=0xA2)
        self.network.certificates["b.example.com"] = certificate_der(days_left=25, serial=0xB2)

        second = self.run(tmp_path)

        assert second['sites'][0]['sslSerial'] == "A2"
        assert second['sites'][0]['sslState'] == "renewal"
        assert second['sites'][1]['sslState'] == "action"
        assert second['sites'][2]['sslState'] == "ok"

    def test_dns_failure(self, tmp_path):
        """测试DNS解析失败"""
        import dns.resolver
        with patch('site_status_monitor.services.dns_resolver.dns.resolver.Resolver') as resolver_cls:
            resolver_cls.return_value.resolve.side_effect = dns.resolver.NXDOMAIN()
            data = self.run(tmp_path)

        assert all(site['dnsOk'] is False for site in data['sites'])
        assert all(site['tlsOk'] is True for site in data['sites'])

    def test_s3_snapshot(self):
        """测试写入S3快照"""
        with mock_aws():
            s3 = boto3.client('s3', region_name='us-east-1')
            s3.create_bucket(Bucket='status-bucket')
            config = MonitorConfig(sites=SITES, snapshot_bucket='status-bucket', snapshot_key='status.json')
            store = S3SnapshotStore('status-bucket', region_name='us-east-1')

            result = SnapshotPublisher(config, store=store).execute()

            assert result.snapshot_written is True
            body = s3.get_object(Bucket='status-bucket', Key='status.json')['Body'].read()
        data = json.loads(body)
        assert [site['url'] for site in data['sites']] == list(SITES)
