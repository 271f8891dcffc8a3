"""
快照存储服务
"""
import json
import os
import tempfile
from typing import Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..interfaces import SnapshotStoreInterface
from ..models import Snapshot
from .error_handler import SnapshotWriteError
from .site_config import MonitorConfig


def serialize_snapshot(snapshot: Snapshot) -> str:
    """将快照序列化为JSON文本（2空格缩进）"""
    return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)


def deserialize_snapshot(text: str) -> Snapshot:
    """
    从JSON文本解析快照

    Raises:
        ValueError: JSON或快照结构无效
    """
    return Snapshot.from_dict(json.loads(text))


class FileSnapshotStore(SnapshotStoreInterface):
    """本地文件快照存储"""

    def __init__(self, path: str):
        """
        初始化文件快照存储

        Args:
            path: 快照文件路径
        """
        self.path = path
        self.logger = logging.getLogger(__name__)

    def load(self) -> Optional[Snapshot]:
        """
        读取上一次的快照

        Returns:
            Optional[Snapshot]: 快照，文件不存在或内容损坏时返回None
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                text = f.read()
        except FileNotFoundError:
            self.logger.info(f"快照文件 {self.path} 不存在，视为首次运行")
            return None
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"读取快照文件 {self.path} 失败，忽略上一次快照: {str(e)}")
            return None

        try:
            return deserialize_snapshot(text)
        except ValueError as e:
            self.logger.warning(f"快照文件 {self.path} 内容无效，忽略上一次快照: {str(e)}")
            return None

    def save(self, snapshot: Snapshot) -> str:
        """
        写入快照（先写临时文件再替换，失败时保留原文件）

        Args:
            snapshot: 快照

        Returns:
            str: 快照文件路径

        Raises:
            SnapshotWriteError: 无法创建目录或写入文件
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        content = serialize_snapshot(snapshot)
        tmp_path = None

        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.status-', suffix='.json', dir=directory)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            # mkstemp 创建的文件权限为0600，静态站点服务需要可读
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise SnapshotWriteError(self.path, e) from e

        self.logger.info(f"快照已写入 {self.path}，共 {len(snapshot.sites)} 个站点")
        return self.path


class S3SnapshotStore(SnapshotStoreInterface):
    """S3快照存储"""

    def __init__(self, bucket: str, key: str = "status.json", region_name: Optional[str] = None):
        """
        初始化S3快照存储

        Args:
            bucket: S3存储桶名称
            key: 对象键
            region_name: AWS区域名称，如果为None则从环境变量读取
        """
        self.bucket = bucket
        self.key = key
        self.region_name = region_name or os.getenv('AWS_REGION', 'us-east-1')
        self.logger = logging.getLogger(__name__)
        self.s3_client = boto3.client('s3', region_name=self.region_name)

    @property
    def location(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def load(self) -> Optional[Snapshot]:
        """
        读取上一次的快照

        Returns:
            Optional[Snapshot]: 快照，对象不存在或内容损坏时返回None
        """
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=self.key)
            text = response['Body'].read().decode('utf-8')
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code in ('NoSuchKey', '404'):
                self.logger.info(f"快照 {self.location} 不存在，视为首次运行")
            else:
                self.logger.warning(f"读取快照 {self.location} 失败 - {error_code}，忽略上一次快照")
            return None
        except (BotoCoreError, UnicodeDecodeError) as e:
            self.logger.warning(f"读取快照 {self.location} 失败，忽略上一次快照: {str(e)}")
            return None

        try:
            return deserialize_snapshot(text)
        except ValueError as e:
            self.logger.warning(f"快照 {self.location} 内容无效，忽略上一次快照: {str(e)}")
            return None

    def save(self, snapshot: Snapshot) -> str:
        """
        写入快照对象

        Args:
            snapshot: 快照

        Returns:
            str: 快照位置

        Raises:
            SnapshotWriteError: 写入失败
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=serialize_snapshot(snapshot).encode('utf-8'),
                ContentType='application/json',
                CacheControl='no-store'
            )
        except (ClientError, BotoCoreError) as e:
            raise SnapshotWriteError(self.location, e) from e

        self.logger.info(f"快照已写入 {self.location}，共 {len(snapshot.sites)} 个站点")
        return self.location


def create_snapshot_store(config: MonitorConfig) -> SnapshotStoreInterface:
    """
    根据配置创建快照存储

    Args:
        config: 监控配置

    Returns:
        SnapshotStoreInterface: 配置了SNAPSHOT_BUCKET时使用S3，否则使用本地文件
    """
    if config.snapshot_bucket:
        return S3SnapshotStore(bucket=config.snapshot_bucket, key=config.snapshot_key)
    return FileSnapshotStore(config.snapshot_path)
