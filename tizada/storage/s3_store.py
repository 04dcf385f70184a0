"""
S3 素材存储 - IAssetStore 的 boto3 实现

职责：
- 读取输入SVG（{owner_id}/{part_id}.svg）
- 上传排料结果（result/{uuid}/result.svg）
- 将 botocore 异常转换为领域异常

boto3 为同步客户端，调用放到线程中执行，避免阻塞事件循环。

测试要点：
- test_get_success / test_get_missing_key
- test_put_success / test_put_backend_error
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageConfig, get_config
from ..interfaces import AssetFetchFailure, IAssetStore, StorageUploadFailure

logger = logging.getLogger(__name__)


def build_s3_client(storage: StorageConfig) -> Any:
    """按配置创建S3客户端（未配置密钥时走boto3默认凭证链）"""
    return boto3.client(
        "s3",
        region_name=storage.region,
        aws_access_key_id=storage.access_key_id,
        aws_secret_access_key=storage.secret_access_key,
        endpoint_url=storage.endpoint_url,
    )


class S3AssetStore(IAssetStore):
    """S3 存储实现"""

    def __init__(self, storage: StorageConfig | None = None, client: Any = None):
        self.storage = storage or get_config().storage
        self.bucket = self.storage.bucket_name
        self.client = client or build_s3_client(self.storage)

    async def get(self, key: str) -> bytes:
        """读取对象"""
        try:
            return await asyncio.to_thread(self._read_object, key)
        except (BotoCoreError, ClientError) as e:
            raise AssetFetchFailure(f"S3读取失败 s3://{self.bucket}/{key}: {e}") from e

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """写入对象"""
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUploadFailure(f"S3上传失败 s3://{self.bucket}/{key}: {e}") from e

        location = f"s3://{self.bucket}/{key}"
        logger.info(f"上传成功: {location}")
        return location

    def _read_object(self, key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()
