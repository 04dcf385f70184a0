"""
结果发布器 - 上传排料结果

职责：
1. 生成随机结果key: result/{uuid}/result.svg
2. 以 image/svg+xml 上传到对象存储
3. 失败不重试，直接上抛 StorageUploadFailure

测试要点：
- test_publish_key_layout: key格式
- test_publish_backend_error: 存储异常
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from ..interfaces import IAssetStore, IResultPublisher
from ..models import PublishedResult

logger = logging.getLogger(__name__)

RESULT_CONTENT_TYPE = "image/svg+xml"
RESULT_FILE_NAME = "result.svg"


def build_result_key(result_id: str | None = None) -> str:
    """结果key: result/{uuid}/result.svg"""
    return f"result/{result_id or uuid.uuid4()}/{RESULT_FILE_NAME}"


class ResultPublisher(IResultPublisher):
    """结果发布器实现"""

    def __init__(
        self,
        asset_store: IAssetStore,
        key_factory: Callable[[], str] = build_result_key,
    ):
        self.asset_store = asset_store
        self.key_factory = key_factory

    async def publish(self, artifact: str) -> PublishedResult:
        """上传结果"""
        key = self.key_factory()
        location = await self.asset_store.put(
            key, artifact.encode("utf-8"), RESULT_CONTENT_TYPE
        )
        logger.info(f"排料结果已上传: {location}")
        return PublishedResult(key=key, location=location)
