"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和fake替换（S3/浏览器均为外部协作方）

使用方式：
    from tizada.interfaces import IAssetStore

    class MyAssetStore(IAssetStore):
        async def get(self, key: str) -> bytes:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from .models import ComposedAsset, PartDescriptor, ProgressSignal, PublishedResult
    from .surface.subscription import Subscription


# ============================================================================
# 存储接口
# ============================================================================

class IAssetStore(ABC):
    """对象存储接口 - 按key读写字节块"""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """
        读取对象

        Args:
            key: 对象key（输入约定 {owner_id}/{part_id}.svg）

        Returns:
            对象内容

        Raises:
            AssetFetchFailure: 读取失败
        """
        ...

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        写入对象

        Args:
            key: 对象key（输出约定 result/{uuid}/result.svg）
            data: 对象内容
            content_type: MIME类型

        Returns:
            对象位置引用

        Raises:
            StorageUploadFailure: 写入失败
        """
        ...


# ============================================================================
# SVG 合成接口
# ============================================================================

class ISvgComposer(ABC):
    """SVG合成器接口"""

    @abstractmethod
    async def compose(self, descriptors: Sequence[PartDescriptor]) -> ComposedAsset:
        """
        将多个零件描述合成为一张固定画布

        Args:
            descriptors: 零件描述列表（按请求顺序）

        Returns:
            合成后的SVG文档

        Raises:
            ComposeFailure: 有输入但没有任何片段成功
        """
        ...


# ============================================================================
# 自动化页面接口
# ============================================================================

class ISignalSource(ABC):
    """进度信号源接口 - 远端页面上两个数值的变更通知"""

    @abstractmethod
    async def subscribe(self, callback: Callable[[ProgressSignal], None]) -> Subscription:
        """
        订阅进度变更，每次变更回调一次

        Raises:
            MissingDomElement: 观测目标不存在
        """
        ...


class IAutomationSession(ABC):
    """自动化会话接口 - 一个任务独占一个会话"""

    @abstractmethod
    async def upload_parts(self, svg: str) -> None:
        """上传零件文档（UploadFailure: 输入槽缺失）"""
        ...

    @abstractmethod
    async def upload_bin(self, svg: str) -> None:
        """上传板材文档（UploadFailure: 输入槽缺失）"""
        ...

    @abstractmethod
    async def start(self) -> None:
        """触发开始排料"""
        ...

    @abstractmethod
    def signal_source(self) -> ISignalSource:
        """进度信号源"""
        ...

    @abstractmethod
    async def send_result(self) -> None:
        """触发结果发布动作"""
        ...

    @abstractmethod
    async def read_result(self) -> str | None:
        """读取页面写入的结果（不存在时返回None）"""
        ...

    @abstractmethod
    async def screenshot(self) -> bytes:
        """页面截图（PNG）"""
        ...


class ISurfaceProvider(ABC):
    """自动化会话提供方"""

    @abstractmethod
    def open(self) -> AbstractAsyncContextManager[IAutomationSession]:
        """
        打开会话（async with 作用域）

        约定：
        - 退出作用域时关闭所有页面，再释放浏览器
        - 清理异常只记录日志，不覆盖原始异常
        """
        ...


# ============================================================================
# 结果发布接口
# ============================================================================

class IResultPublisher(ABC):
    """结果发布器接口"""

    @abstractmethod
    async def publish(self, artifact: str) -> PublishedResult:
        """
        上传排料结果

        Args:
            artifact: 结果SVG

        Returns:
            发布结果（key + 位置）
        """
        ...


# ============================================================================
# 异常定义
# ============================================================================

class TizadaError(Exception):
    """基础异常"""
    pass


class AssetFetchFailure(TizadaError):
    """素材读取失败"""
    pass


class ComposeFailure(TizadaError):
    """合成失败（所有素材均读取失败）"""
    pass


class MissingDomElement(TizadaError):
    """页面缺少约定元素"""
    pass


class UploadFailure(TizadaError):
    """上传到页面失败"""
    pass


class ExtractionFailure(TizadaError):
    """结果提取失败"""
    pass


class ConvergenceTimedOut(TizadaError):
    """等待收敛超时"""
    pass


class StorageUploadFailure(TizadaError):
    """结果上传存储失败"""
    pass


class ProvisioningFailure(TizadaError):
    """浏览器启动或打开排料页面失败"""
    pass
