"""
pytest 配置与公共 fixtures

外部协作方（S3/浏览器）统一用内存 fake 替换：
- FakeAssetStore: 内存对象存储
- FakeSignalSource: 可编排的进度信号源
- FakeSession / FakeSurfaceProvider: 自动化会话

使用方式：
    def test_something(asset_store, job_request):
        ...
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Iterable

import pytest

from tizada.config import RuntimeConfig
from tizada.interfaces import (
    AssetFetchFailure,
    IAssetStore,
    IAutomationSession,
    ISignalSource,
    ISurfaceProvider,
    MissingDomElement,
    StorageUploadFailure,
    UploadFailure,
)
from tizada.models import Job, JobRequest, ProgressSignal
from tizada.surface import Subscription


# ============================================================================
# 示例 SVG
# ============================================================================

PART_A_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100">
<defs><linearGradient id="grad"><stop offset="0"/></linearGradient></defs>
<g id="part1"><rect id="r" width="10" height="20" fill="url(#grad)"/></g>
<use href="#part1"/>
</svg>"""

PART_B_SVG = """<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">
<g id='part1'><polygon points='0,0 10,0 5,8'/></g>
<use xlink:href='#part1'/>
</svg>"""

BIN_SVG = """<svg xmlns="http://www.w3.org/2000/svg"><rect id="bin" width="511.822" height="339.235"/></svg>"""

RESULT_SVG = """<svg xmlns="http://www.w3.org/2000/svg"><g id="nested"/></svg>"""

OWNER = "owner-1"


# ============================================================================
# Fakes
# ============================================================================

class FakeAssetStore(IAssetStore):
    """内存对象存储"""

    def __init__(self, objects: dict[str, bytes] | None = None, fail_puts: bool = False):
        self.objects = dict(objects or {})
        self.fail_puts = fail_puts
        self.gets: list[str] = []
        self.puts: list[tuple[str, bytes, str]] = []

    async def get(self, key: str) -> bytes:
        self.gets.append(key)
        if key not in self.objects:
            raise AssetFetchFailure(f"NoSuchKey: {key}")
        return self.objects[key]

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail_puts:
            raise StorageUploadFailure(f"backend unavailable: {key}")
        self.puts.append((key, data, content_type))
        self.objects[key] = data
        return f"memory://{key}"


class FakeSignalSource(ISignalSource):
    """
    可编排信号源

    updates 在订阅后逐条投递，每条之间让出一次事件循环；
    订阅释放后停止投递。delivered 记录实际投递给订阅者的更新。
    """

    def __init__(self, updates: Iterable[tuple[float, float]] = (), missing: bool = False):
        self.updates = list(updates)
        self.missing = missing
        self.delivered: list[ProgressSignal] = []
        self.subscriptions: list[Subscription] = []
        self.releases = 0
        self._callback: Callable[[ProgressSignal], None] | None = None
        self._player: asyncio.Task | None = None

    async def subscribe(self, callback: Callable[[ProgressSignal], None]) -> Subscription:
        if self.missing:
            raise MissingDomElement("#info_iterations, #info_efficiency, #info_placed")
        subscription = Subscription(self._release)
        self.subscriptions.append(subscription)
        self._callback = callback
        if self.updates:
            self._player = asyncio.get_running_loop().create_task(self._play(subscription))
        return subscription

    def emit(self, iterations: float, efficiency: float) -> None:
        """手动投递一次更新"""
        subscription = self.subscriptions[-1]
        if subscription.active and self._callback is not None:
            self._deliver(ProgressSignal(iterations_completed=iterations, efficiency_achieved=efficiency))

    async def _play(self, subscription: Subscription) -> None:
        for iterations, efficiency in self.updates:
            await asyncio.sleep(0)
            if not subscription.active:
                return
            self._deliver(ProgressSignal(iterations_completed=iterations, efficiency_achieved=efficiency))

    def _deliver(self, signal: ProgressSignal) -> None:
        self.delivered.append(signal)
        assert self._callback is not None
        self._callback(signal)

    async def _release(self) -> None:
        self.releases += 1


class FakeSession(IAutomationSession):
    """自动化会话 fake"""

    def __init__(
        self,
        signal_source: FakeSignalSource | None = None,
        result: str | None = RESULT_SVG,
        missing_slots: Iterable[str] = (),
    ):
        self._signal_source = signal_source or FakeSignalSource()
        self.result = result
        self.missing_slots = set(missing_slots)
        self.calls: list[str] = []
        self.uploads: dict[str, str] = {}

    async def upload_parts(self, svg: str) -> None:
        await self._upload("parts", svg)

    async def upload_bin(self, svg: str) -> None:
        await self._upload("bin", svg)

    async def start(self) -> None:
        self.calls.append("start")

    def signal_source(self) -> FakeSignalSource:
        return self._signal_source

    async def send_result(self) -> None:
        self.calls.append("send_result")

    async def read_result(self) -> str | None:
        self.calls.append("read_result")
        return self.result

    async def screenshot(self) -> bytes:
        self.calls.append("screenshot")
        return b"\x89PNG-fake"

    async def _upload(self, slot: str, svg: str) -> None:
        if slot in self.missing_slots:
            raise UploadFailure(f"页面缺少元素: {slot}")
        self.calls.append(f"upload_{slot}")
        self.uploads[slot] = svg


class FakeSurfaceProvider(ISurfaceProvider):
    """会话提供方 fake，记录打开/关闭次数"""

    def __init__(self, session: FakeSession):
        self.session = session
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def open(self) -> AsyncIterator[FakeSession]:
        self.opened += 1
        try:
            yield self.session
        finally:
            self.closed += 1


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """运行期配置"""
    return RuntimeConfig()


# ============================================================================
# 存储 Fixtures
# ============================================================================

@pytest.fixture
def asset_store() -> FakeAssetStore:
    """预置零件/板材的内存存储"""
    return FakeAssetStore(
        {
            f"{OWNER}/part-a.svg": PART_A_SVG.encode("utf-8"),
            f"{OWNER}/part-b.svg": PART_B_SVG.encode("utf-8"),
            f"{OWNER}/bin-1.svg": BIN_SVG.encode("utf-8"),
        }
    )


# ============================================================================
# 请求/任务 Fixtures
# ============================================================================

@pytest.fixture
def job_event() -> dict:
    """上游事件（线上格式）"""
    return {
        "user": OWNER,
        "bin": {"uuid": "bin-1", "quantity": 1},
        "parts": [
            {"uuid": "part-a", "quantity": 2},
            {"uuid": "part-b", "quantity": 1},
        ],
        "configuration": {"maxIterations": 5, "materialUtilization": 50, "timeout": 1000},
    }


@pytest.fixture
def job_request(job_event: dict) -> JobRequest:
    return JobRequest.model_validate(job_event)


@pytest.fixture
def job(job_request: JobRequest) -> Job:
    return Job(job_id=str(uuid.uuid4()), request=job_request)
