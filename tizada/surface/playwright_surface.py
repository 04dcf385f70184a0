"""
Playwright 自动化页面 - 驱动远端排料页面

职责：
1. 启动无头Chromium并打开排料服务页面
2. 按DOM约定上传零件/板材、点击开始、发送结果、读取 localStorage 结果
3. 在页面内安装 MutationObserver，每次进度变化通过 binding 回调到 Python
4. 退出作用域时关闭所有页面，再关闭浏览器（清理异常只记日志）
5. Playwright 异常在本模块内转换为领域异常（raise ... from）

DOM约定见 SelectorConfig。

测试要点：
- test_session_upload_missing_slot: 输入槽缺失 → UploadFailure
- test_signal_source_missing_elements: 观测目标缺失 → MissingDomElement
- test_playwright_errors_wrapped: 页面操作异常 → 领域异常
"""

from __future__ import annotations

import base64
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from playwright.async_api import Browser, ConsoleMessage, ElementHandle, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import RuntimeConfig, SelectorConfig, get_config
from ..interfaces import (
    ExtractionFailure,
    IAutomationSession,
    ISignalSource,
    ISurfaceProvider,
    MissingDomElement,
    ProvisioningFailure,
    TizadaError,
    UploadFailure,
)
from ..models import ProgressSignal
from .subscription import Subscription

logger = logging.getLogger(__name__)

SVG_MIME_TYPE = "image/svg+xml"
PROGRESS_BINDING = "__tizadaProgress"

# 返回 null 表示观测目标缺失；否则返回已放置零件数文本
_OBSERVE_JS = """
([selectors, bindingName, subscriptionId]) => {
    const iterations = document.querySelector(selectors.iterations);
    const efficiency = document.querySelector(selectors.efficiency);
    const placed = document.querySelector(selectors.placed);
    if (!iterations || !efficiency || !placed) {
        return null;
    }
    const observer = new MutationObserver(() => {
        window[bindingName](subscriptionId, iterations.textContent, efficiency.textContent);
    });
    const options = {childList: true, characterData: true, subtree: true};
    observer.observe(iterations, options);
    observer.observe(efficiency, options);
    window.__tizadaObservers = window.__tizadaObservers || {};
    window.__tizadaObservers[subscriptionId] = observer;
    return placed.textContent || "";
}
"""

_DISCONNECT_JS = """
(subscriptionId) => {
    const observers = window.__tizadaObservers || {};
    const observer = observers[subscriptionId];
    if (observer) {
        observer.disconnect();
        delete observers[subscriptionId];
    }
}
"""

_RESULT_READY_JS = "(key) => window.localStorage.getItem(key) !== null"
_READ_RESULT_JS = "(key) => window.localStorage.getItem(key)"


class DomSignalSource(ISignalSource):
    """页面进度信号源（迭代数 + 利用率）"""

    def __init__(self, page: Page, selectors: SelectorConfig):
        self.page = page
        self.selectors = selectors
        self._callbacks: dict[str, Callable[[ProgressSignal], None]] = {}
        self._bound = False

    async def subscribe(self, callback: Callable[[ProgressSignal], None]) -> Subscription:
        """安装观测并注册回调"""
        subscription_id = uuid.uuid4().hex
        # 先注册回调，避免安装观测后的第一次变化丢失
        self._callbacks[subscription_id] = callback
        try:
            if not self._bound:
                await self.page.expose_binding(PROGRESS_BINDING, self._dispatch)
                self._bound = True
            placed = await self.page.evaluate(
            _OBSERVE_JS,
            [
                {
                    "iterations": self.selectors.info_iterations,
                    "efficiency": self.selectors.info_efficiency,
                    "placed": self.selectors.info_placed,
                },
                PROGRESS_BINDING,
                subscription_id,
            ],
            )
        except PlaywrightError as e:
            self._callbacks.pop(subscription_id, None)
            raise MissingDomElement(f"安装进度观测失败: {e}") from e
        if placed is None:
            self._callbacks.pop(subscription_id, None)
            raise MissingDomElement(
                "页面缺少进度元素: "
                f"{self.selectors.info_iterations}, {self.selectors.info_efficiency}, "
                f"{self.selectors.info_placed}"
            )

        logger.info(f"已放置零件: {placed}")
        return Subscription(lambda: self._release(subscription_id))

    def _dispatch(self, source: dict, subscription_id: str, iterations: str, efficiency: str) -> None:
        callback = self._callbacks.get(subscription_id)
        if callback is None:
            return
        callback(ProgressSignal.from_text(iterations, efficiency))

    async def _release(self, subscription_id: str) -> None:
        self._callbacks.pop(subscription_id, None)
        try:
            await self.page.evaluate(_DISCONNECT_JS, subscription_id)
        except PlaywrightError as e:
            # 页面已关闭时观测随页面一起销毁
            logger.debug(f"断开页面观测失败: {e}")


class PlaywrightSession(IAutomationSession):
    """单页面自动化会话"""

    def __init__(self, page: Page, config: RuntimeConfig):
        self.page = page
        self.selectors = config.selectors
        self.element_timeout_ms = config.nesting_service.element_timeout_ms
        self.result_timeout_ms = config.nesting_service.result_timeout_ms
        self._signal_source: DomSignalSource | None = None

    async def upload_parts(self, svg: str) -> None:
        await self._upload(self.selectors.parts_input, "parts.svg", svg)

    async def upload_bin(self, svg: str) -> None:
        await self._upload(self.selectors.bin_input, "bin.svg", svg)

    async def start(self) -> None:
        await self._click(self.selectors.start_button, MissingDomElement)

    def signal_source(self) -> DomSignalSource:
        if self._signal_source is None:
            self._signal_source = DomSignalSource(self.page, self.selectors)
        return self._signal_source

    async def send_result(self) -> None:
        await self._click(self.selectors.send_result_button, ExtractionFailure)

    async def read_result(self) -> str | None:
        """等待页面写入结果后读取（超时返回None）"""
        key = self.selectors.output_storage_key
        try:
            await self.page.wait_for_function(
                _RESULT_READY_JS, arg=key, timeout=self.result_timeout_ms
            )
        except PlaywrightTimeoutError:
            logger.warning(f"等待结果超时: localStorage[{key}]")
            return None
        except PlaywrightError as e:
            raise ExtractionFailure(f"读取结果失败: localStorage[{key}]: {e}") from e
        try:
            return await self.page.evaluate(_READ_RESULT_JS, key)
        except PlaywrightError as e:
            raise ExtractionFailure(f"读取结果失败: localStorage[{key}]: {e}") from e

    async def screenshot(self) -> bytes:
        return await self.page.screenshot()

    async def _upload(self, selector: str, file_name: str, content: str) -> None:
        file_input = await self._require(selector, UploadFailure)
        try:
            await file_input.set_input_files(
                {"name": file_name, "mimeType": SVG_MIME_TYPE, "buffer": content.encode("utf-8")}
            )
        except PlaywrightError as e:
            raise UploadFailure(f"上传失败 {file_name} → {selector}: {e}") from e
        logger.info(f"已上传 {file_name} → {selector}")

    async def _click(self, selector: str, error_cls: type[TizadaError]) -> None:
        button = await self._require(selector, error_cls)
        try:
            await button.click()
        except PlaywrightError as e:
            raise error_cls(f"点击失败: {selector}: {e}") from e

    async def _require(self, selector: str, error_cls: type[TizadaError]) -> ElementHandle:
        try:
            handle = await self.page.wait_for_selector(
                selector, state="attached", timeout=self.element_timeout_ms
            )
        except PlaywrightTimeoutError as e:
            raise error_cls(f"页面缺少元素: {selector}") from e
        except PlaywrightError as e:
            raise error_cls(f"查找元素失败: {selector}: {e}") from e
        if handle is None:
            raise error_cls(f"页面缺少元素: {selector}")
        return handle


def _forward_console(message: ConsoleMessage) -> None:
    logger.info("PAGE LOG", extra={"data": message.text})


async def close_browser(browser: Browser) -> None:
    """关闭所有页面后关闭浏览器（异常只记录）"""
    for context in browser.contexts:
        for page in context.pages:
            try:
                await page.close()
            except Exception:
                logger.exception("关闭页面失败")
    try:
        await browser.close()
    except Exception:
        logger.exception("关闭浏览器失败")


class PlaywrightSurfaceProvider(ISurfaceProvider):
    """Playwright 会话提供方"""

    def __init__(self, config: RuntimeConfig | None = None):
        self.config = config or get_config()

    @asynccontextmanager
    async def open(self) -> AsyncIterator[PlaywrightSession]:
        browser_cfg = self.config.browser

        async with async_playwright() as playwright:
            try:
                browser = await playwright.chromium.launch(
                    headless=browser_cfg.headless,
                    executable_path=browser_cfg.executable_path or None,
                    args=browser_cfg.args,
                    timeout=browser_cfg.launch_timeout_ms,
                )
            except PlaywrightError as e:
                raise ProvisioningFailure(f"浏览器启动失败: {e}") from e
            logger.info(f"浏览器已启动: {browser.version}")
            try:
                session = await self._open_page(browser)
                yield session
            finally:
                await close_browser(browser)

    async def _open_page(self, browser: Browser) -> PlaywrightSession:
        """打开排料页面（导航失败转换为 ProvisioningFailure）"""
        service_cfg = self.config.nesting_service
        try:
            context = await browser.new_context(ignore_https_errors=True)
            page = await context.new_page()
            page.set_default_navigation_timeout(service_cfg.navigation_timeout_ms)
            page.on("console", _forward_console)
            await page.goto(service_cfg.host)
            logger.info(f"已打开排料页面: {await page.title()}")
        except PlaywrightError as e:
            raise ProvisioningFailure(f"打开排料页面失败 {service_cfg.host}: {e}") from e
        return PlaywrightSession(page, self.config)


def encode_screenshot(data: bytes) -> str:
    """截图转base64（写入日志）"""
    return base64.b64encode(data).decode("ascii")
