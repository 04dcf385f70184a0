"""
自动化页面模块 - 无头浏览器驱动远端排料页面

子模块：
- subscription: 观测订阅句柄
- playwright_surface: Playwright 会话/信号源实现
"""

from .playwright_surface import (
    DomSignalSource,
    PlaywrightSession,
    PlaywrightSurfaceProvider,
    close_browser,
    encode_screenshot,
)
from .subscription import Subscription

__all__ = [
    "Subscription",
    "DomSignalSource",
    "PlaywrightSession",
    "PlaywrightSurfaceProvider",
    "close_browser",
    "encode_screenshot",
]
