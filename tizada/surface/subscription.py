"""
订阅句柄 - 观测回调的显式释放

释放是幂等的：收敛等待结束、取消或出错时都会调用 release()，
多次调用只执行一次底层释放。
"""

from __future__ import annotations

from typing import Awaitable, Callable


class Subscription:
    """信号订阅句柄"""

    def __init__(self, release: Callable[[], Awaitable[None]]):
        self._release = release
        self._released = False

    @property
    def active(self) -> bool:
        return not self._released

    async def release(self) -> None:
        """释放订阅（幂等）"""
        if self._released:
            return
        self._released = True
        await self._release()
