"""
收敛等待 - 迭代数/利用率/超时 三路竞争，先到先得

触发条件：
- 迭代：iterations_completed == target_iterations（与页面计数器自身的停止条件一致，严格相等）
- 利用率：efficiency_achieved >= efficiency_target（单次更新可能越过目标）
- 超时：timeout_ms 为真值时才启用

同一次更新同时满足迭代与利用率时取迭代。
结果只落定一次；落定后不再检查任何更新，取消定时器并释放订阅。
不轮询：每次页面数值变化都会回调一次。

测试要点：
- test_iteration_trigger / test_efficiency_overshoot / test_timeout_trigger
- test_efficiency_trigger_stops_inspection: 落定后不再检查后续更新
- test_missing_elements: 观测目标缺失时立即失败
"""

from __future__ import annotations

import asyncio
import logging

from ..interfaces import ConvergenceTimedOut, ISignalSource
from ..models import ConvergenceOutcome, ProgressSignal

logger = logging.getLogger(__name__)


async def await_convergence(
    source: ISignalSource,
    target_iterations: float,
    efficiency_target: float,
    timeout_ms: int | None = None,
) -> ConvergenceOutcome:
    """
    等待远端排料收敛

    Args:
        source: 进度信号源
        target_iterations: 目标迭代次数
        efficiency_target: 目标利用率（百分比）
        timeout_ms: 超时毫秒数（None/0 不启用）

    Returns:
        收敛结果（超时以 TIMED_OUT 返回，不抛出）

    Raises:
        MissingDomElement: 观测目标缺失（此时不启用任何触发器）
    """
    loop = asyncio.get_running_loop()
    settled: asyncio.Future[ConvergenceOutcome] = loop.create_future()
    last_signal: ProgressSignal | None = None

    def settle(outcome: ConvergenceOutcome) -> None:
        if not settled.done():
            settled.set_result(outcome)

    def on_signal(signal: ProgressSignal) -> None:
        nonlocal last_signal
        if settled.done():
            return
        last_signal = signal

        if signal.iterations_completed == target_iterations:
            logger.info(f"达到最大迭代次数: {signal.iterations_completed}")
            settle(ConvergenceOutcome.iteration_limit_reached(signal))
        elif signal.efficiency_achieved >= efficiency_target:
            logger.info(
                f"达到利用率目标: {signal.efficiency_achieved} >= {efficiency_target}"
            )
            settle(ConvergenceOutcome.efficiency_threshold_reached(signal))

    def on_timeout() -> None:
        observed = (
            f"iterations={last_signal.iterations_completed}, "
            f"efficiency={last_signal.efficiency_achieved}"
            if last_signal
            else "无进度更新"
        )
        error = ConvergenceTimedOut(
            f"等待收敛超时 ({timeout_ms}ms): "
            f"目标 iterations={target_iterations}, efficiency={efficiency_target}; "
            f"最后观测 {observed}"
        )
        settle(ConvergenceOutcome.timed_out(error, last_signal))

    # 超时从调用开始计时，安装观测的耗时也计入
    started = loop.time()
    subscription = await source.subscribe(on_signal)
    timer = loop.call_at(started + timeout_ms / 1000, on_timeout) if timeout_ms else None

    try:
        return await settled
    finally:
        if timer is not None:
            timer.cancel()
        await subscription.release()
