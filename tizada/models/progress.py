"""
进度模型 - 远端排料页面的实时信号与收敛结果

ProgressSignal 的数值来自页面文本（如 "7"、"82.5%"），
解析规则与 parseFloat 一致：取开头的数字，否则为 NaN。
NaN 与任何目标比较都不成立，因此不会误触发收敛。
"""

from __future__ import annotations

import math
import re
from enum import Enum

from pydantic import BaseModel

from ..interfaces import ConvergenceTimedOut

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_progress_number(text: str | None) -> float:
    """解析页面文本中的数值（无法解析返回NaN）"""
    if not text:
        return math.nan
    match = _LEADING_NUMBER.match(text)
    if not match:
        return math.nan
    return float(match.group(1))


class ProgressSignal(BaseModel):
    """进度快照（只在会话存活期间有效）"""
    iterations_completed: float
    efficiency_achieved: float

    @classmethod
    def from_text(cls, iterations: str | None, efficiency: str | None) -> ProgressSignal:
        return cls(
            iterations_completed=parse_progress_number(iterations),
            efficiency_achieved=parse_progress_number(efficiency),
        )


class ConvergenceKind(str, Enum):
    """收敛结果类型"""
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"
    EFFICIENCY_THRESHOLD_REACHED = "efficiency_threshold_reached"
    TIMED_OUT = "timed_out"


class ConvergenceOutcome(BaseModel):
    """收敛结果（每次等待只产生一次）"""
    kind: ConvergenceKind
    error: ConvergenceTimedOut | None = None
    signal: ProgressSignal | None = None  # 最后观测到的进度

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @property
    def converged(self) -> bool:
        return self.kind is not ConvergenceKind.TIMED_OUT

    @classmethod
    def iteration_limit_reached(cls, signal: ProgressSignal) -> ConvergenceOutcome:
        return cls(kind=ConvergenceKind.ITERATION_LIMIT_REACHED, signal=signal)

    @classmethod
    def efficiency_threshold_reached(cls, signal: ProgressSignal) -> ConvergenceOutcome:
        return cls(kind=ConvergenceKind.EFFICIENCY_THRESHOLD_REACHED, signal=signal)

    @classmethod
    def timed_out(
        cls, error: ConvergenceTimedOut, signal: ProgressSignal | None = None
    ) -> ConvergenceOutcome:
        return cls(kind=ConvergenceKind.TIMED_OUT, error=error, signal=signal)
