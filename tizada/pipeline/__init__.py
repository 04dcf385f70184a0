"""
流水线模块 - 任务编排与执行

子模块：
- stages: 流水线各阶段定义
- convergence: 收敛等待（迭代/利用率/超时竞争）
- executor: 流水线执行器
- publisher: 结果上传
"""

from .convergence import await_convergence
from .executor import ConvergenceSettings, PipelineExecutor
from .publisher import ResultPublisher, build_result_key
from .stages import NESTING_STAGES, PipelineStage, StageEnum

__all__ = [
    "PipelineStage",
    "StageEnum",
    "NESTING_STAGES",
    "await_convergence",
    "PipelineExecutor",
    "ConvergenceSettings",
    "ResultPublisher",
    "build_result_key",
]
