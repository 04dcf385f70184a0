"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- JobRequest/PartDescriptor: 任务输入
- RawFragment/ComposedAsset: SVG合成
- ProgressSignal/ConvergenceOutcome: 收敛等待
- Job: 任务状态与生命周期
"""

from .composition import ComposedAsset, PublishedResult, RawFragment
from .job import Job, JobArtifacts, JobProgress, JobStatus
from .progress import (
    ConvergenceKind,
    ConvergenceOutcome,
    ProgressSignal,
    parse_progress_number,
)
from .request import JobConfiguration, JobRequest, PartDescriptor

__all__ = [
    "PartDescriptor",
    "JobConfiguration",
    "JobRequest",
    "RawFragment",
    "ComposedAsset",
    "PublishedResult",
    "ProgressSignal",
    "ConvergenceKind",
    "ConvergenceOutcome",
    "parse_progress_number",
    "Job",
    "JobStatus",
    "JobProgress",
    "JobArtifacts",
]
