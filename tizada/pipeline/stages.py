"""
流水线阶段定义

职责：
1. 定义各阶段的名称与进度区间
2. 阶段严格顺序执行，CLEANUP 在任何终态前都会执行

测试要点：
- test_stage_order: 阶段顺序
- test_progress_ranges: 进度区间单调
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StageEnum(str, Enum):
    """流水线阶段枚举"""
    COMPOSING = "COMPOSING"
    PROVISIONING = "PROVISIONING"
    UPLOADING = "UPLOADING"
    RUNNING = "RUNNING"
    CONVERGING = "CONVERGING"
    EXTRACTING = "EXTRACTING"
    PUBLISHING = "PUBLISHING"
    CLEANUP = "CLEANUP"


@dataclass(frozen=True)
class PipelineStage:
    """流水线阶段"""
    name: str
    progress_start: int  # 进度起点（0-100）
    progress_end: int    # 进度终点


# 排料任务各阶段配置（CLEANUP 不在列表中，由执行器在退出时进入）
NESTING_STAGES: list[PipelineStage] = [
    PipelineStage(StageEnum.COMPOSING.value, 0, 10),
    PipelineStage(StageEnum.PROVISIONING.value, 10, 20),
    PipelineStage(StageEnum.UPLOADING.value, 20, 25),
    PipelineStage(StageEnum.RUNNING.value, 25, 30),
    PipelineStage(StageEnum.CONVERGING.value, 30, 85),
    PipelineStage(StageEnum.EXTRACTING.value, 85, 90),
    PipelineStage(StageEnum.PUBLISHING.value, 90, 100),
]
