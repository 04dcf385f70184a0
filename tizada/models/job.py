"""
任务模型 - 定义任务状态与生命周期

状态流转：
    IDLE → RUNNING(COMPOSING → ... → PUBLISHING) → DONE
                                                 ↘ FAILED
    无论 DONE/FAILED，CLEANUP 阶段都会执行并记录在 progress.history
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .progress import ConvergenceKind
from .request import JobRequest


class JobStatus(str, Enum):
    """任务状态枚举"""
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class JobArtifacts(BaseModel):
    """任务产物"""
    result_key: str | None = None
    result_location: str | None = None


class JobProgress(BaseModel):
    """任务进度"""
    stage: str = "IDLE"
    percent: int = 0
    message: str = ""
    history: list[str] = Field(default_factory=list, description="已进入的阶段（按顺序）")
    details: dict[str, Any] = Field(default_factory=dict)


class Job(BaseModel):
    """任务实体"""
    job_id: str = Field(..., description="UUID 或 Lambda requestId")
    request: JobRequest

    # 状态
    status: JobStatus = JobStatus.IDLE
    progress: JobProgress = Field(default_factory=JobProgress)
    outcome: ConvergenceKind | None = None

    # 产物
    artifacts: JobArtifacts = Field(default_factory=JobArtifacts)

    # 结果
    flags: list[str] = Field(default_factory=list, description="告警标记")
    errors: list[str] = Field(default_factory=list, description="错误信息")
    failed_stage: str | None = None

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def mark_running(self) -> None:
        """标记为运行中"""
        self.status = JobStatus.RUNNING
        self.started_at = datetime.now()

    def enter_stage(self, stage: str, percent: int | None = None) -> None:
        """进入新阶段"""
        self.progress.stage = stage
        self.progress.history.append(stage)
        if percent is not None:
            self.progress.percent = percent

    def mark_succeeded(self) -> None:
        """标记为成功"""
        self.status = JobStatus.DONE
        self.finished_at = datetime.now()
        self.progress.percent = 100

    def mark_failed(self, error: str) -> None:
        """标记为失败（阶段内失败时 failed_stage 已由执行器记录）"""
        self.status = JobStatus.FAILED
        self.finished_at = datetime.now()
        if self.failed_stage is None:
            self.failed_stage = self.progress.stage
        self.errors.append(error)

    def add_flag(self, flag: str) -> None:
        """添加告警标记（不中断）"""
        if flag not in self.flags:
            self.flags.append(flag)
