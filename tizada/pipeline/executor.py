"""
流水线执行器 - 编排排料任务各阶段

职责：
1. 按顺序执行各阶段（合成 → 开会话 → 上传 → 开始 → 等待收敛 → 提取 → 发布）
2. 会话作为作用域资源持有，任何退出路径都会释放
3. 更新任务进度，记录失败阶段
4. 失败不重试：标记任务失败后原样上抛

测试要点：
- test_execute_full_pipeline: 完整流水线执行
- test_upload_failure / test_extraction_failure: 阶段失败处理
- test_session_released_on_timeout: 超时后会话仍被释放
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..composer import SvgComposer
from ..config import RuntimeConfig, get_config, log_context
from ..interfaces import (
    ExtractionFailure,
    IAssetStore,
    IAutomationSession,
    IResultPublisher,
    ISurfaceProvider,
    ISvgComposer,
)
from ..storage import S3AssetStore
from ..surface import PlaywrightSurfaceProvider, encode_screenshot
from .convergence import await_convergence
from .publisher import ResultPublisher
from .stages import NESTING_STAGES, PipelineStage, StageEnum

if TYPE_CHECKING:
    from ..models import Job, JobConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvergenceSettings:
    """生效的收敛参数（请求值优先，缺省取运行期配置）"""
    max_iterations: int
    material_utilization: float
    timeout_ms: int | None


class PipelineExecutor:
    """流水线执行器"""

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        asset_store: IAssetStore | None = None,
        surface_provider: ISurfaceProvider | None = None,
        composer: ISvgComposer | None = None,
        publisher: IResultPublisher | None = None,
    ):
        self.config = config or get_config()
        self.asset_store = asset_store or S3AssetStore(self.config.storage)
        self.composer = composer or SvgComposer(self.asset_store)
        self.surface_provider = surface_provider or PlaywrightSurfaceProvider(self.config)
        self.publisher = publisher or ResultPublisher(self.asset_store)

    def resolve_settings(self, configuration: JobConfiguration) -> ConvergenceSettings:
        defaults = self.config.job_defaults
        return ConvergenceSettings(
            max_iterations=configuration.max_iterations or defaults.max_iterations,
            material_utilization=configuration.material_utilization or defaults.material_utilization,
            timeout_ms=configuration.timeout_ms or defaults.timeout_ms,
        )

    async def execute(self, job: Job) -> Job:
        """执行流水线"""
        with log_context(job_id=job.job_id):
            job.mark_running()
            logger.info("任务开始")

            try:
                try:
                    async with AsyncExitStack() as resources:
                        context: dict[str, Any] = {"resources": resources}
                        for stage in NESTING_STAGES:
                            await self._execute_stage(job, stage, context)
                finally:
                    # 会话（若已打开）在退出 AsyncExitStack 时已释放
                    job.enter_stage(StageEnum.CLEANUP.value)
                    logger.info("清理完成")

                job.mark_succeeded()
                logger.info(f"任务完成: {job.artifacts.result_location}")

            except BaseException as e:
                # 取消（CancelledError）同样记为失败后上抛
                logger.exception(f"流水线执行失败: {job.job_id}")
                job.mark_failed(f"{type(e).__name__}: {e}")
                raise

        return job

    async def _execute_stage(self, job: Job, stage: PipelineStage, context: dict) -> None:
        """执行单个阶段"""
        job.enter_stage(stage.name, stage.progress_start)
        logger.info(f"开始阶段: {stage.name}")

        try:
            if stage.name == StageEnum.COMPOSING.value:
                await self._stage_compose(job, context)

            elif stage.name == StageEnum.PROVISIONING.value:
                await self._stage_provision(job, context)

            elif stage.name == StageEnum.UPLOADING.value:
                await self._stage_upload(job, context)

            elif stage.name == StageEnum.RUNNING.value:
                await self._stage_run(job, context)

            elif stage.name == StageEnum.CONVERGING.value:
                await self._stage_converge(job, context)

            elif stage.name == StageEnum.EXTRACTING.value:
                await self._stage_extract(job, context)

            elif stage.name == StageEnum.PUBLISHING.value:
                await self._stage_publish(job, context)

        except BaseException as e:
            logger.error(f"阶段失败 {stage.name}: {type(e).__name__}: {e}")
            job.failed_stage = stage.name
            raise

        job.progress.percent = stage.progress_end
        logger.info(f"完成阶段: {stage.name}")

    async def _stage_compose(self, job: Job, context: dict) -> None:
        """板材与零件分别合成"""
        request = job.request
        bin_asset = await self.composer.compose([request.bin])
        parts_asset = await self.composer.compose(request.parts)

        skipped = len(request.parts) - parts_asset.fragment_count
        if skipped:
            job.add_flag(f"跳过零件:{skipped}")

        context["bin_svg"] = bin_asset.content
        context["parts_svg"] = parts_asset.content

    async def _stage_provision(self, job: Job, context: dict) -> None:
        """打开会话（由 AsyncExitStack 负责释放）"""
        resources: AsyncExitStack = context["resources"]
        context["session"] = await resources.enter_async_context(self.surface_provider.open())

    async def _stage_upload(self, job: Job, context: dict) -> None:
        session: IAutomationSession = context["session"]
        await session.upload_parts(context["parts_svg"])
        await session.upload_bin(context["bin_svg"])

    async def _stage_run(self, job: Job, context: dict) -> None:
        session: IAutomationSession = context["session"]
        await session.start()
        await self._capture(session, "started")

    async def _stage_converge(self, job: Job, context: dict) -> None:
        """等待收敛；超时作为任务错误上抛"""
        session: IAutomationSession = context["session"]
        settings = self.resolve_settings(job.request.configuration)
        job.progress.details["settings"] = {
            "max_iterations": settings.max_iterations,
            "material_utilization": settings.material_utilization,
            "timeout_ms": settings.timeout_ms,
        }

        outcome = await await_convergence(
            session.signal_source(),
            target_iterations=settings.max_iterations,
            efficiency_target=settings.material_utilization,
            timeout_ms=settings.timeout_ms,
        )
        job.outcome = outcome.kind
        if outcome.signal is not None:
            job.progress.details["last_signal"] = outcome.signal.model_dump()
        logger.info(f"收敛结果: {outcome.kind.value}")

        await self._capture(session, "converged")
        if outcome.error is not None:
            raise outcome.error

    async def _stage_extract(self, job: Job, context: dict) -> None:
        session: IAutomationSession = context["session"]
        await session.send_result()
        output = await session.read_result()
        if not output:
            raise ExtractionFailure(
                f"页面未写入排料结果: localStorage[{self.config.selectors.output_storage_key}]"
            )
        context["artifact"] = output

    async def _stage_publish(self, job: Job, context: dict) -> None:
        published = await self.publisher.publish(context["artifact"])
        job.artifacts.result_key = published.key
        job.artifacts.result_location = published.location

    async def _capture(self, session: IAutomationSession, label: str) -> None:
        """调试截图（base64写入DEBUG日志）"""
        if not self.config.browser.capture_screenshots:
            return
        data = await session.screenshot()
        logger.debug(
            "Screenshot taken",
            extra={"label": label, "screenshot": encode_screenshot(data)},
        )
