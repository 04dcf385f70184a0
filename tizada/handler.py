"""
入口 - Lambda handler / 命令行

用法：
    python -m tizada.handler event.json
    python -m tizada.handler event.json --config config/tizada.yaml

返回：
    成功: {"status": "done", "job_id", "result_key", "location", "outcome"}
    失败: {"status": "failed", "job_id", "stage", "error", "message"}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import get_config, reload_config, setup_logging
from .models import Job, JobRequest
from .pipeline import PipelineExecutor

logger = logging.getLogger(__name__)


def build_job(event: dict[str, Any], job_id: str | None = None) -> Job:
    """事件 → 任务"""
    request = JobRequest.model_validate(event)
    return Job(job_id=job_id or str(uuid.uuid4()), request=request)


async def run_job(job: Job, executor: PipelineExecutor | None = None) -> dict[str, Any]:
    """执行任务并汇总为响应"""
    executor = executor or PipelineExecutor()
    try:
        await executor.execute(job)
    except Exception as e:
        return {
            "status": job.status.value,
            "job_id": job.job_id,
            "stage": job.failed_stage,
            "error": type(e).__name__,
            "message": str(e),
        }
    return {
        "status": job.status.value,
        "job_id": job.job_id,
        "result_key": job.artifacts.result_key,
        "location": job.artifacts.result_location,
        "outcome": job.outcome.value if job.outcome else None,
    }


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Lambda 入口（job_id 取 aws_request_id）"""
    setup_logging(get_config().logging)
    job_id = getattr(context, "aws_request_id", None)
    logger.info("收到排料任务", extra={"event": event})

    try:
        job = build_job(event, job_id)
    except ValidationError as e:
        logger.error(f"请求校验失败: {e}")
        return {
            "status": "failed",
            "job_id": job_id,
            "stage": None,
            "error": "ValidationError",
            "message": str(e),
        }

    return asyncio.run(run_job(job))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="运行一次排料任务")
    parser.add_argument("event", type=Path, help="事件JSON文件")
    parser.add_argument("--config", type=Path, default=None, help="运行期配置YAML")
    args = parser.parse_args(argv)

    if args.config:
        reload_config(args.config)

    event = json.loads(args.event.read_text(encoding="utf-8"))
    response = handler(event)
    print(json.dumps(response, ensure_ascii=False, indent=2))
    return 0 if response["status"] == "done" else 1


if __name__ == "__main__":
    sys.exit(main())
