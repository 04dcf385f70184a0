"""
日志配置 - JSON/文本格式输出，任务级上下文字段

职责：
- 根据 LoggingConfig 初始化根 logger（单个 stdout handler）
- log_context 绑定任务字段（job_id 等），所有日志行自动携带

使用方式：
    setup_logging(get_config().logging)
    with log_context(job_id=job.job_id):
        logger.info("开始阶段: COMPOSING")
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

from .runtime_config import LoggingConfig

_log_context: ContextVar[dict[str, Any]] = ContextVar("tizada_log_context", default={})

# LogRecord 自带属性，不作为额外字段输出
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """在当前作用域内为日志附加上下文字段"""
    current = dict(_log_context.get())
    current.update(fields)
    token = _log_context.set(current)
    try:
        yield
    finally:
        _log_context.reset(token)


def current_log_context() -> dict[str, Any]:
    return dict(_log_context.get())


class JSONFormatter(logging.Formatter):
    """JSON格式（每行一个对象）"""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_log_context.get())

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                data[key] = value

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """文本格式（本地调试）"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _log_context.get()
        if context:
            line += " (" + " ".join(f"{k}={v}" for k, v in context.items()) + ")"
        return line


def setup_logging(config: LoggingConfig | None = None) -> None:
    """初始化根 logger（重复调用会替换已有 handler）"""
    config = config or LoggingConfig()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if config.log_format == "text":
        handler.setFormatter(TextFormatter())
    else:
        handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    # 第三方库日志降噪
    for noisy in ("botocore", "boto3", "urllib3", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
