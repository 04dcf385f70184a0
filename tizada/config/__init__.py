"""
配置层 - 运行期配置与日志初始化

职责：
- 加载 config/tizada.yaml（运行期参数，环境变量可覆盖）
- 提供类型安全的配置访问接口
- 初始化结构化日志
"""

from .logging_config import JSONFormatter, TextFormatter, log_context, setup_logging
from .runtime_config import (
    BrowserConfig,
    JobDefaultsConfig,
    LoggingConfig,
    NestingServiceConfig,
    RuntimeConfig,
    SelectorConfig,
    StorageConfig,
    get_config,
    reload_config,
)

__all__ = [
    "RuntimeConfig",
    "StorageConfig",
    "NestingServiceConfig",
    "BrowserConfig",
    "SelectorConfig",
    "JobDefaultsConfig",
    "LoggingConfig",
    "get_config",
    "reload_config",
    "setup_logging",
    "log_context",
    "JSONFormatter",
    "TextFormatter",
]
