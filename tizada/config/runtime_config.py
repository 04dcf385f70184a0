"""
运行期配置 - 读取 config/tizada.yaml

职责：
- 加载存储/浏览器/排料服务/页面选择器等运行参数
- 提供环境变量覆盖机制（TIZADA_ 前缀，嵌套用 __ 分隔）
- 类型安全的配置访问
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

DEFAULT_CONFIG_PATH = Path("config/tizada.yaml")


class StorageConfig(BaseModel):
    """对象存储配置"""

    bucket_name: str = "servicio-de-tizada"
    region: str = "us-east-2"
    access_key_id: str | None = None
    secret_access_key: str | None = None
    endpoint_url: str | None = None


class NestingServiceConfig(BaseModel):
    """远端排料页面配置"""

    host: str = "https://svg-nest.netlify.app/"
    navigation_timeout_ms: int = 120_000
    element_timeout_ms: int = 30_000
    result_timeout_ms: int = 30_000


class BrowserConfig(BaseModel):
    """无头浏览器配置"""

    headless: bool = True
    executable_path: str | None = None
    args: list[str] = Field(default_factory=lambda: ["--no-sandbox", "--disable-dev-shm-usage"])
    launch_timeout_ms: int = 0
    capture_screenshots: bool = False


class SelectorConfig(BaseModel):
    """页面DOM约定"""

    parts_input: str = "#fileinput"
    bin_input: str = "#bininput"
    start_button: str = "#start"
    send_result_button: str = "#sendresult"
    info_iterations: str = "#info_iterations"
    info_placed: str = "#info_placed"
    info_efficiency: str = "#info_efficiency"
    info_progress: str = "#info_progress"
    output_storage_key: str = "svgOutput"


class JobDefaultsConfig(BaseModel):
    """任务参数默认值（请求未提供时使用）"""

    max_iterations: int = Field(default=10, ge=1)
    material_utilization: float = Field(default=50.0, ge=0)
    timeout_ms: int | None = None


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_format: str = "json"


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    nesting_service: NestingServiceConfig = Field(default_factory=NestingServiceConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    job_defaults: JobDefaultsConfig = Field(default_factory=JobDefaultsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "TIZADA_",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置（优先级：环境变量 > YAML > 代码默认值）"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        sections = {
            "storage": StorageConfig,
            "nesting_service": NestingServiceConfig,
            "browser": BrowserConfig,
            "selectors": SelectorConfig,
            "job_defaults": JobDefaultsConfig,
            "logging": LoggingConfig,
        }
        env_config = cls()
        overrides = {}
        for name, model in sections.items():
            if name not in runtime_opts:
                continue
            # 只保留环境变量实际设置的字段，其余取YAML
            env_section = getattr(env_config, name)
            env_values = {k: getattr(env_section, k) for k in env_section.model_fields_set}
            overrides[name] = model(**{**cls._extract(runtime_opts, name), **env_values})
        return cls(**overrides)

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置（支持 {default: x} 写法）"""
        section = data.get(key) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result


# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        path = os.environ.get("TIZADA_CONFIG_PATH") or DEFAULT_CONFIG_PATH
        _config = RuntimeConfig.from_yaml(path)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    path = yaml_path or os.environ.get("TIZADA_CONFIG_PATH") or DEFAULT_CONFIG_PATH
    _config = RuntimeConfig.from_yaml(path)
    return _config
