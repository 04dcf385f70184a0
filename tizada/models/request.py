"""
请求模型 - 排料任务的输入

对应上游事件结构：
    {
        "user": "<owner>",
        "bin": {"uuid": "<part_id>", "quantity": 1},
        "parts": [{"uuid": "<part_id>", "quantity": 3}, ...],
        "configuration": {"maxIterations": 10, "materialUtilization": 80, "timeout": 60000}
    }
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class PartDescriptor(BaseModel):
    """零件描述 - 一个源SVG + 重复次数"""

    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("owner_id", "ownerId", "owner", "user"),
    )
    part_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("part_id", "partId", "uuid"),
    )
    quantity: int = Field(default=1, ge=1)

    @property
    def asset_key(self) -> str:
        """存储key: {owner_id}/{part_id}.svg"""
        return f"{self.owner_id}/{self.part_id}.svg"


class JobConfiguration(BaseModel):
    """任务参数（均可选，缺省值由运行期配置提供）"""

    max_iterations: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("max_iterations", "maxIterations"),
    )
    material_utilization: float | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("material_utilization", "materialUtilization"),
        description="材料利用率目标（百分比）",
    )
    timeout_ms: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("timeout_ms", "timeoutMs", "timeout"),
    )


class JobRequest(BaseModel):
    """排料任务请求（整个编排期间只读）"""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, validation_alias=AliasChoices("owner", "user"))
    bin: PartDescriptor
    parts: list[PartDescriptor] = Field(default_factory=list)
    configuration: JobConfiguration = Field(default_factory=JobConfiguration)

    @model_validator(mode="before")
    @classmethod
    def _inherit_owner(cls, data: Any) -> Any:
        """描述未带owner时继承请求级owner"""
        if not isinstance(data, dict):
            return data
        owner = data.get("owner", data.get("user"))
        if owner is None:
            return data

        def fill(item: Any) -> Any:
            if isinstance(item, dict) and not any(
                k in item for k in ("owner_id", "ownerId", "owner", "user")
            ):
                return {**item, "owner_id": owner}
            return item

        data = dict(data)
        if "bin" in data:
            data["bin"] = fill(data["bin"])
        if isinstance(data.get("parts"), list):
            data["parts"] = [fill(p) for p in data["parts"]]
        if data.get("configuration") is None:
            data.pop("configuration", None)
        return data

    @model_validator(mode="after")
    def _single_bin(self) -> JobRequest:
        if self.bin.quantity != 1:
            raise ValueError(f"bin quantity must be 1, got {self.bin.quantity}")
        return self
