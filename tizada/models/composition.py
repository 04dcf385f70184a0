"""
合成模型 - SVG片段与合成结果

- RawFragment: 清洗后的内部片段（生命周期仅限一次合成）
- ComposedAsset: 合成后的完整画布文档（任务级，不跨任务缓存）
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RawFragment(BaseModel):
    """清洗后的SVG片段"""
    prefix: str
    source_key: str
    markup: str
    quantity: int = Field(default=1, ge=1)


class ComposedAsset(BaseModel):
    """合成文档"""
    content: str
    canvas_width: float
    canvas_height: float
    fragment_count: int = 0  # 成功合入的描述数（不含重复）


class PublishedResult(BaseModel):
    """已上传的排料结果"""
    key: str
    location: str
