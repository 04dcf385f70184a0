"""
SVG合成器 - 多个零件SVG合成为一张固定画布

职责：
1. 按请求顺序读取每个描述对应的源SVG（{owner_id}/{part_id}.svg）
2. 清洗并加前缀（file1, file2, ...）
3. 按 quantity 原样重复（不做任何定位，定位由远端排料完成）
4. 包进固定尺寸的根 <svg>

失败策略：
- 单个素材读取失败：记录并跳过，继续其余描述
- 有描述但全部失败：ComposeFailure
- 无描述：返回空画布

测试要点：
- test_compose_repeats_quantity: 重复次数
- test_compose_deterministic: 相同输入逐字节一致
- test_compose_partial_failure: 部分失败降级
- test_compose_total_failure: 全部失败
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..interfaces import AssetFetchFailure, ComposeFailure, IAssetStore, ISvgComposer
from ..models import ComposedAsset, PartDescriptor, RawFragment
from .sanitizer import fragment_prefix, sanitize_svg

logger = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"

# 远端页面按已知画布尺寸工作，所有任务使用同一画布
CANVAS_WIDTH = 3000
CANVAS_HEIGHT = 3000
CANVAS_BACKGROUND = "white"


def render_canvas(body: str) -> str:
    """用固定画布包裹片段"""
    return (
        f'<svg xmlns="{SVG_NAMESPACE}" width="{CANVAS_WIDTH}" height="{CANVAS_HEIGHT}" '
        f'viewBox="0 0 {CANVAS_WIDTH} {CANVAS_HEIGHT}" '
        f'style="background-color:{CANVAS_BACKGROUND}">\n'
        f"{body}"
        "</svg>\n"
    )


class SvgComposer(ISvgComposer):
    """SVG合成器实现"""

    def __init__(self, asset_store: IAssetStore):
        self.asset_store = asset_store

    async def compose(self, descriptors: Sequence[PartDescriptor]) -> ComposedAsset:
        """合成文档"""
        fragments: list[RawFragment] = []
        last_error: AssetFetchFailure | None = None

        for index, descriptor in enumerate(descriptors):
            try:
                fragments.append(await self._load_fragment(index, descriptor))
            except AssetFetchFailure as e:
                logger.warning(f"素材读取失败，跳过: {descriptor.asset_key}: {e}")
                last_error = e

        if descriptors and not fragments:
            raise ComposeFailure(
                f"所有素材读取失败 ({len(descriptors)} 个描述)"
            ) from last_error

        body = "".join(f"{fragment.markup}\n" * fragment.quantity for fragment in fragments)
        logger.info(
            f"合成完成: {len(fragments)}/{len(descriptors)} 个描述, "
            f"{sum(f.quantity for f in fragments)} 个片段"
        )
        return ComposedAsset(
            content=render_canvas(body),
            canvas_width=CANVAS_WIDTH,
            canvas_height=CANVAS_HEIGHT,
            fragment_count=len(fragments),
        )

    async def _load_fragment(self, index: int, descriptor: PartDescriptor) -> RawFragment:
        """读取并清洗单个描述"""
        key = descriptor.asset_key
        raw = await self.asset_store.get(key)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise AssetFetchFailure(f"素材不是UTF-8文本: {key}") from e

        prefix = fragment_prefix(index)
        return RawFragment(
            prefix=prefix,
            source_key=key,
            markup=sanitize_svg(text, prefix),
            quantity=descriptor.quantity,
        )
