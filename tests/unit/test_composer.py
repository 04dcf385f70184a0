"""
SVG合成器单元测试

每个模块完成后必须运行：pytest tests/unit/test_composer.py -v
"""

import re

import pytest

from tizada.composer import CANVAS_HEIGHT, CANVAS_WIDTH, SvgComposer, render_canvas
from tizada.interfaces import ComposeFailure
from tizada.models import PartDescriptor

from tests.conftest import OWNER, FakeAssetStore


def descriptor(part_id: str, quantity: int = 1) -> PartDescriptor:
    return PartDescriptor(owner_id=OWNER, part_id=part_id, quantity=quantity)


class TestSvgComposer:
    """合成器测试"""

    @pytest.fixture
    def composer(self, asset_store: FakeAssetStore) -> SvgComposer:
        return SvgComposer(asset_store)

    @pytest.mark.asyncio
    async def test_fetches_by_owner_and_part(self, composer: SvgComposer, asset_store: FakeAssetStore):
        """测试素材key"""
        await composer.compose([descriptor("part-a"), descriptor("part-b")])
        assert asset_store.gets == [f"{OWNER}/part-a.svg", f"{OWNER}/part-b.svg"]

    @pytest.mark.asyncio
    async def test_fixed_canvas(self, composer: SvgComposer):
        """测试固定画布"""
        asset = await composer.compose([descriptor("part-a")])
        assert asset.canvas_width == CANVAS_WIDTH == 3000
        assert asset.canvas_height == CANVAS_HEIGHT == 3000
        assert asset.content.startswith(
            '<svg xmlns="http://www.w3.org/2000/svg" width="3000" height="3000" '
            'viewBox="0 0 3000 3000" style="background-color:white">\n'
        )
        assert asset.content.endswith("</svg>\n")
        assert "<?xml" not in asset.content

    @pytest.mark.asyncio
    async def test_compose_repeats_quantity(self, composer: SvgComposer):
        """测试重复次数：片段原样出现 quantity 次"""
        asset = await composer.compose([descriptor("part-a", 3)])
        assert asset.content.count('<g id="file1-part1">') == 3
        assert asset.content.count('<use href="#file1-part1"/>') == 3

        # 三份完全一致（未做任何重定位）
        body = asset.content.split("\n", 1)[1].rsplit("</svg>", 1)[0]
        fragment = body[: len(body) // 3]
        assert body == fragment * 3

    @pytest.mark.asyncio
    async def test_prefixes_distinct_per_descriptor(self, composer: SvgComposer):
        """测试前缀：不同描述之间不冲突，同一零件出现两次也分别编号"""
        asset = await composer.compose(
            [descriptor("part-a"), descriptor("part-b"), descriptor("part-a")]
        )
        ids = re.findall(r"\bid=[\"']([^\"']+)[\"']", asset.content)
        prefixes = {i.split("-", 1)[0] for i in ids}
        assert prefixes == {"file1", "file2", "file3"}
        assert "file2-part1" in ids
        assert 'xlink:href=\'#file2-part1\'' in asset.content
        assert 'fill="url(#file3-grad)"' in asset.content

    @pytest.mark.asyncio
    async def test_compose_deterministic(self, composer: SvgComposer):
        """测试相同输入逐字节一致"""
        request = [descriptor("part-a", 2), descriptor("part-b", 1)]
        first = await composer.compose(request)
        second = await composer.compose(request)
        assert first.content == second.content

    @pytest.mark.asyncio
    async def test_compose_partial_failure(self, composer: SvgComposer):
        """测试部分失败：跳过缺失素材，前缀仍按原序号"""
        asset = await composer.compose(
            [descriptor("missing"), descriptor("part-b", 2)]
        )
        assert asset.fragment_count == 1
        assert "file1-" not in asset.content
        assert asset.content.count("<g id='file2-part1'>") == 2

    @pytest.mark.asyncio
    async def test_compose_total_failure(self, composer: SvgComposer):
        """测试全部失败"""
        with pytest.raises(ComposeFailure):
            await composer.compose([descriptor("missing"), descriptor("gone")])

    @pytest.mark.asyncio
    async def test_compose_empty(self, composer: SvgComposer):
        """测试无描述：空画布"""
        asset = await composer.compose([])
        assert asset.content == render_canvas("")
        assert asset.fragment_count == 0

    @pytest.mark.asyncio
    async def test_non_utf8_skipped(self):
        """测试非UTF-8素材按读取失败处理"""
        store = FakeAssetStore(
            {
                f"{OWNER}/bad.svg": b"\xff\xfe\x00",
                f"{OWNER}/good.svg": b"<svg><rect/></svg>",
            }
        )
        asset = await SvgComposer(store).compose([descriptor("bad"), descriptor("good")])
        assert asset.fragment_count == 1
        assert "<rect/>\n" in asset.content
