"""
SVG合成模块 - 零件/板材文档合成

子模块：
- sanitizer: 片段清洗与id命名空间化
- svg_composer: 读取素材、重复、包裹固定画布
"""

from .sanitizer import fragment_prefix, sanitize_svg
from .svg_composer import CANVAS_HEIGHT, CANVAS_WIDTH, SvgComposer, render_canvas

__all__ = [
    "SvgComposer",
    "sanitize_svg",
    "fragment_prefix",
    "render_canvas",
    "CANVAS_WIDTH",
    "CANVAS_HEIGHT",
]
