"""
SVG片段清洗 - 去外层标签 + id命名空间化

职责：
1. 去掉XML声明
2. 去掉最外层 <svg ...> 开标签及与之配对的（最后一个）</svg>
3. id="X" → id="{prefix}-X"
4. href="#X" / xlink:href="#X" → href="#{prefix}-X"
5. url(#X) / url('#X') → url(#{prefix}-X)（渐变/裁剪路径引用随id一起改名）

导出的SVG经常复用 part1 之类的通用id，不加前缀拼到同一文档里会冲突。

测试要点：
- test_keeps_nested_svg: 外层标签去除，嵌套svg保留
- test_prefix_ids_and_hrefs: id与引用同步改名
- test_single_quotes: 单引号属性
"""

from __future__ import annotations

import re

_XML_DECLARATION = re.compile(r"<\?xml[^>]*\?>")
_SVG_OPEN = re.compile(r"<svg\b[^>]*>")
_SVG_CLOSE = re.compile(r"</svg\s*>")

# data-id / xml:id 之类不处理
_ID_ATTR = re.compile(r"(?<![\w:.-])id\s*=\s*([\"'])([^\"']+)\1")
_HREF_ATTR = re.compile(r"(?<![\w.-])((?:xlink:)?href)\s*=\s*([\"'])#([^\"']+)\2")
_URL_REF = re.compile(r"url\(\s*([\"']?)#([^)\s\"']+)\1\s*\)")


def fragment_prefix(index: int) -> str:
    """按请求顺序生成前缀（0 → file1）"""
    return f"file{index + 1}"


def strip_outer_svg(svg_content: str) -> str:
    """去掉XML声明与最外层svg标签，只保留内部标记"""
    content = _XML_DECLARATION.sub("", svg_content)
    content = _SVG_OPEN.sub("", content, count=1)

    closing = None
    for closing in _SVG_CLOSE.finditer(content):
        pass
    if closing is not None:
        content = content[: closing.start()] + content[closing.end():]
    return content


def prefix_identifiers(markup: str, prefix: str) -> str:
    """为id及其引用加前缀"""
    markup = _ID_ATTR.sub(
        lambda m: f"id={m.group(1)}{prefix}-{m.group(2)}{m.group(1)}", markup
    )
    markup = _HREF_ATTR.sub(
        lambda m: f"{m.group(1)}={m.group(2)}#{prefix}-{m.group(3)}{m.group(2)}", markup
    )
    markup = _URL_REF.sub(
        lambda m: f"url({m.group(1)}#{prefix}-{m.group(2)}{m.group(1)})", markup
    )
    return markup


def sanitize_svg(svg_content: str, prefix: str) -> str:
    """清洗单个源SVG为可拼接片段"""
    return prefix_identifiers(strip_outer_svg(svg_content), prefix)
