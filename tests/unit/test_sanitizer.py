"""
片段清洗单元测试

每个模块完成后必须运行：pytest tests/unit/test_sanitizer.py -v
"""

from tizada.composer import fragment_prefix, sanitize_svg
from tizada.composer.sanitizer import prefix_identifiers, strip_outer_svg


class TestStripOuterSvg:
    """外层标签去除测试"""

    def test_removes_declaration_and_root(self):
        content = '<?xml version="1.0"?><svg width="10"><rect/></svg>'
        assert strip_outer_svg(content) == "<rect/>"

    def test_keeps_nested_svg(self):
        """只去掉最外层，嵌套svg原样保留"""
        content = '<svg a="1"><svg b="2"><circle/></svg><rect/></svg>'
        assert strip_outer_svg(content) == '<svg b="2"><circle/></svg><rect/>'

    def test_no_root(self):
        assert strip_outer_svg("<rect/>") == "<rect/>"


class TestPrefixIdentifiers:
    """id命名空间化测试"""

    def test_prefix_ids_and_hrefs(self):
        markup = '<g id="part1"/><use href="#part1"/>'
        assert prefix_identifiers(markup, "file1") == '<g id="file1-part1"/><use href="#file1-part1"/>'

    def test_xlink_href(self):
        markup = '<use xlink:href="#a"/>'
        assert prefix_identifiers(markup, "file2") == '<use xlink:href="#file2-a"/>'

    def test_single_quotes(self):
        markup = "<g id='part24'/><use href='#part24'/>"
        assert prefix_identifiers(markup, "file3") == "<g id='file3-part24'/><use href='#file3-part24'/>"

    def test_url_references(self):
        markup = '<rect fill="url(#grad)" style="clip-path: url(#clip)"/>'
        assert prefix_identifiers(markup, "file1") == (
            '<rect fill="url(#file1-grad)" style="clip-path: url(#file1-clip)"/>'
        )

    def test_quoted_url_references(self):
        """url() 内带引号的引用同样改名，引号保留"""
        markup = """<rect fill="url('#grad')" style='fill: url("#grad")'/>"""
        assert prefix_identifiers(markup, "file2") == (
            """<rect fill="url('#file2-grad')" style='fill: url("#file2-grad")'/>"""
        )

    def test_other_attributes_untouched(self):
        """data-id / 外部链接不改名"""
        markup = '<g data-id="x" valid="y"/><a href="https://example.com/#top"/>'
        assert prefix_identifiers(markup, "file1") == markup


class TestSanitizeSvg:
    """完整清洗测试"""

    def test_sanitize(self):
        content = '<?xml version="1.0" encoding="UTF-8"?>\n<svg xmlns="http://www.w3.org/2000/svg"><g id="p"/></svg>'
        assert sanitize_svg(content, "file1") == '\n<g id="file1-p"/>'

    def test_prefix_from_ordinal(self):
        assert [fragment_prefix(i) for i in range(3)] == ["file1", "file2", "file3"]
