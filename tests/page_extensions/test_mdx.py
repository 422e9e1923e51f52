import pytest

from plugins.page_extensions.mdx import (
    parse_component_target,
    parse_meta_export,
    render_components,
    split_esm,
    strip_jsx_comments,
)


class TestSplitEsm:
    def test_imports_and_exports_removed(self):
        """Test: top-level ESM blocks are separated from the Markdown body."""
        source = (
            "import Chart from '../components/chart'\n"
            "import { Note } from '../components'\n"
            "\n"
            "export const meta = {\n"
            "  title: 'Hello',\n"
            "}\n"
            "\n"
            "# Hello\n"
            "\n"
            "Some text about exports.\n"
        )
        body, statements = split_esm(source)
        assert len(statements) == 2
        assert statements[0].startswith("import Chart")
        assert statements[1].startswith("export const meta")
        assert "import" not in body
        assert "# Hello" in body
        assert "Some text about exports." in body

    def test_code_fences_untouched(self):
        """Test: import lines inside fenced code stay in the body."""
        source = "# Usage\n\n```js\nimport x from 'y'\n```\n"
        body, statements = split_esm(source)
        assert statements == []
        assert body == source

    def test_plain_markdown(self):
        source = "# Title\n\nNothing to see.\n"
        assert split_esm(source) == (source, [])

    def test_longer_closing_fence(self):
        """Test: a closing fence longer than the opening one ends the code block."""
        body, statements = split_esm("```\ncode\n````\n\nimport x from 'y'\n\n# T\n")
        assert statements == ["import x from 'y'"]
        assert "# T" in body

    def test_other_fence_char_does_not_close(self):
        source = "```\n~~~\nimport x from 'y'\n```\n"
        assert split_esm(source) == (source, [])


class TestMetaExport:
    def test_object_literal(self):
        statements = ["export const meta = {\n  title: 'Hello',\n  tags: ['a', 'b'],\n}"]
        assert parse_meta_export(statements) == {"title": "Hello", "tags": ["a", "b"]}

    def test_trailing_semicolon(self):
        assert parse_meta_export(["export const meta = { draft: true };"]) == {"draft": True}

    def test_unspaced_keys(self):
        """Test: JS-style `key:value` pairs without a space still parse as keys."""
        assert parse_meta_export(["export const meta = {title:'Hello'}"]) == {"title": "Hello"}
        assert parse_meta_export(["export const meta = {draft:true,order:2}"]) == {"draft": True, "order": 2}

    def test_colon_inside_quoted_value(self):
        statements = ["export const meta = {url:'http://example.com', note: 'a:b'}"]
        assert parse_meta_export(statements) == {"url": "http://example.com", "note": "a:b"}

    def test_no_meta(self):
        assert parse_meta_export(["import a from 'b'", "export default Layout"]) == {}

    def test_unparseable_meta(self):
        """Test: a meta export that is not a flow mapping is ignored."""
        assert parse_meta_export(["export const meta = { title: fn(] }"]) == {}


class TestJsxComments:
    def test_comments_removed(self):
        assert strip_jsx_comments("a {/* hidden\n note */}b") == "a b"


class TestComponents:
    def test_parse_target(self):
        assert parse_component_target("div.note.admonition") == ("div", ["note", "admonition"])
        assert parse_component_target("aside") == ("aside", [])

    def test_parse_target_without_tag(self):
        with pytest.raises(ValueError):
            parse_component_target(".note")

    def test_render_components(self):
        """Test: registered component tags become plain HTML elements."""
        html = '<note class="wide"><p>Careful</p></note><p>Text</p>'
        result = render_components(html, {"note": ("div", ["admonition", "note"])})
        assert '<div class="wide admonition note" data-component="note">' in result
        assert "<p>Careful</p></div>" in result
        assert "<note" not in result

    def test_unregistered_components_kept(self):
        html = "<chart></chart>"
        assert render_components(html, {"note": ("div", [])}) == html
