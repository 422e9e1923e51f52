from pathlib import Path

from plugins.export_paths.content_source import ContentEntry
from plugins.export_paths.materialize import render_page_source, resolve_placeholders
from plugins.export_paths.path_table import RenderTarget


class TestMaterialize:
    def test_unknown_placeholders_left_intact(self):
        result = resolve_placeholders("{{ params.slug }} {{ site.name }}", {"params": {"slug": "a"}})
        assert result == "a {{ site.name }}"

    def test_params_only(self):
        """Test: without a content entry only params are filled in."""
        target = RenderTarget("/post", {"slug": "a"})
        assert render_page_source("Post {{ params.slug }}\n", target) == "Post a\n"

    def test_template_front_matter_wins(self):
        """Test: template front matter overrides the entry's and can use placeholders."""
        template = "---\ntitle: Post {{ params.slug }}\n---\n{{ content }}\n"
        entry = ContentEntry(
            slug="a", path=Path("posts/a.md"), meta={"title": "Alpha", "author": "Kim"}, body="\nBody\n"
        )
        result = render_page_source(template, RenderTarget("/post", {"slug": "a"}), entry)
        assert result == "---\nauthor: Kim\ntitle: Post a\n---\n\nBody\n"
