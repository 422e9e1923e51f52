import pytest

from plugins.export_paths.errors import InvalidPath
from plugins.export_paths.routes import format_path, output_file, page_identifier, src_uri_for

EXTENSIONS = ["md", "mdx"]


class TestRoutes:
    @pytest.mark.parametrize(
        "src_uri, expected",
        [
            ("index.md", "/"),
            ("post.mdx", "/post"),
            ("blog/index.md", "/blog"),
            ("blog/README.md", "/blog"),
            ("guides/setup.md", "/guides/setup"),
            ("notes.txt", None),
        ],
    )
    def test_page_identifier(self, src_uri, expected):
        assert page_identifier(src_uri, EXTENSIONS) == expected

    def test_page_identifier_extension_case(self):
        """Test: extensions match regardless of case or a leading dot."""
        assert page_identifier("Post.MDX", [".mdx"]) == "/Post"

    def test_src_uri_for(self):
        assert src_uri_for("/") == "index.md"
        assert src_uri_for("/posts/a") == "posts/a.md"
        assert src_uri_for("/posts/a", ".mdx") == "posts/a.mdx"
        assert src_uri_for("/", "mdx") == "index.mdx"

    def test_output_file(self):
        """Test: output files follow the directory URL setting."""
        assert output_file("/") == "index.html"
        assert output_file("/posts/a") == "posts/a/index.html"
        assert output_file("/posts/a", use_directory_urls=False) == "posts/a.html"

    def test_format_path(self):
        assert format_path("/posts/{slug}", {"slug": "hello"}) == "/posts/hello"
        assert format_path("/{lang}/posts/{slug}", {"slug": "a", "lang": "en"}) == "/en/posts/a"

    def test_format_path_missing_param(self):
        with pytest.raises(InvalidPath, match="slug"):
            format_path("/posts/{slug}", {"name": "a"})

    def test_format_path_rejects_traversal(self):
        """Test: a parameter value cannot escape the pattern's directory."""
        with pytest.raises(InvalidPath):
            format_path("/posts/{slug}", {"slug": ".."})
