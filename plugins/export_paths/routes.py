import posixpath
import re
from typing import Dict, Iterable, Optional

from plugins.export_paths.errors import InvalidPath

PARAM_PATTERN = re.compile(r"{([A-Za-z_][A-Za-z0-9_]*)}")


def validate_path(path: str) -> None:
    """Raise ``InvalidPath`` unless ``path`` is a well-formed absolute output path."""
    if not isinstance(path, str) or not path.startswith("/"):
        raise InvalidPath(str(path), "must start with '/'")
    if path == "/":
        return
    if path.endswith("/"):
        raise InvalidPath(path, "trailing '/' is only allowed on the root path")
    for segment in path[1:].split("/"):
        if not segment:
            raise InvalidPath(path, "contains an empty segment")
        if segment in (".", ".."):
            raise InvalidPath(path, f"contains a '{segment}' segment")


def page_identifier(src_uri: str, extensions: Iterable[str]) -> Optional[str]:
    """
    Map a docs-relative source URI to the page identifier it defines.

    - index.md -> /
    - post.mdx -> /post
    - blog/index.md -> /blog (README counts as index, as MkDocs treats it)

    Returns None when the file extension is not a page extension.
    """
    stem, ext = posixpath.splitext(src_uri)
    if ext.lstrip(".").lower() not in {e.lstrip(".").lower() for e in extensions}:
        return None
    parent, name = posixpath.split(stem)
    if name in ("index", "README"):
        route = parent
    else:
        route = stem
    return "/" + route if route else "/"


def src_uri_for(path: str, extension: str = "md") -> str:
    """/ -> index.md, /posts/a -> posts/a.md (or posts/a.mdx with extension="mdx")"""
    validate_path(path)
    extension = extension.lstrip(".") or "md"
    if path == "/":
        return f"index.{extension}"
    return f"{path[1:]}.{extension}"


def output_file(path: str, use_directory_urls: bool = True) -> str:
    """Site-relative file a static export writes ``path`` to."""
    validate_path(path)
    if path == "/":
        return "index.html"
    route = path[1:]
    if use_directory_urls:
        return f"{route}/index.html"
    return f"{route}.html"


def format_path(pattern: str, params: Dict[str, str]) -> str:
    """Fill ``{name}`` placeholders of a route pattern such as ``/posts/{slug}``."""

    def replacer(match):
        name = match.group(1)
        if name not in params:
            raise InvalidPath(pattern, f"no value for parameter '{name}'")
        return str(params[name])

    path = PARAM_PATTERN.sub(replacer, pattern)
    validate_path(path)
    return path
