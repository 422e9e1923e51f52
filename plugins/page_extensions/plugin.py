import posixpath
import re

from mkdocs.config.config_options import Type
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin, event_priority
from mkdocs.structure.files import File, Files
from mkdocs.structure.pages import Page
from mkdocs.utils import is_markdown_file, log

from plugins.page_extensions.mdx import (
    parse_component_target,
    parse_meta_export,
    render_components,
    split_esm,
    strip_jsx_comments,
)


class MDXFile(File):
    """A source file MkDocs would copy as-is, rendered as a documentation page instead."""

    def is_documentation_page(self) -> bool:
        return True


class PageExtensionsPlugin(BasePlugin):
    """MkDocs plugin that decides which source extensions are pages.

    Extensions listed in ``page_extensions`` that MkDocs does not know
    as Markdown (``mdx`` by default) become documentation pages, and
    Markdown pages with an unlisted extension are left out of the
    build. Sources matching ``mdx_pattern`` get MDX preprocessing:
    ESM import/export blocks are removed, ``export const meta`` feeds
    ``page.meta`` and registered components are rewritten to plain HTML.
    """

    config_scheme = (
        ("page_extensions", Type(list, default=["md", "mdx"])),
        ("mdx_pattern", Type(str, default=r"\.mdx?$")),
        ("components", Type(dict, default={})),
    )

    def __init__(self):
        super().__init__()
        self.extensions = []
        self.mdx_regex = None
        self.components = {}

    def on_config(self, config: MkDocsConfig):
        extensions = []
        for raw in self.config["page_extensions"]:
            ext = str(raw).strip().lstrip(".").lower()
            if not ext:
                raise PluginError(f"[page_extensions] invalid page extension {raw!r}")
            if ext not in extensions:
                extensions.append(ext)
        if not extensions:
            raise PluginError("[page_extensions] page_extensions must list at least one extension")
        self.extensions = extensions
        self.config["page_extensions"] = list(extensions)

        try:
            self.mdx_regex = re.compile(self.config["mdx_pattern"])
        except re.error as exc:
            raise PluginError(
                f"[page_extensions] invalid mdx_pattern '{self.config['mdx_pattern']}': {exc}"
            ) from exc

        self.components = {}
        for name, target in self.config["components"].items():
            try:
                self.components[str(name).lower()] = parse_component_target(str(target))
            except ValueError as exc:
                raise PluginError(f"[page_extensions] component '{name}': {exc}") from exc

        log.debug(f"[page_extensions] page extensions: {', '.join(self.extensions)}")
        return config

    def has_page_extension(self, src_uri: str) -> bool:
        ext = posixpath.splitext(src_uri)[1].lstrip(".").lower()
        return ext in self.extensions

    def is_mdx_source(self, src_uri: str) -> bool:
        return bool(self.mdx_regex and self.mdx_regex.search(src_uri))

    @event_priority(50)
    def on_files(self, files: Files, config: MkDocsConfig) -> Files:
        registered = 0
        dropped = 0
        for file in list(files):
            if file.is_documentation_page():
                if not self.has_page_extension(file.src_uri):
                    files.remove(file)
                    dropped += 1
                    log.debug(f"[page_extensions] {file.src_uri} is not a page source; skipping")
                continue
            if is_markdown_file(file.src_uri) or not self.has_page_extension(file.src_uri):
                continue
            if file.src_dir is None:
                continue
            page_file = MDXFile(
                file.src_uri,
                file.src_dir,
                file.dest_dir,
                file.use_directory_urls,
                inclusion=file.inclusion,
            )
            files.remove(file)
            files.append(page_file)
            registered += 1

        log.info(f"[page_extensions] registered {registered} extra page sources, skipped {dropped}")
        return files

    def on_page_markdown(self, markdown: str, page: Page, config: MkDocsConfig, files: Files) -> str:
        if not self.is_mdx_source(page.file.src_uri):
            return markdown

        body, statements = split_esm(markdown)
        if statements:
            log.debug(f"[page_extensions] removed {len(statements)} ESM blocks from {page.file.src_uri}")
            for key, value in parse_meta_export(statements).items():
                page.meta.setdefault(key, value)
        return strip_jsx_comments(body)

    def on_page_content(self, html: str, page: Page, config: MkDocsConfig, files: Files) -> str:
        if not self.components or not self.is_mdx_source(page.file.src_uri):
            return html
        return render_components(html, self.components)
