import importlib
import importlib.util
import json
import posixpath
from collections.abc import Mapping
from pathlib import Path
from typing import Callable, Dict, List, Optional

from mkdocs.config.config_options import Type
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin, event_priority
from mkdocs.structure.files import File, Files
from mkdocs.utils import log

from plugins.export_paths.content_source import ContentEntry, DirectoryContentSource
from plugins.export_paths.errors import DuplicatePath
from plugins.export_paths.materialize import render_page_source
from plugins.export_paths.path_table import (
    PathTable,
    RenderTarget,
    RouteRule,
    resolve,
    validate,
)
from plugins.export_paths.routes import format_path, output_file, page_identifier, src_uri_for

DEFAULT_PAGE_EXTENSIONS = ["md", "mdx"]


def load_path_map(spec: str, project_root: Path) -> Callable:
    """Import a ``module:function`` or ``path/to/file.py:function`` path-map builder."""
    module_name, sep, func_name = spec.rpartition(":")
    if not sep or not module_name or not func_name:
        raise PluginError(
            f"[export_paths] path_map '{spec}' must look like 'module:function'"
        )
    try:
        if module_name.endswith(".py"):
            module_path = (project_root / module_name).resolve()
            if not module_path.exists():
                raise FileNotFoundError(f"path_map module not found at {module_path}")
            module_spec = importlib.util.spec_from_file_location(module_path.stem, module_path)
            module = importlib.util.module_from_spec(module_spec)
            module_spec.loader.exec_module(module)
        else:
            module = importlib.import_module(module_name)
    except (ImportError, OSError) as exc:
        raise PluginError(f"[export_paths] unable to load path_map '{spec}': {exc}") from exc

    func = getattr(module, func_name, None)
    if not callable(func):
        raise PluginError(
            f"[export_paths] path_map '{spec}' does not name a callable in {module_name}"
        )
    return func


class ExportPathsPlugin(BasePlugin):
    """Resolve the set of output paths a static build exports.

    The default path table comes from the documentation pages MkDocs
    discovered. Route rules add one path per content entry, and an
    optional user function gets the final say, like an
    ``exportPathMap`` hook. The resolved table drives which pages are
    rendered and is written next to the site as a manifest.
    """

    config_scheme = (
        ("routes", Type(list, default=[])),
        ("path_map", Type(str, default="")),
        ("content_dir", Type(str, default="")),
        ("page_extensions", Type(list, default=[])),
        ("manifest", Type(str, default="export-map.json")),
    )

    def __init__(self):
        super().__init__()
        self.rules: List[RouteRule] = []
        self.path_map: Optional[Callable] = None
        self.project_root: Optional[Path] = None
        self.command = "build"
        self.resolved: Optional[PathTable] = None

    def on_startup(self, *, command, dirty):
        self.command = command

    def on_config(self, config: MkDocsConfig):
        config_file_path = config.get("config_file_path")
        if config_file_path:
            self.project_root = Path(config_file_path).resolve().parent
        else:
            self.project_root = Path.cwd()

        self.rules = [RouteRule.from_config(raw) for raw in self.config["routes"]]
        self.path_map = None
        if self.config["path_map"]:
            self.path_map = load_path_map(self.config["path_map"], self.project_root)

        log.debug(
            f"[export_paths] {len(self.rules)} route rules, "
            f"path_map={'yes' if self.path_map else 'no'}"
        )
        return config

    # ----- Helper functions -------

    def get_page_extensions(self, config: MkDocsConfig) -> List[str]:
        """Own setting first, then the page_extensions plugin's, then the default."""
        if self.config["page_extensions"]:
            return list(self.config["page_extensions"])
        plugin = config["plugins"].get("page_extensions")
        if plugin is not None and plugin.config.get("page_extensions"):
            return list(plugin.config["page_extensions"])
        return list(DEFAULT_PAGE_EXTENSIONS)

    def get_content_source(self, extensions: List[str]) -> DirectoryContentSource:
        root = self.project_root / self.config["content_dir"] if self.config["content_dir"] else self.project_root
        return DirectoryContentSource(root, extensions)

    @staticmethod
    def collect_pages(files: Files, extensions: List[str]) -> Dict[str, File]:
        """Page identifier -> File for every documentation page with a page extension."""
        pages: Dict[str, File] = {}
        for file in files.documentation_pages():
            identifier = page_identifier(file.src_uri, extensions)
            if identifier is None:
                continue
            if identifier in pages:
                raise DuplicatePath(
                    identifier, f"file '{pages[identifier].src_uri}'", f"file '{file.src_uri}'"
                )
            pages[identifier] = file
        return pages

    def entries_by_path(self, table: PathTable, source) -> Dict[str, ContentEntry]:
        """Map each generated path back to the content entry it came from."""
        found: Dict[str, ContentEntry] = {}
        for rule in self.rules:
            for entry in source.entries(rule.source):
                path = format_path(rule.path, {rule.param: entry.slug})
                target = table.get(path)
                if target is not None and target.page == rule.page:
                    found.setdefault(path, entry)
        return found

    def apply_path_map(
        self, table: PathTable, default_table: PathTable, known_pages, config: MkDocsConfig
    ) -> PathTable:
        context = {
            "command": self.command,
            "dev": self.command == "serve",
            "docs_dir": config["docs_dir"],
            "site_dir": config["site_dir"],
            "use_directory_urls": config["use_directory_urls"],
        }
        result = self.path_map(table.to_dict(), context)
        if not isinstance(result, Mapping):
            raise PluginError(
                f"[export_paths] path_map must return a mapping of paths, got {type(result).__name__}"
            )
        return validate(result, default_table, known_pages)

    # ----- Hooks -------

    @event_priority(-50)
    def on_files(self, files: Files, config: MkDocsConfig) -> Files:
        extensions = self.get_page_extensions(config)
        pages = self.collect_pages(files, extensions)
        default_table = PathTable((identifier, RenderTarget(identifier)) for identifier in pages)

        source = self.get_content_source(extensions)
        table = resolve(default_table, pages.keys(), self.rules, source)
        if self.path_map is not None:
            table = self.apply_path_map(table, default_table, pages.keys(), config)
        entries = self.entries_by_path(table, source)

        removed = 0
        for identifier, file in pages.items():
            if table.get(identifier) != RenderTarget(identifier):
                files.remove(file)
                removed += 1
                log.debug(f"[export_paths] not exporting {file.src_uri}")

        generated = 0
        for path, target in table.items():
            if path in pages and target == RenderTarget(path):
                continue
            template = pages[target.page]
            content = render_page_source(template.content_string, target, entries.get(path))
            # Same extension and File class as the template
            src_uri = src_uri_for(path, posixpath.splitext(template.src_uri)[1])
            existing = files.get_file_from_path(src_uri)
            if existing is not None:
                files.remove(existing)
            files.append(type(template).generated(config, src_uri, content=content))
            generated += 1
            log.debug(f"[export_paths] {path} -> {target}")

        self.resolved = table
        log.info(
            f"[export_paths] resolved {len(table)} paths "
            f"({generated} generated, {removed} pages not exported)"
        )
        return files

    def on_post_build(self, config: MkDocsConfig) -> None:
        if not self.config["manifest"] or self.resolved is None:
            return

        site_dir = Path(config["site_dir"]).resolve()
        manifest_path = (site_dir / self.config["manifest"]).resolve()
        try:
            manifest_path.relative_to(site_dir)
        except ValueError:
            raise PluginError(
                f"[export_paths] manifest '{self.config['manifest']}' resolves outside the site directory"
            )

        manifest = {}
        for path, target in self.resolved.items():
            entry = target.to_dict()
            entry["output"] = output_file(path, config["use_directory_urls"])
            manifest[path] = entry

        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        log.info(f"[export_paths] wrote {len(manifest)} paths to {manifest_path}")
