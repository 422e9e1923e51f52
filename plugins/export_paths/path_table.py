from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence

from mkdocs.exceptions import PluginError
from mkdocs.utils import log

from plugins.export_paths.errors import (
    DuplicatePath,
    ExportPathError,
    UnresolvableReference,
)
from plugins.export_paths.routes import format_path, validate_path


@dataclass(frozen=True)
class RenderTarget:
    """A page identifier plus the parameters needed to render one instance of it."""

    page: str
    params: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Own copy so callers can't mutate an emitted target.
        object.__setattr__(self, "params", {str(k): str(v) for k, v in self.params.items()})

    def __str__(self) -> str:
        if not self.params:
            return f"page '{self.page}'"
        return f"page '{self.page}' with params {dict(sorted(self.params.items()))}"

    def to_dict(self) -> Dict[str, Any]:
        return {"page": self.page, "params": dict(sorted(self.params.items()))}

    @classmethod
    def from_value(cls, value: Any) -> "RenderTarget":
        """Accept a RenderTarget or a ``{"page": ..., "params": {...}}`` mapping."""
        if isinstance(value, RenderTarget):
            return value
        if not isinstance(value, Mapping) or "page" not in value:
            raise ExportPathError(
                f"[export_paths] render target must be a mapping with a 'page' key, got {value!r}"
            )
        params = value.get("params") or {}
        if not isinstance(params, Mapping):
            raise ExportPathError(
                f"[export_paths] params of page '{value['page']}' must be a mapping, got {params!r}"
            )
        return cls(page=str(value["page"]), params=dict(params))


class PathTable(Mapping):
    """Ordered mapping of output path -> RenderTarget with unique keys."""

    def __init__(self, entries: Optional[Iterable] = None):
        self._entries: Dict[str, RenderTarget] = {}
        if entries is not None:
            items = entries.items() if isinstance(entries, Mapping) else entries
            for path, target in items:
                self.add(path, RenderTarget.from_value(target))

    def __getitem__(self, path: str) -> RenderTarget:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PathTable({self.to_dict()!r})"

    def __eq__(self, other) -> bool:
        if isinstance(other, PathTable):
            return list(self._entries.items()) == list(other._entries.items())
        return NotImplemented

    def add(self, path: str, target: RenderTarget, override: bool = False) -> None:
        validate_path(path)
        existing = self._entries.get(path)
        if existing is not None and existing != target:
            if not override:
                raise DuplicatePath(path, existing, target)
            log.debug(f"[export_paths] replacing {existing} at '{path}' with {target}")
        self._entries[path] = target

    def remove(self, path: str) -> None:
        self._entries.pop(path, None)

    def copy(self) -> "PathTable":
        table = PathTable()
        table._entries = dict(self._entries)
        return table

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {path: target.to_dict() for path, target in self._entries.items()}


@dataclass(frozen=True)
class RouteRule:
    """Expands one template page into an output path per content entry."""

    path: str
    page: str
    source: str
    param: str = "slug"
    override: bool = False
    export_page: bool = True

    @classmethod
    def from_config(cls, raw: Any) -> "RouteRule":
        if not isinstance(raw, Mapping):
            raise PluginError(f"[export_paths] route must be a mapping, got {raw!r}")
        missing = [key for key in ("path", "page", "source") if not raw.get(key)]
        if missing:
            raise PluginError(
                f"[export_paths] route {dict(raw)!r} is missing required keys: {', '.join(missing)}"
            )
        unknown = set(raw) - {"path", "page", "source", "param", "override", "export_page"}
        if unknown:
            raise PluginError(
                f"[export_paths] route {dict(raw)!r} has unknown keys: {', '.join(sorted(unknown))}"
            )
        param = str(raw.get("param", "slug"))
        if f"{{{param}}}" not in raw["path"]:
            raise PluginError(
                f"[export_paths] route path '{raw['path']}' does not use the '{{{param}}}' parameter"
            )
        return cls(
            path=str(raw["path"]),
            page=str(raw["page"]),
            source=str(raw["source"]),
            param=param,
            override=bool(raw.get("override", False)),
            export_page=bool(raw.get("export_page", True)),
        )


def resolve(
    default_table,
    known_pages: Iterable[str],
    rules: Sequence[RouteRule] = (),
    source=None,
) -> PathTable:
    """Build the resolved path table consumed by the static export.

    The default table is copied unchanged, then each rule adds one entry
    per content entry its source directory yields. ``source`` is a
    read-only content handle with an ``entries(directory)`` method; when
    it is ``None`` no parameterized variants are added.

    Raises ``UnresolvableReference`` when a generated entry points to a
    page outside ``known_pages`` and ``DuplicatePath`` when two entries
    collide without the rule's ``override`` flag.
    """
    known = set(known_pages)
    table = PathTable(default_table) if not isinstance(default_table, PathTable) else default_table.copy()

    for rule in rules:
        if not rule.export_page and table.get(rule.page) == RenderTarget(rule.page):
            table.remove(rule.page)

        entries = source.entries(rule.source) if source is not None else []
        if not entries:
            if rule.page not in known:
                log.warning(
                    f"[export_paths] route '{rule.path}' references unknown page '{rule.page}' "
                    f"(no entries in '{rule.source}', nothing generated)"
                )
            continue

        for entry in entries:
            params = {rule.param: entry.slug}
            path = format_path(rule.path, params)
            if rule.page not in known:
                raise UnresolvableReference(path, rule.page)
            table.add(path, RenderTarget(rule.page, params), override=rule.override)

        log.debug(f"[export_paths] route '{rule.path}' expanded to {len(entries)} paths")

    return table


def validate(table, default_table, known_pages: Iterable[str]) -> PathTable:
    """Check a table returned by a user-supplied path-map function.

    Every entry, including ones that rewrite a default path, must
    reference a page the framework knows.
    """
    known = set(known_pages)
    resolved = table if isinstance(table, PathTable) else PathTable(table)
    for path, target in resolved.items():
        if target.page not in known:
            raise UnresolvableReference(path, target.page)
    added = [path for path in resolved if path not in default_table]
    log.debug(f"[export_paths] path_map returned {len(resolved)} paths, {len(added)} not in the default table")
    return resolved
