import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml
from mkdocs.utils import log

from plugins.export_paths.errors import DuplicatePath, ExportPathError

FM_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?", re.DOTALL)


@dataclass(frozen=True)
class ContentEntry:
    slug: str
    path: Path
    meta: Dict[str, Any] = field(default_factory=dict)
    body: str = ""


def split_front_matter(source_text: str):
    """
    Return (front_matter_dict, body_text). If no FM, dict={} and body=source_text.
    """
    m = FM_PATTERN.match(source_text)
    if not m:
        return {}, source_text
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as exc:
        log.warning(f"[export_paths] unable to parse front matter: {exc}")
        fm = {}
    if not isinstance(fm, dict):
        fm = {}
    return fm, source_text[m.end() :]


class DirectoryContentSource:
    """Read-only listing of content files, one entry per file stem.

    Only files directly inside the requested directory count; hidden
    files and files with other extensions are skipped.
    """

    def __init__(self, root, extensions: Iterable[str] = ("md", "mdx")):
        self.root = Path(root).resolve()
        self.extensions = tuple(f".{e.lstrip('.').lower()}" for e in extensions)
        self._cache: Dict[str, List[ContentEntry]] = {}

    def _directory(self, directory: str) -> Path:
        target = (self.root / directory).resolve()
        # Keep content lookups inside the configured root
        try:
            target.relative_to(self.root)
        except ValueError:
            raise ExportPathError(
                f"[export_paths] content directory '{directory}' resolves outside {self.root}"
            )
        return target

    def entries(self, directory: str) -> List[ContentEntry]:
        if directory not in self._cache:
            self._cache[directory] = self._scan(directory)
        return list(self._cache[directory])

    def _scan(self, directory: str) -> List[ContentEntry]:
        target = self._directory(directory)
        if not target.is_dir():
            log.debug(f"[export_paths] content directory not found at {target}")
            return []

        found: Dict[str, ContentEntry] = {}
        for path in sorted(target.iterdir()):
            if path.name.startswith(".") or not path.is_file():
                continue
            if path.suffix.lower() not in self.extensions:
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise ExportPathError(
                    f"[export_paths] content file {path} is not valid UTF-8: {exc}"
                ) from exc
            meta, body = split_front_matter(text)
            entry = ContentEntry(slug=path.stem, path=path, meta=meta, body=body)
            if entry.slug in found:
                other = found[entry.slug].path.name
                raise DuplicatePath(
                    f"/{directory.strip('/')}/{entry.slug}", f"file '{other}'", f"file '{path.name}'"
                )
            found[entry.slug] = entry

        return [found[slug] for slug in sorted(found)]
