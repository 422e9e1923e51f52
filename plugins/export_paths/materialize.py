import re
from typing import Any, Dict, Optional

import yaml

from plugins.export_paths.content_source import ContentEntry, split_front_matter
from plugins.export_paths.path_table import RenderTarget

PLACEHOLDER_PATTERN = re.compile(r"{{\s*([A-Za-z0-9_.-]+)\s*}}")


def get_value_from_path(data, path):
    """Simple dotted lookup (dicts only, no arrays)."""
    if not path:
        return None
    keys = [k.strip() for k in path.split(".") if k.strip()]
    value = data
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            return None
        value = value[key]
    return value


def resolve_placeholders(content: str, variables: dict) -> str:
    """Replace {{ dotted.keys }} using variables dict; leave unknowns intact."""

    def replacer(match):
        value = get_value_from_path(variables, match.group(1))
        return str(value) if value is not None else match.group(0)

    return PLACEHOLDER_PATTERN.sub(replacer, content)


def render_page_source(
    template: str, target: RenderTarget, entry: Optional[ContentEntry] = None
) -> str:
    """
    Produce the Markdown source of one export path from its template page.

    Available placeholders:
    - {{ params.<name> }} from the render target
    - {{ meta.<key> }} from the content entry's front matter
    - {{ content }} the content entry's body
    The template's own front matter wins over the entry's.
    """
    variables: Dict[str, Any] = {"params": dict(target.params)}
    if entry is not None:
        variables["meta"] = dict(entry.meta)
        variables["content"] = entry.body.strip("\n")

    template_meta, body = split_front_matter(template)
    rendered = resolve_placeholders(body, variables)

    meta = dict(entry.meta) if entry is not None else {}
    meta.update(template_meta)
    if not meta:
        return rendered
    meta = {key: _resolve_value(value, variables) for key, value in meta.items()}
    header = yaml.safe_dump(meta, sort_keys=True, allow_unicode=True)
    return f"---\n{header}---\n\n{rendered}"


def _resolve_value(value, variables):
    if isinstance(value, str):
        return resolve_placeholders(value, variables)
    if isinstance(value, list):
        return [_resolve_value(v, variables) for v in value]
    if isinstance(value, dict):
        return {k: _resolve_value(v, variables) for k, v in value.items()}
    return value
