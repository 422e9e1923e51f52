import re
from typing import Any, Dict, List, Tuple

import yaml
from bs4 import BeautifulSoup
from mkdocs.utils import log

# Module scope regex variables

ESM_START = re.compile(r"^(import|export)\b")
FENCE_PATTERN = re.compile(r"^(\s*)(`{3,}|~{3,})")
JSX_COMMENT_PATTERN = re.compile(r"\{/\*.*?\*/\}", re.DOTALL)
META_EXPORT_PATTERN = re.compile(r"^export\s+const\s+meta\s*=\s*(?=\{)", re.MULTILINE)
TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")
BARE_KEY_PATTERN = re.compile(r"([{,]\s*)([A-Za-z_$][\w$]*)\s*:(?!\s)")
QUOTED_PATTERN = re.compile(r"('(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\")")


def split_esm(markdown: str) -> Tuple[str, List[str]]:
    """
    Separate top-level ESM statements from the Markdown body.

    An import/export block starts on a line beginning with `import` or
    `export` (outside fenced code) and runs to the next blank line.
    Returns (body, statements).
    """
    lines = markdown.split("\n")
    body: List[str] = []
    statements: List[str] = []
    current: List[str] = []
    in_code = False
    fence = None

    for line in lines:
        if current:
            if line.strip():
                current.append(line)
                continue
            statements.append("\n".join(current))
            current = []

        m_fence = FENCE_PATTERN.match(line)
        if m_fence:
            token = m_fence.group(2)
            if not in_code:
                in_code, fence = True, token
            elif token[0] == fence[0] and len(token) >= len(fence):
                in_code, fence = False, None
            body.append(line)
            continue

        if not in_code and ESM_START.match(line):
            current.append(line)
            continue
        body.append(line)

    if current:
        statements.append("\n".join(current))
    return "\n".join(body), statements


def _object_literal(text: str) -> str:
    """Return the `{...}` literal at the start of `text`, or "" if it is not closed."""
    depth = 0
    quote = None
    for idx, char in enumerate(text):
        if quote:
            if char == quote and text[idx - 1] != "\\":
                quote = None
            continue
        if char in "'\"`":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[: idx + 1]
    return ""


def _spaced_keys(literal: str) -> str:
    """`{title:'Hello'}` -> `{title: 'Hello'}`; text inside quotes is left alone."""
    parts = QUOTED_PATTERN.split(literal)
    # Odd indexes are the quoted strings captured by the split
    for idx in range(0, len(parts), 2):
        parts[idx] = BARE_KEY_PATTERN.sub(r"\1\2: ", parts[idx])
    return "".join(parts)


def parse_meta_export(statements: List[str]) -> Dict[str, Any]:
    """Read `export const meta = {...}` as a YAML flow mapping; {} if absent or unreadable."""
    for statement in statements:
        m = META_EXPORT_PATTERN.search(statement)
        if not m:
            continue
        literal = _object_literal(statement[m.end() :])
        if not literal:
            log.warning(f"[page_extensions] meta export is not an object: {statement!r}")
            return {}
        literal = _spaced_keys(TRAILING_COMMA_PATTERN.sub(r"\1", literal))
        try:
            meta = yaml.safe_load(literal)
        except yaml.YAMLError as exc:
            log.warning(f"[page_extensions] unable to parse meta export: {exc}")
            return {}
        if not isinstance(meta, dict):
            log.warning(f"[page_extensions] meta export is not an object: {literal!r}")
            return {}
        return meta
    return {}


def strip_jsx_comments(markdown: str) -> str:
    return JSX_COMMENT_PATTERN.sub("", markdown)


def parse_component_target(spec: str) -> Tuple[str, List[str]]:
    """`div.note.admonition` -> ("div", ["note", "admonition"])"""
    tag, *classes = spec.strip().split(".")
    if not tag:
        raise ValueError(f"component target '{spec}' has no tag name")
    return tag, [c for c in classes if c]


def render_components(html: str, components: Dict[str, Tuple[str, List[str]]]) -> str:
    """Rename registered component tags in rendered HTML.

    html.parser lowercases tag names, so `components` keys must be lowercase.
    The original component name is kept in `data-component`.
    """
    if not components:
        return html
    soup = BeautifulSoup(html, "html.parser")
    modified = False
    for name, (tag, classes) in components.items():
        for node in soup.find_all(name):
            node.name = tag
            if classes:
                existing = node.get("class", [])
                node["class"] = existing + [c for c in classes if c not in existing]
            node["data-component"] = name
            modified = True
    if not modified:
        return html
    return str(soup)
