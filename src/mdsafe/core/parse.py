"""Markdown source discovery, front matter and YAML mapping loading"""

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from mdsafe.core.segment import normalize


# A leading YAML document, closed by --- or the YAML end marker.
FRONTMATTER_RE = re.compile(r'^---[ \t]*\n(?:(?P<yaml>.*?)\n)?(?:---|\.\.\.)[ \t]*(?:\n|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx', '.markdown'}


def load_yaml_mapping(raw: Optional[str], label: str) -> dict[str, Any]:
    """Parse raw YAML that must be a mapping (or empty); ValueError names the label."""
    try:
        data = yaml.safe_load(raw or "")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {label}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {label}: expected a mapping, got {type(data).__name__}")
    return data


def strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body); text without a header comes back unchanged."""
    m = FRONTMATTER_RE.match(text)
    if m is None:
        return {}, text
    return load_yaml_mapping(m.group("yaml"), "YAML frontmatter"), text[m.end():]


def discover_files(path: Path) -> list[Path]:
    """Return sorted Markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix in MD_EXTENSIONS)


def read_source(path: Path) -> tuple[dict[str, Any], str]:
    """Read a Markdown file; returns (frontmatter, normalized body)."""
    return strip_frontmatter(normalize(path.read_text(encoding='utf-8')))
