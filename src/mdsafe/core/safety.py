"""Link safety policy: href validation, HTML/attribute escaping, anchor target injection"""

import re

from bleach.linkifier import Linker


BLOCKED_SCHEMES = ("javascript:", "vbscript:", "data:")
SAFE_REL = ("noopener", "noreferrer")

# Browsers drop ASCII control characters and whitespace while reading a scheme.
_SCHEME_NOISE_RE = re.compile(r'[\x00-\x20]+')

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
}
_HTML_ESCAPE_RE = re.compile(r'[&<>"\']')
# An ampersand that does not open a character reference.
_TEXT_ESCAPE_RE = re.compile(r'&(?!#[0-9]{1,7};|#[xX][0-9a-fA-F]{1,6};|[A-Za-z][A-Za-z0-9]{1,31};)|[<>"\']')


def escape_html(text: str, keep_entities: bool = True) -> str:
    """Escape &, <, >, " and ' for HTML text.

    With keep_entities, existing character references are left alone, so
    escaping already-escaped text is a no-op.
    """
    pattern = _TEXT_ESCAPE_RE if keep_entities else _HTML_ESCAPE_RE
    return pattern.sub(lambda m: _HTML_ESCAPES[m.group(0)[0]], text)


def escape_attr(value: str) -> str:
    """Escape an attribute value completely; backticks too, for template-aware consumers."""
    return escape_html(value, keep_entities=False).replace("`", "&#96;")


def validate_href(candidate: str, allow_unsafe: bool = False) -> str:
    """Return the trimmed candidate if its scheme is allowed, else ''."""
    href = (candidate or "").strip()
    if not href or allow_unsafe:
        return href
    squeezed = _SCHEME_NOISE_RE.sub("", href).lower()
    if squeezed.startswith(BLOCKED_SCHEMES):
        return ""
    return href


def safe_href(candidate: str, allow_unsafe: bool = False) -> str:
    """validate_href for callers that need a non-empty href: '#' on rejection."""
    return validate_href(candidate, allow_unsafe) or "#"


def merge_rel(existing: str) -> str:
    """Merge noopener/noreferrer into a rel value, keeping existing tokens first."""
    tokens = existing.split()
    present = {t.lower() for t in tokens}
    return " ".join(tokens + [t for t in SAFE_REL if t not in present])


def link_target_attrs(rel: str = "") -> dict[str, str]:
    """target/rel attributes that open a link in a new tab, merged with an existing rel."""
    return {"target": "_blank", "rel": merge_rel(rel)}


def _open_in_new_tab(attrs: dict, new: bool = False) -> dict:
    for name, value in link_target_attrs(attrs.get((None, "rel"), "")).items():
        attrs[(None, name)] = value
    return attrs


# Existing anchors only: bare URLs are left to the linkify option.
_NO_MATCH_RE = re.compile(r'(?!)')
_LINKER = Linker(
    callbacks=[_open_in_new_tab],
    url_re=_NO_MATCH_RE,
    email_re=_NO_MATCH_RE,
    parse_email=False,
)


def add_link_targets(html: str) -> str:
    """Give every <a> in an HTML fragment target="_blank" and a merged rel. Idempotent."""
    return _LINKER.linkify(html)
