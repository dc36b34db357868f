"""Inline rendering: ordered substitution stages over HTML-escaped text

Every stage that emits markup parks it in a per-call stash and leaves a
NUL-delimited placeholder behind, so later stages can never match inside
generated tags or attribute values. Placeholders are restored at the end.
"""

import html
import re
from typing import Callable, Optional

from mdsafe.core.models import RenderOptions
from mdsafe.core.safety import escape_attr, escape_html, link_target_attrs, safe_href, validate_href


PLACEHOLDER_RE = re.compile(r'\x00(\d+)\x00')

# Stages operate on escaped text, so quotes arrive as &quot; and brackets as &lt;/&gt;.
_URL = r'(?P<url>(?:[^\s()\x00]|\([^\s()\x00]*\))+)'
_TITLE = r'(?:\s+&quot;(?P<title>.*?)&quot;)?'

CODE_SPAN_RE = re.compile(r'`([^`]+)`')
BACKSLASH_RE = re.compile(r'\\(&(?:amp|lt|gt|quot|#39);|[!#()*+\-.\[\\\]_{|}~])')
IMAGE_RE = re.compile(r'!\[(?P<alt>[^\]]*)\]\(\s*' + _URL + _TITLE + r'\s*\)')
LINK_RE = re.compile(r'\[(?P<label>[^\]]+)\]\(\s*' + _URL + _TITLE + r'\s*\)')
AUTOLINK_RE = re.compile(r'&lt;(?P<url>[A-Za-z][A-Za-z0-9+.\-]{1,31}:[^\s\x00]*?)&gt;')
EMAIL_AUTOLINK_RE = re.compile(r'&lt;(?P<email>[\w.%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)+)&gt;')
BARE_URL_RE = re.compile(r'(?<![\w/])https?://[^\s\x00]+', re.IGNORECASE)
STRIKE_RE = re.compile(r'~~(?=\S)(.+?)(?<=\S)~~')
BOLD_STAR_RE = re.compile(r'\*\*(?=[^\s*])(.+?)(?<=[^\s*])\*\*')
BOLD_UNDERSCORE_RE = re.compile(r'(?<!\w)__(?=[^\s_])(.+?)(?<=[^\s_])__(?!\w)')
ITALIC_STAR_RE = re.compile(r'(^|[^*_])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?!\*)')
ITALIC_UNDERSCORE_RE = re.compile(r'(^|[^*_\w])_(?![\s_])([^_\n]+?)(?<!\s)_(?![_\w])')

_URL_STOPS = ("&lt;", "&gt;", "&quot;", "&#39;")
_URL_TRAILING = ".,:;!?*_~"


class _Stash:
    """Generated HTML fragments, addressed by placeholder index."""

    def __init__(self):
        self.parts: list[str] = []

    def put(self, fragment: str) -> str:
        self.parts.append(fragment)
        return f"\x00{len(self.parts) - 1}\x00"

    def restore(self, text: str) -> str:
        # A fragment may embed earlier placeholders (e.g. a code span in a link label).
        while PLACEHOLDER_RE.search(text):
            text = PLACEHOLDER_RE.sub(lambda m: self.parts[int(m.group(1))], text)
        return text


def _reattr(escaped: str) -> str:
    """Turn already-escaped text into an attribute value without double escaping."""
    return escape_attr(html.unescape(escaped))


def _title_attr(title: Optional[str]) -> str:
    return f' title="{_reattr(title)}"' if title else ""


def _anchor(href: str, title: Optional[str], label: str, options: RenderOptions) -> str:
    attrs = f' href="{escape_attr(href)}"{_title_attr(title)}'
    if options.link_target_blank:
        attrs += "".join(f' {k}="{escape_attr(v)}"' for k, v in link_target_attrs().items())
    return f"<a{attrs}>{label}</a>"


def _split_bare_url(candidate: str) -> tuple[str, str]:
    """Split a bare URL match into (url, trailing text that is not part of it)."""
    cut = min((i for i in (candidate.find(s) for s in _URL_STOPS) if i != -1), default=len(candidate))
    url = candidate[:cut]
    while url and (url[-1] in _URL_TRAILING or (url[-1] == ')' and url.count('(') < url.count(')'))):
        url = url[:-1]
    return url, candidate[len(url):]


def _emphasis(text: str) -> str:
    """Strikethrough, bold and italic stages, in that order."""
    text = STRIKE_RE.sub(r'<del>\1</del>', text)
    text = BOLD_STAR_RE.sub(r'<strong>\1</strong>', text)
    text = BOLD_UNDERSCORE_RE.sub(r'<strong>\1</strong>', text)
    text = ITALIC_STAR_RE.sub(r'\1<em>\2</em>', text)
    return ITALIC_UNDERSCORE_RE.sub(r'\1<em>\2</em>', text)


def _stages(stash: _Stash, options: RenderOptions, hard_breaks: bool = False) -> list[tuple[str, Callable[[str], str]]]:
    allow = options.allow_unsafe_links

    def code_spans(text: str) -> str:
        return CODE_SPAN_RE.sub(lambda m: stash.put(f"<code>{m.group(1)}</code>"), text)

    def backslash_escapes(text: str) -> str:
        return BACKSLASH_RE.sub(lambda m: stash.put(m.group(1)), text)

    def image(m: re.Match) -> str:
        src = validate_href(html.unescape(m.group("url")), allow)
        if not src:
            return ""
        alt = re.sub(r'<[^>]*>', '', stash.restore(m.group("alt")))
        return stash.put(f'<img src="{escape_attr(src)}" alt="{_reattr(alt)}"{_title_attr(m.group("title"))}>')

    def link(m: re.Match) -> str:
        href = safe_href(html.unescape(m.group("url")), allow)
        return stash.put(_anchor(href, m.group("title"), _emphasis(m.group("label")), options))

    def autolink(m: re.Match) -> str:
        href = validate_href(html.unescape(m.group("url")), allow)
        if not href:
            return m.group(0)
        return stash.put(_anchor(href, None, m.group("url"), options))

    def email_autolink(m: re.Match) -> str:
        href = "mailto:" + html.unescape(m.group("email"))
        return stash.put(_anchor(href, None, m.group("email"), options))

    def bare_url(m: re.Match) -> str:
        url, rest = _split_bare_url(m.group(0))
        href = validate_href(html.unescape(url), allow)
        if not href:
            return m.group(0)
        return stash.put(_anchor(href, None, url, options)) + rest

    def bare_urls(text: str) -> str:
        return BARE_URL_RE.sub(bare_url, text) if options.linkify else text

    return [
        ("code_spans",        code_spans),
        ("backslash_escapes", backslash_escapes),
        ("images",            lambda text: IMAGE_RE.sub(image, text)),
        ("links",             lambda text: LINK_RE.sub(link, text)),
        ("autolinks",         lambda text: EMAIL_AUTOLINK_RE.sub(email_autolink, AUTOLINK_RE.sub(autolink, text))),
        ("bare_urls",         bare_urls),
        ("emphasis",          _emphasis),
        ("line_breaks",       lambda text: text.replace("\n", "<br>\n") if hard_breaks else text),
    ]


def render_inline(text: str, options: Optional[RenderOptions] = None, hard_breaks: bool = False) -> str:
    """Render inline Markdown in text (outside code blocks) to an HTML fragment.

    With hard_breaks, line feeds in the text become <br> line breaks; line
    feeds inside code spans and attribute values are kept as they are.
    """
    options = options or RenderOptions()
    stash = _Stash()
    out = escape_html(text.replace('\x00', '\ufffd'))
    for _, stage in _stages(stash, options, hard_breaks):
        out = stage(out)
    return stash.restore(out)
