"""Block segmentation: classify runs of lines into typed blocks by ordered lookahead"""

import re
from typing import Callable, Optional, Sequence

from mdsafe.core.models import (
    Alignment,
    Block,
    Blockquote,
    CodeBlock,
    Heading,
    ListBlock,
    ListItem,
    Paragraph,
    Table,
    ThematicBreak,
)


FENCE_OPEN_RE = re.compile(r'^ {0,3}(`{3,}|~{3,})[ \t]*(.*?)[ \t]*$')
INDENT_RE = re.compile(r'^(?: {4}|\t)')
SETEXT_RE = re.compile(r'^ {0,3}(=+|-+)[ \t]*$')
ATX_RE = re.compile(r'^ {0,3}(#{1,6})[ \t]+(.+?)[ \t]*$')
ATX_CLOSE_RE = re.compile(r'(?:^|[ \t]+)#+$')
THEMATIC_RE = re.compile(r'^ {0,3}([*\-_])(?:[ \t]*\1){2,}[ \t]*$')
QUOTE_RE = re.compile(r'^[ \t]*> ?')
SEPARATOR_CELL_RE = re.compile(r'^:?-{3,}:?$')
CELL_SPLIT_RE = re.compile(r'(?<!\\)\|')
BULLET_RE = re.compile(r'^([ \t]*)[-+*][ \t]+(.*)$')
ORDERED_RE = re.compile(r'^([ \t]*)(\d{1,9})[.)][ \t]+(.*)$')
TASK_RE = re.compile(r'^\[([ xX])\](?:[ \t]+|$)')

Rule = Callable[[Sequence[str], int], Optional[tuple[Block, int]]]


def normalize(source: str) -> str:
    """Collapse \\r\\n and \\r to \\n; NUL is reserved by the inline renderer."""
    return re.sub(r'\r\n?', '\n', str(source)).replace('\x00', '\ufffd')


def split_lines(source: str) -> list[str]:
    """Normalize source and split it into lines."""
    return normalize(source).split('\n')


def _is_blank(line: str) -> bool:
    return not line.strip()


def _is_fence_close(line: str, char: str, length: int) -> bool:
    if len(line) - len(line.lstrip(' ')) > 3:
        return False
    run = line.strip()
    return len(run) >= length and set(run) == {char}


def _fenced_code(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    m = FENCE_OPEN_RE.match(lines[i])
    if not m:
        return None
    fence, info = m.groups()
    if fence[0] == '`' and '`' in info:
        return None
    body = []
    j = i + 1
    while j < len(lines) and not _is_fence_close(lines[j], fence[0], len(fence)):
        body.append(lines[j])
        j += 1
    # An unterminated fence runs to end of input.
    end = min(j + 1, len(lines))
    language = info.split()[0] if info else ""
    return CodeBlock(language=language, content='\n'.join(body)), end


def _indented_code(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    if _is_blank(lines[i]) or not INDENT_RE.match(lines[i]):
        return None
    body: list[str] = []
    end = i
    for j in range(i, len(lines)):
        line = lines[j]
        if _is_blank(line):
            body.append("")
        elif INDENT_RE.match(line):
            body.append(INDENT_RE.sub("", line, count=1))
            end = j + 1
        else:
            break
    content = body[:end - i]
    while content and not content[0].strip():
        content.pop(0)
    return CodeBlock(content='\n'.join(content)), end


def _setext_heading(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    if i + 1 >= len(lines) or _is_blank(lines[i]):
        return None
    m = SETEXT_RE.match(lines[i + 1])
    if not m:
        return None
    level = 1 if m.group(1)[0] == '=' else 2
    return Heading(level=level, text=lines[i].strip()), i + 2


def _atx_heading(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    m = ATX_RE.match(lines[i])
    if not m:
        return None
    text = ATX_CLOSE_RE.sub("", m.group(2)).strip()
    return Heading(level=len(m.group(1)), text=text), i + 1


def _thematic_break(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    if not THEMATIC_RE.match(lines[i]):
        return None
    return ThematicBreak(), i + 1


def _blockquote(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    inner = []
    j = i
    while j < len(lines) and QUOTE_RE.match(lines[j]):
        inner.append(QUOTE_RE.sub("", lines[j], count=1))
        j += 1
    if not inner:
        return None
    return Blockquote(lines=tuple(inner)), j


def _split_row(line: str) -> list[str]:
    """Split a pipe table row into stripped cells, honouring \\| escapes."""
    row = line.strip()
    if row.startswith('|'):
        row = row[1:]
    if row.endswith('|') and not row.endswith('\\|'):
        row = row[:-1]
    return [c.strip().replace('\\|', '|') for c in CELL_SPLIT_RE.split(row)]


def _alignment(cell: str) -> Alignment:
    left, right = cell.startswith(':'), cell.endswith(':')
    if left and right:
        return Alignment.center
    if left:
        return Alignment.left
    if right:
        return Alignment.right
    return Alignment.none


def _fit(cells: list, width: int, pad) -> tuple:
    """Pad or truncate cells to exactly width entries."""
    return tuple(cells[:width] + [pad] * (width - len(cells)))


def _table(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    if i + 1 >= len(lines) or '|' not in lines[i] or '|' not in lines[i + 1]:
        return None
    separator = _split_row(lines[i + 1])
    if not all(SEPARATOR_CELL_RE.match(c) for c in separator):
        return None
    headers = _split_row(lines[i])
    width = len(headers)
    rows = []
    j = i + 2
    while j < len(lines) and '|' in lines[j] and not _is_blank(lines[j]):
        rows.append(_fit(_split_row(lines[j]), width, ""))
        j += 1
    table = Table(
        headers=tuple(headers),
        alignments=_fit([_alignment(c) for c in separator], width, Alignment.none),
        rows=tuple(rows),
    )
    return table, j


def _list_marker(line: str) -> Optional[tuple[bool, str, Optional[int], str]]:
    """Return (ordered, indent, number, text) for a list item line, else None."""
    m = BULLET_RE.match(line)
    if m:
        return False, m.group(1), None, m.group(2)
    m = ORDERED_RE.match(line)
    if m:
        return True, m.group(1), int(m.group(2)), m.group(3)
    return None


def _list_item(text: str) -> ListItem:
    m = TASK_RE.match(text)
    if not m:
        return ListItem(text=text.strip())
    return ListItem(text=text[m.end():].strip(), is_task=True, checked=m.group(1) != ' ')


def _list(lines: Sequence[str], i: int) -> Optional[tuple[Block, int]]:
    first = _list_marker(lines[i])
    if first is None:
        return None
    ordered, indent, start, _ = first
    items = []
    j = i
    while j < len(lines):
        marker = _list_marker(lines[j])
        if marker is None or marker[0] != ordered or marker[1] != indent:
            break
        items.append(_list_item(marker[3]))
        j += 1
    return ListBlock(ordered=ordered, start=start, items=tuple(items)), j


# First match wins; the paragraph rule is the fallback and is not listed here.
BLOCK_RULES: list[tuple[str, Rule]] = [
    ("fenced_code",    _fenced_code),
    ("indented_code",  _indented_code),
    ("setext_heading", _setext_heading),
    ("atx_heading",    _atx_heading),
    ("thematic_break", _thematic_break),
    ("blockquote",     _blockquote),
    ("table",          _table),
    ("list",           _list),
]


def _starts_block(lines: Sequence[str], i: int) -> bool:
    return any(rule(lines, i) is not None for _, rule in BLOCK_RULES)


def _paragraph(lines: Sequence[str], i: int) -> tuple[Block, int]:
    j = i + 1
    while j < len(lines) and not _is_blank(lines[j]) and not _starts_block(lines, j):
        j += 1
    return Paragraph(lines=tuple(line.strip() for line in lines[i:j])), j


def classify(lines: Sequence[str], i: int) -> tuple[Block, int]:
    """Classify the block starting at non-blank line i; returns (block, next_index)."""
    for _, rule in BLOCK_RULES:
        found = rule(lines, i)
        if found is not None:
            return found
    return _paragraph(lines, i)


def segment(lines: Sequence[str], start: int = 0) -> list[Block]:
    """Segment lines[start:] into an ordered list of blocks."""
    blocks: list[Block] = []
    i = start
    while i < len(lines):
        if _is_blank(lines[i]):
            i += 1
            continue
        block, i = classify(lines, i)
        blocks.append(block)
    return blocks
