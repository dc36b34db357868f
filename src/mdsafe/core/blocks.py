"""Block rendering: typed blocks to HTML fragments"""

from typing import Callable, Optional, Sequence

from mdsafe.core.inline import render_inline
from mdsafe.core.models import (
    Alignment,
    Block,
    Blockquote,
    BlockType,
    CodeBlock,
    Heading,
    ListBlock,
    ListItem,
    Paragraph,
    RenderOptions,
    Table,
)
from mdsafe.core.safety import escape_attr, escape_html
from mdsafe.core.segment import segment


def _heading(block: Heading, options: RenderOptions) -> str:
    return f"<h{block.level}>{render_inline(block.text, options)}</h{block.level}>"


def _thematic_break(block, options: RenderOptions) -> str:
    return "<hr>"


def _code(block: CodeBlock, options: RenderOptions) -> str:
    cls = f' class="language-{escape_attr(block.language)}"' if block.language else ""
    return f"<pre><code{cls}>{escape_html(block.content, keep_entities=False)}</code></pre>"


def _blockquote(block: Blockquote, options: RenderOptions) -> str:
    inner = render_document(block.lines, options)
    return f"<blockquote>\n{inner}\n</blockquote>" if inner else "<blockquote></blockquote>"


def _list_item(item: ListItem, options: RenderOptions) -> str:
    text = render_inline(item.text, options)
    if not item.is_task:
        return f"<li>{text}</li>"
    checked = " checked" if item.checked else ""
    return f'<li class="task-list-item"><input type="checkbox" disabled{checked}> {text}</li>'


def _list(block: ListBlock, options: RenderOptions) -> str:
    tag = "ol" if block.ordered else "ul"
    attrs = ""
    if block.ordered and block.start not in (None, 1):
        attrs += f' start="{block.start}"'
    if any(item.is_task for item in block.items):
        attrs += ' class="contains-task-list"'
    items = "\n".join(_list_item(item, options) for item in block.items)
    return f"<{tag}{attrs}>\n{items}\n</{tag}>"


def _cell(tag: str, text: str, align: Alignment, options: RenderOptions) -> str:
    style = f' style="text-align:{align.value}"' if align is not Alignment.none else ""
    return f"<{tag}{style}>{render_inline(text, options)}</{tag}>"


def _table(block: Table, options: RenderOptions) -> str:
    head = "".join(_cell("th", h, a, options) for h, a in zip(block.headers, block.alignments))
    parts = ["<table>", "<thead>", f"<tr>{head}</tr>", "</thead>"]
    if block.rows:
        parts.append("<tbody>")
        for row in block.rows:
            cells = "".join(_cell("td", c, a, options) for c, a in zip(row, block.alignments))
            parts.append(f"<tr>{cells}</tr>")
        parts.append("</tbody>")
    parts.append("</table>")
    return "\n".join(parts)


def _paragraph(block: Paragraph, options: RenderOptions) -> str:
    text = render_inline("\n".join(block.lines), options, hard_breaks=True)
    return f"<p>{text}</p>"


RENDERERS: dict[BlockType, Callable[[Block, RenderOptions], str]] = {
    BlockType.heading:        _heading,
    BlockType.thematic_break: _thematic_break,
    BlockType.code:           _code,
    BlockType.blockquote:     _blockquote,
    BlockType.list:           _list,
    BlockType.table:          _table,
    BlockType.paragraph:      _paragraph,
}


def render_block(block: Block, options: Optional[RenderOptions] = None) -> str:
    """Render one block to an HTML fragment."""
    return RENDERERS[block.type](block, options or RenderOptions())


def render_document(lines: Sequence[str], options: Optional[RenderOptions] = None) -> str:
    """Segment lines and render every block, newline-joined."""
    options = options or RenderOptions()
    return "\n".join(render_block(b, options) for b in segment(lines))
