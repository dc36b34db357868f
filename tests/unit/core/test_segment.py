"""Unit tests for core/segment.py"""

import pytest

from mdsafe.core.models import (
    Alignment,
    Blockquote,
    BlockType,
    CodeBlock,
    Heading,
    ListBlock,
    Paragraph,
    Table,
    ThematicBreak,
)
from mdsafe.core.segment import normalize, segment, split_lines


def _segment(md: str):
    return segment(split_lines(md))


def test_normalize_line_endings():
    """normalize collapses CRLF and lone CR to LF."""
    assert normalize("a\r\nb\rc\n") == "a\nb\nc\n"


def test_normalize_replaces_nul():
    """NUL characters never survive normalization."""
    assert "\x00" not in normalize("a\x00b")


def test_sample_document_block_order(sample_lines):
    """A mixed document segments into blocks in source order."""
    types = [b.type for b in segment(sample_lines)]
    assert types == [
        BlockType.heading, BlockType.paragraph, BlockType.heading, BlockType.list,
        BlockType.code, BlockType.blockquote, BlockType.thematic_break, BlockType.paragraph,
    ]


def test_segment_from_start_index():
    """segment starts at the given cursor and ignores earlier lines."""
    assert segment(["# skipped", "kept"], start=1) == [Paragraph(lines=("kept",))]


def test_empty_input():
    """Blank-only input yields no blocks."""
    assert _segment("") == []
    assert _segment("\n   \n\t\n") == []


# --- fenced code ---

def test_fence_hides_heading_marker():
    """A fenced line that looks like a heading stays inside the code block."""
    assert _segment("```\n# not a heading\n```") == [CodeBlock(content="# not a heading")]


def test_fence_language_tag():
    """The first word of the info string is the language."""
    blocks = _segment("```python extra\nx = 1\n```")
    assert blocks == [CodeBlock(language="python", content="x = 1")]


def test_unterminated_fence_consumes_rest():
    """An unclosed fence runs to end of input, blank lines included."""
    blocks = _segment("```\na\n\n# b\n- c")
    assert blocks == [CodeBlock(content="a\n\n# b\n- c")]


def test_fence_closes_only_with_same_marker():
    """A tilde line does not close a backtick fence."""
    blocks = _segment("```\na\n~~~\n```\nafter")
    assert blocks[0] == CodeBlock(content="a\n~~~")
    assert blocks[1] == Paragraph(lines=("after",))


def test_fence_closes_with_longer_run():
    """A closing run at least as long as the opener closes the fence."""
    assert _segment("~~~\na\n~~~~~") == [CodeBlock(content="a")]


def test_fence_shorter_run_does_not_close():
    """A closing run shorter than the opener is content."""
    assert _segment("````\na\n```\n````") == [CodeBlock(content="a\n```")]


# --- indented code ---

def test_indented_code_block():
    """Indented lines form a code block with one indent level removed."""
    blocks = _segment("    a\n\n\tb\n\npara")
    assert blocks == [CodeBlock(content="a\n\nb"), Paragraph(lines=("para",))]


def test_indented_code_keeps_deeper_indent():
    """Only the first indent level is stripped."""
    assert _segment("        deep") == [CodeBlock(content="    deep")]


# --- headings ---

@pytest.mark.parametrize("md,level", [
    ("Title\n=====", 1),
    ("Title\n---", 2),
    ("Title\n-", 2),
])
def test_setext_heading(md, level):
    """A line followed by = or - underline is a setext heading."""
    assert _segment(md) == [Heading(level=level, text="Title")]


@pytest.mark.parametrize("md,level,text", [
    ("# One", 1, "One"),
    ("###### Six", 6, "Six"),
    ("## Closed ##", 2, "Closed"),
    ("  ### Indented", 3, "Indented"),
])
def test_atx_heading(md, level, text):
    """1-6 hashes, whitespace, then text; closing hashes are stripped."""
    assert _segment(md) == [Heading(level=level, text=text)]


@pytest.mark.parametrize("md", ["#nospace", "####### seven"])
def test_not_atx_heading(md):
    """Missing whitespace or more than six hashes falls through to a paragraph."""
    assert _segment(md) == [Paragraph(lines=(md,))]


# --- thematic breaks ---

@pytest.mark.parametrize("md", ["---", "***", "___", "* * *", "- - -", "_____"])
def test_thematic_break(md):
    """Three or more of one marker, interior spaces allowed, is a thematic break."""
    assert _segment(md) == [ThematicBreak()]


def test_mixed_markers_not_a_break():
    """Mixed markers are not a thematic break."""
    assert _segment("*-*") == [Paragraph(lines=("*-*",))]


# --- blockquotes ---

def test_nested_blockquote_lines():
    """One level of > is stripped; the rest is kept for recursive segmentation."""
    blocks = _segment("> level1\n> > level2")
    assert blocks == [Blockquote(lines=("level1", "> level2"))]


def test_blockquote_ends_at_unprefixed_line():
    """A blank or unprefixed line ends the quote."""
    blocks = _segment("> a\n>b\n\nc")
    assert blocks == [Blockquote(lines=("a", "b")), Paragraph(lines=("c",))]


# --- tables ---

def test_table_basic():
    """Header, separator and data row produce a table without alignment."""
    blocks = _segment("a | b\n---|---\n1 | 2")
    assert blocks == [Table(
        headers=("a", "b"),
        alignments=(Alignment.none, Alignment.none),
        rows=(("1", "2"),),
    )]


def test_table_alignment():
    """Colons in the separator set column alignment."""
    blocks = _segment("| l | c | r |\n|:---|:---:|---:|")
    assert blocks[0].alignments == (Alignment.left, Alignment.center, Alignment.right)
    assert blocks[0].rows == ()


def test_table_rows_fit_header_width():
    """Rows are padded or truncated to the header column count."""
    blocks = _segment("a | b\n--- | ---\n1 |\n1 | 2 | 3")
    assert blocks[0].rows == (("1", ""), ("1", "2"))


def test_table_escaped_pipe():
    """An escaped pipe is cell content, not a separator."""
    blocks = _segment("a | b\n---|---\nx \\| y | z")
    assert blocks[0].rows == (("x | y", "z"),)


def test_table_ends_at_blank_line():
    """A blank line ends the table body."""
    blocks = _segment("a | b\n---|---\n1 | 2\n\n3 | 4")
    assert len(blocks[0].rows) == 1
    assert blocks[1] == Paragraph(lines=("3 | 4",))


def test_invalid_separator_falls_through_to_paragraph():
    """A separator with fewer than three dashes is not a table."""
    assert _segment("a | b\n--|--") == [Paragraph(lines=("a | b", "--|--"))]


def test_header_without_separator_is_paragraph():
    """A pipe line alone is a paragraph."""
    assert _segment("a | b") == [Paragraph(lines=("a | b",))]


# --- lists ---

def test_task_list_items():
    """Task markers set is_task and checked and are removed from the text."""
    [block] = _segment("- [x] done\n- [ ] todo")
    assert isinstance(block, ListBlock)
    assert not block.ordered
    assert [(i.text, i.is_task, i.checked) for i in block.items] == [
        ("done", True, True),
        ("todo", True, False),
    ]


def test_uppercase_task_marker():
    """[X] counts as checked."""
    [block] = _segment("* [X] shout")
    assert block.items[0].checked


def test_bracket_without_space_is_not_task():
    """A link-like bracket is plain item text."""
    [block] = _segment("- [x](url)")
    assert not block.items[0].is_task


def test_ordered_list_start():
    """Ordered lists keep the first item number."""
    [block] = _segment("3. c\n4) d")
    assert block.ordered
    assert block.start == 3
    assert [i.text for i in block.items] == ["c", "d"]


@pytest.mark.parametrize("md", [
    "- a\n1. b",         # marker family changes
    "- a\n - b",         # indentation changes
    "- a\n\n- b",        # blank line
])
def test_list_breaks(md):
    """Any change in family or indentation, or a blank line, ends the list."""
    blocks = _segment(md)
    assert len(blocks) == 2
    assert all(isinstance(b, ListBlock) for b in blocks)


def test_bullet_markers_share_a_family():
    """-, + and * items at the same indent continue one list."""
    [block] = _segment("- a\n+ b\n* c")
    assert len(block.items) == 3


# --- paragraphs ---

def test_paragraph_accumulates_lines():
    """Consecutive plain lines form one paragraph."""
    assert _segment("one\ntwo\n\nthree") == [
        Paragraph(lines=("one", "two")),
        Paragraph(lines=("three",)),
    ]


def test_paragraph_stops_at_block_start():
    """A line that starts another block ends the paragraph."""
    blocks = _segment("text\n# H\nmore\n- item")
    assert [b.type for b in blocks] == [
        BlockType.paragraph, BlockType.heading, BlockType.paragraph, BlockType.list,
    ]


def test_segment_cursor_always_advances():
    """Pathological input terminates and every non-blank line lands in a block."""
    md = ">\n|\n-\n#\n***\n    \n> > >\n|---|\n```\n"
    blocks = segment(split_lines(md))
    assert blocks
