"""Render options and the typed blocks produced by the segmenter"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RenderOptions(BaseModel):
    """Per-call rendering switches shared by both engines."""
    model_config = ConfigDict(frozen=True)

    allow_html:         bool = Field(default=False, description="Delegated engine passes raw HTML through")
    allow_unsafe_links: bool = Field(default=False, description="Skip URL scheme validation entirely")
    linkify:            bool = Field(default=True,  description="Auto-link bare URLs")
    typographer:        bool = Field(default=False, description="Smart punctuation (delegated engine)")
    breaks:             bool = Field(default=False, description="Soft line feed -> <br> (delegated engine)")
    link_target_blank:  bool = Field(default=True,  description="Add target=_blank and a safe rel to anchors")


class BlockType(str, Enum):
    heading = "heading"
    thematic_break = "thematic_break"
    code = "code"
    blockquote = "blockquote"
    list = "list"
    table = "table"
    paragraph = "paragraph"


class Alignment(str, Enum):
    none = "none"
    left = "left"
    right = "right"
    center = "center"


class _Block(BaseModel):
    model_config = ConfigDict(frozen=True)


class Heading(_Block):
    type: Literal[BlockType.heading] = BlockType.heading
    level: int = Field(ge=1, le=6)
    text: str


class ThematicBreak(_Block):
    type: Literal[BlockType.thematic_break] = BlockType.thematic_break


class CodeBlock(_Block):
    type: Literal[BlockType.code] = BlockType.code
    language: str = ""
    content: str = ""


class Blockquote(_Block):
    """Quoted lines with one level of `>` removed; segmented again on render."""
    type: Literal[BlockType.blockquote] = BlockType.blockquote
    lines: tuple[str, ...]


class ListItem(_Block):
    text: str
    is_task: bool = False
    checked: bool = False


class ListBlock(_Block):
    type: Literal[BlockType.list] = BlockType.list
    ordered: bool = False
    start: Optional[int] = None     # first number of an ordered list
    items: tuple[ListItem, ...]


class Table(_Block):
    type: Literal[BlockType.table] = BlockType.table
    headers: tuple[str, ...]
    alignments: tuple[Alignment, ...]
    rows: tuple[tuple[str, ...], ...] = ()


class Paragraph(_Block):
    type: Literal[BlockType.paragraph] = BlockType.paragraph
    lines: tuple[str, ...]


Block = Union[Heading, ThematicBreak, CodeBlock, Blockquote, ListBlock, Table, Paragraph]
