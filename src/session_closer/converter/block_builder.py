"""Notion block payload builders.

Each builder returns a fresh block dict of the shape::

    {"type": "<block_type>", "<block_type>": {"rich_text": [<run>]}}

where ``<run>`` is a single plain-text run.  Inline markdown markers such as
``**bold**`` are kept verbatim; no annotation objects are produced.
"""

from __future__ import annotations

from typing import Any

from session_closer.models import BlockType


def text_run(content: str) -> dict[str, Any]:
    """Build one plain-text rich_text segment."""
    return {"type": "text", "text": {"content": content}}


def build_block(block_type: BlockType, content: str) -> dict[str, Any]:
    """Build a block of *block_type* carrying *content* as its only run."""
    key = block_type.value
    return {"type": key, key: {"rich_text": [text_run(content)]}}


def build_heading(level: int, content: str) -> dict[str, Any]:
    """Build a ``heading_1`` .. ``heading_3`` block.

    Raises
    ------
    ValueError
        If *level* is outside 1..3 (Notion has no deeper headings).
    """
    if level not in (1, 2, 3):
        raise ValueError(f"heading level must be 1, 2 or 3, got {level}")
    return build_block(BlockType(f"heading_{level}"), content)


def build_paragraph(content: str) -> dict[str, Any]:
    return build_block(BlockType.PARAGRAPH, content)


def build_bulleted_item(content: str) -> dict[str, Any]:
    return build_block(BlockType.BULLETED_LIST_ITEM, content)


def block_text(block: dict[str, Any]) -> str:
    """Concatenate the plain text of a block's rich_text runs."""
    block_type = block.get("type", "")
    rich_text = block.get(block_type, {}).get("rich_text", [])
    return "".join(
        seg.get("plain_text", "") or seg.get("text", {}).get("content", "")
        for seg in rich_text
    )
