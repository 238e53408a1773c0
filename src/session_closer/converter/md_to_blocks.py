"""Line-oriented Markdown-to-Notion block conversion.

This converter is shallow: session summaries are written by
this package in a fixed shape (headings, bullets, plain lines), so each
non-blank line maps to exactly one block by prefix.

Prefix priority (first match wins, prefix is stripped):

==========  ======================
``### ``    ``heading_3``
``## ``     ``heading_2``
``# ``      ``heading_1``
``- ``      ``bulleted_list_item``
otherwise   ``paragraph``
==========  ======================
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from session_closer.converter.block_builder import (
    build_bulleted_item,
    build_heading,
    build_paragraph,
)

_PREFIX_RULES: tuple[tuple[str, Callable[[str], dict[str, Any]]], ...] = (
    ("### ", lambda text: build_heading(3, text)),
    ("## ", lambda text: build_heading(2, text)),
    ("# ", lambda text: build_heading(1, text)),
    ("- ", build_bulleted_item),
)


def line_to_block(line: str) -> dict[str, Any]:
    """Classify one stripped, non-blank line into a block."""
    for prefix, build in _PREFIX_RULES:
        if line.startswith(prefix):
            return build(line[len(prefix):])
    return build_paragraph(line)


def markdown_to_blocks(markdown: str) -> list[dict[str, Any]]:
    """Convert *markdown* into an ordered, non-empty list of blocks.

    Blank lines are dropped and nothing is merged.  If no block results
    (empty or whitespace-only input) a single paragraph holding the raw
    input is returned, so an empty children list never reaches Notion.
    """
    blocks: list[dict[str, Any]] = []
    for raw in markdown.split("\n"):
        line = raw.strip()
        if not line:
            continue
        blocks.append(line_to_block(line))

    if not blocks:
        return [build_paragraph(markdown)]
    return blocks
