"""Markdown → Notion block conversion.

Public API:

- :func:`markdown_to_blocks` -- markdown text → non-empty list of blocks.
- :func:`build_heading`, :func:`build_paragraph`,
  :func:`build_bulleted_item` -- single-block builders.
"""

from session_closer.converter.block_builder import (
    block_text,
    build_bulleted_item,
    build_heading,
    build_paragraph,
)
from session_closer.converter.md_to_blocks import markdown_to_blocks

__all__ = [
    "block_text",
    "build_bulleted_item",
    "build_heading",
    "build_paragraph",
    "markdown_to_blocks",
]
