"""Batch a list of Notion block dicts into groups of at most *size* items.

The Notion ``append_block_children`` endpoint (and the ``append_blocks``
MCP tool in front of it) accepts a maximum of 100 blocks per request.  Only
appends are chunked; page creation sends properties, not children.
"""

from __future__ import annotations

from typing import Any


def chunk_children(blocks: list[dict[str, Any]], size: int = 100) -> list[list[dict[str, Any]]]:
    """Split a list of Notion block dicts into batches of at most ``size``.

    Parameters
    ----------
    blocks:
        The full list of block dictionaries to partition.
    size:
        Maximum number of blocks per batch.  Defaults to **100**.

    Returns
    -------
    list[list[dict]]
        Contiguous, order-preserving slices; concatenating them yields
        *blocks* again.  An empty input returns an empty list (not ``[[]]``).

    Raises
    ------
    ValueError
        If *size* is less than 1.

    Examples
    --------
    >>> [len(c) for c in chunk_children([{"type": "paragraph"}] * 250)]
    [100, 100, 50]
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")

    if not blocks:
        return []

    return [blocks[i : i + size] for i in range(0, len(blocks), size)]
