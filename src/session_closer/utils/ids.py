"""Notion object-id normalisation.

Notion ids are 32 hex characters, canonically rendered 8-4-4-4-12.  Ids
copied from URLs usually arrive without hyphens; both the MCP tools and the
REST API are given the hyphenated form.
"""

from __future__ import annotations

import re

_COMPACT_ID_RE = re.compile(r"[0-9a-fA-F]{32}")


def normalize_id(object_id: str) -> str:
    """Return *object_id* in canonical hyphenated form.

    Only a string of exactly 32 hex characters is rewritten.  Anything else
    (already hyphenated, wrong length, non-hex) is returned unchanged, so the
    function is idempotent.

    >>> normalize_id("a1b2c3d4e5f6a1b2c3d4e5f6a1b2c3d4")
    'a1b2c3d4-e5f6-a1b2-c3d4-e5f6a1b2c3d4'
    >>> normalize_id("abc123")
    'abc123'
    """
    if not _COMPACT_ID_RE.fullmatch(object_id):
        return object_id
    s = object_id
    return f"{s[0:8]}-{s[8:12]}-{s[12:16]}-{s[16:20]}-{s[20:32]}"
