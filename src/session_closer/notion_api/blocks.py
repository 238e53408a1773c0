"""Block endpoint wrapper for the direct HTTP path.

Provides :class:`BlockAPI`, a thin wrapper around
``PATCH /blocks/{id}/children``.  Batching to the 100-block limit is the
caller's job (see :func:`session_closer.utils.chunk_children`).
"""

from __future__ import annotations

from typing import Any

from .http_transport import NotionHttpTransport


class BlockAPI:
    """Asynchronous wrapper for the Notion Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionHttpTransport` instance.
    """

    def __init__(self, transport: NotionHttpTransport) -> None:
        self._transport = transport

    async def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Append child blocks to a page or block.

        Parameters
        ----------
        block_id:
            Id of the parent page (or block), already normalised.
        children:
            At most 100 block objects.

        Returns
        -------
        dict
            The API response containing the appended block objects.
        """
        return await self._transport.request(
            "PATCH", f"/blocks/{block_id}/children", json={"children": children}
        )
