"""Page endpoint wrapper for the direct HTTP path.

Provides :class:`PageAPI`, a thin wrapper around ``POST /pages``.
"""

from __future__ import annotations

from typing import Any

from .http_transport import NotionHttpTransport


class PageAPI:
    """Asynchronous wrapper for the Notion Pages API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionHttpTransport` instance.
    """

    def __init__(self, transport: NotionHttpTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
    ) -> dict[str, Any]:
        """Create a new page.

        Parameters
        ----------
        parent:
            Parent object, e.g. ``{"type": "database_id", "database_id": "..."}``.
            Must be a dict; it is sent as-is inside the JSON body.
        properties:
            Page properties matching the parent database schema.

        Returns
        -------
        dict
            The created page object as returned by the Notion API.
        """
        body: dict[str, Any] = {
            "parent": parent,
            "properties": properties,
        }
        return await self._transport.request("POST", "/pages", json=body)
