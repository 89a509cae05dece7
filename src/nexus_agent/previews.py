"""Local preview handles for attachment bytes held in memory."""

from __future__ import annotations

import logging
import uuid

LOGGER = logging.getLogger(__name__)

PREVIEW_SCHEME = "blob:nexus-agent/"


class PreviewRegistry:
    """Issue, resolve and revoke ``blob:`` style handles for local bytes.

    Handles stay alive until revoked; whoever discards the owning attachment
    is responsible for calling :meth:`revoke`.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def create(self, data: bytes) -> str:
        """Register bytes and return a new dereferenceable handle."""
        url = f"{PREVIEW_SCHEME}{uuid.uuid4()}"
        self._entries[url] = bytes(data)
        return url

    def resolve(self, url: str) -> bytes | None:
        """Return the bytes behind a live handle, or None once revoked."""
        return self._entries.get(url)

    def revoke(self, url: str) -> bool:
        """Release a handle. Unknown or remote URLs are ignored."""
        removed = self._entries.pop(url, None) is not None
        if removed:
            LOGGER.debug(
                "preview.revoked", extra={"event": "preview.revoked", "url": url}
            )
        return removed

    def revoke_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count
