"""In-memory screenshot store exposed as MCP resources."""

import datetime
from collections import OrderedDict
from typing import List, Optional

from mcp import types

SCREENSHOT_URI_PREFIX = "screenshot://"


class ScreenshotStore:
    """
    Screenshots taken by the screenshot tool, keyed by name.

    One store is shared by every connection of a process so that a resource
    listed on one connection can be read back on another.
    """

    def __init__(self, max_items: Optional[int] = 100):
        self._items: "OrderedDict[str, bytes]" = OrderedDict()
        self._max_items = max_items

    def __len__(self) -> int:
        return len(self._items)

    def add(self, png: bytes, name: Optional[str] = None) -> str:
        if name is None:
            # Digits and hyphens only, so the name survives URL host normalization
            stamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
            name = f"screenshot-{stamp}"
        self._items[name] = png
        self._items.move_to_end(name)
        if self._max_items is not None:
            while len(self._items) > self._max_items:
                self._items.popitem(last=False)
        return name

    @staticmethod
    def uri_for(name: str) -> str:
        return f"{SCREENSHOT_URI_PREFIX}{name}"

    def list_resources(self) -> List[types.Resource]:
        return [
            types.Resource(
                uri=self.uri_for(name),
                name=f"Screenshot: {name}",
                mimeType="image/png",
            )
            for name in self._items
        ]

    def read(self, uri: str) -> bytes:
        """Return the PNG bytes for a screenshot:// URI, or raise ValueError."""
        if not uri.startswith(SCREENSHOT_URI_PREFIX):
            raise ValueError(f"Resource not found: {uri}")
        name = uri[len(SCREENSHOT_URI_PREFIX):].rstrip("/")
        try:
            return self._items[name]
        except KeyError:
            raise ValueError(f"Resource not found: {uri}") from None


__all__ = ["SCREENSHOT_URI_PREFIX", "ScreenshotStore"]
