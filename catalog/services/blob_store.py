"""
Blob store — persists uploaded bytes and hands back a public URL.

Entries only ever keep the URL. ``LocalBlobStore`` writes to a directory
that the app serves with StaticFiles; any object store can stand in for it
by implementing ``put``.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional, Protocol

from catalog.errors import InvalidArgument

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    async def put(self, data: bytes, content_type: str, filename: Optional[str] = None) -> str:
        ...


# Served Content-Type follows the stored extension, so it comes from this
# allow-list and never from the client filename
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def image_extension(content_type: str) -> Optional[str]:
    return IMAGE_EXTENSIONS.get(content_type.split(";")[0].strip().lower())


class LocalBlobStore:
    def __init__(self, root: str, url_prefix: str = "/media"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    async def put(self, data: bytes, content_type: str, filename: Optional[str] = None) -> str:
        extension = image_extension(content_type)
        if extension is None:
            raise InvalidArgument(f"Unsupported image type: {content_type}")
        key = f"{uuid.uuid4().hex}{extension}"
        # Disk writes happen off the event loop
        await asyncio.to_thread((self.root / key).write_bytes, data)
        logger.info(f"Stored blob {key} ({len(data)} bytes, {content_type})")
        return f"{self.url_prefix}/{key}"
