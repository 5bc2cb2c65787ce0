"""Object storage bucket for product photos, served under ``/storage/v1``.

Objects in the public bucket are addressed by path; the public URL of an
object is ``<backend>/storage/v1/object/public/<bucket>/<path>``.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote, unquote, urlsplit

from storefront.domain.entities import ProductPhoto
from storefront.domain.ports import ProductImagePort

from .api_errors import ensure_ok, json_any
from .http_client import RetryingSession

LOGGER = logging.getLogger(__name__)

PRODUCT_IMAGE_BUCKET = "product-images"
PLACEHOLDER_OBJECT = ".empty"
CACHE_SECONDS = "3600"


def object_path_from_url(url: Optional[str], bucket: str = PRODUCT_IMAGE_BUCKET) -> Optional[str]:
    """Path inside ``bucket`` for one of its public URLs, else ``None``."""
    if not url:
        return None
    marker = f"/{bucket}/"
    path = unquote(urlsplit(url).path)
    if marker not in path:
        return None
    return path.split(marker, 1)[1] or None


class StorageRestAdapter(ProductImagePort):
    def __init__(self, session: RetryingSession, base_url: str, *, bucket: str = PRODUCT_IMAGE_BUCKET) -> None:
        if not base_url:
            raise ValueError("StorageRestAdapter requires a backend URL")
        self.session = session
        self.base_url = f"{base_url.rstrip('/')}/storage/v1"
        self.bucket = bucket

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{quote(path)}"

    def list_images(self, folder: str) -> List[ProductPhoto]:
        ctx = f"storage[list {self.bucket}]"
        resp = self.session.post(
            f"{self.base_url}/object/list/{self.bucket}",
            json_body={
                "prefix": folder,
                "sortBy": {"column": "created_at", "order": "desc"},
            },
        )
        ensure_ok(resp, ctx)
        payload = json_any(resp, ctx)
        photos: List[ProductPhoto] = []
        for item in payload if isinstance(payload, list) else []:
            name = str(item.get("name") or "") if isinstance(item, dict) else ""
            if not name or name == PLACEHOLDER_OBJECT:
                continue
            path = f"{folder}/{name}"
            photos.append(ProductPhoto(name=name, path=path, url=self.public_url(path)))
        return photos

    def upload_image(self, path: str, content: bytes, content_type: str) -> str:
        ctx = f"storage[upload {self.bucket}]"
        LOGGER.debug("Uploading %d bytes to %s/%s", len(content), self.bucket, path)
        resp = self.session.post(
            f"{self.base_url}/object/{self.bucket}/{quote(path)}",
            data=content,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "cache-control": f"max-age={CACHE_SECONDS}",
                "x-upsert": "false",
            },
        )
        ensure_ok(resp, ctx)
        return self.public_url(path)

    def remove_images(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        ctx = f"storage[remove {self.bucket}]"
        resp = self.session.delete(
            f"{self.base_url}/object/{self.bucket}",
            json_body={"prefixes": list(paths)},
        )
        ensure_ok(resp, ctx)


__all__ = ["PRODUCT_IMAGE_BUCKET", "StorageRestAdapter", "object_path_from_url"]
