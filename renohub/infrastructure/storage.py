"""
Media storage on the backend object store
"""
from typing import Optional
import logging
import mimetypes
import time

from .backend import BackendConnection

logger = logging.getLogger(__name__)


def build_object_path(
    owner_id: str,
    filename: str,
    timestamp_ms: Optional[int] = None,
    prefix: str = "",
) -> str:
    """Object key ``{owner_id}/{prefix}{timestamp_ms}.{ext}``"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    extension = filename.rsplit(".", 1)[-1]
    return f"{owner_id}/{prefix}{timestamp_ms}.{extension}"


def guess_content_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


class MediaStorage:
    """Upload files to a public bucket and resolve their URLs"""

    def __init__(self, backend: BackendConnection):
        self.backend = backend

    async def upload(
        self,
        data: bytes,
        filename: str,
        owner_id: str,
        bucket: str,
        prefix: str = "",
        upsert: bool = False,
    ) -> str:
        """
        Upload a file and return its public URL

        Args:
            data: File content
            filename: Original file name, used for the extension and MIME type
            owner_id: User the object is stored under
            bucket: Target bucket
            prefix: Object name prefix such as ``logo-``
            upsert: Overwrite an existing object with the same key

        Raises:
            Whatever the storage client raises; callers convert it to a Result
        """
        path = build_object_path(owner_id, filename, prefix=prefix)
        options = {"content-type": guess_content_type(filename)}
        if upsert:
            options["upsert"] = "true"

        bucket_api = self.backend.storage.from_(bucket)
        await bucket_api.upload(path, data, options)
        url = await bucket_api.get_public_url(path)

        logger.info(f"Uploaded {filename} to {bucket}/{path}")
        return url
