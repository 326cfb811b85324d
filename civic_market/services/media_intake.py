from __future__ import annotations

import logging

from fastapi import UploadFile

from civic_market.core.config import settings
from civic_market.core.errors import ValidationError
from civic_market.services.storage import LocalMediaStore, StoredMedia

log = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})


async def store_upload(store: LocalMediaStore, upload: UploadFile | None) -> StoredMedia | None:
    """
    Persist the uploaded image under a fresh unique name.
    Returns None when the form carried no file.
    """
    if upload is None or not upload.filename:
        return None

    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        log.info("rejected upload %s: content type %s", upload.filename, upload.content_type)
        raise ValidationError("Invalid file type. Only images (JPEG, PNG, GIF, WebP) are allowed.")

    max_bytes = settings.media_max_bytes
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        log.info("rejected upload %s: larger than %d bytes", upload.filename, max_bytes)
        raise ValidationError(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.")

    stored = store.put_bytes(data=data, original_filename=upload.filename)
    log.info("stored upload %s as %s", upload.filename, stored.name)
    return stored
