import asyncio
import logging
import os

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from config.env import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
)

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True,
)


def _public_id(key: str, resource_type: str) -> str:
    # cloudinary appends the format to image ids itself
    if resource_type == "image":
        return os.path.splitext(key)[0]
    return key


def _upload(file, key: str, resource_type: str) -> dict:
    return cloudinary.uploader.upload(
        file,
        public_id=_public_id(key, resource_type),
        resource_type=resource_type,
        overwrite=True,
    )


async def upload_file(file, key: str, resource_type: str = "image") -> str | None:
    """
    Upload under the given storage key and return the public URL.
    """
    try:
        result = await asyncio.to_thread(_upload, file, key, resource_type)
    except cloudinary.exceptions.Error as e:
        logger.error("UPLOAD_FAILED key=%s resource_type=%s error=%s", key, resource_type, e)
        return None

    url = result.get("secure_url")
    if not url:
        logger.error("UPLOAD_FAILED key=%s resource_type=%s", key, resource_type)
        return None

    logger.info("UPLOAD_OK key=%s", key)
    return url
