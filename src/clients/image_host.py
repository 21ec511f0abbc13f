"""
Exam Cell Question Bank - Image Host
Unsigned Cloudinary uploads; the returned secure_url is stored on the block.
"""
import logging
from typing import Optional

import httpx

from config.settings import Settings, get_settings
from src.question_bank.errors import ImageUploadError

logger = logging.getLogger(__name__)


class CloudinaryImageHost:
    """POST {image_host_url}/{cloud_name}/image/upload with an upload preset."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 60.0
    ):
        self.settings = settings or get_settings()
        self.upload_url = (
            f"{self.settings.image_host_url.rstrip('/')}/"
            f"{self.settings.image_host_cloud_name}/image/upload"
        )
        self.upload_preset = self.settings.image_host_upload_preset
        self.timeout = timeout
        self._transport = transport

    async def upload(self, filename: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        if not self.settings.image_host_cloud_name:
            raise ImageUploadError("Image host is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.upload_url,
                    data={"upload_preset": self.upload_preset},
                    files={"file": (filename, data, content_type)},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Image upload failed for {filename}: {e}")
            raise ImageUploadError("Image upload failed") from e

        if response.status_code != 200:
            logger.warning(f"Image host error {response.status_code}: {response.text[:200]}")
            raise ImageUploadError(f"Image upload failed ({response.status_code})")

        try:
            body = response.json()
        except ValueError:
            body = None
        url = body.get("secure_url") if isinstance(body, dict) else None
        if not url:
            raise ImageUploadError("Image host returned no URL")

        logger.info(f"Uploaded {filename} -> {url}")
        return url
