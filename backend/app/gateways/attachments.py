"""S3AttachmentStore: uploads brief attachments and returns their public URL.

S3 key structure: attachments/{owner_id}/{token}/{filename}
Public URL: https://{cdn_domain}/{key} when a CDN domain is configured,
otherwise the virtual-hosted S3 URL.
"""

import asyncio
import re
import uuid

import boto3
import structlog

from app.core.config import get_settings
from app.core.exceptions import PersistenceError, ValidationError

logger = structlog.get_logger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Collapse anything outside [A-Za-z0-9._-] to '-' and drop leading dots."""
    cleaned = _UNSAFE_FILENAME.sub("-", filename.strip()).lstrip(".")
    return cleaned or "attachment"


class S3AttachmentStore:
    """Uploads attachments through boto3 off the event loop."""

    def __init__(self, bucket: str | None = None, cdn_domain: str | None = None, client=None):
        settings = get_settings()
        self.bucket = bucket if bucket is not None else settings.attachments_bucket
        self.cdn_domain = cdn_domain if cdn_domain is not None else settings.attachments_cdn_domain
        self.max_bytes = settings.max_attachment_bytes
        self._client = client
        self._region = settings.attachments_region

    def _s3(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    def public_url(self, key: str) -> str:
        if self.cdn_domain:
            return f"https://{self.cdn_domain}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def upload(self, owner_id: str, filename: str, content: bytes, content_type: str) -> str:
        """Upload bytes and return the public URL.

        Raises:
            ValidationError: Empty or oversized file
            PersistenceError: Bucket not configured or the upload failed
        """
        if not content:
            raise ValidationError("attachment", "File is empty")
        if len(content) > self.max_bytes:
            raise ValidationError("attachment", f"File exceeds {self.max_bytes} bytes")
        if not self.bucket:
            raise PersistenceError("attach_file", "attachments bucket not configured")

        key = f"attachments/{owner_id}/{uuid.uuid4().hex}/{safe_filename(filename)}"
        try:
            await asyncio.to_thread(
                self._s3().put_object,
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except Exception as exc:
            logger.warning("attachment_upload_failed", owner_id=owner_id, error=str(exc), error_type=type(exc).__name__)
            raise PersistenceError("attach_file", exc) from exc

        logger.info("attachment_uploaded", owner_id=owner_id, key=key, size=len(content))
        return self.public_url(key)
