"""Object storage service for finished uploads and thumbnails."""

import logging
import re
import time
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit
from uuid import uuid4

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from mediaboard.config import get_settings
from mediaboard.services.exceptions import StorageError

settings = get_settings()
logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_file_name(file_name: str) -> str:
    """Replace everything but letters, digits, dot and dash with underscores."""
    safe = _UNSAFE_CHARS.sub("_", Path(file_name).name)
    return safe or "file"


class StorageService:
    """Service for managing object storage (MinIO/S3).

    All methods are blocking; async callers run them in a worker thread.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        base_url: Optional[str] = None,
        client=None,
    ):
        self._client = client
        self._bucket = bucket or settings.minio_bucket
        self._base_url = (base_url or settings.storage_base_url).rstrip("/")

    @property
    def client(self):
        """Lazy initialization of S3 client."""
        if self._client is None:
            endpoint_url = f"{'https' if settings.minio_use_ssl else 'http'}://{settings.minio_endpoint}"
            self._client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=settings.minio_access_key,
                aws_secret_access_key=settings.minio_secret_key,
                config=Config(signature_version="s3v4"),
            )
            self._ensure_bucket()
        return self._client

    def _ensure_bucket(self):
        """Create bucket if it doesn't exist."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            self._client.create_bucket(Bucket=self._bucket)

    def object_path(self, parent_type: str, parent_id: int, file_name: str) -> str:
        """
        Build a collision-resistant key namespaced by the owning entity.

        Example: ``submissions/12/1718000000000_3f2a9c1e_final_cut.mp4``
        """
        timestamp = int(time.time() * 1000)
        parent_type = getattr(parent_type, "value", parent_type)
        return f"{parent_type}s/{parent_id}/{timestamp}_{uuid4().hex[:8]}_{sanitize_file_name(file_name)}"

    def thumbnail_path(self, object_path: str) -> str:
        """Key of the thumbnail stored next to ``object_path``."""
        directory, _, name = object_path.rpartition("/")
        stem = name.rsplit(".", 1)[0]
        return f"{directory}/thumb_{stem}.jpg"

    def public_url(self, storage_path: str) -> str:
        return f"{self._base_url}/{storage_path}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Return the object key when ``url`` points into this bucket."""
        base = urlsplit(self._base_url)
        target = urlsplit(url)
        if (target.scheme, target.netloc) != (base.scheme, base.netloc):
            return None
        prefix = base.path.rstrip("/") + "/"
        if not target.path.startswith(prefix):
            return None
        key = unquote(target.path[len(prefix):])
        return key or None

    def upload_file(self, local_path: Path, storage_path: str, content_type: str) -> str:
        """
        Upload a local file (multipart for large files).
        Returns the public URL.
        """
        try:
            self.client.upload_file(
                str(local_path),
                self._bucket,
                storage_path,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            logger.error(f"Upload of {storage_path} failed: {e}")
            raise StorageError(f"Failed to store {storage_path}") from e

        return self.public_url(storage_path)

    def generate_upload_url(
        self, storage_path: str, content_type: str, expires_in: Optional[int] = None
    ) -> dict:
        """
        Generate a presigned URL for uploading a file directly to storage.

        Returns:
            dict with 'upload_url', 'public_url', 'storage_path', 'expires_in'
        """
        expires_in = expires_in or settings.presigned_url_expires_in
        try:
            url = self.client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": storage_path,
                    "ContentType": content_type,
                },
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Presigning {storage_path} failed: {e}")
            raise StorageError("Failed to issue upload URL") from e

        return {
            "upload_url": url,
            "public_url": self.public_url(storage_path),
            "storage_path": storage_path,
            "expires_in": expires_in,
        }

    def head_object(self, storage_path: str) -> Optional[int]:
        """Size in bytes of a stored object, or None when it does not exist."""
        try:
            response = self.client.head_object(Bucket=self._bucket, Key=storage_path)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return None
            logger.error(f"HEAD {storage_path} failed: {e}")
            raise StorageError(f"Failed to inspect {storage_path}") from e
        except BotoCoreError as e:
            logger.error(f"HEAD {storage_path} failed: {e}")
            raise StorageError(f"Failed to inspect {storage_path}") from e
        return response["ContentLength"]

    def delete_object(self, storage_path: str):
        """Delete a stored object."""
        try:
            self.client.delete_object(Bucket=self._bucket, Key=storage_path)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Delete of {storage_path} failed: {e}")
            raise StorageError(f"Failed to delete {storage_path}") from e

    def health_check(self) -> bool:
        """Check if storage is accessible."""
        try:
            self.client.head_bucket(Bucket=self._bucket)
            return True
        except Exception:
            return False


# Singleton instance
storage_service = StorageService()
