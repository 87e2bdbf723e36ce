"""Service providers injected into the routes (overridden in tests)."""

from functools import lru_cache

from mediaboard.config import get_settings
from mediaboard.services.direct_upload import DirectUploadService
from mediaboard.services.storage import StorageService, storage_service
from mediaboard.services.uploads import UploadService, build_upload_service

settings = get_settings()


def get_blob_store() -> StorageService:
    return storage_service


@lru_cache
def get_upload_service() -> UploadService:
    return build_upload_service(storage_service)


@lru_cache
def get_direct_upload_service() -> DirectUploadService:
    return DirectUploadService(storage_service, verify=settings.verify_direct_uploads)
