"""StorageService against an in-process S3 (moto)."""

import os
from pathlib import Path

import boto3
import pytest
from boto3.exceptions import S3UploadFailedError
from moto import mock_aws
from sqlalchemy import select

from mediaboard.db.models import ApiKey, ClientSubmission, ParentType, PrincipalRole
from mediaboard.services.chunk_store import ChunkStore
from mediaboard.services.exceptions import StorageError
from mediaboard.services.storage import StorageService
from mediaboard.services.uploads import UploadService

BUCKET = "client-uploads"
BASE_URL = "http://storage.test/client-uploads"


class ThumbnailRejectingClient:
    """S3 client that refuses thumbnail keys the way boto3 reports upload failures."""

    def __init__(self, client):
        self._client = client

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        if "/thumb_" in key:
            raise S3UploadFailedError(f"Failed to upload {filename} to {bucket}/{key}: AccessDenied")
        return self._client.upload_file(filename, bucket, key, ExtraArgs=ExtraArgs)

    def __getattr__(self, name):
        return getattr(self._client, name)


@pytest.fixture
def s3_client():
    with mock_aws():
        yield boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )


@pytest.fixture
def s3_storage(s3_client) -> StorageService:
    s3_client.create_bucket(Bucket=BUCKET)
    return StorageService(bucket=BUCKET, base_url=BASE_URL, client=s3_client)


def test_upload_head_and_delete(s3_storage: StorageService, s3_client, tmp_path: Path):
    local = tmp_path / "brief.pdf"
    local.write_bytes(b"%PDF-1.7 brief")

    url = s3_storage.upload_file(local, "submissions/1/brief.pdf", "application/pdf")
    assert url == f"{BASE_URL}/submissions/1/brief.pdf"
    assert s3_storage.key_from_url(url) == "submissions/1/brief.pdf"

    stored = s3_client.get_object(Bucket=BUCKET, Key="submissions/1/brief.pdf")
    assert stored["Body"].read() == b"%PDF-1.7 brief"
    assert stored["ContentType"] == "application/pdf"
    assert s3_storage.head_object("submissions/1/brief.pdf") == len(b"%PDF-1.7 brief")

    s3_storage.delete_object("submissions/1/brief.pdf")
    assert s3_storage.head_object("submissions/1/brief.pdf") is None


def test_head_of_missing_object_is_none(s3_storage: StorageService):
    assert s3_storage.head_object("submissions/1/never-uploaded.mp4") is None


def test_upload_into_missing_bucket_is_storage_error(s3_client, tmp_path: Path):
    storage = StorageService(bucket="no-such-bucket", base_url=BASE_URL, client=s3_client)
    local = tmp_path / "clip.mp4"
    local.write_bytes(b"\x00\x00\x00\x18ftyp")

    with pytest.raises(StorageError):
        storage.upload_file(local, "submissions/1/clip.mp4", "video/mp4")


def test_presigned_target_points_into_bucket(s3_storage: StorageService):
    target = s3_storage.generate_upload_url("cards/3/x.png", "image/png", expires_in=60)
    assert "cards/3/x.png" in target["upload_url"]
    assert target["public_url"] == f"{BASE_URL}/cards/3/x.png"
    assert target["expires_in"] == 60


@pytest.mark.asyncio
async def test_thumbnail_upload_failure_does_not_fail_finalize(
    s3_client, db_session, make_auth_headers, thumbnails, chunk_root, chunk_size: int
):
    s3_client.create_bucket(Bucket=BUCKET)
    storage = StorageService(
        bucket=BUCKET, base_url=BASE_URL, client=ThumbnailRejectingClient(s3_client)
    )
    uploads = UploadService(
        chunk_store=ChunkStore(chunk_root),
        storage=storage,
        thumbnails=thumbnails,
        chunk_size=chunk_size,
    )

    await make_auth_headers(PrincipalRole.CLIENT, name="Video Client")
    principal = (
        await db_session.execute(select(ApiKey).where(ApiKey.name == "Video Client"))
    ).scalar_one()
    submission = ClientSubmission(client_key_id=principal.id, title="Teaser")
    db_session.add(submission)
    await db_session.commit()

    data = os.urandom(chunk_size + 100)
    upload = await uploads.init_session(
        db_session, principal, ParentType.SUBMISSION, submission.id, "teaser.mp4", len(data), "video/mp4"
    )

    async def body(piece: bytes):
        yield piece

    await uploads.put_chunk(db_session, principal, upload.id, 0, body(data[:chunk_size]))
    await uploads.put_chunk(db_session, principal, upload.id, 1, body(data[chunk_size:]))

    attachment = await uploads.finalize(db_session, principal, upload.id)
    assert attachment.thumbnail_url is None
    assert attachment.file_size == len(data)
    stored = s3_client.get_object(Bucket=BUCKET, Key=attachment.storage_path)
    assert stored["Body"].read() == data
    assert len(thumbnails.calls) == 1
