"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("API_KEY_HASH_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-admin-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from pathlib import Path
from typing import AsyncGenerator, Optional
from urllib.parse import urlsplit

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mediaboard.api.dependencies import (
    get_blob_store,
    get_direct_upload_service,
    get_upload_service,
)
from mediaboard.auth.security import create_api_key
from mediaboard.db.models import PrincipalRole
from mediaboard.db.session import Base, get_db
from mediaboard.main import app
from mediaboard.services.chunk_store import ChunkStore
from mediaboard.services.direct_upload import DirectUploadService
from mediaboard.services.exceptions import StorageError
from mediaboard.services.storage import StorageService
from mediaboard.services.thumbnails import ThumbnailGenerator
from mediaboard.services.uploads import UploadService

STORAGE_BASE_URL = "http://storage.test/client-uploads"
ADMIN_SECRET = os.environ["SECRET_KEY"]


class InMemoryBlobStore(StorageService):
    """Object storage double keeping objects in a dict."""

    def __init__(self):
        super().__init__(bucket="client-uploads", base_url=STORAGE_BASE_URL)
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.fail_uploads = False

    def upload_file(self, local_path: Path, storage_path: str, content_type: str) -> str:
        if self.fail_uploads:
            raise StorageError(f"Failed to store {storage_path}")
        self.objects[storage_path] = Path(local_path).read_bytes()
        self.content_types[storage_path] = content_type
        return self.public_url(storage_path)

    def generate_upload_url(
        self, storage_path: str, content_type: str, expires_in: Optional[int] = None
    ) -> dict:
        return {
            "upload_url": f"http://storage.test/presigned/{storage_path}?X-Amz-Signature=test",
            "public_url": self.public_url(storage_path),
            "storage_path": storage_path,
            "expires_in": expires_in or 3600,
        }

    def put_presigned(self, upload_url: str, data: bytes):
        """What a client PUT to a presigned URL does."""
        key = urlsplit(upload_url).path[len("/presigned/"):]
        self.objects[key] = data

    def read_url(self, url: str) -> bytes:
        return self.objects[self.key_from_url(url)]

    def head_object(self, storage_path: str) -> Optional[int]:
        data = self.objects.get(storage_path)
        return None if data is None else len(data)

    def delete_object(self, storage_path: str):
        self.objects.pop(storage_path, None)

    def health_check(self) -> bool:
        return True


class StubThumbnailGenerator(ThumbnailGenerator):
    """Writes a fake JPEG instead of running ffmpeg."""

    def __init__(self, succeed: bool = True):
        super().__init__()
        self.succeed = succeed
        self.calls: list[Path] = []

    async def generate(self, video_path: Path, thumbnail_path: Path) -> bool:
        self.calls.append(video_path)
        if not self.succeed:
            return False
        thumbnail_path.write_bytes(b"\xff\xd8\xff\xe0thumbnail")
        return True


@pytest_asyncio.fixture
async def test_engine(tmp_path: Path):
    """Create a fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def thumbnails() -> StubThumbnailGenerator:
    return StubThumbnailGenerator()


@pytest.fixture
def chunk_size() -> int:
    """Small default so multi-chunk files stay tiny; parametrize to override."""
    return 1024


@pytest.fixture
def chunk_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads" / "chunks"


@pytest.fixture
def upload_service(chunk_root, blob_store, thumbnails, chunk_size) -> UploadService:
    return UploadService(
        chunk_store=ChunkStore(chunk_root),
        storage=blob_store,
        thumbnails=thumbnails,
        chunk_size=chunk_size,
        max_upload_size=64 * 1024 * 1024,
    )


@pytest.fixture
def direct_upload_service(blob_store) -> DirectUploadService:
    return DirectUploadService(blob_store, verify=True)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    upload_service: UploadService,
    direct_upload_service: DirectUploadService,
    blob_store: InMemoryBlobStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_upload_service] = lambda: upload_service
    app.dependency_overrides[get_direct_upload_service] = lambda: direct_upload_service
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_auth_headers(db_session: AsyncSession):
    """Factory creating an API key and returning its auth headers."""

    async def _make(role: PrincipalRole = PrincipalRole.CLIENT, name: str = "Test Key") -> dict:
        _, full_key = await create_api_key(db_session, name=name, owner="test", role=role)
        await db_session.commit()
        return {"Authorization": f"Bearer {full_key}"}

    return _make


@pytest_asyncio.fixture
async def admin_headers(make_auth_headers) -> dict:
    return await make_auth_headers(PrincipalRole.ADMIN, name="Admin Key")


@pytest_asyncio.fixture
async def auth_headers(make_auth_headers) -> dict:
    """Get auth headers with a client API key."""
    return await make_auth_headers(PrincipalRole.CLIENT, name="Client Key")


@pytest_asyncio.fixture
async def other_auth_headers(make_auth_headers) -> dict:
    return await make_auth_headers(PrincipalRole.CLIENT, name="Other Client Key")


@pytest_asyncio.fixture
async def submission_id(client: AsyncClient, auth_headers: dict) -> int:
    """A submission owned by the ``auth_headers`` client."""
    response = await client.post(
        "/v1/submissions",
        headers=auth_headers,
        json={"title": "Spring campaign edit", "urgency": "urgent"},
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def master_headers() -> dict:
    """Headers for the secret-key protected key management routes."""
    return {"X-Admin-Key": ADMIN_SECRET}
