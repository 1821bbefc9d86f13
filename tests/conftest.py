import io
import os
import tempfile
from collections.abc import AsyncGenerator

# Settings are read at import time, so the test environment is pinned first.
# Tests run on an in-memory SQLite database unless TEST_DATABASE_URL is set.
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")
os.environ["REDIS_HOST"] = "null"
os.environ["AUTH_REQUIRED"] = "false"
os.environ["API_PREFIX"] = ""
os.environ["LOG_FORMAT"] = "console"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="healthbook-media-")

import pytest
import pytest_asyncio
from fastapi import UploadFile
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers

from app.core.storage import MediaStorage
from app.database import get_db
from app.dependencies import get_cache_manager, get_media_storage
from app.main import app
from app.models import metadata

TEST_DATABASE_URL = os.environ["DATABASE_URL"]

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\nIDATx\x9cc\x00\x01"
    b"\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on freshly created tables."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    else:
        test_engine = create_async_engine(TEST_DATABASE_URL)

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def media_storage(tmp_path) -> MediaStorage:
    """Media storage rooted in a per-test directory."""
    return MediaStorage(root=tmp_path / "uploads", url_prefix="/uploads", max_bytes=1024 * 1024)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    media_storage: MediaStorage,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_storage] = lambda: media_storage
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_doctor_data() -> dict:
    """Multipart form fields for a doctor."""
    return {
        "name": "Dr. Singh",
        "speciality": "Cardiology",
        "description": "Interventional cardiologist with a focus on preventive care.",
        "email": "Singh@Example.com",
        "phone": "+91-9876543210",
        "address": "12 Heart Street",
        "experience": '{"years": 12, "patientsServed": 4000, "specializations": ["Angioplasty"]}',
        "workingHours": (
            '[{"day": "Monday", "startTime": "09:00", "endTime": "17:00", "isAvailable": true}]'
        ),
    }


@pytest.fixture
def sample_blog_data() -> dict:
    """Multipart form fields for a blog post."""
    return {
        "title": "  Five habits for a healthy heart ",
        "shortDescription": "Small daily changes that add up.",
        "content": "<p>Walk every day, sleep well and keep an eye on salt.</p>",
        "author": "Dr. Singh",
    }


@pytest.fixture
def png_file() -> tuple[str, bytes, str]:
    """A tiny PNG suitable for the ``imageUrl`` multipart field."""
    return ("photo.png", PNG_BYTES, "image/png")


@pytest.fixture
def make_upload():
    """Build an ``UploadFile`` the way FastAPI hands it to services."""

    def _make(
        filename: str = "photo.png",
        content: bytes = PNG_BYTES,
        content_type: str = "image/png",
    ) -> UploadFile:
        return UploadFile(
            file=io.BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


@pytest_asyncio.fixture
async def doctor(client: AsyncClient, sample_doctor_data: dict) -> dict:
    """A doctor created through the API."""
    response = await client.post("/doctors", data=sample_doctor_data)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def appointment_data(doctor: dict) -> dict:
    """Booking request for the ``doctor`` fixture."""
    return {
        "doctorId": doctor["_id"],
        "patientName": "Asha Rao",
        "patientEmail": "Asha.Rao@Example.com",
        "date": "2025-06-01",
        "time": "09:00",
    }
