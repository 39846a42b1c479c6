# SPDX-License-Identifier: MIT
"""Pytest fixtures for API tests."""

import io
import tarfile
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from repub_api import APIConfig, create_app
from repub_api.db import get_session
from repub_api.db.models import Base
from repub_api.db.repository import SQLAlchemyPackageRepository
from repub_api.services import PendingUploadStore, PublishWorkflow
from repub_api.storage import LocalStorage

READ_TOKEN = "read-token-bob"
WRITE_TOKEN_ALICE = "write-token-alice"
WRITE_TOKEN_MALLORY = "write-token-mallory"


def build_archive(files: dict[str, str]) -> bytes:
    """Create a .tar.gz package archive with the given text files."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def package_archive(
    name: str = "pkgA",
    version: str = "1.0.0",
    readme: str | None = "# Hello",
    extra_pubspec: str = "",
) -> bytes:
    """Create a conventional ``{name}-{version}/`` package archive."""
    root = f"{name}-{version}"
    files = {f"{root}/pubspec.yaml": f"name: {name}\nversion: {version}\n{extra_pubspec}"}
    if readme is not None:
        files[f"{root}/README.md"] = readme
    files[f"{root}/lib/{name}.dart"] = "void main() {}\n"
    return build_archive(files)


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Factory for package archives."""
    return package_archive


@pytest.fixture
def make_tarball() -> Callable[[dict[str, str]], bytes]:
    """Factory for archives with arbitrary file layouts."""
    return build_archive


@pytest.fixture
def test_config(tmp_path: Path) -> APIConfig:
    """Create test configuration with in-memory SQLite and temp storage."""
    config = APIConfig()
    config.database.url = "sqlite+aiosqlite:///:memory:"
    config.database.echo = False
    config.storage.backend = "local"
    config.storage.local_path = str(tmp_path / "storage")
    config.auth.read_tokens = {"bob": READ_TOKEN}
    config.auth.write_tokens = {"alice": WRITE_TOKEN_ALICE, "mallory": WRITE_TOKEN_MALLORY}
    return config


@pytest_asyncio.fixture
async def test_engine(test_config: APIConfig):
    """Create test database engine."""
    engine = create_async_engine(
        test_config.database.url,
        echo=test_config.database.echo,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def repository(test_session: AsyncSession) -> SQLAlchemyPackageRepository:
    """Repository bound to the test session."""
    return SQLAlchemyPackageRepository(test_session)


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    """Local blob storage in a temp directory."""
    return LocalStorage(tmp_path / "blobs")


@pytest.fixture
def pending() -> PendingUploadStore:
    return PendingUploadStore()


@pytest.fixture
def workflow(repository, storage, pending) -> PublishWorkflow:
    """Publish workflow over the test repository and storage."""
    return PublishWorkflow(repository, storage, pending, "http://test")


@pytest.fixture
def publish_archive(workflow: PublishWorkflow):
    """Stage and finalize an archive through the workflow, skipping HTTP."""

    async def _publish(archive: bytes, uploader: str = "alice"):
        url = workflow.stage_upload(archive, uploader)
        upload_id = parse_qs(urlparse(url).query)["upload_id"][0]
        return await workflow.finalize(upload_id)

    return _publish


@pytest_asyncio.fixture
async def app(test_config: APIConfig, test_engine):
    """Create test FastAPI application."""
    app = create_app(test_config)

    # Override database session dependency
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {WRITE_TOKEN_ALICE}"}


@pytest.fixture
def mallory_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {WRITE_TOKEN_MALLORY}"}


@pytest.fixture
def read_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {READ_TOKEN}"}


@pytest_asyncio.fixture
async def publish(client: AsyncClient, alice_headers: dict[str, str]):
    """Run the full three-step publish handshake over HTTP.

    Returns the finalize response.
    """

    async def _publish(archive: bytes, headers: dict[str, str] | None = None):
        headers = headers or alice_headers
        target = await client.get("/api/packages/versions/new", headers=headers)
        assert target.status_code == 200

        upload = await client.post(
            target.json()["url"],
            files={"file": ("package.tar.gz", archive, "application/gzip")},
            headers=headers,
        )
        assert upload.status_code == 204, upload.text
        return await client.get(upload.headers["location"], headers=headers)

    return _publish
