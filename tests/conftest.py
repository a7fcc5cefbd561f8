"""Shared fixtures.

The app reads its settings at import time, so the temporary database and
storage root are configured through env vars before anything from ``cdmi``
is imported.
"""
import io
import os
import shutil
import tempfile
import zipfile

_TMP_ROOT = tempfile.mkdtemp(prefix="cdmi-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_ROOT}/test.db"
os.environ["FILE_STORAGE_PATH"] = os.path.join(_TMP_ROOT, "storage")
os.environ["DELETE_OVERRIDE_SECRET"] = "operator-override"
os.environ["DELETE_REQUIRES_CREDENTIAL"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient

from cdmi.database import async_session, engine
from cdmi.main import app
from cdmi.models import Base
from cdmi.services.file_storage import file_storage


@pytest.fixture
async def fresh_state():
    """Empty tables and an empty storage root for every test."""
    shutil.rmtree(file_storage.base_path, ignore_errors=True)
    file_storage.base_path.mkdir(parents=True, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(fresh_state):
    async with async_session() as session:
        yield session


@pytest.fixture
async def async_client(fresh_state):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def storage(fresh_state):
    return file_storage


@pytest.fixture
def zip_members():
    """Entry name -> content of a ZIP held in memory."""
    def read(data: bytes) -> dict[str, bytes]:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return {name: zf.read(name) for name in zf.namelist()}
    return read


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TMP_ROOT, ignore_errors=True)
