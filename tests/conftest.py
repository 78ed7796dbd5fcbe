import asyncio
import os
import tempfile

# Settings are read at import time, so the environment must be ready first
_TMP_DIR = tempfile.mkdtemp(prefix="tracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["AUTH_FAILURE_DELAY_SECONDS"] = "0"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ERROR_LOG_FILE"] = os.path.join(_TMP_DIR, "error.log")

import pytest
from fastapi.testclient import TestClient

from app.database import AsyncSessionLocal, Base, create_schema, engine
from app.main import app as application
from app.utils.security import create_client_key


async def _reset_schema():
    await create_schema()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture(autouse=True)
def fresh_db():
    asyncio.run(_reset_schema())
    yield


@pytest.fixture
def run_db():
    """Run fn(db, *args, **kwargs) in its own session and event loop."""
    def _run(fn, *args, **kwargs):
        async def _go():
            async with AsyncSessionLocal() as db:
                return await fn(db, *args, **kwargs)
        return asyncio.run(_go())
    return _run


@pytest.fixture
def client():
    key = create_client_key("test-suite")
    return TestClient(application, headers={"Authorization": f"Bearer {key}"})


@pytest.fixture
def anonymous_client():
    return TestClient(application)
