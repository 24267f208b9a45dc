"""Shared pytest fixtures for all test suites."""

import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from docvault.core.config import PlanTable
from docvault.db.models import Base
from docvault.domains.documents.services import DocumentLifecycleService
from docvault.domains.identity.entities import Principal
from docvault.domains.quota.enforcer import QuotaEnforcer
from docvault.domains.storage.blob_store import BlobStore
from docvault.domains.storage.context import StorageContext
from tests.factories import sqlite_url

TEST_PLANS = {"free": 50, "tiny": 1}


@pytest.fixture
def plans() -> PlanTable:
    return PlanTable(TEST_PLANS, "free")


@pytest.fixture
def blob_store(tmp_path) -> BlobStore:
    return BlobStore(tmp_path / "uploads", "/uploads")


@pytest.fixture
def storage(blob_store: BlobStore, plans: PlanTable) -> StorageContext:
    return StorageContext(blob_store=blob_store, quota_enforcer=QuotaEnforcer(plans))


@pytest.fixture
def principal() -> Principal:
    return Principal(id=uuid.uuid4(), username="alice", plan="free")


@pytest.fixture
def tiny_principal() -> Principal:
    return Principal(id=uuid.uuid4(), username="bob", plan="tiny")


@pytest.fixture
def stranger() -> Principal:
    return Principal(id=uuid.uuid4(), username="mallory", plan="free")


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Каталог в файле SQLite внутри tmp_path"""
    engine = create_async_engine(sqlite_url(tmp_path / "catalog.db"), poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def service(session: AsyncSession, storage: StorageContext) -> DocumentLifecycleService:
    return DocumentLifecycleService(session, storage)
