"""
Shared fixtures: an in-memory database per test and a recording fake
storage gateway.
"""
import asyncio
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from recy.config import Settings
from recy.errors import StorageError
from recy.infra.db.models import Base
from recy.infra.db.models.user import ProfileType
from recy.infra.db.repositories import UserRepository
from recy.infra.storage.gateway import PreSignedObjectUrl, StorageGateway
from recy.messages import Message


class FakeStorageGateway(StorageGateway):
    """Records every call and returns predictable keys and URLs."""
    
    def __init__(self, fail_on: Optional[set[str]] = None, delays: Optional[dict[str, float]] = None):
        self.fail_on = fail_on or set()
        self.delays = delays or {}
        self.upload_calls: list[dict] = []
        self.read_calls: list[str] = []
        self.cancelled: list[str] = []
        self._counter = 0
    
    async def create_pre_signed_object_url(self, file_name, category, base_path=None, bucket=None):
        self.upload_calls.append({
            "file_name": file_name,
            "category": category,
            "base_path": base_path,
            "bucket": bucket,
        })
        if file_name in self.delays:
            try:
                await asyncio.sleep(self.delays[file_name])
            except asyncio.CancelledError:
                self.cancelled.append(file_name)
                raise
        if file_name in self.fail_on:
            raise StorageError(Message.STORAGE_UNAVAILABLE, file_name)
        
        self._counter += 1
        if base_path:
            key = f"{base_path}/{file_name}"
        else:
            key = f"{category.lower()}/key{self._counter}-{file_name}"
        bucket_name = bucket or "recy-documents"
        return PreSignedObjectUrl(
            file_name=key,
            create_url=f"https://storage.test/object/upload/sign/{bucket_name}/{key}?token=t{self._counter}",
        )
    
    async def create_signed_read_url(self, file_name, bucket=None):
        self.read_calls.append(file_name)
        return f"https://storage.test/object/sign/{file_name}?token=read"
    
    def public_object_url(self, file_name, bucket):
        return f"https://storage.test/object/public/{bucket}/{file_name}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        storage_bucket="recy-documents",
        public_bucket="detrash-public",
        storage_timeout_seconds=1.0,
        api_key=None,
    )


@pytest.fixture
def storage() -> FakeStorageGateway:
    return FakeStorageGateway()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncSession:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


async def make_user(session: AsyncSession, auth_user_id: str, profile_type: ProfileType, email: Optional[str] = None):
    user = await UserRepository(session).create(
        auth_user_id=auth_user_id,
        email=email or f"{auth_user_id}@recy.test",
        profile_type=profile_type.value,
    )
    await session.commit()
    return user


@pytest_asyncio.fixture
async def recycler(session):
    return await make_user(session, "auth|recycler", ProfileType.RECYCLER)


@pytest_asyncio.fixture
async def waste_generator(session):
    return await make_user(session, "auth|generator", ProfileType.WASTE_GENERATOR)


@pytest_asyncio.fixture
async def partner(session):
    return await make_user(session, "auth|partner", ProfileType.PARTNER)
