"""Shared fixtures: a temporary SQLite store, seeded catalog, and actors."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from rbac_core.config import Settings
from rbac_core.database import create_engine_from_settings
from rbac_core.models.orm import ActorORM, Base, PermissionORM, RoleORM
from rbac_core.services.authorization_service import AuthorizationService
from rbac_core.services.permission_sync_service import PermissionSyncService
from rbac_core.services.rbac_service import RbacService


@dataclass(frozen=True)
class Catalog:
    """IDs of the seeded roles and permissions, by name."""

    roles: dict[str, int]
    permissions: dict[str, int]


class SlowSession:
    """Session stand-in whose queries never finish in time."""

    async def execute(self, *args, **kwargs):
        await asyncio.sleep(5)

    async def rollback(self) -> None:
        pass

    def add(self, instance) -> None:
        pass


class UnreachableSession:
    """Session stand-in whose store refuses connections."""

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    async def rollback(self) -> None:
        pass

    def add(self, instance) -> None:
        pass


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary SQLite database."""
    return Settings(_env_file=None, database_url=f"sqlite+aiosqlite:///{tmp_path / 'rbac.db'}")


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    """Engine with the schema created from the ORM metadata."""
    engine = create_engine_from_settings(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(session: AsyncSession, settings: Settings) -> Catalog:
    """Seed the permission catalog and system roles."""
    await PermissionSyncService(session, settings).sync_catalog()
    roles = (await session.execute(select(RoleORM))).scalars().all()
    permissions = (await session.execute(select(PermissionORM))).scalars().all()
    return Catalog(
        roles={r.name: r.id for r in roles},
        permissions={p.name: p.id for p in permissions},
    )


@pytest.fixture
def create_actor(session: AsyncSession) -> Callable[..., Awaitable[int]]:
    """Factory inserting a directory actor and returning its ID."""

    async def _create(email: str, legacy_role: str | None = None, is_active: bool = True) -> int:
        actor = ActorORM(
            email=email,
            name=email.split("@")[0],
            legacy_role=legacy_role,
            is_active=is_active,
        )
        session.add(actor)
        await session.commit()
        return actor.id

    return _create


@pytest.fixture
def authz(session: AsyncSession, settings: Settings) -> AuthorizationService:
    return AuthorizationService(session, settings)


@pytest.fixture
def rbac(session: AsyncSession, settings: Settings) -> RbacService:
    return RbacService(session, settings)


@pytest.fixture
def slow_session() -> SlowSession:
    return SlowSession()


@pytest.fixture
def unreachable_session() -> UnreachableSession:
    return UnreachableSession()
