"""
Shared test fixtures
In-memory permission collaborators and an aiosqlite-backed application
"""

from typing import Dict, Iterable, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from forum_api.core.config import settings
from forum_api.core.database import Base, get_db
from forum_api.core.rbac import OverrideEffect, ResourceType, RoleType
from forum_api.core.security import create_access_token
from forum_api.main import app
from forum_api.models import Category, PermissionOverride, Post, Role, RolePermission, Thread, UserRole


# ==================== In-memory collaborators ====================

class FakeRoleStore:
    """Global grants and overrides kept in dictionaries"""

    def __init__(self):
        self.grants: Dict[Tuple[int, str], bool] = {}
        self.overrides: Dict[Tuple[int, ResourceType, int, str], OverrideEffect] = {}
        self.fail = False

    def grant(self, role_id: int, permission: str, value: bool = True) -> "FakeRoleStore":
        self.grants[(role_id, permission)] = value
        return self

    def override(self, role_id: int, resource_id: int, permission: str, effect: OverrideEffect,
                 resource_type: ResourceType = ResourceType.CATEGORY) -> "FakeRoleStore":
        self.overrides[(role_id, resource_type, resource_id, permission)] = effect
        return self

    async def get_global_grant(self, role_id: int, permission: str) -> bool:
        if self.fail:
            raise ConnectionError("role store unavailable")
        return self.grants.get((role_id, permission), False)

    async def get_resource_override(self, role_id, resource_type, resource_id, permission) -> Optional[OverrideEffect]:
        if self.fail:
            raise ConnectionError("role store unavailable")
        return self.overrides.get((role_id, resource_type, resource_id, permission))


class FakeLookup:
    """Known categories plus thread -> category and post -> thread maps"""

    def __init__(self, thread_categories: Optional[Dict[int, int]] = None,
                 post_threads: Optional[Dict[int, int]] = None,
                 categories: Iterable[int] = ()):
        self.categories = set(categories)
        self.thread_categories = dict(thread_categories or {})
        self.post_threads = dict(post_threads or {})
        self.fail = False
        self.calls = []

    async def category_exists(self, category_id: int) -> bool:
        self.calls.append(("category", category_id))
        if self.fail:
            raise TimeoutError("lookup timed out")
        return category_id in self.categories

    async def get_thread_category_id(self, thread_id: int) -> Optional[int]:
        self.calls.append(("thread", thread_id))
        if self.fail:
            raise TimeoutError("lookup timed out")
        return self.thread_categories.get(thread_id)

    async def get_post_thread_id(self, post_id: int) -> Optional[int]:
        self.calls.append(("post", post_id))
        if self.fail:
            raise TimeoutError("lookup timed out")
        return self.post_threads.get(post_id)


@pytest.fixture
def role_store():
    return FakeRoleStore()


@pytest.fixture
def lookup():
    return FakeLookup(
        thread_categories={10: 3, 11: 4, 50: 5},
        post_threads={100: 10, 500: 50, 999: 404},
        categories=range(1, 6),
    )


# ==================== Database ====================

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """
    Forum fixture data

    Roles: admin, moderator, member (default), guest.
    Categories 1..5; category 2 is hidden from members, category 3 lets
    members post, category 5 forbids moderation.
    """
    async with session_factory() as session:
        admin = Role(id=1, name="Administrator", role_type=RoleType.ADMIN.value, is_system_role=True)
        moderator = Role(id=2, name="Moderator", role_type=RoleType.MODERATOR.value, is_system_role=True)
        member = Role(id=3, name="Member", role_type=RoleType.DEFAULT.value, is_system_role=True)
        guest = Role(id=4, name="Guest", role_type=RoleType.GUEST.value, is_system_role=True)
        session.add_all([admin, moderator, member, guest])
        await session.flush()

        for permission in ("canView", "canPost", "canReply", "canModerate", "canAccessAdminTools"):
            session.add(RolePermission(role_id=moderator.id, permission=permission))
        for permission in ("canView", "canReply"):
            session.add(RolePermission(role_id=member.id, permission=permission))
        session.add(RolePermission(role_id=guest.id, permission="canView"))

        for category_id, slug in enumerate(("general", "staff", "introductions", "off-topic", "appeals"), start=1):
            session.add(Category(id=category_id, name=slug.title(), slug=slug, sort_order=category_id))
        await session.flush()

        session.add_all([
            PermissionOverride(role_id=member.id, resource_type="category", resource_id=2,
                               permission="canView", effect="deny"),
            PermissionOverride(role_id=guest.id, resource_type="category", resource_id=2,
                               permission="canView", effect="deny"),
            PermissionOverride(role_id=member.id, resource_type="category", resource_id=3,
                               permission="canPost", effect="allow"),
            PermissionOverride(role_id=moderator.id, resource_type="category", resource_id=5,
                               permission="canModerate", effect="deny"),
        ])

        session.add_all([
            Thread(id=10, category_id=3, author_id="alice", title="Hello"),
            Thread(id=20, category_id=2, author_id="mod", title="Staff only"),
            Thread(id=30, category_id=4, author_id="alice", title="Locked", is_locked=True),
            Thread(id=50, category_id=5, author_id="bob", title="Appeal"),
        ])
        await session.flush()
        session.add_all([
            Post(id=100, thread_id=10, author_id="alice", content="Hi all"),
            Post(id=200, thread_id=20, author_id="mod", content="Internal"),
            Post(id=500, thread_id=50, author_id="bob", content="Please"),
        ])

        session.add_all([
            UserRole(user_id="root", role_id=admin.id),
            UserRole(user_id="mod", role_id=moderator.id),
            UserRole(user_id="alice", role_id=member.id),
            UserRole(user_id="bob", role_id=member.id),
        ])
        await session.commit()

    return {"admin": 1, "moderator": 2, "member": 3, "guest": 4}


# ==================== HTTP ====================

@pytest_asyncio.fixture
async def client(session_factory, seeded):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers


@pytest.fixture
def guest_access(monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_GUEST_ACCESS", True)
