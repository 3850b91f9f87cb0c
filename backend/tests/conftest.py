"""Shared test fixtures with in-memory SQLite."""
import json
import uuid

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles

from contentflow.models.base import Base
from contentflow.models.content import ContentItem, ContentStatus, ContentType
from contentflow.models.profile import PlanName, Profile
from contentflow.main import app
from contentflow.dependencies import get_db
from contentflow.services.auth_service import create_access_token
from contentflow.services.permission_service import get_permissions
from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.manager import ContentLifecycle

# --- SQLite compatibility: compile PostgreSQL types for SQLite ---

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "VARCHAR(36)"


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(autouse=True)
async def setup_db():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db():
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with test_session_factory() as session:
        yield session


async def _create_test_profile(
    db: AsyncSession, plan: PlanName = PlanName.STANDARD, email: str | None = None,
) -> tuple[Profile, str]:
    """Create a test profile and return (profile, access_token)."""
    profile = Profile(
        id=uuid.uuid4(),
        email=email or f"{plan.value}_{uuid.uuid4().hex[:8]}@test.com",
        full_name=f"Test {plan.value.title()}",
        plan=plan,
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    token = create_access_token(str(profile.id), plan.value)
    return profile, token


async def _create_content(
    db: AsyncSession,
    owner: Profile,
    content_type: ContentType = ContentType.SOCIAL_POST,
    status: ContentStatus = ContentStatus.PENDING,
    metadata: dict | None = None,
    module_slug: str = "social-factory",
) -> ContentItem:
    item = ContentItem(
        user_id=owner.id,
        module_slug=module_slug,
        title=f"Test Content {uuid.uuid4().hex[:6]}",
        type=content_type,
        content="Launching our spring collection today",
        status=status,
        metadata_=metadata or {},
        tags=[],
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


@pytest.fixture
async def standard_auth(db_session: AsyncSession) -> tuple[Profile, dict]:
    """Return (standard_profile, auth_headers). Standard plans may schedule."""
    profile, token = await _create_test_profile(db_session, PlanName.STANDARD)
    return profile, {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def free_auth(db_session: AsyncSession) -> tuple[Profile, dict]:
    profile, token = await _create_test_profile(db_session, PlanName.FREE)
    return profile, {"Authorization": f"Bearer {token}"}


# --- Lifecycle fixtures: the real API behind ASGITransport ---

class FaultInjectingTransport(httpx.AsyncBaseTransport):
    """Delegate to the app, but answer matching requests with an error."""

    def __init__(self, inner: httpx.AsyncBaseTransport):
        self.inner = inner
        self.faults: list[tuple[str, str, int]] = []
        self.calls: list[tuple[str, str]] = []

    def fail(self, method: str, path_suffix: str, status_code: int = 500):
        self.faults.append((method, path_suffix, status_code))

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        for method, suffix, status_code in self.faults:
            if request.method == method and request.url.path.endswith(suffix):
                return httpx.Response(status_code, json={"detail": "Injected failure"})
        return await self.inner.handle_async_request(request)


class WebhookRecorder:
    """httpx.MockTransport handler capturing outbound webhook calls."""

    def __init__(self, status_code: int = 200, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code)

    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _session_context(profile: Profile, token: str) -> SessionContext:
    return SessionContext(
        user_id=profile.id,
        access_token=token,
        email=profile.email,
        full_name=profile.full_name,
        plan=profile.plan,
        scheduling=get_permissions(profile.plan).scheduling,
    )


@pytest.fixture
async def api_transport():
    return FaultInjectingTransport(ASGITransport(app=app))


@pytest.fixture
def webhook():
    return WebhookRecorder()


@pytest.fixture
async def lifecycle(api_transport, webhook):
    api_client = AsyncClient(transport=api_transport, base_url="http://test/api/v1")
    hook_client = AsyncClient(transport=httpx.MockTransport(webhook))
    async with ContentLifecycle.over_client(api_client, hook_client) as lc:
        yield lc
    await api_client.aclose()
    await hook_client.aclose()


@pytest.fixture
async def standard_ctx(db_session: AsyncSession) -> SessionContext:
    profile, token = await _create_test_profile(db_session, PlanName.STANDARD)
    return _session_context(profile, token)


@pytest.fixture
async def free_ctx(db_session: AsyncSession) -> SessionContext:
    profile, token = await _create_test_profile(db_session, PlanName.FREE)
    return _session_context(profile, token)


async def _owner(db: AsyncSession, ctx: SessionContext) -> Profile:
    return await db.get(Profile, ctx.user_id)
