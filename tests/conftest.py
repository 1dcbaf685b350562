"""테스트 인프라 — 임시 DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — Temporary database, session, and httpx client fixtures.
Defaults to an in-memory SQLite database (aiosqlite) shared through a
StaticPool; set TEST_DATABASE_URL to run against PostgreSQL instead.
Schema is created for every test and dropped afterwards.
"""

import os
from collections.abc import AsyncGenerator
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.utils.jwt import create_access_token
from app.utils.password import hash_password

# ---------------------------------------------------------------------------
# 테스트 DB 설정
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # 인메모리 DB를 모든 연결이 공유하도록 StaticPool 사용
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 스키마를 생성하고 테스트 후 삭제합니다."""
    eng = create_async_engine(TEST_DATABASE_URL, echo=False, **_engine_kwargs(TEST_DATABASE_URL))
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def org(db: AsyncSession):
    """테스트 스튜디오를 생성합니다."""
    from app.models.organization import Organization
    o = Organization(name="Test Studio", code="TEST01", timezone="America/New_York", email="studio@test.com")
    db.add(o)
    await db.flush()
    await db.refresh(o)
    return o


async def _make_user(db: AsyncSession, org, role: str, email: str, password: str, full_name: str):
    from app.models.user import User
    user = User(
        organization_id=org.id,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession, org):
    """관리자 사용자를 생성합니다."""
    return await _make_user(db, org, "admin", "admin@test.com", "admin123!", "Test Admin")


@pytest_asyncio.fixture
async def staff_user(db: AsyncSession, org):
    """스태프 사용자를 생성합니다."""
    return await _make_user(db, org, "staff", "staff@test.com", "staff123!", "Test Staff")


@pytest_asyncio.fixture
async def teacher_user(db: AsyncSession, org):
    """강사 로그인을 생성합니다."""
    return await _make_user(db, org, "teacher", "teacher@test.com", "teacher123!", "Tina Teacher")


@pytest_asyncio.fixture
async def parent_user(db: AsyncSession, org):
    """보호자 로그인을 생성합니다."""
    return await _make_user(db, org, "parent", "parent@test.com", "parent123!", "Pat Parent")


@pytest_asyncio.fixture
async def teacher(db: AsyncSession, org, teacher_user):
    """강사 로그인과 연결된 강사 레코드."""
    from app.models.people import Teacher
    t = Teacher(
        organization_id=org.id,
        user_id=teacher_user.id,
        first_name="Tina",
        last_name="Teacher",
        email="teacher@test.com",
    )
    db.add(t)
    await db.flush()
    await db.refresh(t)
    return t


@pytest_asyncio.fixture
async def guardian(db: AsyncSession, org, parent_user):
    """보호자 로그인과 연결된 보호자 레코드."""
    from app.models.people import Guardian
    g = Guardian(
        organization_id=org.id,
        user_id=parent_user.id,
        first_name="Pat",
        last_name="Parent",
        email="parent@test.com",
    )
    db.add(g)
    await db.flush()
    await db.refresh(g)
    return g


@pytest_asyncio.fixture
async def student(db: AsyncSession, org, guardian):
    """보호자에 연결된 학생 (만 8세)."""
    from app.models.people import Student, StudentGuardian
    today = date.today()
    s = Student(
        organization_id=org.id,
        first_name="Sam",
        last_name="Parent",
        date_of_birth=date(today.year - 8, 1, 1),
    )
    db.add(s)
    await db.flush()
    db.add(StudentGuardian(student_id=s.id, guardian_id=guardian.id, relationship_type="mother", is_primary=True))
    await db.flush()
    await db.refresh(s)
    return s


def make_token(user) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(user.id),
        "org": str(user.organization_id),
        "role": user.role,
    })


@pytest.fixture
def admin_token(admin_user) -> str:
    return make_token(admin_user)


@pytest.fixture
def staff_token(staff_user) -> str:
    return make_token(staff_user)


@pytest.fixture
def teacher_token(teacher_user, teacher) -> str:
    return make_token(teacher_user)


@pytest.fixture
def parent_token(parent_user, guardian) -> str:
    return make_token(parent_user)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
