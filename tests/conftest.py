# tests/conftest.py

import os
import sys
import asyncio
import tempfile
from typing import AsyncGenerator, Callable, Awaitable
from contextlib import asynccontextmanager

# --- 테스트 환경 변수 ---
# app.core.config의 settings는 임포트 시점에 생성되므로, 앱을 임포트하기 전에 설정해야 합니다.
_TEST_TMP_DIR = tempfile.mkdtemp(prefix="pms-tests-")
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_TEST_TMP_DIR, 'app.db')}")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TEST_TMP_DIR, "uploads"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

# app.main을 임포트하여 FastAPI 앱 인스턴스에 접근합니다.
from app.main import app as main_app  # noqa: E402
from app.core import dependencies as deps  # noqa: E402
from app.core.database import SCHEMA, get_session  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402

# --- 모든 모델 임포트 ---
#  SQLModel.metadata.create_all()이 모든 테이블을 인식하려면 모든 모델 클래스가 한 번 이상 임포트되어야 합니다.
import app.domains.models  # noqa: F401, E402
from app.domains.usr import models as usr_models  # noqa: E402


# --- 경로 설정 (기존 유지) ---
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


# --- 테스트용 데이터베이스 설정 ---
# PostgreSQL 대신 파일 기반 SQLite(aiosqlite)를 사용합니다.
# SQLite에는 스키마가 없으므로 usr/pms/cr 스키마를 기본 스키마로 치환합니다.
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(_TEST_TMP_DIR, 'test_pms.db')}"
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,             # 테스트 시 SQL 쿼리 출력하지 않음
    future=True,
    poolclass=NullPool,     # 각 연결이 독립적으로 사용되고 바로 닫히도록 함
    execution_options={"schema_translate_map": {schema_name: None for schema_name in SCHEMA}},
)

# 테스트용 세션 팩토리 생성 (AsyncSession)
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# --- 데이터베이스 픽스처 ---
async def _reset_tables() -> None:
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)


async def _drop_tables() -> None:
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """
    테스트 세션 시작 시 모든 테이블을 삭제하고 재생성합니다.
    테스트 종료 시 다시 테이블을 삭제합니다.
    NullPool을 사용하므로 테스트 함수마다 다른 이벤트 루프에서도 같은 엔진을 사용할 수 있습니다.
    """
    asyncio.run(_reset_tables())
    yield  # 테스트 실행
    asyncio.run(_drop_tables())


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    각 테스트 함수마다 트랜잭션을 시작하고, 테스트 완료 후 롤백하여
    테스트 간의 격리를 보장하는 비동기 데이터베이스 세션을 제공합니다.
    세션 내부의 commit()은 바깥 트랜잭션을 커밋하지 않습니다.
    """
    connection = await test_engine.connect()
    transaction = await connection.begin()
    session = TestingSessionLocal(bind=connection)

    try:
        yield session
    finally:
        await session.close()
        await transaction.rollback()
        await connection.close()


# --- 역할별 사용자 픽스처 (팩토리 사용으로 간결화) ---
@pytest_asyncio.fixture(scope="function")
def user_factory(db_session: AsyncSession) -> Callable[..., Awaitable[usr_models.User]]:
    """
    역할과 속성을 지정하여 테스트 사용자를 생성하는 팩토리 함수를 반환합니다.
    추가 키워드 인자는 User 모델 생성자에 그대로 전달됩니다.
    """
    async def _create_user(
        username: str,
        password: str,
        role: usr_models.UserRole,
        is_active: bool = True,
        **kwargs,
    ) -> usr_models.User:
        user_data = {
            "username": username,
            "password_hash": get_password_hash(password),
            "email": f"{username}@example.com",
            "role": role,
            "is_active": is_active,
            **kwargs,
        }
        user = usr_models.User(**user_data)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _create_user


@pytest_asyncio.fixture(scope="function")
async def test_admin_user(user_factory: Callable) -> usr_models.User:
    """관리자(ADMIN) 사용자를 생성합니다."""
    return await user_factory(
        "sysadm", "sysadmpass123",
        role=usr_models.UserRole.ADMIN,
        full_name="System Admin",
        notes="Admin Test User",
    )


@pytest_asyncio.fixture(scope="function")
async def test_shore_staff(user_factory: Callable) -> usr_models.User:
    """육상 기술 감독(SHORE_STAFF, 변경 요청 검토자)을 생성합니다."""
    return await user_factory(
        "shorestaff", "shorepass123",
        role=usr_models.UserRole.SHORE_STAFF,
        full_name="Superintendent",
        notes="Reviewer Test User",
    )


@pytest_asyncio.fixture(scope="function")
async def test_user(user_factory: Callable) -> usr_models.User:
    """일반 선원(CREW)을 생성합니다."""
    return await user_factory(
        "testuser", "testpassword123",
        role=usr_models.UserRole.CREW,
        vessel_id="V001",
        full_name="Test Crew",
        notes="General Test User",
    )


# --- 역할별 인증 클라이언트 픽스처 ---
# authorized_client_factory를 통해 /api/v1/usr/auth/token 로그인 API를 실제로 호출하고,
# 받은 access_token을 Authorization 헤더에 자동으로 포함시킵니다.
# 의존성 오버라이드는 앱 전역 상태이므로 한 테스트에서는 인증 클라이언트를 하나만 사용합니다.
@pytest_asyncio.fixture(scope="function")
def authorized_client_factory(
    db_session: AsyncSession,
) -> Callable[[usr_models.User, str], AsyncGenerator[AsyncClient, None]]:
    """
    특정 사용자로 로그인된 AsyncClient를 생성하는 팩토리 함수를 반환합니다.
    사용자 역할에 따라 의존성 오버라이드를 다르게 적용합니다.
    """
    @asynccontextmanager
    async def _create_client_context(user: usr_models.User, password: str) -> AsyncGenerator[AsyncClient, None]:
        def override_get_session():
            yield db_session

        def override_get_current_user():
            return user

        original_overrides = main_app.dependency_overrides.copy()

        try:
            # 모든 클라이언트에 공통적인 의존성 오버라이드
            main_app.dependency_overrides.update({
                get_session: override_get_session,
                deps.get_db_session: override_get_session,
                deps.get_current_active_user: override_get_current_user,
            })

            # 관리자 역할(ADMIN 이상)일 경우에만 추가로 관리자 의존성을 오버라이드
            # 검토자 의존성(get_current_reviewer_user)은 오버라이드하지 않고 실제 역할 검사를 거칩니다.
            if user.role <= usr_models.UserRole.ADMIN:
                main_app.dependency_overrides[deps.get_current_admin_user] = override_get_current_user

            transport = ASGITransport(app=main_app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                login_data = {"username": user.username, "password": password}
                res = await client.post("/api/v1/usr/auth/token", data=login_data)

                if res.status_code != 200:
                    pytest.fail(f"Login failed for {user.username}: {res.text}")

                token = res.json()["access_token"]
                client.headers["Authorization"] = f"Bearer {token}"
                yield client

        finally:
            # 테스트가 끝난 후 원래 의존성 상태로 되돌립니다.
            main_app.dependency_overrides.clear()
            main_app.dependency_overrides.update(original_overrides)

    return _create_client_context


@pytest_asyncio.fixture(scope="function")
async def admin_client(
    authorized_client_factory: Callable[..., AsyncGenerator[AsyncClient, None]],
    test_admin_user: usr_models.User,
) -> AsyncGenerator[AsyncClient, None]:
    """관리자로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_admin_user, "sysadmpass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def reviewer_client(
    authorized_client_factory: Callable[..., AsyncGenerator[AsyncClient, None]],
    test_shore_staff: usr_models.User,
) -> AsyncGenerator[AsyncClient, None]:
    """육상 검토자(SHORE_STAFF)로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_shore_staff, "shorepass123") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def authorized_client(
    authorized_client_factory: Callable[..., AsyncGenerator[AsyncClient, None]],
    test_user: usr_models.User,
) -> AsyncGenerator[AsyncClient, None]:
    """일반 선원(CREW)으로 인증된 클라이언트를 반환합니다."""
    async with authorized_client_factory(test_user, "testpassword123") as client:
        yield client


# --- 비동기 테스트 클라이언트 픽스처 ---
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    인증되지 않은 사용자를 위한 AsyncClient 인스턴스를 생성하고,
    테스트용 비동기 DB 세션을 주입합니다.
    """
    def override_get_session_and_dependency():
        yield db_session

    original_overrides = main_app.dependency_overrides.copy()

    try:
        main_app.dependency_overrides[get_session] = override_get_session_and_dependency
        main_app.dependency_overrides[deps.get_db_session] = override_get_session_and_dependency

        async with AsyncClient(transport=ASGITransport(app=main_app), base_url="http://test") as async_client:
            yield async_client
    finally:
        main_app.dependency_overrides.clear()
        main_app.dependency_overrides.update(original_overrides)
