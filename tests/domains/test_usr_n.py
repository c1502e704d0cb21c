# tests/domains/test_usr_n.py

"""
'usr' 도메인 (사용자 관리) 관련 API 엔드포인트에 대한 통합 테스트 모듈입니다.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from fastapi import status

from app.domains.usr import models as usr_models
from app.domains.usr import crud as usr_crud


# =============================================================================
# 1. 인증 (Authentication) 엔드포인트 테스트 -> test_auth_n.py로 이동
# =============================================================================


# =============================================================================
# 2. 사용자 (User) 관리 엔드포인트 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_create_user_success_admin(admin_client: AsyncClient):
    """
    관리자 권한으로 새로운 사용자를 성공적으로 생성하는지 테스트합니다.
    """
    user_data = {
        "username": "newcrew",
        "password": "new_password_123",
        "email": "newcrew@example.com",
        "full_name": "신규 선원",
        "role": usr_models.UserRole.CREW,
        "vessel_id": "V002",
    }
    response = await admin_client.post("/api/v1/usr/users", json=user_data)
    assert response.status_code == status.HTTP_201_CREATED
    created_user = response.json()
    assert created_user["username"] == user_data["username"]
    assert created_user["vessel_id"] == "V002"
    assert "password_hash" not in created_user  # 응답에 비밀번호 해시가 없는지 확인


@pytest.mark.asyncio
async def test_create_user_duplicate_username_fail(
    admin_client: AsyncClient,
    test_user: usr_models.User
):
    """
    중복된 username으로 사용자 생성 시 400 에러를 반환하는지 테스트합니다.
    """
    user_data = {
        "username": test_user.username,  # 기존 사용자와 동일한 ID
        "password": "another_password",
        "email": "another@example.com",
        "role": usr_models.UserRole.CREW,
    }
    response = await admin_client.post("/api/v1/usr/users", json=user_data)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Username already registered" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_user_duplicate_email_admin(
    admin_client: AsyncClient,
    test_user: usr_models.User,
):
    """
    관리자 권한으로 사용자 생성 시, 중복 이메일로 400 에러를 반환하는지 테스트합니다.
    """
    user_data = {
        "username": "anotherusername",
        "password": "newpassword",
        "email": test_user.email,
        "role": usr_models.UserRole.CREW,
    }
    response = await admin_client.post("/api/v1/usr/users", json=user_data)
    assert response.status_code == 400
    assert "Email already registered" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_user_forbidden_for_crew(authorized_client: AsyncClient):
    """
    일반 선원의 사용자 생성 시도는 403 Forbidden을 반환합니다.
    """
    user_data = {
        "username": "unauthuser",
        "password": "password123",
        "email": "unauth@example.com",
        "role": usr_models.UserRole.CREW,
    }
    response = await authorized_client.post("/api/v1/usr/users", json=user_data)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_user_unauthenticated(client: AsyncClient):
    """
    인증 없이 사용자 생성 시도 시 401을 반환합니다.
    """
    user_data = {"username": "unauthuser", "password": "password123", "role": usr_models.UserRole.CREW}
    response = await client.post("/api/v1/usr/users", json=user_data)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_read_users_success_admin(
    admin_client: AsyncClient,
    test_user: usr_models.User,
    test_admin_user: usr_models.User
):
    """
    관리자가 모든 사용자 목록을 성공적으로 조회하는지 테스트합니다.
    """
    response = await admin_client.get("/api/v1/usr/users")
    assert response.status_code == 200
    users_list = response.json()
    assert len(users_list) >= 2
    assert any(u["username"] == test_user.username for u in users_list)
    assert any(u["username"] == test_admin_user.username for u in users_list)


@pytest.mark.asyncio
async def test_read_users_user_self_only(
    authorized_client: AsyncClient,
    test_user: usr_models.User,
    test_admin_user: usr_models.User,
):
    """
    일반 사용자는 사용자 목록 조회 시 자신의 정보만 받습니다.
    """
    response = await authorized_client.get("/api/v1/usr/users")
    assert response.status_code == 200
    users_list = response.json()
    assert [u["username"] for u in users_list] == [test_user.username]


@pytest.mark.asyncio
async def test_read_user_by_id_success_admin(
    admin_client: AsyncClient,
    test_user: usr_models.User,
):
    """관리자가 다른 사용자를 ID로 조회합니다."""
    response = await admin_client.get(f"/api/v1/usr/users/{test_user.id}")
    assert response.status_code == 200
    assert response.json()["username"] == test_user.username


@pytest.mark.asyncio
async def test_read_user_forbidden_user_other(
    authorized_client: AsyncClient,
    test_admin_user: usr_models.User,
):
    """일반 사용자가 다른 사용자를 조회하면 403을 반환합니다."""
    response = await authorized_client.get(f"/api/v1/usr/users/{test_admin_user.id}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_read_user_not_found(admin_client: AsyncClient):
    response = await admin_client.get("/api/v1/usr/users/99999")
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


@pytest.mark.asyncio
async def test_update_user_success_user_self(
    authorized_client: AsyncClient,
    test_user: usr_models.User,
):
    """
    일반 사용자가 자신의 정보(이름, 소속 선박)를 수정할 수 있는지 테스트합니다.
    """
    response = await authorized_client.put(
        f"/api/v1/usr/users/{test_user.id}",
        json={"full_name": "Able Seaman", "vessel_id": "V009"},
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Able Seaman"
    assert response.json()["vessel_id"] == "V009"


@pytest.mark.asyncio
async def test_update_user_cannot_change_own_role(
    authorized_client: AsyncClient,
    test_user: usr_models.User,
):
    """일반 사용자는 자신의 역할을 변경할 수 없습니다."""
    response = await authorized_client.put(
        f"/api/v1/usr/users/{test_user.id}",
        json={"role": usr_models.UserRole.SHORE_STAFF},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Cannot change your own role."


@pytest.mark.asyncio
async def test_update_user_prevent_admin_role_change(
    admin_client: AsyncClient,
    test_admin_user: usr_models.User,
):
    """
    관리자 계정의 역할을 일반 역할로 낮출 수 없는지 테스트합니다.
    """
    response = await admin_client.put(
        f"/api/v1/usr/users/{test_admin_user.id}",
        json={"role": usr_models.UserRole.CREW},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot change the role of a admin account."


@pytest.mark.asyncio
async def test_update_user_prevent_admin_deactivation(
    admin_client: AsyncClient,
    test_admin_user: usr_models.User,
):
    """관리자 계정은 비활성화할 수 없습니다."""
    response = await admin_client.put(
        f"/api/v1/usr/users/{test_admin_user.id}",
        json={"is_active": False},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot deactivate a admin account."


@pytest.mark.asyncio
async def test_update_user_promote_to_shore_staff(
    admin_client: AsyncClient,
    test_user: usr_models.User,
):
    """관리자는 선원을 육상 검토자(SHORE_STAFF)로 변경할 수 있습니다."""
    response = await admin_client.put(
        f"/api/v1/usr/users/{test_user.id}",
        json={"role": usr_models.UserRole.SHORE_STAFF},
    )
    assert response.status_code == 200
    assert response.json()["role"] == usr_models.UserRole.SHORE_STAFF


@pytest.mark.asyncio
async def test_update_user_prevent_promote_to_admin(
    admin_client: AsyncClient,
    test_user: usr_models.User,
):
    """일반 계정을 관리자로 승격할 수 없습니다."""
    response = await admin_client.put(
        f"/api/v1/usr/users/{test_user.id}",
        json={"role": usr_models.UserRole.ADMIN},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_user_success_admin(
    admin_client: AsyncClient,
    test_user: usr_models.User,
    db_session: AsyncSession,
):
    """
    관리자가 일반 사용자를 삭제하는지 테스트합니다.
    """
    user_id = test_user.id
    response = await admin_client.delete(f"/api/v1/usr/users/{user_id}")
    assert response.status_code == 204

    assert await usr_crud.user.get(db_session, id=user_id) is None


@pytest.mark.asyncio
async def test_delete_user_authorized_user_no_permission(
    authorized_client: AsyncClient,
    test_admin_user: usr_models.User,
):
    """일반 사용자는 사용자를 삭제할 수 없습니다."""
    response = await authorized_client.delete(f"/api/v1/usr/users/{test_admin_user.id}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_admin_self_attempt(
    admin_client: AsyncClient,
    test_admin_user: usr_models.User,
):
    """관리자는 자기 자신을 삭제할 수 없습니다."""
    response = await admin_client.delete(f"/api/v1/usr/users/{test_admin_user.id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete your own account."
