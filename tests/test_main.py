# tests/test_main.py

"""
FastAPI 애플리케이션의 메인 엔드포인트에 대한 통합 테스트를 정의하는 모듈입니다.

- 애플리케이션의 루트 경로 (`/`) 응답을 테스트합니다.
- 데이터베이스 연결 헬스 체크 엔드포인트 (`/health-check`)를 테스트합니다.
"""

import pytest
from httpx import AsyncClient

from app.main import ArqWorkerSettings


@pytest.mark.asyncio
async def test_read_root(client: AsyncClient):
    """
    루트 엔드포인트 (`GET /`)가 올바르게 응답하는지 테스트합니다.
    """
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to PMS API. Visit /docs for interactive API documentation."}


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """
    헬스 체크 엔드포인트 (`GET /health-check`)가 데이터베이스 연결 상태를 올바르게 반환하는지 테스트합니다.
    """
    response = await client.get("/health-check")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database_connection": "successful"}


def test_arq_worker_registers_cron_jobs():
    """ARQ 워커 설정에 헬스 체크와 오래된 초안 정리 작업이 등록되어 있는지 확인합니다."""
    job_names = {job["name"] for job in ArqWorkerSettings.jobs}
    function_names = {func.__name__ for func in ArqWorkerSettings.functions}

    assert job_names == {"daily_db_health_check", "daily_stale_draft_purge"}
    assert "purge_stale_draft_requests_task" in function_names
    assert "health_check_database_task" in function_names
