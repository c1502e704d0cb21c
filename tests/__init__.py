# tests/__init__.py

"""
PMS FastAPI 애플리케이션의 테스트 스위트 패키지입니다.

- `conftest.py`: 테스트 DB(SQLite/aiosqlite), 역할별 사용자, 인증 클라이언트 픽스처.
- `domains/`: 도메인(usr, pms, cr)별 API 통합 테스트와 변경 추적 라이브러리 단위 테스트.
"""

__title__ = "PMS API Tests"
__description__ = "Test suite for the PMS FastAPI application."
__version__ = "0.1.0"
__all__ = []
