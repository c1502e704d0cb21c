# app/domains/usr/__init__.py

"""
FastAPI 애플리케이션의 'usr' 도메인 패키지입니다.

PostgreSQL의 'usr' 스키마에 해당하는 사용자 데이터와 인증/권한 부여 로직을 담당합니다.
변경 요청의 요청자(requested_by)와 검토자(reviewed_by)는 이 도메인의 사용자입니다.

주요 서브모듈:
- `models.py`: 사용자 테이블과 선박 PMS 역할(UserRole) 정의.
- `schemas.py`: 요청/응답 유효성 검사 및 인증 토큰 스키마.
- `crud.py`: 비동기 CRUD 로직 및 사용자 인증 로직.
- `routers.py`: 로그인 및 사용자 관리 API 엔드포인트.
"""

__title__ = "PMS User Domain"
__description__ = "Manages users and maritime roles, and handles authentication."
__version__ = "0.1.0"
__all__ = []
