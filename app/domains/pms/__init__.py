# app/domains/pms/__init__.py

"""
FastAPI 애플리케이션의 'pms' 도메인 패키지입니다.

PostgreSQL의 'pms' 스키마에 해당하는 기기 레지스터(기기, 작업 지시, 예비품 연결, 상태 감시 항목)를 관리합니다.
변경 요청(cr)의 대상이 되며, 승인된 변경 요청의 diff가 이 도메인의 레코드에 반영됩니다.

주요 서브모듈:
- `models.py`: 기기 레지스터 테이블 정의.
- `schemas.py`: 요청/응답 스키마.
- `crud.py`: 비동기 CRUD 로직 (작업 지시 번호 자동 채번 포함).
- `services.py`: 변경 요청용 스냅샷 생성과 승인된 diff 적용.
- `routers.py`: 기기 레지스터 API 엔드포인트.
"""

__title__ = "PMS Component Register Domain"
__description__ = "Manages components, work orders, linked spares and condition metrics."
__version__ = "0.1.0"
__all__ = []
