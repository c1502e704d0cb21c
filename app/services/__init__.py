# app/services/__init__.py

"""
FastAPI 애플리케이션의 서비스 계층 패키지입니다.

CRUD 작업은 각 도메인의 `crud.py`에서 직접 데이터베이스와 상호 작용하는 반면,
`services` 계층은 여러 도메인에 걸친 흐름을 조정합니다.

- `change_application_service.py`: 승인된 변경 요청('cr')의 diff를
  기기 레지스터('pms') 레코드에 반영하는 서비스.
"""

__title__ = "PMS Services"
__description__ = "Cross-domain services for the PMS change request application."
__version__ = "0.1.0"
__all__ = []
