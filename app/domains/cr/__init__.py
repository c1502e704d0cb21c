# app/domains/cr/__init__.py

"""
FastAPI 애플리케이션의 'cr' 도메인 패키지입니다.

PostgreSQL의 'cr' 스키마에 해당하는 변경 요청(Change Request)과 그 검토 흐름을 담당합니다.

주요 서브모듈:
- `tracking.py`: 필드 단위 변경 추적과 섹션별 변경 건수 집계 (순수 함수).
- `reconcile.py`: 작업 지시/예비품/상태 감시 항목 목록의 편집 수명주기와 분류 (순수 함수).
- `payload.py`: 원본/현재 스냅샷으로 변경 요청 payload(diff, summary) 생성 (순수 함수).
- `workflow.py`: 상태, 검토 동작, 허용 전이 규칙.
- `models.py`, `schemas.py`, `crud.py`: 변경 요청/코멘트/첨부 파일의 저장과 상태 전이.
- `routers.py`: /change-requests 및 /modify-pms/requests API 엔드포인트.
- `tasks.py`: 오래된 초안 정리 ARQ 태스크.
"""

__title__ = "PMS Change Request Domain"
__description__ = "Tracks proposed changes to the component register and runs the review workflow."
__version__ = "0.1.0"
__all__ = []
