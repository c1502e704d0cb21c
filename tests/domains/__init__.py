# tests/domains/__init__.py

"""
도메인별 테스트 패키지입니다.

- `test_auth_n.py`, `test_usr_n.py`: 'usr' 도메인 (인증, 사용자 관리).
- `test_pms_n.py`: 'pms' 도메인 (기기 레지스터, 스냅샷, diff 적용).
- `test_cr_tracking_n.py`, `test_cr_reconcile_n.py`, `test_cr_payload_n.py`: 변경 추적 순수 함수.
- `test_cr_workflow_n.py`: 변경 요청 상태 머신과 두 API 경로 그룹.
"""

__title__ = "PMS Domain Tests"
__description__ = "Categorized tests for each business domain in the PMS FastAPI application."
__version__ = "0.1.0"
__all__ = []
