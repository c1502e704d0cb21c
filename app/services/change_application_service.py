# app/services/change_application_service.py

"""
여러 도메인에 걸친 변경 요청 승인 처리를 담당하는 서비스 모듈입니다.

'cr' 도메인의 승인된 변경 요청을 대상 도메인('pms')의 레코드에 반영합니다.
데이터베이스 세션은 호출자와 공유하며, 커밋은 상태 전이를 수행한 호출자가 담당합니다.
"""

import logging
from typing import Any, Dict, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import ValidationError
from app.domains.cr import models as cr_models
from app.domains.cr.payload import extract_diff
from app.domains.cr.workflow import TargetType
from app.domains.pms import services as pms_services

logger = logging.getLogger(__name__)


class ChangeApplicationService:
    """
    승인된 변경 요청을 대상 레코드에 적용하는 서비스 클래스입니다.
    현재는 기기(component) 대상만 자동 적용하며, 그 외 대상은 승인만 기록합니다.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply(self, change_request: cr_models.ChangeRequest) -> Optional[Dict[str, Any]]:
        """
        변경 요청의 제안 변경(diff)을 대상에 적용합니다.

        Returns:
            Optional[Dict[str, Any]]: 적용 결과 건수. 자동 적용 대상이 아니면 None.

        Raises:
            ValidationError: 대상 ID가 올바르지 않은 경우.
            NotFoundError: 대상 기기가 존재하지 않는 경우.
        """
        if change_request.target_type != TargetType.COMPONENT.value:
            logger.info(
                "Change request %s approved without automatic application (target type: %s)",
                change_request.id, change_request.target_type,
            )
            return None

        try:
            component_id = int(change_request.target_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid component target id '{change_request.target_id}'")

        diff = extract_diff(change_request.proposed_changes_json)
        result = await pms_services.apply_component_diff(self.db, component_id=component_id, diff=diff)
        logger.info("Change request %s applied to component %s", change_request.id, component_id)
        return result
