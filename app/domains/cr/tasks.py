# app/domains/cr/tasks.py

import logging
from typing import Optional

from app.core.config import settings
from app.core.database import get_async_session_context
from . import crud as cr_crud

logger = logging.getLogger(__name__)


async def purge_stale_draft_requests_task(ctx, older_than_days: Optional[int] = None):
    """
    ARQ 워커에 의해 실행될 오래된 초안 정리 태스크.
    CR_DRAFT_RETENTION_DAYS 동안 수정되지 않은 draft 상태의 변경 요청과 그 코멘트/첨부 파일을 삭제합니다.
    """
    retention_days = older_than_days if older_than_days is not None else settings.CR_DRAFT_RETENTION_DAYS
    logger.info("ARQ 태스크: %d일 이상 방치된 변경 요청 초안 정리 시작", retention_days)

    async with get_async_session_context() as db:
        deleted_count = await cr_crud.change_request.purge_stale_drafts(db, older_than_days=retention_days)

    logger.info("ARQ 태스크: 변경 요청 초안 %d건 삭제 완료", deleted_count)
    return {"status": "success", "deleted_count": deleted_count}
