# app/domains/cr/crud.py

"""
'cr' 도메인 (변경 요청)의 CRUD 작업과 상태 전이를 담당하는 모듈입니다.

상태 전이와 편집은 `UPDATE ... WHERE id = :id AND status IN (:allowed)` 형태의
단일 조건부 UPDATE로 수행됩니다. 영향받은 행이 없으면 요청이 없는 것(NotFoundError)인지
상태가 맞지 않는 것(StateError)인지 구분하여 오류를 발생시킵니다.
"""

import logging
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.crud_base import CRUDBase
from app.core.exceptions import NoChangesError, NotFoundError, ValidationError
from app.services.change_application_service import ChangeApplicationService
from . import models as cr_models
from . import schemas as cr_schemas
from .payload import build_flat_diff, extract_diff
from .workflow import (
    DELETABLE_STATES,
    EDITABLE_STATES,
    REVIEW_RESULT,
    REVIEWABLE_STATES,
    SUBMITTABLE_STATES,
    ChangeRequestCategory,
    ChangeRequestStatus,
    ReviewAction,
    TargetType,
    assert_transition,
    require_review_comment,
    review_comment_message,
    transition_error,
)

logger = logging.getLogger(__name__)

CATEGORY_BY_TARGET: Dict[str, str] = {
    TargetType.COMPONENT.value: ChangeRequestCategory.COMPONENTS.value,
    TargetType.WORK_ORDER.value: ChangeRequestCategory.WORK_ORDERS.value,
    TargetType.SPARE.value: ChangeRequestCategory.SPARES.value,
    TargetType.STORE.value: ChangeRequestCategory.STORES.value,
}

SUBMISSION_REQUIRED_MESSAGE = "Title, Category, Vessel, Reason, and Target selection are required for submission"
NO_PROPOSED_CHANGES_MESSAGE = "Please propose at least one change before submitting"


def clean_title(title: Optional[str]) -> str:
    """제목 공백 제거 및 최대 길이 절단. 비어 있으면 ValidationError"""
    text = (title or "").strip()
    if not text:
        raise ValidationError("Title is required")
    return text[: settings.CR_TITLE_MAX_LENGTH]


def validate_submission(change_request: cr_models.ChangeRequest) -> None:
    """제출 조건: 헤더/대상/원본 스냅샷이 모두 있고 제안 변경이 비어 있지 않아야 합니다."""
    required = (
        change_request.title,
        change_request.category,
        change_request.vessel_id,
        change_request.reason,
        change_request.target_type,
        change_request.target_id,
        change_request.snapshot_before_json,
    )
    if not all(required):
        raise ValidationError(SUBMISSION_REQUIRED_MESSAGE)
    if not extract_diff(change_request.proposed_changes_json):
        raise ValidationError(NO_PROPOSED_CHANGES_MESSAGE)


# =============================================================================
# 1. cr.change_requests 테이블 CRUD
# =============================================================================
class CRUDChangeRequest(CRUDBase[cr_models.ChangeRequest, cr_schemas.ChangeRequestDraftCreate, cr_schemas.ChangeRequestHeaderUpdate]):
    def __init__(self):
        super().__init__(model=cr_models.ChangeRequest)

    async def get_or_404(self, db: AsyncSession, *, id: int) -> cr_models.ChangeRequest:
        change_request = await self.get(db, id=id)
        if not change_request:
            raise NotFoundError("Change request not found")
        return change_request

    async def get_list(
        self,
        db: AsyncSession,
        *,
        status: Optional[str] = None,
        category: Optional[str] = None,
        vessel_id: Optional[str] = None,
        target_type: Optional[str] = None,
        requested_by: Optional[int] = None,
        q: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[cr_models.ChangeRequest]:
        """필터와 검색어(제목/상태 부분 일치)로 변경 요청 목록을 최신순으로 조회합니다."""
        return await self.get_filtered(
            db,
            filters={
                "status": status,
                "category": category,
                "vessel_id": vessel_id,
                "target_type": target_type,
                "requested_by_user_id": requested_by,
            },
            search=q,
            search_fields=("title", "status"),
            order_by_field="created_at",
            order_desc=True,
            skip=skip,
            limit=limit,
        )

    # -------------------------------------------------------------------------
    # 생성
    # -------------------------------------------------------------------------
    async def create_draft(
        self, db: AsyncSession, *, obj_in: cr_schemas.ChangeRequestDraftCreate, user_id: Optional[int]
    ) -> cr_models.ChangeRequest:
        """초안 상태의 변경 요청을 생성합니다. 제목만 필수입니다."""
        db_obj = cr_models.ChangeRequest(
            title=clean_title(obj_in.title),
            category=obj_in.category or ChangeRequestCategory.COMPONENTS.value,
            vessel_id=obj_in.vessel_id or settings.DEFAULT_VESSEL_ID,
            reason=obj_in.reason,
            target_type=obj_in.target_type,
            target_id=obj_in.target_id,
            target_path=obj_in.target_path,
            status=ChangeRequestStatus.DRAFT.value,
            requested_by_user_id=user_id,
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        logger.info("Change request %s created as draft by user %s", db_obj.id, user_id)
        return db_obj

    async def create_with_changes(
        self, db: AsyncSession, *, obj_in: cr_schemas.ChangeRequestCreate, user_id: Optional[int]
    ) -> cr_models.ChangeRequest:
        """
        원본/제안 스냅샷으로 변경 요청을 한 번에 생성합니다.
        diff가 없으면 서버에서 계산하며, 상태를 지정하지 않으면 바로 제출(submitted)됩니다.
        """
        diff = obj_in.diff if obj_in.diff is not None else build_flat_diff(obj_in.original, obj_in.proposed)
        status = obj_in.status or ChangeRequestStatus.SUBMITTED.value
        title = obj_in.title or f"{obj_in.target_type.replace('_', ' ').title()} Update - {obj_in.target_id}"

        db_obj = cr_models.ChangeRequest(
            title=clean_title(title),
            category=obj_in.category or CATEGORY_BY_TARGET[obj_in.target_type],
            vessel_id=obj_in.vessel_id or settings.DEFAULT_VESSEL_ID,
            reason=obj_in.reason,
            target_type=obj_in.target_type,
            target_id=obj_in.target_id,
            target_path=obj_in.target_path,
            snapshot_before_json=obj_in.original,
            proposed_changes_json={"proposed": obj_in.proposed, "diff": diff},
            status=status,
            requested_by_user_id=user_id,
        )
        if status == ChangeRequestStatus.SUBMITTED.value:
            if not diff:
                raise NoChangesError("No Changes")
            validate_submission(db_obj)
            db_obj.submitted_at = datetime.now(UTC)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        logger.info("Change request %s created with status '%s' by user %s", db_obj.id, status, user_id)
        return db_obj

    # -------------------------------------------------------------------------
    # 조건부 UPDATE 공통 처리
    # -------------------------------------------------------------------------
    async def _conditional_update(
        self, db: AsyncSession, *, id: int, action: str, allowed: Iterable[str], values: Dict[str, Any]
    ) -> None:
        statement = (
            update(cr_models.ChangeRequest)
            .where(cr_models.ChangeRequest.id == id, cr_models.ChangeRequest.status.in_(list(allowed)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(statement)
        if result.rowcount == 0:
            await self._raise_transition_failure(db, id=id, action=action)

    async def _raise_transition_failure(self, db: AsyncSession, *, id: int, action: str) -> None:
        result = await db.execute(select(cr_models.ChangeRequest.status).where(cr_models.ChangeRequest.id == id))
        current = result.scalars().first()
        if current is None:
            raise NotFoundError("Change request not found")
        logger.warning("Rejected '%s' on change request %s in status '%s'", action, id, current)
        raise transition_error(action, current)

    async def _reload(self, db: AsyncSession, *, id: int) -> cr_models.ChangeRequest:
        change_request = await self.get_or_404(db, id=id)
        await db.refresh(change_request)
        return change_request

    async def _lock_for_update(self, db: AsyncSession, *, id: int) -> cr_models.ChangeRequest:
        """행 잠금(SELECT ... FOR UPDATE)을 걸고 최신 값으로 읽습니다. 트랜잭션 종료 시 잠금이 풀립니다."""
        statement = (
            select(cr_models.ChangeRequest)
            .where(cr_models.ChangeRequest.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(statement)
        change_request = result.scalars().first()
        if not change_request:
            raise NotFoundError("Change request not found")
        return change_request

    # -------------------------------------------------------------------------
    # 편집 (draft / returned 상태에서만)
    # -------------------------------------------------------------------------
    async def _update_editable(self, db: AsyncSession, *, id: int, values: Dict[str, Any]) -> cr_models.ChangeRequest:
        if values:
            await self._conditional_update(db, id=id, action="edit", allowed=EDITABLE_STATES, values=values)
            await db.commit()
        else:
            change_request = await self.get_or_404(db, id=id)
            assert_transition(change_request.status, "edit")
        return await self._reload(db, id=id)

    async def update_header(
        self, db: AsyncSession, *, id: int, obj_in: cr_schemas.ChangeRequestHeaderUpdate
    ) -> cr_models.ChangeRequest:
        values = obj_in.model_dump(exclude_unset=True)
        if "title" in values:
            values["title"] = clean_title(values["title"])
        if "category" in values and not values["category"]:
            values.pop("category")
        return await self._update_editable(db, id=id, values=values)

    async def update_target(
        self, db: AsyncSession, *, id: int, obj_in: cr_schemas.ChangeRequestTargetUpdate
    ) -> cr_models.ChangeRequest:
        values = obj_in.model_dump(exclude_unset=True)
        change_request = await self._update_editable(db, id=id, values=values)
        logger.info("Change request %s target set to %s %s", id, obj_in.target_type, obj_in.target_id)
        return change_request

    async def update_proposed(
        self, db: AsyncSession, *, id: int, obj_in: cr_schemas.ChangeRequestProposedUpdate
    ) -> cr_models.ChangeRequest:
        values = obj_in.model_dump(exclude_unset=True)
        return await self._update_editable(db, id=id, values=values)

    # -------------------------------------------------------------------------
    # 상태 전이
    # -------------------------------------------------------------------------
    async def submit(self, db: AsyncSession, *, id: int, user_id: Optional[int]) -> cr_models.ChangeRequest:
        """
        draft 또는 returned 상태의 요청을 제출합니다.
        제출 검증과 상태 변경 사이에 제안 변경이 바뀌지 않도록 행을 잠근 뒤 검증합니다.
        """
        change_request = await self._lock_for_update(db, id=id)
        assert_transition(change_request.status, "submit")
        validate_submission(change_request)

        values: Dict[str, Any] = {
            "status": ChangeRequestStatus.SUBMITTED.value,
            "submitted_at": datetime.now(UTC),
        }
        if user_id is not None:
            values["requested_by_user_id"] = user_id
        await self._conditional_update(db, id=id, action="submit", allowed=SUBMITTABLE_STATES, values=values)
        await db.commit()
        logger.info("Change request %s submitted by user %s", id, user_id)
        return await self._reload(db, id=id)

    async def review(
        self,
        db: AsyncSession,
        *,
        id: int,
        action: ReviewAction,
        comment: Optional[str],
        reviewer_id: Optional[int],
    ) -> cr_models.ChangeRequest:
        """
        제출된 요청을 승인/반려/반송합니다.
        검토 코멘트가 필수이며, 접두어가 붙은 코멘트가 코멘트 이력에 추가됩니다.
        기기 대상 요청의 승인은 같은 트랜잭션에서 diff를 실제 레코드에 반영합니다.
        """
        action = ReviewAction(action)
        comment_text = require_review_comment(action, comment)

        await self._conditional_update(
            db,
            id=id,
            action=action.value,
            allowed=REVIEWABLE_STATES,
            values={
                "status": REVIEW_RESULT[action].value,
                "reviewed_by_user_id": reviewer_id,
                "reviewed_at": datetime.now(UTC),
                "review_comment": comment_text,
            },
        )
        db.add(cr_models.ChangeRequestComment(
            change_request_id=id,
            user_id=reviewer_id,
            message=review_comment_message(action, comment_text),
        ))

        if action == ReviewAction.APPROVE:
            change_request = await self._reload(db, id=id)
            try:
                await ChangeApplicationService(db).apply(change_request)
            except Exception:
                await db.rollback()
                raise

        await db.commit()
        logger.info("Change request %s %s by user %s", id, REVIEW_RESULT[action].value, reviewer_id)
        return await self._reload(db, id=id)

    # -------------------------------------------------------------------------
    # 삭제
    # -------------------------------------------------------------------------
    async def _delete_children(self, db: AsyncSession, ids: List[int]) -> None:
        for child_model in (cr_models.ChangeRequestComment, cr_models.ChangeRequestAttachment):
            await db.execute(
                delete(child_model)
                .where(child_model.change_request_id.in_(ids))
                .execution_options(synchronize_session=False)
            )

    async def remove(self, db: AsyncSession, *, id: int) -> None:
        """draft 상태의 요청만 삭제할 수 있습니다. 코멘트와 첨부 파일도 함께 삭제됩니다."""
        result = await db.execute(
            delete(cr_models.ChangeRequest)
            .where(cr_models.ChangeRequest.id == id, cr_models.ChangeRequest.status.in_(list(DELETABLE_STATES)))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._raise_transition_failure(db, id=id, action="delete")

        await self._delete_children(db, [id])
        await db.commit()

        stale = await db.get(cr_models.ChangeRequest, id)
        if stale is not None:
            db.expunge(stale)
        logger.info("Change request %s deleted", id)

    async def purge_stale_drafts(self, db: AsyncSession, *, older_than_days: int) -> int:
        """older_than_days 동안 수정되지 않은 초안을 삭제하고 삭제 건수를 반환합니다."""
        cutoff = datetime.now(UTC) - timedelta(days=older_than_days)
        result = await db.execute(
            select(cr_models.ChangeRequest.id).where(
                cr_models.ChangeRequest.status == ChangeRequestStatus.DRAFT.value,
                cr_models.ChangeRequest.updated_at < cutoff,
            )
        )
        ids = list(result.scalars().all())
        if not ids:
            return 0

        await self._delete_children(db, ids)
        await db.execute(
            delete(cr_models.ChangeRequest)
            .where(
                cr_models.ChangeRequest.id.in_(ids),
                cr_models.ChangeRequest.status == ChangeRequestStatus.DRAFT.value,
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        logger.info("Purged %d stale draft change requests (older than %d days)", len(ids), older_than_days)
        return len(ids)


change_request = CRUDChangeRequest()


# =============================================================================
# 2. cr.change_request_comments 테이블 CRUD
# =============================================================================
class CRUDChangeRequestComment(CRUDBase[cr_models.ChangeRequestComment, cr_schemas.CommentCreate, cr_schemas.CommentCreate]):
    def __init__(self):
        super().__init__(model=cr_models.ChangeRequestComment)

    async def get_by_change_request(self, db: AsyncSession, *, change_request_id: int) -> List[cr_models.ChangeRequestComment]:
        statement = (
            select(self.model)
            .where(self.model.change_request_id == change_request_id)
            .order_by(self.model.created_at, self.model.id)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def create_for_request(
        self, db: AsyncSession, *, change_request_id: int, obj_in: cr_schemas.CommentCreate, user_id: Optional[int]
    ) -> cr_models.ChangeRequestComment:
        message = (obj_in.message or "").strip()
        if not message:
            raise ValidationError("Message is required")
        await change_request.get_or_404(db, id=change_request_id)

        db_obj = self.model(change_request_id=change_request_id, user_id=user_id, message=message)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj


comment = CRUDChangeRequestComment()


# =============================================================================
# 3. cr.change_request_attachments 테이블 CRUD
# =============================================================================
class CRUDChangeRequestAttachment(CRUDBase[cr_models.ChangeRequestAttachment, cr_schemas.AttachmentCreate, cr_schemas.AttachmentCreate]):
    def __init__(self):
        super().__init__(model=cr_models.ChangeRequestAttachment)

    async def get_by_change_request(self, db: AsyncSession, *, change_request_id: int) -> List[cr_models.ChangeRequestAttachment]:
        statement = (
            select(self.model)
            .where(self.model.change_request_id == change_request_id)
            .order_by(self.model.uploaded_at, self.model.id)
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def create_for_request(
        self, db: AsyncSession, *, change_request_id: int, obj_in: cr_schemas.AttachmentCreate, user_id: Optional[int]
    ) -> cr_models.ChangeRequestAttachment:
        if not obj_in.filename or not obj_in.url:
            raise ValidationError("Filename and URL are required")
        await change_request.get_or_404(db, id=change_request_id)

        db_obj = self.model(
            change_request_id=change_request_id,
            filename=obj_in.filename,
            url=obj_in.url,
            uploaded_by_user_id=user_id,
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj


attachment = CRUDChangeRequestAttachment()
