# app/domains/cr/routers.py

"""
'cr' 도메인 (변경 요청)과 관련된 API 엔드포인트를 정의하는 모듈입니다.

두 가지 경로 그룹이 같은 상태 머신을 공유합니다.
- change_requests_router (/change-requests): 원본/제안 스냅샷을 한 번에 보내는 생성, PATCH 기반 검토
- modify_pms_router (/modify-pms/requests): 초안 생성 후 대상/제안 변경을 단계적으로 채우는 흐름
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session
from app.core import dependencies as deps
from app.domains.usr import models as usr_models
from app.utils.files import save_upload_file

from . import crud as cr_crud
from . import models as cr_models
from . import schemas as cr_schemas
from .payload import build_change_request_payload, count_diff_entries, ensure_ready_to_submit, extract_diff
from .tracking import compute_section_counts
from .workflow import ReviewAction, parse_review_status


change_requests_router = APIRouter(
    tags=["Change Requests (변경 요청)"],
    responses={404: {"description": "Not found"}},
)

modify_pms_router = APIRouter(
    tags=["Modify PMS (변경 요청 작성/검토)"],
    responses={404: {"description": "Not found"}},
)


def _to_read(change_request: cr_models.ChangeRequest) -> cr_schemas.ChangeRequestRead:
    read = cr_schemas.ChangeRequestRead.model_validate(change_request)
    read.diff_summary_count = count_diff_entries(extract_diff(change_request.proposed_changes_json))
    return read


async def _to_detail(db: AsyncSession, change_request: cr_models.ChangeRequest) -> cr_schemas.ChangeRequestDetail:
    detail = cr_schemas.ChangeRequestDetail(**_to_read(change_request).model_dump())
    detail.attachments = [
        cr_schemas.AttachmentRead.model_validate(item)
        for item in await cr_crud.attachment.get_by_change_request(db, change_request_id=change_request.id)
    ]
    detail.comments = [
        cr_schemas.CommentRead.model_validate(item)
        for item in await cr_crud.comment.get_by_change_request(db, change_request_id=change_request.id)
    ]
    return detail


# =============================================================================
# 1. /change-requests 엔드포인트
# =============================================================================
@change_requests_router.post(
    "", response_model=cr_schemas.ChangeRequestRead, status_code=status.HTTP_201_CREATED, summary="변경 요청 생성 (일괄)"
)
async def create_change_request(
    request_in: cr_schemas.ChangeRequestCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    원본(original)과 제안(proposed) 스냅샷으로 변경 요청을 생성합니다.
    - `diff`를 생략하면 서버에서 계산합니다.
    - `status`를 생략하면 바로 제출(submitted)됩니다. 빈 diff는 제출할 수 없습니다.
    """
    change_request = await cr_crud.change_request.create_with_changes(db, obj_in=request_in, user_id=current_user.id)
    return _to_read(change_request)


@change_requests_router.get("", response_model=List[cr_schemas.ChangeRequestRead], summary="변경 요청 목록 조회")
async def read_change_requests(
    db: AsyncSession = Depends(get_session),
    status_filter: Optional[str] = Query(None, alias="status"),
    target_type: Optional[str] = Query(None, alias="targetType"),
    category: Optional[str] = Query(None),
    vessel_id: Optional[str] = Query(None, alias="vesselId"),
    requested_by: Optional[int] = Query(None, alias="requestedBy"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    requests = await cr_crud.change_request.get_list(
        db,
        status=status_filter,
        target_type=target_type,
        category=category,
        vessel_id=vessel_id,
        requested_by=requested_by,
        skip=skip,
        limit=limit,
    )
    return [_to_read(item) for item in requests]


@change_requests_router.get("/{change_request_id}", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 조회")
async def read_change_request(
    change_request_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return _to_read(await cr_crud.change_request.get_or_404(db, id=change_request_id))


@change_requests_router.patch(
    "/{change_request_id}/status", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 검토 (상태 변경)"
)
async def update_change_request_status(
    change_request_id: int,
    status_in: cr_schemas.ChangeRequestStatusPatch,
    db: AsyncSession = Depends(get_session),
    reviewer: usr_models.User = Depends(deps.get_current_reviewer_user),
):
    """
    `status`는 Approved / Rejected / Returned 중 하나입니다. (대소문자 무시)
    검토자는 본문의 reviewerId가 아니라 인증된 사용자로 기록됩니다.
    """
    action = parse_review_status(status_in.status)
    change_request = await cr_crud.change_request.review(
        db, id=change_request_id, action=action, comment=status_in.comment, reviewer_id=reviewer.id
    )
    return _to_read(change_request)


@change_requests_router.get(
    "/{change_request_id}/comments", response_model=List[cr_schemas.CommentRead], summary="변경 요청 코멘트 목록"
)
async def read_change_request_comments(
    change_request_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await cr_crud.change_request.get_or_404(db, id=change_request_id)
    return await cr_crud.comment.get_by_change_request(db, change_request_id=change_request_id)


@change_requests_router.post(
    "/{change_request_id}/comments",
    response_model=cr_schemas.CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="변경 요청 코멘트 추가",
)
async def create_change_request_comment(
    change_request_id: int,
    comment_in: cr_schemas.CommentCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await cr_crud.comment.create_for_request(
        db, change_request_id=change_request_id, obj_in=comment_in, user_id=current_user.id
    )


@change_requests_router.get(
    "/{change_request_id}/attachments", response_model=List[cr_schemas.AttachmentRead], summary="변경 요청 첨부 파일 목록"
)
async def read_change_request_attachments(
    change_request_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await cr_crud.change_request.get_or_404(db, id=change_request_id)
    return await cr_crud.attachment.get_by_change_request(db, change_request_id=change_request_id)


@change_requests_router.post(
    "/{change_request_id}/attachments",
    response_model=cr_schemas.AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="변경 요청 첨부 파일 등록",
)
async def create_change_request_attachment(
    change_request_id: int,
    attachment_in: cr_schemas.AttachmentCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await cr_crud.attachment.create_for_request(
        db, change_request_id=change_request_id, obj_in=attachment_in, user_id=current_user.id
    )


# =============================================================================
# 2. /modify-pms/requests 엔드포인트
# =============================================================================
@modify_pms_router.get("/requests", response_model=List[cr_schemas.ChangeRequestRead], summary="변경 요청 목록 조회")
async def read_modify_requests(
    db: AsyncSession = Depends(get_session),
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    vessel_id: Optional[str] = Query(None, alias="vesselId"),
    q: Optional[str] = Query(None, description="제목/상태 부분 일치 검색 (대소문자 무시)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    requests = await cr_crud.change_request.get_list(
        db, category=category, status=status_filter, vessel_id=vessel_id, q=q, skip=skip, limit=limit
    )
    return [_to_read(item) for item in requests]


@modify_pms_router.post("/requests/preview", response_model=cr_schemas.PreviewResponse, summary="변경 요청 payload 미리보기")
async def preview_modify_request(
    preview_in: cr_schemas.PreviewRequest,
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    편집 중인 현재 스냅샷과 원본 스냅샷을 비교하여 제출될 payload와 섹션별 변경 건수를 반환합니다.
    두 스냅샷 중 하나라도 없으면 payload는 null입니다.
    `forSubmit`이 true이면 미완료 작업 지시 편집이나 빈 diff를 오류로 반환합니다.
    """
    payload = build_change_request_payload(
        preview_in.current, preview_in.original, preview_in.target, preview_in.reason
    )
    current = preview_in.current or {}
    if preview_in.for_submit:
        ensure_ready_to_submit(payload, current)
    diff = payload["diff"] if payload else {}
    tracking = {path: change for path, change in diff.items() if not isinstance(change, list)}
    section_counts = compute_section_counts(
        tracking, current.get("workOrders"), current.get("spares"), current.get("metrics")
    )
    return cr_schemas.PreviewResponse(
        payload=payload, section_counts=section_counts, diff_summary_count=count_diff_entries(diff)
    )


@modify_pms_router.get("/requests/{change_request_id}", response_model=cr_schemas.ChangeRequestDetail, summary="변경 요청 상세 조회")
async def read_modify_request(
    change_request_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """첨부 파일(attachments)과 코멘트(comments)를 포함하여 반환합니다."""
    change_request = await cr_crud.change_request.get_or_404(db, id=change_request_id)
    return await _to_detail(db, change_request)


@modify_pms_router.post(
    "/requests", response_model=cr_schemas.ChangeRequestRead, status_code=status.HTTP_201_CREATED, summary="변경 요청 초안 생성"
)
async def create_modify_request(
    request_in: cr_schemas.ChangeRequestDraftCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    change_request = await cr_crud.change_request.create_draft(db, obj_in=request_in, user_id=current_user.id)
    return _to_read(change_request)


@modify_pms_router.put("/requests/{change_request_id}", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 헤더 수정")
async def update_modify_request(
    change_request_id: int,
    request_in: cr_schemas.ChangeRequestHeaderUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    change_request = await cr_crud.change_request.update_header(db, id=change_request_id, obj_in=request_in)
    return _to_read(change_request)


@modify_pms_router.put(
    "/requests/{change_request_id}/target", response_model=cr_schemas.ChangeRequestRead, summary="변경 대상 지정"
)
async def update_modify_request_target(
    change_request_id: int,
    target_in: cr_schemas.ChangeRequestTargetUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    change_request = await cr_crud.change_request.update_target(db, id=change_request_id, obj_in=target_in)
    return _to_read(change_request)


@modify_pms_router.put(
    "/requests/{change_request_id}/proposed", response_model=cr_schemas.ChangeRequestRead, summary="제안 변경 저장"
)
async def update_modify_request_proposed(
    change_request_id: int,
    proposed_in: cr_schemas.ChangeRequestProposedUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    change_request = await cr_crud.change_request.update_proposed(db, id=change_request_id, obj_in=proposed_in)
    return _to_read(change_request)


@modify_pms_router.put(
    "/requests/{change_request_id}/submit", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 제출"
)
async def submit_modify_request(
    change_request_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    change_request = await cr_crud.change_request.submit(db, id=change_request_id, user_id=current_user.id)
    return _to_read(change_request)


async def _review(
    db: AsyncSession, change_request_id: int, action: ReviewAction, review_in: cr_schemas.ReviewRequest, reviewer: usr_models.User
) -> cr_schemas.ChangeRequestRead:
    change_request = await cr_crud.change_request.review(
        db, id=change_request_id, action=action, comment=review_in.comment, reviewer_id=reviewer.id
    )
    return _to_read(change_request)


@modify_pms_router.put(
    "/requests/{change_request_id}/approve", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 승인"
)
async def approve_modify_request(
    change_request_id: int,
    review_in: cr_schemas.ReviewRequest,
    db: AsyncSession = Depends(get_session),
    reviewer: usr_models.User = Depends(deps.get_current_reviewer_user),
):
    """기기 대상 요청은 승인과 동시에 제안 변경이 기기 레지스터에 반영됩니다."""
    return await _review(db, change_request_id, ReviewAction.APPROVE, review_in, reviewer)


@modify_pms_router.put(
    "/requests/{change_request_id}/reject", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 반려"
)
async def reject_modify_request(
    change_request_id: int,
    review_in: cr_schemas.ReviewRequest,
    db: AsyncSession = Depends(get_session),
    reviewer: usr_models.User = Depends(deps.get_current_reviewer_user),
):
    return await _review(db, change_request_id, ReviewAction.REJECT, review_in, reviewer)


@modify_pms_router.put(
    "/requests/{change_request_id}/return", response_model=cr_schemas.ChangeRequestRead, summary="변경 요청 반송 (보완 요청)"
)
async def return_modify_request(
    change_request_id: int,
    review_in: cr_schemas.ReviewRequest,
    db: AsyncSession = Depends(get_session),
    reviewer: usr_models.User = Depends(deps.get_current_reviewer_user),
):
    return await _review(db, change_request_id, ReviewAction.RETURN, review_in, reviewer)


@modify_pms_router.delete(
    "/requests/{change_request_id}", response_model=cr_schemas.SuccessResponse, summary="변경 요청 초안 삭제"
)
async def delete_modify_request(
    change_request_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await cr_crud.change_request.remove(db, id=change_request_id)
    return cr_schemas.SuccessResponse(success=True)


@modify_pms_router.post(
    "/requests/{change_request_id}/comments",
    response_model=cr_schemas.CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="변경 요청 코멘트 추가",
)
async def create_modify_request_comment(
    change_request_id: int,
    comment_in: cr_schemas.CommentCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await cr_crud.comment.create_for_request(
        db, change_request_id=change_request_id, obj_in=comment_in, user_id=current_user.id
    )


@modify_pms_router.post(
    "/requests/{change_request_id}/attachments",
    response_model=cr_schemas.AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="변경 요청 첨부 파일 등록 (URL)",
)
async def create_modify_request_attachment(
    change_request_id: int,
    attachment_in: cr_schemas.AttachmentCreate,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await cr_crud.attachment.create_for_request(
        db, change_request_id=change_request_id, obj_in=attachment_in, user_id=current_user.id
    )


@modify_pms_router.post(
    "/requests/{change_request_id}/attachments/upload",
    response_model=cr_schemas.AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="변경 요청 첨부 파일 업로드",
)
async def upload_modify_request_attachment(
    change_request_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await cr_crud.change_request.get_or_404(db, id=change_request_id)
    filename, url = await save_upload_file(f"change_requests/{change_request_id}", file)
    return await cr_crud.attachment.create_for_request(
        db,
        change_request_id=change_request_id,
        obj_in=cr_schemas.AttachmentCreate(filename=filename, url=url),
        user_id=current_user.id,
    )
