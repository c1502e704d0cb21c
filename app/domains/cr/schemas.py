# app/domains/cr/schemas.py

"""
'cr' 도메인 (변경 요청)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.

변경 요청 API는 프런트엔드와의 호환을 위해 camelCase JSON을 주고받습니다.
(입력은 camelCase와 snake_case 모두 허용)
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .workflow import ChangeRequestCategory, ChangeRequestStatus, TargetType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


def _id_to_str(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return str(value)


# =============================================================================
# 1. 코멘트 / 첨부 파일 스키마
# =============================================================================
class CommentCreate(CamelModel):
    message: Optional[str] = None


class CommentRead(CamelModel):
    id: int
    change_request_id: int
    user_id: Optional[int] = None
    message: str
    created_at: Optional[datetime] = None


class AttachmentCreate(CamelModel):
    filename: Optional[str] = None
    url: Optional[str] = None


class AttachmentRead(CamelModel):
    id: int
    change_request_id: int
    filename: str
    url: str
    uploaded_by_user_id: Optional[int] = None
    uploaded_at: Optional[datetime] = None


# =============================================================================
# 2. 변경 요청 조회 스키마
# =============================================================================
class ChangeRequestRead(CamelModel):
    id: int
    vessel_id: Optional[str] = None
    category: str
    title: str
    reason: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    target_path: Optional[str] = None
    snapshot_before_json: Optional[Dict[str, Any]] = None
    proposed_changes_json: Optional[Dict[str, Any]] = None
    move_preview_json: Optional[Dict[str, Any]] = None
    status: str
    requested_by_user_id: Optional[int] = None
    submitted_at: Optional[datetime] = None
    reviewed_by_user_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    diff_summary_count: int = 0


class ChangeRequestDetail(ChangeRequestRead):
    """첨부 파일과 코멘트를 포함한 상세 조회 응답"""
    attachments: List[AttachmentRead] = []
    comments: List[CommentRead] = []


# =============================================================================
# 3. modify-pms (초안 우선) 요청 스키마
# =============================================================================
class ChangeRequestDraftCreate(CamelModel):
    """초안 생성. 제목만 필수이며 나머지는 이후 단계에서 채웁니다."""
    title: Optional[str] = None
    category: Optional[ChangeRequestCategory] = None
    vessel_id: Optional[str] = None
    reason: Optional[str] = None
    target_type: Optional[TargetType] = None
    target_id: Optional[str] = None
    target_path: Optional[str] = None

    @field_validator("target_id", mode="before")
    @classmethod
    def normalize_target_id(cls, value: Any) -> Any:
        return _id_to_str(value)


class ChangeRequestHeaderUpdate(CamelModel):
    title: Optional[str] = None
    category: Optional[ChangeRequestCategory] = None
    vessel_id: Optional[str] = None
    reason: Optional[str] = None
    target_path: Optional[str] = None


class ChangeRequestTargetUpdate(CamelModel):
    target_type: TargetType
    target_id: str
    target_path: Optional[str] = None
    snapshot_before_json: Optional[Dict[str, Any]] = None

    @field_validator("target_id", mode="before")
    @classmethod
    def normalize_target_id(cls, value: Any) -> Any:
        return _id_to_str(value)


class ChangeRequestProposedUpdate(CamelModel):
    proposed_changes_json: Optional[Dict[str, Any]] = None
    move_preview_json: Optional[Dict[str, Any]] = None


class ReviewRequest(CamelModel):
    comment: Optional[str] = None


class SuccessResponse(CamelModel):
    success: bool = True


class PreviewRequest(CamelModel):
    current: Optional[Dict[str, Any]] = None
    original: Optional[Dict[str, Any]] = None
    target: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    for_submit: bool = False            # true이면 제출 전 검사를 함께 수행


class PreviewResponse(CamelModel):
    payload: Optional[Dict[str, Any]] = None
    section_counts: Dict[str, int] = {}
    diff_summary_count: int = 0


# =============================================================================
# 4. change-requests (일괄 생성) 요청 스키마
# =============================================================================
class ChangeRequestCreate(CamelModel):
    """
    원본/제안 스냅샷을 한 번에 보내는 생성 요청입니다.
    diff를 생략하면 서버에서 계산합니다. submittedBy/submittedAt은 기록용으로만 받습니다.
    """
    target_type: TargetType
    target_id: str
    target_path: Optional[str] = None
    original: Optional[Dict[str, Any]] = None
    proposed: Optional[Dict[str, Any]] = None
    diff: Optional[Dict[str, Any]] = None
    submitted_by: Optional[Union[int, str]] = None
    submitted_at: Optional[datetime] = None
    status: Optional[str] = Field(None, description="draft 또는 submitted (기본값 submitted)")
    title: Optional[str] = None
    reason: Optional[str] = None
    vessel_id: Optional[str] = None
    category: Optional[ChangeRequestCategory] = None

    @field_validator("target_id", mode="before")
    @classmethod
    def normalize_target_id(cls, value: Any) -> Any:
        return _id_to_str(value)

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        normalized = value.strip().lower()
        if normalized not in (ChangeRequestStatus.DRAFT.value, ChangeRequestStatus.SUBMITTED.value):
            raise ValueError("status must be 'draft' or 'submitted'")
        return normalized


class ChangeRequestStatusPatch(CamelModel):
    """PATCH /{id}/status 본문. reviewerId는 기록용이며 인증 사용자가 검토자로 기록됩니다."""
    status: str
    reviewer_id: Optional[Union[int, str]] = None
    comment: Optional[str] = None
