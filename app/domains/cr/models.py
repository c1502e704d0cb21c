# app/domains/cr/models.py

"""
'cr' 도메인 (PostgreSQL 'cr' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

- change_requests: 변경 요청 본문 (대상, 원본 스냅샷, 제안 변경, 상태, 검토 정보)
- change_request_comments: 변경 요청 코멘트 (검토 코멘트 포함)
- change_request_attachments: 변경 요청 첨부 파일
"""

from typing import Optional, Dict, Any
from datetime import datetime, UTC
from sqlalchemy import ForeignKey, Integer
from sqlalchemy.types import TIMESTAMP
from sqlalchemy.sql import func
from sqlmodel import Field, SQLModel, Column

from app.core.database import JSONVariant
from .workflow import ChangeRequestStatus


# =============================================================================
# 1. cr.change_requests 테이블 모델
# =============================================================================
class ChangeRequestBase(SQLModel):
    vessel_id: Optional[str] = Field(default=None, max_length=20, description="선박 ID")
    category: str = Field(default="components", max_length=20, description="components / work_orders / spares / stores")
    title: str = Field(max_length=120, description="요청 제목")
    reason: Optional[str] = Field(default=None, description="변경 사유")

    # --- 대상 ---
    target_type: Optional[str] = Field(default=None, max_length=20, description="component / work_order / spare / store")
    target_id: Optional[str] = Field(default=None, max_length=50, description="대상 레코드 ID")
    target_path: Optional[str] = Field(default=None, max_length=255, description="대상 경로 (예: 601 > 601.001)")

    # --- 스냅샷 및 제안 변경 ---
    snapshot_before_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONVariant))
    proposed_changes_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONVariant))
    move_preview_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONVariant))

    status: str = Field(default=ChangeRequestStatus.DRAFT.value, max_length=20, index=True)

    # --- 요청 / 검토 정보 ---
    requested_by_user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("usr.users.id", ondelete="SET NULL"), nullable=True)
    )
    submitted_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True), nullable=True))
    reviewed_by_user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("usr.users.id", ondelete="SET NULL"), nullable=True)
    )
    reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True), nullable=True))
    review_comment: Optional[str] = Field(default=None)


class ChangeRequest(ChangeRequestBase, table=True):
    __tablename__ = "change_requests"
    __table_args__ = {'schema': 'cr'}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )


# =============================================================================
# 2. cr.change_request_comments 테이블 모델
# =============================================================================
class ChangeRequestComment(SQLModel, table=True):
    __tablename__ = "change_request_comments"
    __table_args__ = {'schema': 'cr'}

    id: Optional[int] = Field(default=None, primary_key=True)
    change_request_id: int = Field(
        sa_column=Column(Integer, ForeignKey("cr.change_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("usr.users.id", ondelete="SET NULL"), nullable=True)
    )
    message: str
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )


# =============================================================================
# 3. cr.change_request_attachments 테이블 모델
# =============================================================================
class ChangeRequestAttachment(SQLModel, table=True):
    __tablename__ = "change_request_attachments"
    __table_args__ = {'schema': 'cr'}

    id: Optional[int] = Field(default=None, primary_key=True)
    change_request_id: int = Field(
        sa_column=Column(Integer, ForeignKey("cr.change_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    filename: str = Field(max_length=255)
    url: str = Field(max_length=500)
    uploaded_by_user_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("usr.users.id", ondelete="SET NULL"), nullable=True)
    )
    uploaded_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )
