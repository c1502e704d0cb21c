# app/domains/pms/models.py

"""
'pms' 도메인 (PostgreSQL 'pms' 스키마)의 데이터베이스 ORM 모델을 정의하는 모듈입니다.

변경 요청(Change Request)의 대상(target)이 되는 기기(component) 레지스터를 구성합니다.
- components: 기기 기본 정보 (섹션 A), 운전 시간/상태 (섹션 B), 선급 정보 (섹션 G)
- work_orders: 기기별 정비 작업 지시 (섹션 C)
- component_spares: 기기에 연결된 예비품 (섹션 E)
- condition_metrics: 기기 상태 감시 항목 (섹션 B)
"""

from typing import Optional, Dict, Any
from datetime import datetime, UTC
from sqlalchemy import ForeignKey, Integer
from sqlalchemy.types import TIMESTAMP
from sqlalchemy.sql import func
from sqlmodel import Field, SQLModel, Column

from app.core.database import JSONVariant


# =============================================================================
# 1. pms.components 테이블 모델
# =============================================================================
class ComponentBase(SQLModel):
    code: str = Field(max_length=50, sa_column_kwargs={"unique": True}, description="기기 코드 (예: 601.001)")
    name: str = Field(max_length=200, description="기기명")
    vessel_id: str = Field(default="V001", max_length=20, description="선박 ID")

    # --- 섹션 A: 기기 정보 ---
    maker: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    serial_no: Optional[str] = Field(default=None, max_length=100)
    drawing_no: Optional[str] = Field(default=None, max_length=100)
    component_category: Optional[str] = Field(default=None, max_length=100)
    location: Optional[str] = Field(default=None, max_length=100)
    critical: Optional[str] = Field(default=None, max_length=10, description="Yes / No")
    installation: Optional[str] = Field(default=None, max_length=50)
    commissioned_date: Optional[str] = Field(default=None, max_length=20)
    rating: Optional[str] = Field(default=None, max_length=100)
    condition_based: Optional[str] = Field(default=None, max_length=10)
    no_of_units: Optional[str] = Field(default=None, max_length=20)
    equipment_department: Optional[str] = Field(default=None, max_length=100)
    parent_component: Optional[str] = Field(default=None, max_length=100)
    dimensions_size: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None)

    # --- 섹션 B: 운전 시간 및 상태 ---
    running_hours: Optional[str] = Field(default=None, max_length=20)
    date_updated: Optional[str] = Field(default=None, max_length=20)
    utilization_rate: Optional[str] = Field(default=None, max_length=20)
    avg_daily_usage: Optional[str] = Field(default=None, max_length=20)
    vibration: Optional[str] = Field(default=None, max_length=20)
    temperature: Optional[str] = Field(default=None, max_length=20)
    pressure: Optional[str] = Field(default=None, max_length=20)

    # --- 섹션 G: 선급 정보 (classProvider, certificateNo, nextDataSurvey, classNotation, surveyor) ---
    classification: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSONVariant))


class Component(ComponentBase, table=True):
    __tablename__ = "components"
    __table_args__ = {'schema': 'pms'}

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
# 2. pms.work_orders 테이블 모델
# =============================================================================
class WorkOrderBase(SQLModel):
    component_id: int = Field(
        sa_column=Column(Integer, ForeignKey("pms.components.id", ondelete="CASCADE"), nullable=False)
    )
    wo_no: Optional[str] = Field(default=None, max_length=50, sa_column_kwargs={"unique": True}, description="작업 지시 번호")
    job_title: str = Field(max_length=200)
    assigned_to: Optional[str] = Field(default=None, max_length=100)
    frequency_type: str = Field(default="Calendar", max_length=20, description="Calendar / Running Hours")
    frequency_value: int = Field(default=30, description="주기 값 (일 또는 운전 시간)")
    initial_next_due: Optional[str] = Field(default=None, max_length=20)
    notes: Optional[str] = Field(default=None)


class WorkOrder(WorkOrderBase, table=True):
    __tablename__ = "work_orders"
    __table_args__ = {'schema': 'pms'}

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
# 3. pms.component_spares 테이블 모델 (기기-예비품 연결)
# =============================================================================
class ComponentSpareBase(SQLModel):
    component_id: int = Field(
        sa_column=Column(Integer, ForeignKey("pms.components.id", ondelete="CASCADE"), nullable=False)
    )
    part_code: str = Field(max_length=50, description="예비품 코드")
    part_name: Optional[str] = Field(default=None, max_length=200)
    min: int = Field(default=0, description="최소 보유 수량")
    critical: str = Field(default="No", max_length=10, description="Yes / No")
    location: Optional[str] = Field(default=None, max_length=100)


class ComponentSpare(ComponentSpareBase, table=True):
    __tablename__ = "component_spares"
    __table_args__ = {'schema': 'pms'}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="레코드 생성 일시"
    )


# =============================================================================
# 4. pms.condition_metrics 테이블 모델
# =============================================================================
class ConditionMetricBase(SQLModel):
    component_id: int = Field(
        sa_column=Column(Integer, ForeignKey("pms.components.id", ondelete="CASCADE"), nullable=False)
    )
    name: str = Field(max_length=100)
    value: float = Field(default=0)


class ConditionMetric(ConditionMetricBase, table=True):
    __tablename__ = "condition_metrics"
    __table_args__ = {'schema': 'pms'}

    id: Optional[int] = Field(default=None, primary_key=True)
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="레코드 마지막 업데이트 일시"
    )
