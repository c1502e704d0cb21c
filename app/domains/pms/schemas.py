# app/domains/pms/schemas.py

"""
'pms' 도메인 (기기 레지스터)의 API 데이터 전송 객체(DTO)를 정의하는 모듈입니다.
"""

from typing import Optional, Dict, Any
from datetime import datetime
from sqlmodel import SQLModel, Field


# =============================================================================
# 1. 기기 (Component) 스키마
# =============================================================================
class ComponentBase(SQLModel):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=200)
    vessel_id: str = Field("V001", max_length=20)
    maker: Optional[str] = None
    model: Optional[str] = None
    serial_no: Optional[str] = None
    drawing_no: Optional[str] = None
    component_category: Optional[str] = None
    location: Optional[str] = None
    critical: Optional[str] = None
    installation: Optional[str] = None
    commissioned_date: Optional[str] = None
    rating: Optional[str] = None
    condition_based: Optional[str] = None
    no_of_units: Optional[str] = None
    equipment_department: Optional[str] = None
    parent_component: Optional[str] = None
    dimensions_size: Optional[str] = None
    notes: Optional[str] = None
    running_hours: Optional[str] = None
    date_updated: Optional[str] = None
    utilization_rate: Optional[str] = None
    avg_daily_usage: Optional[str] = None
    vibration: Optional[str] = None
    temperature: Optional[str] = None
    pressure: Optional[str] = None
    classification: Optional[Dict[str, Any]] = None


class ComponentCreate(ComponentBase):
    pass


class ComponentUpdate(SQLModel):
    name: Optional[str] = Field(None, max_length=200)
    vessel_id: Optional[str] = Field(None, max_length=20)
    maker: Optional[str] = None
    model: Optional[str] = None
    serial_no: Optional[str] = None
    drawing_no: Optional[str] = None
    component_category: Optional[str] = None
    location: Optional[str] = None
    critical: Optional[str] = None
    installation: Optional[str] = None
    commissioned_date: Optional[str] = None
    rating: Optional[str] = None
    condition_based: Optional[str] = None
    no_of_units: Optional[str] = None
    equipment_department: Optional[str] = None
    parent_component: Optional[str] = None
    dimensions_size: Optional[str] = None
    notes: Optional[str] = None
    running_hours: Optional[str] = None
    date_updated: Optional[str] = None
    utilization_rate: Optional[str] = None
    avg_daily_usage: Optional[str] = None
    vibration: Optional[str] = None
    temperature: Optional[str] = None
    pressure: Optional[str] = None
    classification: Optional[Dict[str, Any]] = None


class ComponentRead(ComponentBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 2. 작업 지시 (WorkOrder) 스키마
# =============================================================================
class WorkOrderCreate(SQLModel):
    wo_no: Optional[str] = Field(None, max_length=50, description="비워두면 자동 채번")
    job_title: str = Field(..., min_length=1, max_length=200)
    assigned_to: Optional[str] = None
    frequency_type: str = Field("Calendar", max_length=20)
    frequency_value: int = Field(30, gt=0)
    initial_next_due: Optional[str] = None
    notes: Optional[str] = None


class WorkOrderRead(WorkOrderCreate):
    id: int
    component_id: int
    wo_no: Optional[str] = None


# =============================================================================
# 3. 기기-예비품 연결 (ComponentSpare) 스키마
# =============================================================================
class ComponentSpareCreate(SQLModel):
    part_code: str = Field(..., max_length=50)
    part_name: Optional[str] = None
    min: int = Field(0, ge=0)
    critical: str = Field("No", max_length=10)
    location: Optional[str] = None


class ComponentSpareRead(ComponentSpareCreate):
    id: int
    component_id: int


# =============================================================================
# 4. 상태 감시 항목 (ConditionMetric) 스키마
# =============================================================================
class ConditionMetricCreate(SQLModel):
    name: str = Field(..., max_length=100)
    value: float = 0


class ConditionMetricRead(ConditionMetricCreate):
    id: int
    component_id: int
