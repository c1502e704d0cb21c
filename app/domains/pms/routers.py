# app/domains/pms/routers.py

"""
'pms' 도메인 (기기 레지스터)과 관련된 API 엔드포인트를 정의하는 모듈입니다.

기기 정보의 직접 생성/수정은 관리자 전용이며, 일반 사용자의 변경은 변경 요청(cr)을 통해 반영됩니다.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_session
from app.core import dependencies as deps
from app.domains.usr import models as usr_models

from . import crud as pms_crud
from . import schemas as pms_schemas
from . import services as pms_services


router = APIRouter(
    tags=["PMS Component Register (기기 레지스터)"],
    responses={404: {"description": "Not found"}},
)


async def _get_component_or_404(db: AsyncSession, component_id: int):
    component = await pms_crud.component.get(db, component_id)
    if not component:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")
    return component


# =============================================================================
# 1. 기기 (Component) 엔드포인트
# =============================================================================
@router.post("/components", response_model=pms_schemas.ComponentRead, status_code=status.HTTP_201_CREATED, summary="기기 등록")
async def create_component(
    component_in: pms_schemas.ComponentCreate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    return await pms_crud.component.create(db, obj_in=component_in)


@router.get("/components", response_model=List[pms_schemas.ComponentRead], summary="기기 목록 조회")
async def read_components(
    db: AsyncSession = Depends(get_session),
    vessel_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="코드/이름/제조사 부분 일치 검색"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await pms_crud.component.get_filtered(
        db,
        filters={"vessel_id": vessel_id},
        search=search,
        search_fields=("code", "name", "maker"),
        order_by_field="code",
        order_desc=False,
        skip=skip,
        limit=limit,
    )


@router.get("/components/{component_id}", response_model=pms_schemas.ComponentRead, summary="기기 조회")
async def read_component(
    component_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    return await _get_component_or_404(db, component_id)


@router.get("/components/{component_id}/snapshot", response_model=Dict[str, Any], summary="변경 요청용 기기 스냅샷")
async def read_component_snapshot(
    component_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    """
    변경 요청 편집 화면의 원본 스냅샷(camelCase)을 반환합니다.
    작업 지시(workOrders), 예비품(spares), 상태 감시 항목(metrics) 목록을 포함합니다.
    """
    return await pms_services.get_component_snapshot(db, component_id=component_id)


@router.put("/components/{component_id}", response_model=pms_schemas.ComponentRead, summary="기기 정보 수정")
async def update_component(
    component_id: int,
    component_in: pms_schemas.ComponentUpdate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    db_component = await _get_component_or_404(db, component_id)
    return await pms_crud.component.update(db, db_obj=db_component, obj_in=component_in)


@router.delete("/components/{component_id}", status_code=status.HTTP_204_NO_CONTENT, summary="기기 삭제")
async def delete_component(
    component_id: int,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    await pms_crud.component.remove(db, id=component_id)
    return None


# =============================================================================
# 2. 기기 하위 목록 (작업 지시, 예비품, 상태 감시 항목) 엔드포인트
# =============================================================================
@router.get("/components/{component_id}/work_orders", response_model=List[pms_schemas.WorkOrderRead], summary="작업 지시 목록")
async def read_work_orders(
    component_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await _get_component_or_404(db, component_id)
    return await pms_crud.work_order.get_by_component(db, component_id=component_id)


@router.post(
    "/components/{component_id}/work_orders",
    response_model=pms_schemas.WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="작업 지시 등록",
)
async def create_work_order(
    component_id: int,
    work_order_in: pms_schemas.WorkOrderCreate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    await _get_component_or_404(db, component_id)
    return await pms_crud.work_order.create_for_component(db, component_id=component_id, obj_in=work_order_in)


@router.get("/components/{component_id}/spares", response_model=List[pms_schemas.ComponentSpareRead], summary="연결 예비품 목록")
async def read_spares(
    component_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await _get_component_or_404(db, component_id)
    return await pms_crud.component_spare.get_by_component(db, component_id=component_id)


@router.post(
    "/components/{component_id}/spares",
    response_model=pms_schemas.ComponentSpareRead,
    status_code=status.HTTP_201_CREATED,
    summary="예비품 연결",
)
async def create_spare(
    component_id: int,
    spare_in: pms_schemas.ComponentSpareCreate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    await _get_component_or_404(db, component_id)
    return await pms_crud.component_spare.create_for_component(db, component_id=component_id, obj_in=spare_in)


@router.get("/components/{component_id}/metrics", response_model=List[pms_schemas.ConditionMetricRead], summary="상태 감시 항목 목록")
async def read_metrics(
    component_id: int,
    db: AsyncSession = Depends(get_session),
    current_user: usr_models.User = Depends(deps.get_current_active_user),
):
    await _get_component_or_404(db, component_id)
    return await pms_crud.condition_metric.get_by_component(db, component_id=component_id)


@router.post(
    "/components/{component_id}/metrics",
    response_model=pms_schemas.ConditionMetricRead,
    status_code=status.HTTP_201_CREATED,
    summary="상태 감시 항목 등록",
)
async def create_metric(
    component_id: int,
    metric_in: pms_schemas.ConditionMetricCreate,
    db: AsyncSession = Depends(get_session),
    current_admin_user: usr_models.User = Depends(deps.get_current_admin_user),
):
    await _get_component_or_404(db, component_id)
    return await pms_crud.condition_metric.create_for_component(db, component_id=component_id, obj_in=metric_in)
