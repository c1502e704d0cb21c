# app/domains/pms/services.py

"""
기기 레지스터와 변경 요청 사이의 데이터 변환을 담당하는 서비스 모듈입니다.

- build_component_snapshot: 기기와 하위 목록을 변경 요청용 camelCase 스냅샷으로 변환
- apply_component_diff: 승인된 변경 요청의 diff를 실제 레코드에 반영 (커밋은 호출자가 수행)
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic.alias_generators import to_camel, to_snake
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import NotFoundError
from . import models as pms_models
from . import crud as pms_crud
from . import schemas as pms_schemas

logger = logging.getLogger(__name__)

COMPONENT_FIELDS = [name for name in pms_schemas.ComponentBase.model_fields if name != "classification"]
WORK_ORDER_FIELDS = ("wo_no", "job_title", "assigned_to", "frequency_type", "frequency_value", "initial_next_due", "notes")
SPARE_FIELDS = ("part_code", "part_name", "min", "critical", "location")
METRIC_FIELDS = ("name", "value")

# diff에서 수정할 수 없는 컬럼
_PROTECTED_FIELDS = {"id", "component_id", "created_at", "updated_at"}
# 숫자 컬럼의 형 변환 (화면에서 문자열로 들어오는 경우가 있음)
_NUMERIC_FIELDS = {"frequency_value": int, "min": int, "value": float}


def _camel_record(obj: Any, fields: Sequence[str]) -> Dict[str, Any]:
    record = {"id": str(obj.id)}
    for name in fields:
        record[to_camel(name)] = getattr(obj, name)
    return record


def build_component_snapshot(
    component: pms_models.Component,
    work_orders: Sequence[pms_models.WorkOrder] = (),
    spares: Sequence[pms_models.ComponentSpare] = (),
    metrics: Sequence[pms_models.ConditionMetric] = (),
) -> Dict[str, Any]:
    """변경 요청의 원본/현재 스냅샷 형식(camelCase, ID는 문자열)으로 기기를 변환합니다."""
    snapshot = _camel_record(component, COMPONENT_FIELDS)
    snapshot["classification"] = dict(component.classification or {})
    snapshot["workOrders"] = [_camel_record(wo, WORK_ORDER_FIELDS) for wo in work_orders]
    snapshot["spares"] = [_camel_record(spare, SPARE_FIELDS) for spare in spares]
    snapshot["metrics"] = [_camel_record(metric, METRIC_FIELDS) for metric in metrics]
    return snapshot


async def get_component_snapshot(db: AsyncSession, *, component_id: int) -> Dict[str, Any]:
    component = await pms_crud.component.get(db, id=component_id)
    if not component:
        raise NotFoundError("Component not found")
    return build_component_snapshot(
        component,
        await pms_crud.work_order.get_by_component(db, component_id=component_id),
        await pms_crud.component_spare.get_by_component(db, component_id=component_id),
        await pms_crud.condition_metric.get_by_component(db, component_id=component_id),
    )


# =============================================================================
# 승인된 diff 적용
# =============================================================================
def _coerce(field_name: str, value: Any) -> Any:
    caster = _NUMERIC_FIELDS.get(field_name)
    if caster is None or value is None or value == "":
        return value
    return caster(value)


def _apply_fields(obj: Any, fields: Mapping[str, Any], *, allowed: Sequence[str]) -> int:
    """camelCase 필드 맵(`{field: value}` 또는 `{field: {from, to}}`)을 모델에 반영합니다."""
    applied = 0
    for camel_name, value in fields.items():
        name = to_snake(camel_name)
        if name in _PROTECTED_FIELDS or name not in allowed:
            logger.warning("Skipping unknown field '%s' on %s", camel_name, type(obj).__name__)
            continue
        if isinstance(value, Mapping) and "to" in value:
            value = value["to"]
        setattr(obj, name, _coerce(name, value))
        applied += 1
    return applied


def _pick(record: Mapping[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
    picked = {}
    for name in fields:
        camel_name = to_camel(name)
        if camel_name in record and record[camel_name] is not None:
            picked[name] = _coerce(name, record[camel_name])
    return picked


async def _get_metric(db: AsyncSession, component_id: int, metric_id: Any) -> Optional[pms_models.ConditionMetric]:
    try:
        metric = await db.get(pms_models.ConditionMetric, int(metric_id))
    except (TypeError, ValueError):
        return None
    if metric is None or metric.component_id != component_id:
        return None
    return metric


async def apply_component_diff(db: AsyncSession, *, component_id: int, diff: Mapping[str, Any]) -> Dict[str, int]:
    """
    승인된 변경 요청의 diff를 기기와 하위 목록에 반영합니다.

    세션에 변경 사항만 추가하고 커밋하지 않으므로, 호출자가 상태 전이와 같은 트랜잭션으로 커밋합니다.
    대상 행이 이미 없어진 경우(다른 요청으로 삭제 등)에는 경고 로그를 남기고 건너뜁니다.
    """
    component = await db.get(pms_models.Component, component_id)
    if component is None:
        raise NotFoundError("Target component not found")

    result = {"fields": 0, "added": 0, "modified": 0, "removed": 0, "skipped": 0}

    # --- 1. 스칼라 필드 (섹션 A, B, G) ---
    classification = dict(component.classification or {})
    classification_changed = False
    for key, change in diff.items():
        if isinstance(change, list):
            continue
        parts = key.split(".")
        to_value = change.get("to") if isinstance(change, Mapping) else change
        if len(parts) == 3 and parts[1] == "classification":
            classification[parts[2]] = to_value
            classification_changed = True
            result["fields"] += 1
        elif len(parts) <= 2 and to_snake(parts[-1]) in COMPONENT_FIELDS:
            # "A.maker" 형식과 섹션이 없는 "maker" 형식을 모두 허용
            setattr(component, to_snake(parts[-1]), to_value)
            result["fields"] += 1
        else:
            logger.warning("Skipping unsupported diff key '%s'", key)
            result["skipped"] += 1
    if classification_changed:
        component.classification = classification
    db.add(component)

    # --- 2. 작업 지시 (섹션 C) ---
    new_work_orders: List[pms_models.WorkOrder] = []
    for record in diff.get("C.workOrders.added", []):
        work_order = pms_models.WorkOrder(component_id=component_id, **_pick(record, WORK_ORDER_FIELDS[1:]))
        db.add(work_order)
        new_work_orders.append(work_order)
        result["added"] += 1
    for record in diff.get("C.workOrders.modified", []):
        work_order = await pms_crud.work_order.get_by_wo_no(db, component_id=component_id, wo_no=record.get("woNo"))
        if work_order is None:
            logger.warning("Work order %s not found, modification skipped", record.get("woNo"))
            result["skipped"] += 1
            continue
        _apply_fields(work_order, record.get("fields", {}), allowed=WORK_ORDER_FIELDS[1:])
        db.add(work_order)
        result["modified"] += 1
    for record in diff.get("C.workOrders.removed", []):
        work_order = await pms_crud.work_order.get_by_wo_no(db, component_id=component_id, wo_no=record.get("woNo"))
        if work_order is None:
            logger.warning("Work order %s not found, removal skipped", record.get("woNo"))
            result["skipped"] += 1
            continue
        await db.delete(work_order)
        result["removed"] += 1

    # --- 3. 예비품 연결 (섹션 E) ---
    for record in diff.get("E.spares.added", []):
        part_code = record.get("partCode")
        if await pms_crud.component_spare.get_by_part_code(db, component_id=component_id, part_code=part_code):
            logger.warning("Spare %s already linked, link skipped", part_code)
            result["skipped"] += 1
            continue
        db.add(pms_models.ComponentSpare(component_id=component_id, **_pick(record, SPARE_FIELDS)))
        result["added"] += 1
    for record in diff.get("E.spares.modified", []):
        spare = await pms_crud.component_spare.get_by_part_code(db, component_id=component_id, part_code=record.get("partCode"))
        if spare is None:
            logger.warning("Spare %s not linked, modification skipped", record.get("partCode"))
            result["skipped"] += 1
            continue
        _apply_fields(spare, record.get("fields", {}), allowed=SPARE_FIELDS[1:])
        db.add(spare)
        result["modified"] += 1
    for record in diff.get("E.spares.removed", []):
        spare = await pms_crud.component_spare.get_by_part_code(db, component_id=component_id, part_code=record.get("partCode"))
        if spare is None:
            logger.warning("Spare %s not linked, unlink skipped", record.get("partCode"))
            result["skipped"] += 1
            continue
        await db.delete(spare)
        result["removed"] += 1

    # --- 4. 상태 감시 항목 (섹션 B) ---
    for record in diff.get("B.metrics.added", []):
        db.add(pms_models.ConditionMetric(component_id=component_id, **_pick(record, METRIC_FIELDS)))
        result["added"] += 1
    for record in diff.get("B.metrics.modified", []):
        metric = await _get_metric(db, component_id, record.get("id"))
        if metric is None:
            logger.warning("Metric %s not found, modification skipped", record.get("id"))
            result["skipped"] += 1
            continue
        _apply_fields(metric, record.get("fields", {}), allowed=METRIC_FIELDS)
        db.add(metric)
        result["modified"] += 1
    for record in diff.get("B.metrics.removed", []):
        metric = await _get_metric(db, component_id, record.get("id"))
        if metric is None:
            logger.warning("Metric %s not found, removal skipped", record.get("id"))
            result["skipped"] += 1
            continue
        await db.delete(metric)
        result["removed"] += 1

    await db.flush()
    for work_order in new_work_orders:
        if not work_order.wo_no:
            work_order.wo_no = pms_crud.make_wo_no(work_order.id)
            db.add(work_order)
    await db.flush()

    logger.info("Applied diff to component %s: %s", component_id, result)
    return result
