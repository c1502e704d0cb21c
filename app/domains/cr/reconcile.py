# app/domains/cr/reconcile.py

"""
목록형 엔티티(작업 지시, 예비품, 상태 감시 항목)의 편집 수명주기를 다루는 모듈입니다.

각 항목은 원본 레코드에 다음과 같은 일시적인 편집 상태 플래그를 가집니다.
- 신규 플래그 (`isNew`, 예비품은 `isLinkedNew`)
- 제거 플래그 (`pendingDelete`, 예비품은 `pendingUnlink`)
- `isEditing`: 편집 중 여부 (제거 플래그가 꺼져 있을 때만 의미가 있음)
- `originalData`: 최초 편집 시점의 스냅샷 (diff 계산 기준)
- `editSnapshot`: 현재 편집 세션 시작 시점의 스냅샷 (취소 시 복원)

모든 함수는 `list[dict]`를 받아 새 리스트를 반환하며 입력을 변경하지 않습니다.
제거는 항목을 리스트에서 지우지 않고 플래그만 세웁니다. 제출 전 복원이 가능하고,
payload 빌더가 "removed" 레코드를 만들 수 있어야 하기 때문입니다.
"""

import copy
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from app.core.exceptions import NotFoundError, StateError, ValidationError
from .tracking import values_equal

# 편집 상태를 나타내는 키 (레코드 데이터가 아님)
TRANSIENT_KEYS = frozenset({
    "isNew", "isLinkedNew", "isEditing", "pendingDelete", "pendingUnlink",
    "originalData", "editSnapshot",
})
# diff 비교에서 제외되는 키
NON_COMPARED_KEYS = TRANSIENT_KEYS | {"id"}

Item = Dict[str, Any]


@dataclass(frozen=True)
class EntityKind:
    """목록 엔티티 종류별 설정"""
    name: str
    section: str
    list_key: str                       # 스냅샷에서의 목록 키 (workOrders, spares, metrics)
    new_flag: str
    removal_flag: str
    identifier: str                     # removed/modified 레코드에 담기는 안정 식별자
    temp_id: Callable[[Mapping[str, Any], int], str]
    added_fields: Tuple[str, ...]       # added 레코드에 담기는 필드
    defaults: Mapping[str, Any] = field(default_factory=dict)
    validator: Optional[Callable[[Mapping[str, Any]], Optional[str]]] = None
    include_temp_id: bool = False       # added 레코드에 tempId 포함 여부

    def is_new(self, item: Mapping[str, Any]) -> bool:
        return bool(item.get(self.new_flag))

    def is_removed(self, item: Mapping[str, Any]) -> bool:
        return bool(item.get(self.removal_flag))


def _now_ms() -> int:
    return int(time.time() * 1000)


def _validate_work_order(item: Mapping[str, Any]) -> Optional[str]:
    value = item.get("frequencyValue")
    try:
        positive = value is not None and float(value) > 0
    except (TypeError, ValueError):
        positive = False
    if not item.get("jobTitle") or not item.get("frequencyType") or not positive:
        return "Please fill all required fields"
    return None


WORK_ORDER = EntityKind(
    name="work_order",
    section="C",
    list_key="workOrders",
    new_flag="isNew",
    removal_flag="pendingDelete",
    identifier="woNo",
    temp_id=lambda values, ts: f"new-wo-{ts}",
    added_fields=("jobTitle", "assignedTo", "frequencyType", "frequencyValue", "initialNextDue", "notes"),
    defaults={
        "jobTitle": "",
        "assignedTo": "",
        "frequencyType": "Calendar",
        "frequencyValue": 30,
        "initialNextDue": "",
        "notes": "",
    },
    validator=_validate_work_order,
    include_temp_id=True,
)

SPARE = EntityKind(
    name="spare",
    section="E",
    list_key="spares",
    new_flag="isLinkedNew",
    removal_flag="pendingUnlink",
    identifier="partCode",
    temp_id=lambda values, ts: f"linked-{values.get('partCode', '')}-{ts}",
    added_fields=("partCode", "partName", "min", "critical", "location"),
    defaults={"partName": "", "min": 0, "critical": "No", "location": ""},
)

METRIC = EntityKind(
    name="metric",
    section="B",
    list_key="metrics",
    new_flag="isNew",
    removal_flag="pendingDelete",
    identifier="id",
    temp_id=lambda values, ts: f"metric-new-{ts}",
    added_fields=("name", "value"),
    defaults={"name": "New Metric", "value": 0},
    include_temp_id=True,
)

KINDS: Dict[str, EntityKind] = {kind.name: kind for kind in (WORK_ORDER, SPARE, METRIC)}


def get_kind(name: str) -> EntityKind:
    try:
        return KINDS[name]
    except KeyError:
        raise ValidationError(f"Unknown list entity type '{name}'")


# =============================================================================
# 내부 헬퍼
# =============================================================================
def record_data(item: Mapping[str, Any]) -> Item:
    """편집 상태 플래그를 제외한 레코드 데이터의 복사본"""
    return {key: copy.deepcopy(value) for key, value in item.items() if key not in TRANSIENT_KEYS}


def changed_fields(item: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    originalData와 현재 값이 다른 필드를 `{field: {from, to}}`로 반환합니다.
    originalData의 키 중 편집 상태 플래그와 id를 제외한 모든 키를 비교합니다.
    값 비교는 타입을 구분합니다. (True와 1, 1과 1.0은 다른 값)
    """
    original = item.get("originalData") or {}
    fields: Dict[str, Dict[str, Any]] = {}
    for key, original_value in original.items():
        if key in NON_COMPARED_KEYS:
            continue
        current_value = item.get(key)
        if not values_equal(current_value, original_value):
            fields[key] = {"from": original_value, "to": current_value}
    return fields


def refresh_editing_flag(item: Item, kind: EntityKind) -> Item:
    """
    신규가 아닌 항목의 isEditing을 originalData와의 비교 결과로 갱신합니다.
    모든 필드가 원래 값으로 돌아오면 isEditing이 해제됩니다. (모든 엔티티 종류 공통 정책)
    """
    if kind.is_new(item) or not item.get("originalData"):
        return item
    item["isEditing"] = bool(changed_fields(item))
    return item


def _index_of(items: Sequence[Mapping[str, Any]], item_id: str) -> int:
    for index, item in enumerate(items):
        if item.get("id") == item_id:
            return index
    raise NotFoundError(f"Item '{item_id}' not found")


def _replace(items: Sequence[Mapping[str, Any]], index: int, new_item: Item) -> List[Item]:
    updated = [dict(item) for item in items]
    updated[index] = new_item
    return updated


def find_item(items: Sequence[Mapping[str, Any]], item_id: str) -> Item:
    return dict(items[_index_of(items, item_id)])


# =============================================================================
# 편집 수명주기 연산
# =============================================================================
def add_item(
    items: Sequence[Mapping[str, Any]],
    kind: EntityKind,
    values: Optional[Mapping[str, Any]] = None,
    *,
    timestamp_ms: Optional[int] = None,
) -> Tuple[List[Item], Item]:
    """
    신규 항목을 추가합니다. 신규 플래그와 isEditing이 켜지고 시간 기반 임시 ID가 부여됩니다.
    """
    ts = timestamp_ms if timestamp_ms is not None else _now_ms()
    data = {**kind.defaults, **(values or {})}
    new_item: Item = {
        **record_data(data),
        "id": kind.temp_id(data, ts),
        kind.new_flag: True,
        "isEditing": True,
    }
    return [dict(item) for item in items] + [new_item], new_item


def start_edit(items: Sequence[Mapping[str, Any]], kind: EntityKind, item_id: str) -> List[Item]:
    """
    편집 세션을 시작합니다.
    취소용 editSnapshot은 매번 새로 찍고, diff 기준인 originalData는 최초 스냅샷을 유지합니다.
    """
    index = _index_of(items, item_id)
    item = dict(items[index])
    if kind.is_removed(item):
        raise StateError(f"Cannot edit a {kind.name} that is pending removal")
    snapshot = record_data(item)
    if not item.get("originalData"):
        item["originalData"] = copy.deepcopy(snapshot)
    item["editSnapshot"] = snapshot
    item["isEditing"] = True
    return _replace(items, index, item)


def edit_field(
    items: Sequence[Mapping[str, Any]],
    kind: EntityKind,
    item_id: str,
    field_name: str,
    value: Any,
) -> List[Item]:
    """
    항목의 필드 값을 변경합니다.
    신규가 아닌 항목은 스냅샷이 없으면 먼저 만든 뒤 편집을 시작합니다.
    """
    if field_name in NON_COMPARED_KEYS:
        raise ValidationError(f"Field '{field_name}' cannot be edited")

    index = _index_of(items, item_id)
    item = dict(items[index])
    if kind.is_removed(item):
        raise StateError(f"Cannot edit a {kind.name} that is pending removal")
    if not kind.is_new(item):
        if not item.get("originalData"):
            item["originalData"] = record_data(item)
        if "editSnapshot" not in item:
            item["editSnapshot"] = record_data(item)

    item[field_name] = value
    if kind.is_new(item):
        item["isEditing"] = True
    else:
        refresh_editing_flag(item, kind)
    return _replace(items, index, item)


def save_edit(items: Sequence[Mapping[str, Any]], kind: EntityKind, item_id: str) -> List[Item]:
    """필수 값을 검증하고 편집 세션을 종료합니다. originalData는 diff 계산을 위해 유지됩니다."""
    index = _index_of(items, item_id)
    item = dict(items[index])
    if kind.validator is not None:
        error = kind.validator(item)
        if error:
            raise ValidationError(error, details={"id": item_id})
    item.pop("editSnapshot", None)
    item["isEditing"] = False
    return _replace(items, index, item)


def cancel_edit(items: Sequence[Mapping[str, Any]], kind: EntityKind, item_id: str) -> List[Item]:
    """
    편집 세션을 취소하고 세션 시작 시점의 값으로 되돌립니다.
    이전 세션에서 저장한 값은 유지되며, id와 수명주기 플래그도 그대로 둡니다.
    """
    index = _index_of(items, item_id)
    item = dict(items[index])
    snapshot = item.get("editSnapshot") or item.get("originalData")
    if not snapshot:
        item["isEditing"] = False
        return _replace(items, index, item)

    restored: Item = {**copy.deepcopy(snapshot), "id": item.get("id"), "isEditing": False}
    for flag in (kind.new_flag, kind.removal_flag):
        if flag in item:
            restored[flag] = item[flag]
    if item.get("originalData"):
        restored["originalData"] = copy.deepcopy(item["originalData"])
        # 원본과 같아졌으면 diff 기준도 필요 없음
        if not changed_fields(restored):
            del restored["originalData"]
    return _replace(items, index, restored)


def remove_item(items: Sequence[Mapping[str, Any]], kind: EntityKind, item_id: str) -> List[Item]:
    """제거 플래그를 세웁니다. 항목은 목록에 남아 있습니다."""
    index = _index_of(items, item_id)
    return _replace(items, index, {**items[index], kind.removal_flag: True})


def restore_item(items: Sequence[Mapping[str, Any]], kind: EntityKind, item_id: str) -> List[Item]:
    """제거 플래그를 해제합니다."""
    index = _index_of(items, item_id)
    return _replace(items, index, {**items[index], kind.removal_flag: False})


def ensure_edits_complete(items: Optional[Sequence[Mapping[str, Any]]], kind: EntityKind = WORK_ORDER) -> None:
    """
    제출 전 검사: 편집 중인 항목이 필수 값 규칙을 통과하지 못하면 제출을 막습니다.
    제거 예정 항목은 검사하지 않습니다.
    """
    if kind.validator is None:
        return
    incomplete = [
        item.get("id")
        for item in items or ()
        if item.get("isEditing") and not kind.is_removed(item) and kind.validator(item)
    ]
    if incomplete:
        raise ValidationError(
            f"Please complete all {kind.name.replace('_', ' ')} edits before submitting",
            details={"ids": incomplete},
        )


# =============================================================================
# 제출 시 분류 (reconciliation)
# =============================================================================
def classify_items(
    items: Optional[Sequence[Mapping[str, Any]]],
    kind: EntityKind,
    original_items: Optional[Sequence[Mapping[str, Any]]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    각 항목을 added / modified / removed 중 정확히 하나로 분류합니다.

    - 신규 & 제거 아님 -> added (편집 상태 플래그가 없는 깨끗한 레코드)
    - 제거 & 신규 아님 -> removed (식별자만)
    - originalData가 있고 제거 아님 -> 필드 diff가 있으면 modified
    - 신규이면서 제거된 항목은 어디에도 포함되지 않습니다. (추가 후 삭제 = 변경 없음)

    originalData 없이 편집된 항목은 original_items(원본 스냅샷의 목록)에서 같은 id를 찾아 비교합니다.
    """
    buckets: Dict[str, List[Dict[str, Any]]] = {"added": [], "modified": [], "removed": []}
    originals = {item.get("id"): item for item in original_items or () if item.get("id") is not None}

    for item in items or ():
        is_new = kind.is_new(item)
        is_removed = kind.is_removed(item)

        if is_new and is_removed:
            continue
        if is_new:
            record = {name: item.get(name) for name in kind.added_fields}
            if kind.include_temp_id:
                record = {"tempId": item.get("id"), **record}
            buckets["added"].append(record)
        elif is_removed:
            buckets["removed"].append({kind.identifier: item.get(kind.identifier)})
        else:
            candidate = dict(item)
            if not candidate.get("originalData") and candidate.get("id") in originals:
                candidate["originalData"] = record_data(originals[candidate["id"]])
            fields = changed_fields(candidate)
            if fields:
                buckets["modified"].append({kind.identifier: item.get(kind.identifier), "fields": fields})
    return buckets
