# app/domains/cr/payload.py

"""
기기(component) 편집 결과로부터 변경 요청 payload를 만드는 모듈입니다.

원본 스냅샷과 현재 스냅샷(둘 다 camelCase dict)을 비교하여 다음을 생성합니다.
- diff: `"{섹션}.{필드}" -> {from, to}` 스칼라 변경과
        `"{섹션}.{목록}.{added|modified|removed}" -> [...]` 목록 변경
- summary: 섹션별 변경 건수
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from app.core.exceptions import NoChangesError, ValidationError
from .reconcile import METRIC, SPARE, WORK_ORDER, EntityKind, classify_items, ensure_edits_complete
from .tracking import values_equal

PAYLOAD_TYPE = "COMPONENT"
DEFAULT_REASON = "Component maintenance and configuration update"

SECTION_A_FIELDS: Tuple[str, ...] = (
    "maker", "model", "serialNo", "location", "critical", "installation",
    "commissionedDate", "rating", "conditionBased", "noOfUnits",
    "equipmentDepartment", "parentComponent", "dimensionsSize", "notes",
)
SECTION_B_FIELDS: Tuple[str, ...] = (
    "runningHours", "dateUpdated", "utilizationRate", "avgDailyUsage",
    "vibration", "temperature", "pressure",
)
CLASSIFICATION_KEY = "classification"
SECTION_G_FIELDS: Tuple[str, ...] = (
    "classProvider", "certificateNo", "nextDataSurvey", "classNotation", "surveyor",
)

# 목록 엔티티: (엔티티 종류, diff 접두어)
LIST_ENTITIES: Tuple[Tuple[EntityKind, str], ...] = (
    (WORK_ORDER, "C.workOrders"),
    (SPARE, "E.spares"),
    (METRIC, "B.metrics"),
)
BUCKETS = ("added", "modified", "removed")


def _scalar_diff(
    section: str,
    fields: Sequence[str],
    current: Mapping[str, Any],
    original: Mapping[str, Any],
    prefix: Optional[str] = None,
) -> Dict[str, Dict[str, Any]]:
    diff: Dict[str, Dict[str, Any]] = {}
    for name in fields:
        before, after = original.get(name), current.get(name)
        if not values_equal(before, after):
            key = ".".join(part for part in (section, prefix, name) if part)
            diff[key] = {"from": before, "to": after}
    return diff


def _default_target(original: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "componentId": original.get("id"),
        "componentCode": original.get("code"),
        "componentName": original.get("name"),
        "vesselId": original.get("vesselId"),
    }


def build_change_request_payload(
    current: Optional[Mapping[str, Any]],
    original: Optional[Mapping[str, Any]],
    target: Optional[Mapping[str, Any]] = None,
    reason: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    현재 스냅샷과 원본 스냅샷으로 변경 요청 payload를 만듭니다.

    두 스냅샷 중 하나라도 없으면 비교 대상이 없으므로 None을 반환합니다.
    diff가 비어 있는 payload도 그대로 반환되며, 제출 전 검사는 `ensure_has_changes`가 담당합니다.
    """
    if not current or not original:
        return None

    target_meta = dict(target) if target else _default_target(original)

    diff: Dict[str, Any] = {}
    scalar_counts: Dict[str, int] = {}

    for section, fields in (("A", SECTION_A_FIELDS), ("B", SECTION_B_FIELDS)):
        section_diff = _scalar_diff(section, fields, current, original)
        if section_diff:
            diff.update(section_diff)
            scalar_counts[section] = len(section_diff)

    classification_diff = _scalar_diff(
        "G",
        SECTION_G_FIELDS,
        current.get(CLASSIFICATION_KEY) or {},
        original.get(CLASSIFICATION_KEY) or {},
        prefix=CLASSIFICATION_KEY,
    )
    if classification_diff:
        diff.update(classification_diff)
        scalar_counts["G"] = len(classification_diff)

    list_counts: Dict[str, Dict[str, int]] = {}
    for kind, prefix in LIST_ENTITIES:
        buckets = classify_items(current.get(kind.list_key), kind, original.get(kind.list_key))
        for bucket in BUCKETS:
            if buckets[bucket]:
                diff[f"{prefix}.{bucket}"] = buckets[bucket]
        if any(buckets.values()):
            list_counts[kind.section] = {bucket: len(buckets[bucket]) for bucket in BUCKETS}

    # 목록 섹션의 summary는 세 버킷만 가지며, 같은 섹션의 스칼라 건수는 "{섹션}.fields"에 둡니다.
    summary: Dict[str, Any] = {}
    for section in sorted(set(scalar_counts) | set(list_counts)):
        if section in list_counts:
            summary[section] = dict(list_counts[section])
            if section in scalar_counts:
                summary[f"{section}.fields"] = scalar_counts[section]
        else:
            summary[section] = scalar_counts[section]

    code = target_meta.get("componentCode") or ""
    name = target_meta.get("componentName") or ""
    return {
        "type": PAYLOAD_TYPE,
        "target": target_meta,
        "title": f"Component Update - {code} {name}".rstrip(),
        "reason": reason or DEFAULT_REASON,
        "summary": summary,
        "diff": diff,
    }


def ensure_has_changes(payload: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """diff가 비어 있는 payload의 제출을 차단합니다."""
    if not payload or not payload.get("diff"):
        raise NoChangesError("No Changes")
    return payload


def ensure_ready_to_submit(
    payload: Optional[Mapping[str, Any]],
    current: Optional[Mapping[str, Any]] = None,
) -> Mapping[str, Any]:
    """
    제출 전 검사를 모두 수행합니다.
    편집 중인 작업 지시가 필수 값을 갖추지 못했으면 ValidationError, diff가 비었으면 NoChangesError.
    """
    ensure_edits_complete((current or {}).get(WORK_ORDER.list_key), WORK_ORDER)
    return ensure_has_changes(payload)


def extract_diff(proposed_changes: Any) -> Dict[str, Any]:
    """
    저장된 제안 변경에서 diff 부분을 꺼냅니다.
    전체 payload(`{"diff": ...}`)와 diff 자체를 모두 허용합니다.
    """
    if not proposed_changes:
        return {}
    if not isinstance(proposed_changes, Mapping):
        raise ValidationError("Proposed changes must be a JSON object")
    if "diff" in proposed_changes and isinstance(proposed_changes["diff"], Mapping):
        return dict(proposed_changes["diff"])
    return dict(proposed_changes)


def count_diff_entries(diff: Optional[Mapping[str, Any]]) -> int:
    """diffSummaryCount: 스칼라 항목은 1건, 목록 항목은 길이만큼 셉니다."""
    total = 0
    for value in (diff or {}).values():
        total += len(value) if isinstance(value, list) else 1
    return total


def build_flat_diff(original: Optional[Mapping[str, Any]], proposed: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    섹션 구분이 없는 대상(작업 지시, 예비품, 재고 등)을 위한 최상위 키 단위 diff입니다.
    값 비교는 필드 추적기와 같은 직렬화 비교를 사용합니다.
    """
    original = original or {}
    proposed = proposed or {}
    diff: Dict[str, Any] = {}
    for key in list(original) + [k for k in proposed if k not in original]:
        if key not in proposed:
            continue
        before, after = original.get(key), proposed.get(key)
        if not values_equal(before, after):
            diff[key] = {"from": before, "to": after}
    return diff
