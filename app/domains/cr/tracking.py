# app/domains/cr/tracking.py

"""
필드 단위 변경 추적기와 섹션별 변경 집계기입니다.

편집 세션 동안 원본 스냅샷과 현재 값을 비교하여 `{path, from, to}` 형태의
변경 항목을 관리하고, 섹션 배지에 표시할 변경 건수를 계산합니다.
UI 프레임워크와 무관한 순수 함수로만 구성되어 있으며, 입력 객체를 변경하지 않습니다.

경로(path)는 점(.)으로 구분되며 첫 번째 세그먼트는 섹션 문자입니다. (예: "A.maker",
"G.classification.certificateNo") 섹션 문자는 조회에 사용되지 않고, 나머지 세그먼트가
스냅샷의 키 조회에 사용됩니다.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from app.core.exceptions import ValidationError

# 기기 레지스터 편집 화면의 섹션 구성 (A~H)
SECTIONS: Dict[str, str] = {
    "A": "Component Information",
    "B": "Running Hours & Condition",
    "C": "Work Orders",
    "D": "Maintenance History",
    "E": "Spares",
    "F": "Drawings & Manuals",
    "G": "Classification",
    "H": "Requisitions",
}


@dataclass(frozen=True)
class FieldChange:
    """단일 필드의 변경 내역"""
    path: str
    from_value: Any
    to_value: Any

    @property
    def section(self) -> str:
        return self.path[:1]

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "from": self.from_value, "to": self.to_value}


def field_path(section: str, *keys: str) -> str:
    """
    섹션 문자와 키 목록으로 경로 문자열을 만듭니다.
    오타로 인해 존재하지 않는 섹션이 "변경 없음"으로 처리되는 것을 막기 위해 섹션을 검증합니다.
    """
    if section not in SECTIONS:
        raise ValidationError(f"Unknown section '{section}'")
    if not keys or not all(keys):
        raise ValidationError("Field path requires at least one key")
    return ".".join((section, *keys))


def resolve_path(snapshot: Optional[Mapping[str, Any]], path: str) -> Any:
    """
    경로의 첫 세그먼트(섹션)를 건너뛰고 나머지 키로 스냅샷 값을 조회합니다.
    중간에 키가 없거나 dict가 아니면 None을 반환합니다.
    """
    value: Any = snapshot
    for key in path.split(".")[1:]:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _serialize(value: Any) -> str:
    # 키 정렬을 하지 않으므로 dict의 키 순서가 다르면 서로 다른 값으로 취급됩니다.
    return json.dumps(value, ensure_ascii=False, default=str)


def values_equal(left: Any, right: Any) -> bool:
    """직렬화 문자열 비교에 의한 동등성 검사"""
    return _serialize(left) == _serialize(right)


def track_field_change(
    path: str,
    new_value: Any,
    original_snapshot: Optional[Mapping[str, Any]],
    tracking: Mapping[str, FieldChange],
) -> Dict[str, FieldChange]:
    """
    필드 값 변경을 추적 맵에 반영한 새 맵을 반환합니다.

    - 원본과 다르면 `path`에 대한 FieldChange를 추가(또는 갱신)합니다.
    - 원본과 같아지면(원래 값으로 되돌림) 기존 항목을 제거합니다.
    """
    original_value = resolve_path(original_snapshot, path)
    updated = dict(tracking)
    if values_equal(original_value, new_value):
        updated.pop(path, None)
    else:
        updated[path] = FieldChange(path=path, from_value=original_value, to_value=new_value)
    return updated


def _count_flagged(items: Optional[Iterable[Mapping[str, Any]]], flags: Iterable[str]) -> int:
    flags = tuple(flags)
    return sum(1 for item in items or () if any(item.get(flag) for flag in flags))


def compute_section_counts(
    tracking: Mapping[str, Any],
    work_orders: Optional[Iterable[Mapping[str, Any]]] = None,
    spares: Optional[Iterable[Mapping[str, Any]]] = None,
    metrics: Optional[Iterable[Mapping[str, Any]]] = None,
) -> Dict[str, int]:
    """
    추적 중인 필드 변경과 목록 엔티티의 상태 플래그로 섹션별 변경 건수를 계산합니다.

    - 필드 변경: 경로의 첫 문자(섹션)별로 1건씩
    - 작업 지시: isNew / pendingDelete / isEditing 중 하나라도 있으면 섹션 C에 1건
    - 예비품: isLinkedNew / pendingUnlink / isEditing 중 하나라도 있으면 섹션 E에 1건
    - 상태 감시 항목: isNew / pendingDelete / isEditing 중 하나라도 있으면 섹션 B에 1건
    """
    counts: Dict[str, int] = {}
    for path in tracking:
        section = path[:1]
        counts[section] = counts.get(section, 0) + 1

    list_counts = (
        ("C", _count_flagged(work_orders, ("isNew", "pendingDelete", "isEditing"))),
        ("E", _count_flagged(spares, ("isLinkedNew", "pendingUnlink", "isEditing"))),
        ("B", _count_flagged(metrics, ("isNew", "pendingDelete", "isEditing"))),
    )
    for section, count in list_counts:
        if count > 0:
            counts[section] = counts.get(section, 0) + count
    return counts


def tracking_to_dict(tracking: Mapping[str, FieldChange]) -> Dict[str, Dict[str, Any]]:
    """추적 맵을 JSON 직렬화 가능한 dict로 변환합니다."""
    return {path: change.to_dict() for path, change in tracking.items()}
