# tests/domains/test_cr_tracking_n.py

"""
필드 단위 변경 추적기(tracking.py)와 섹션별 변경 집계기에 대한 단위 테스트 모듈입니다.
"""

import pytest

from app.core.exceptions import ValidationError
from app.domains.cr.tracking import (
    SECTIONS,
    FieldChange,
    compute_section_counts,
    field_path,
    resolve_path,
    track_field_change,
    tracking_to_dict,
    values_equal,
)

ORIGINAL = {
    "id": "17",
    "maker": "A",
    "model": "X",
    "runningHours": "1200",
    "classification": {"classProvider": "DNV", "certificateNo": "C-1"},
}


# =============================================================================
# 1. 경로 조회
# =============================================================================
def test_resolve_path_skips_section_segment():
    assert resolve_path(ORIGINAL, "A.maker") == "A"
    assert resolve_path(ORIGINAL, "G.classification.certificateNo") == "C-1"


def test_resolve_path_missing_resolves_to_none():
    """중간 키가 없거나 dict가 아니면 None"""
    assert resolve_path(ORIGINAL, "A.serialNo") is None
    assert resolve_path(ORIGINAL, "A.maker.nested") is None
    assert resolve_path(None, "A.maker") is None


def test_field_path_validates_section():
    assert field_path("G", "classification", "surveyor") == "G.classification.surveyor"
    with pytest.raises(ValidationError):
        field_path("Z", "maker")
    with pytest.raises(ValidationError):
        field_path("A")


def test_sections_cover_a_to_h():
    assert list(SECTIONS) == ["A", "B", "C", "D", "E", "F", "G", "H"]
    assert SECTIONS["G"] == "Classification"


# =============================================================================
# 2. 필드 변경 추적
# =============================================================================
def test_track_change_records_from_and_to():
    tracking = track_field_change("A.maker", "B", ORIGINAL, {})

    assert tracking == {"A.maker": FieldChange(path="A.maker", from_value="A", to_value="B")}
    assert tracking["A.maker"].to_dict() == {"path": "A.maker", "from": "A", "to": "B"}
    assert tracking["A.maker"].section == "A"


def test_revert_to_original_clears_entry():
    """원래 값으로 되돌리면 추적 항목이 사라집니다. (maker: A -> B -> A)"""
    tracking = track_field_change("A.maker", "B", ORIGINAL, {})
    tracking = track_field_change("A.maker", "A", ORIGINAL, tracking)

    assert tracking == {}


@pytest.mark.parametrize("path, edits", [
    ("A.maker", ["B", "C", None]),
    ("A.model", ["Y"]),
    ("B.runningHours", ["1300", 1300]),
    ("G.classification.certificateNo", ["C-2", ""]),
    ("A.serialNo", ["SN-9"]),
])
def test_revert_is_idempotent_after_any_edits(path, edits):
    """어떤 편집 이력 뒤에도 원래 값으로 추적하면 해당 경로가 제거됩니다."""
    tracking = track_field_change("A.location", "Bridge", ORIGINAL, {})
    for value in edits:
        tracking = track_field_change(path, value, ORIGINAL, tracking)

    tracking = track_field_change(path, resolve_path(ORIGINAL, path), ORIGINAL, tracking)

    assert path not in tracking
    assert "A.location" in tracking


def test_repeated_edit_keeps_original_from_value():
    tracking = track_field_change("A.maker", "B", ORIGINAL, {})
    tracking = track_field_change("A.maker", "C", ORIGINAL, tracking)

    assert tracking["A.maker"].from_value == "A"
    assert tracking["A.maker"].to_value == "C"


def test_track_does_not_mutate_input():
    before = {"A.model": FieldChange("A.model", "X", "Y")}
    after = track_field_change("A.maker", "B", ORIGINAL, before)

    assert list(before) == ["A.model"]
    assert set(after) == {"A.model", "A.maker"}


def test_missing_original_value_is_compared_as_none():
    """원본에 없는 경로에 None을 넣으면 변경이 아닙니다."""
    assert track_field_change("A.serialNo", None, ORIGINAL, {}) == {}
    assert "A.serialNo" in track_field_change("A.serialNo", "", ORIGINAL, {})


def test_equality_is_serialization_based():
    """숫자와 문자열은 다르고, dict는 키 순서가 다르면 다른 값으로 취급됩니다."""
    assert not values_equal("1200", 1200)
    assert values_equal({"a": 1, "b": 2}, {"a": 1, "b": 2})
    assert not values_equal({"a": 1, "b": 2}, {"b": 2, "a": 1})

    reordered = {"certificateNo": "C-1", "classProvider": "DNV"}
    tracking = track_field_change("G.classification", reordered, ORIGINAL, {})
    assert "G.classification" in tracking


def test_tracking_to_dict():
    tracking = track_field_change("B.runningHours", "1300", ORIGINAL, {})
    assert tracking_to_dict(tracking) == {
        "B.runningHours": {"path": "B.runningHours", "from": "1200", "to": "1300"}
    }


# =============================================================================
# 3. 섹션별 변경 건수
# =============================================================================
def test_section_counts_from_tracked_fields():
    tracking = {}
    for path, value in (("A.maker", "B"), ("A.model", "Y"), ("B.runningHours", "1"), ("G.classification.certificateNo", "C-2")):
        tracking = track_field_change(path, value, ORIGINAL, tracking)

    assert compute_section_counts(tracking) == {"A": 2, "B": 1, "G": 1}


def test_section_counts_include_flagged_list_items():
    work_orders = [
        {"id": "1", "woNo": "WO-1"},
        {"id": "2", "woNo": "WO-2", "isEditing": True},
        {"id": "new-wo-1", "isNew": True},
        {"id": "3", "woNo": "WO-3", "pendingDelete": True},
    ]
    spares = [
        {"id": "s1", "partCode": "P-1", "pendingUnlink": True},
        {"id": "s2", "partCode": "P-2"},
        {"id": "linked-P-3-1", "partCode": "P-3", "isLinkedNew": True},
    ]
    metrics = [{"id": "m1", "isNew": True}, {"id": "m2"}]

    counts = compute_section_counts({"B.vibration": FieldChange("B.vibration", "1", "2")}, work_orders, spares, metrics)

    assert counts == {"B": 2, "C": 3, "E": 2}


def test_section_counts_empty_state():
    assert compute_section_counts({}, [], [], None) == {}
