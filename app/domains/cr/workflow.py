# app/domains/cr/workflow.py

"""
변경 요청 상태 머신의 상태, 동작, 허용 전이 규칙을 정의하는 모듈입니다.

    draft ──submit──▶ submitted ──approve──▶ approved (종료)
      ▲                  │ ├─────reject───▶ rejected (종료)
      │                  │ └─────return───▶ returned
      │                  │                     │
      └── (편집 가능) ◀──┘◀────submit──────────┘

실제 전이는 `crud.CRUDChangeRequest`에서 조건부 UPDATE로 원자적으로 수행되며,
이 모듈은 규칙 판단과 오류 메시지만 담당합니다.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional

from app.core.exceptions import StateError, ValidationError


class ChangeRequestStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    RETURN = "return"


class ChangeRequestCategory(str, Enum):
    COMPONENTS = "components"
    WORK_ORDERS = "work_orders"
    SPARES = "spares"
    STORES = "stores"


class TargetType(str, Enum):
    COMPONENT = "component"
    WORK_ORDER = "work_order"
    SPARE = "spare"
    STORE = "store"


EDITABLE_STATES: FrozenSet[str] = frozenset({ChangeRequestStatus.DRAFT.value, ChangeRequestStatus.RETURNED.value})
SUBMITTABLE_STATES: FrozenSet[str] = EDITABLE_STATES
REVIEWABLE_STATES: FrozenSet[str] = frozenset({ChangeRequestStatus.SUBMITTED.value})
DELETABLE_STATES: FrozenSet[str] = frozenset({ChangeRequestStatus.DRAFT.value})
TERMINAL_STATES: FrozenSet[str] = frozenset({ChangeRequestStatus.APPROVED.value, ChangeRequestStatus.REJECTED.value})

# 검토 동작별 결과 상태, 코멘트 누락 메시지에 쓰이는 명사, 검토 코멘트 접두어
REVIEW_RESULT: Dict[ReviewAction, ChangeRequestStatus] = {
    ReviewAction.APPROVE: ChangeRequestStatus.APPROVED,
    ReviewAction.REJECT: ChangeRequestStatus.REJECTED,
    ReviewAction.RETURN: ChangeRequestStatus.RETURNED,
}
REVIEW_NOUN: Dict[ReviewAction, str] = {
    ReviewAction.APPROVE: "approval",
    ReviewAction.REJECT: "rejection",
    ReviewAction.RETURN: "return",
}
REVIEW_COMMENT_PREFIX: Dict[ReviewAction, str] = {
    ReviewAction.APPROVE: "APPROVED: ",
    ReviewAction.REJECT: "REJECTED: ",
    ReviewAction.RETURN: "RETURNED FOR CLARIFICATION: ",
}

# PATCH /status 요청 본문의 상태 값 (대소문자 무시)
_PATCH_STATUS_ACTIONS: Dict[str, ReviewAction] = {
    "approved": ReviewAction.APPROVE,
    "rejected": ReviewAction.REJECT,
    "returned": ReviewAction.RETURN,
}

_ALLOWED_SOURCES: Dict[str, FrozenSet[str]] = {
    "submit": SUBMITTABLE_STATES,
    "edit": EDITABLE_STATES,
    "delete": DELETABLE_STATES,
    ReviewAction.APPROVE.value: REVIEWABLE_STATES,
    ReviewAction.REJECT.value: REVIEWABLE_STATES,
    ReviewAction.RETURN.value: REVIEWABLE_STATES,
}


def allowed_sources(action: str) -> FrozenSet[str]:
    try:
        return _ALLOWED_SOURCES[action]
    except KeyError:
        raise ValidationError(f"Unknown action '{action}'")


def transition_error(action: str, current: Optional[str] = None) -> StateError:
    """허용 소스 상태를 명시한 StateError를 만듭니다."""
    if action == "delete":
        return StateError("Only draft requests can be deleted", details={"allowed": ["draft"], "current": current})
    return StateError.for_states(action, allowed_sources(action), current)


def can_transition(current: str, action: str) -> bool:
    return current in allowed_sources(action)


def assert_transition(current: str, action: str) -> None:
    """현재 상태에서 동작이 허용되지 않으면 StateError를 발생시킵니다."""
    if not can_transition(current, action):
        raise transition_error(action, current)


def require_review_comment(action: ReviewAction, comment: Optional[str]) -> str:
    text = (comment or "").strip()
    if not text:
        raise ValidationError(f"Comment is required for {REVIEW_NOUN[action]}")
    return text


def review_comment_message(action: ReviewAction, comment: str) -> str:
    return f"{REVIEW_COMMENT_PREFIX[action]}{comment}"


def parse_review_status(value: str) -> ReviewAction:
    """'Approved' / 'Rejected' / 'Returned' (대소문자 무시)를 검토 동작으로 변환합니다."""
    action = _PATCH_STATUS_ACTIONS.get((value or "").strip().lower())
    if action is None:
        raise ValidationError(
            "Invalid status. Use one of: Approved, Rejected, Returned",
            details={"status": value},
        )
    return action
