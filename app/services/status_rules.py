"""
Parent/sub-control status consistency rules.

A control implementation may only be green when every sub-control of that
control is green for the same item. Sub-controls without a stored
implementation count as red. These functions are pure; the implementation
service applies them inside its write transactions.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from app.models.implementation import ControlStatus

DOWNGRADE_MARKER = "(Downgraded due to sub-control status)"
NOT_IMPLEMENTED_NOTE = "Not implemented"
DEFAULT_STATUS = ControlStatus.RED


def effective_status(status: Optional[ControlStatus]) -> ControlStatus:
    """Status reported for a pair; a missing row reads as red."""
    return status if status is not None else DEFAULT_STATUS


def has_non_green(sub_control_statuses: Iterable[Optional[ControlStatus]]) -> bool:
    """True when any sub-control is not green. An empty set has no non-green members."""
    return any(effective_status(s) != ControlStatus.GREEN for s in sub_control_statuses)


def is_green_eligible(sub_control_statuses: Iterable[Optional[ControlStatus]]) -> bool:
    return not has_non_green(sub_control_statuses)


def can_set_parent_status(
    requested: ControlStatus,
    sub_control_statuses: Iterable[Optional[ControlStatus]],
) -> bool:
    """Red and yellow are always allowed; green needs every sub-control green."""
    if requested != ControlStatus.GREEN:
        return True
    return is_green_eligible(sub_control_statuses)


def append_downgrade_marker(notes: Optional[str]) -> str:
    if notes and notes.strip():
        return f"{notes} {DOWNGRADE_MARKER}"
    return DOWNGRADE_MARKER


@dataclass
class ParentDecision:
    """Outcome of re-evaluating a parent after a sub-control write."""
    downgrade: bool
    status: Optional[ControlStatus]
    notes: Optional[str]


def evaluate_parent_after_sub_control_write(
    parent_status: Optional[ControlStatus],
    parent_notes: Optional[str],
    sub_control_statuses: Iterable[Optional[ControlStatus]],
) -> ParentDecision:
    """
    Decide whether a stored parent status must be downgraded.

    Only a stored green parent with at least one non-green sub-control is
    touched: it becomes yellow and its notes get the downgrade marker.
    """
    if parent_status == ControlStatus.GREEN and has_non_green(sub_control_statuses):
        return ParentDecision(
            downgrade=True,
            status=ControlStatus.YELLOW,
            notes=append_downgrade_marker(parent_notes),
        )
    return ParentDecision(downgrade=False, status=parent_status, notes=parent_notes)
