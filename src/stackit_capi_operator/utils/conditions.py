"""Cluster API style status conditions.

Conditions follow the Cluster API v1beta1 shape: a False condition carries a
reason and a severity, a True condition carries neither. Ready is listed
first and the rest sorted by type, so an unchanged set of conditions always
serializes identically and never shows up in a status diff.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_CREDENTIALS_READY, COND_PAUSED, COND_READY

SEVERITY_ERROR = "Error"
SEVERITY_WARNING = "Warning"
SEVERITY_INFO = "Info"


def _sort_key(condition: dict[str, Any]) -> tuple[int, str]:
    condition_type = condition.get("type", "")
    return (0 if condition_type == COND_READY else 1, condition_type)


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str = "",
    message: str = "",
    severity: str | None = None,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Return conditions with one condition set.

    The input list is not modified. lastTransitionTime only moves when the
    status of the condition changes.

    Args:
        conditions: Existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition, dropped when status is "True"
        message: Human-readable message
        severity: Severity of a False condition (defaults to Error)
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    new_condition: dict[str, Any] = {"type": condition_type, "status": status}
    if status != "True":
        new_condition["severity"] = severity or SEVERITY_ERROR
        if reason:
            new_condition["reason"] = reason
    if message:
        new_condition["message"] = message
    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    existing = get_condition(conditions, condition_type)
    if existing is not None and existing.get("status") == status and existing.get("lastTransitionTime"):
        new_condition["lastTransitionTime"] = existing["lastTransitionTime"]
    else:
        new_condition["lastTransitionTime"] = datetime.now(timezone.utc).isoformat()

    updated = [dict(c) for c in conditions if c.get("type") != condition_type]
    updated.append(new_condition)
    return sorted(updated, key=_sort_key)


def get_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if any."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_true(conditions: list[dict[str, Any]], condition_type: str) -> bool:
    condition = get_condition(conditions, condition_type)
    return condition is not None and condition.get("status") == "True"


def mark_true(
    conditions: list[dict[str, Any]],
    condition_type: str,
    message: str = "",
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    return update_condition(conditions, condition_type, "True", message=message, observed_generation=observed_generation)


def mark_false(
    conditions: list[dict[str, Any]],
    condition_type: str,
    reason: str,
    severity: str,
    message: str = "",
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    return update_condition(
        conditions,
        condition_type,
        "False",
        reason=reason,
        message=message,
        severity=severity,
        observed_generation=observed_generation,
    )


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    reason: str | None = None,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    if status:
        return mark_true(conditions, COND_READY, message, observed_generation)
    return mark_false(conditions, COND_READY, reason or "NotReady", SEVERITY_ERROR, message, observed_generation)


def set_credentials_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the CredentialsReady condition."""
    if status:
        return mark_true(conditions, COND_CREDENTIALS_READY, message, observed_generation)
    return mark_false(
        conditions, COND_CREDENTIALS_READY, "CredentialsInvalid", SEVERITY_ERROR, message, observed_generation
    )


def set_paused_condition(
    conditions: list[dict[str, Any]],
    paused: bool,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Paused condition. Not being paused is informational, not a failure."""
    if paused:
        return mark_true(conditions, COND_PAUSED, "Reconciliation is paused", observed_generation)
    return mark_false(
        conditions, COND_PAUSED, "NotPaused", SEVERITY_INFO, "Reconciliation is active", observed_generation
    )
