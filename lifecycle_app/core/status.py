"""Status normalization and the free-text status heuristics.

Workflow names differ between trackers, so the time-in-state logic relies on
substring markers ("progress", "done", "to do") rather than exact names. This
is an approximation for custom workflows; ``normalize_workflow_status`` maps
the common aliases onto canonical names for display rollups.
"""

from __future__ import annotations

from .config import (
    ACTIVE_STATUS_MARKER,
    DONE_STATUS_MARKER,
    STATUS_ALIASES,
    STATUS_CATEGORY_KEYS,
    STATUS_DISPLAY_ORDER,
    TERMINAL_STATUSES,
    TODO_STATUS_MARKER,
)


def normalize_workflow_status(value: str | None) -> str:
    """Map a raw tracker status to a canonical workflow status name.

    Parameters
    ----------
    value : str | None
        Raw status string.

    Returns
    -------
    str
        Canonical status name (e.g., "In Progress", "Done") or "Unknown".

    Examples
    --------
    >>> normalize_workflow_status("in progress")
    'In Progress'
    >>> normalize_workflow_status("resolved")
    'Done'
    """
    if not value:
        return "Unknown"
    text = str(value).strip().lower()
    if text in STATUS_ALIASES:
        return STATUS_ALIASES[text]
    for status in STATUS_DISPLAY_ORDER:
        if text == status.lower():
            return status
    return "Unknown"


def clean_status_name(value: str | None) -> str:
    """Sanitize status string, converting null-like values to "Unknown"."""
    if not value:
        return "Unknown"
    text = str(value).strip()
    if not text:
        return "Unknown"
    if text.lower() in {"nan", "none", "null"}:
        return "Unknown"
    return text


def map_status_category(category_key: str | None) -> str:
    """Map a Jira ``statusCategory.key`` onto "To Do" / "In Progress" / "Done"."""
    if not category_key:
        return "To Do"
    return STATUS_CATEGORY_KEYS.get(str(category_key).strip().lower(), "In Progress")


def is_terminal_status(value: str | None) -> bool:
    return normalize_workflow_status(value) in TERMINAL_STATUSES


def is_active_status(value: str | None) -> bool:
    """True when the status text denotes active work (contains "progress")."""
    if not value:
        return False
    return ACTIVE_STATUS_MARKER in str(value).lower()


def is_done_status(value: str | None) -> bool:
    if not value:
        return False
    return DONE_STATUS_MARKER in str(value).lower()


def is_reopen_target(value: str | None) -> bool:
    """True for statuses that count as a reopen when entered after "done"."""
    if not value:
        return False
    text = str(value).lower()
    return ACTIVE_STATUS_MARKER in text or TODO_STATUS_MARKER in text
