"""Status flow and duration analysis utilities.

This module computes how long each ticket spent in each workflow status,
based on its status-change events.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping

import pandas as pd

from lifecycle_app.core.config import EventType
from lifecycle_app.core.models import EventModel, TicketModel
from lifecycle_app.core.status import clean_status_name, is_terminal_status, normalize_workflow_status
from lifecycle_app.core.timeutils import MS_PER_HOUR, normalize_timestamp

from .temporal import lifecycle_bounds, sort_events


def extract_status_durations(ticket: TicketModel, events: Iterable[EventModel]) -> dict[str, float]:
    """Extract hours spent in each status for a single ticket.

    Parameters
    ----------
    ticket : TicketModel
        The ticket whose history is analysed; ``created_at`` / ``resolved_at``
        bound the first and last spans when matching events are absent.
    events : Iterable[EventModel]
        The ticket's lifecycle events (any order).

    Returns
    -------
    dict[str, float]
        Mapping of raw status name to hours spent in that status. The span
        after the last transition is only counted when the ticket is resolved.
    """
    ordered = sort_events(events)
    changes = [e for e in ordered if e.event_type == EventType.STATUS_CHANGED]
    if not changes:
        return {}

    created, resolved = lifecycle_bounds(ticket, ordered)
    first = changes[0]
    current_status = clean_status_name((first.details or {}).get("fromStatus") or ticket.status)
    current_start = created or normalize_timestamp(first.occurred_at)

    durations: defaultdict[str, float] = defaultdict(float)
    for change in changes:
        change_time = normalize_timestamp(change.occurred_at)
        delta = (change_time - current_start).total_seconds() * 1000.0
        if delta >= 0:
            durations[current_status] += delta / MS_PER_HOUR
        current_status = clean_status_name((change.details or {}).get("toStatus") or current_status)
        current_start = change_time

    if resolved is not None and resolved > current_start:
        durations[current_status] += (resolved - current_start).total_seconds() * 1000.0 / MS_PER_HOUR

    return dict(durations)


def build_status_duration_frame(
    tickets: Iterable[TicketModel],
    events_by_ticket: Mapping[str, list[EventModel]],
) -> pd.DataFrame:
    """Build a long-form DataFrame of status durations for all tickets.

    Returns
    -------
    pd.DataFrame
        Columns: key, status, duration_hours, is_open. Empty when no ticket
        has status history.
    """
    records: list[dict[str, object]] = []
    for ticket in tickets:
        durations = extract_status_durations(ticket, events_by_ticket.get(ticket.key, []))
        if not durations:
            continue
        is_open = not is_terminal_status(ticket.status)
        for status_name, hours in durations.items():
            records.append(
                {
                    "key": ticket.key,
                    "status": normalize_workflow_status(status_name),
                    "duration_hours": float(hours),
                    "is_open": is_open,
                }
            )

    if not records:
        return pd.DataFrame()
    return pd.DataFrame(records)


def time_in_status(tickets: Iterable[TicketModel], events_by_ticket: Mapping[str, list[EventModel]]) -> dict[str, float]:
    """Total hours per canonical status across tickets."""
    frame = build_status_duration_frame(tickets, events_by_ticket)
    if frame.empty:
        return {}
    totals = frame.groupby("status")["duration_hours"].sum().round(2)
    return {str(k): float(v) for k, v in totals.items()}
