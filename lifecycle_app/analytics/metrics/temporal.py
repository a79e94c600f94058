"""Per-ticket time-in-state reconstruction from lifecycle events.

A ticket's status-change events are replayed in time order as a fold over an
explicit ``TimelineState``. Each elapsed span is attributed to *active* time
when the status held during it contains "progress", and to *queue* time
otherwise. The same pass counts reopens: entering a "done" status arms the
counter, and a later move into a "progress" or "to do" status counts one
reopen and disarms it.

Status classification is a substring heuristic, so custom workflow names
that never mention "progress" are always counted as queue time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from functools import reduce

import pandas as pd

from lifecycle_app.core.config import EventType
from lifecycle_app.core.models import EventModel, TicketModel, TicketWindow
from lifecycle_app.core.status import is_active_status, is_done_status, is_reopen_target
from lifecycle_app.core.timeutils import normalize_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimelineState:
    current_status: str | None = None
    last_time: pd.Timestamp | None = None
    active_ms: float = 0.0
    queue_ms: float = 0.0
    reopens: int = 0
    seen_done: bool = False
    status_changes: int = 0


def to_status(event: EventModel) -> str | None:
    details = event.details or {}
    value = details.get("toStatus", details.get("to_status"))
    return str(value) if value else None


def sort_events(events: Iterable[EventModel]) -> list[EventModel]:
    """Return events ascending by time, dropping those without a usable timestamp."""
    timed = []
    dropped = 0
    for event in events:
        ts = normalize_timestamp(event.occurred_at)
        if ts is None:
            dropped += 1
            continue
        timed.append((ts, event))
    if dropped:
        logger.debug("Dropped %s events without a parseable timestamp", dropped)
    timed.sort(key=lambda pair: pair[0])
    return [event for _, event in timed]


def attribute_span(state: TimelineState, until: pd.Timestamp | None) -> TimelineState:
    """Credit the span since ``state.last_time`` to active or queue time."""
    if state.last_time is None or until is None:
        return state
    delta = max(0.0, (until - state.last_time).total_seconds() * 1000.0)
    if is_active_status(state.current_status):
        return replace(state, active_ms=state.active_ms + delta)
    return replace(state, queue_ms=state.queue_ms + delta)


def step(state: TimelineState, event: EventModel) -> TimelineState:
    """Advance the timeline by one event; non status-change events are ignored."""
    if event.event_type != EventType.STATUS_CHANGED:
        return state
    occurred = normalize_timestamp(event.occurred_at)
    if occurred is None:
        return state

    state = attribute_span(state, occurred)
    target = to_status(event)

    reopens = state.reopens
    seen_done = state.seen_done
    if is_done_status(target):
        seen_done = True
    elif seen_done and is_reopen_target(target):
        reopens += 1
        seen_done = False

    return replace(
        state,
        current_status=target or state.current_status,
        last_time=occurred,
        reopens=reopens,
        seen_done=seen_done,
        status_changes=state.status_changes + 1,
    )


def replay(events: list[EventModel], start: pd.Timestamp | None) -> TimelineState:
    """Fold pre-sorted events into a ``TimelineState`` starting at ``start``."""
    return reduce(step, events, TimelineState(last_time=start))


def _first_time(events: list[EventModel], event_type: str) -> pd.Timestamp | None:
    for event in events:
        if event.event_type == event_type:
            return normalize_timestamp(event.occurred_at)
    return None


def _first_status_time(events: list[EventModel], predicate) -> pd.Timestamp | None:
    for event in events:
        if event.event_type == EventType.STATUS_CHANGED and predicate(to_status(event)):
            return normalize_timestamp(event.occurred_at)
    return None


def _non_negative_ms(start: pd.Timestamp | None, end: pd.Timestamp | None) -> float | None:
    if start is None or end is None or end < start:
        return None
    return (end - start).total_seconds() * 1000.0


def lifecycle_bounds(ticket: TicketModel, ordered: list[EventModel]):
    """Creation and resolution times, preferring events over ticket fields."""
    created = _first_time(ordered, EventType.TICKET_CREATED) or normalize_timestamp(ticket.created_at)
    resolved = _first_time(ordered, EventType.RESOLVED) or normalize_timestamp(ticket.resolved_at)
    return created, resolved


def reconstruct(ticket: TicketModel, events: Iterable[EventModel]) -> TicketWindow:
    ordered = sort_events(events)
    created, resolved = lifecycle_bounds(ticket, ordered)

    lead_ms = _non_negative_ms(created, resolved)

    first_active = _first_status_time(ordered, is_active_status)
    done_at = _first_status_time(ordered, is_done_status)
    cycle_ms = _non_negative_ms(first_active, resolved or done_at)

    start = created or (normalize_timestamp(ordered[0].occurred_at) if ordered else None)
    state = replay(ordered, start)

    if state.status_changes == 0:
        active_ms = 0.0
        if ticket.status_category == "In Progress":
            end = resolved
            if end is None and ordered:
                end = normalize_timestamp(ordered[-1].occurred_at)
            if end is None:
                end = normalize_timestamp(ticket.updated_at)
            active_ms = _non_negative_ms(start, end) or 0.0
        return TicketWindow(
            lead_ms=lead_ms,
            cycle_ms=cycle_ms,
            active_ms=active_ms,
            queue_ms=0.0,
            reopens=0,
            oversize=bool(ticket.oversize_flag),
        )

    state = attribute_span(state, resolved)
    return TicketWindow(
        lead_ms=lead_ms,
        cycle_ms=cycle_ms,
        active_ms=state.active_ms,
        queue_ms=state.queue_ms,
        reopens=state.reopens,
        oversize=bool(ticket.oversize_flag),
    )
