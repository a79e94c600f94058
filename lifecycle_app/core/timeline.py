"""Event grouping, unified timelines, and ticket correlation checks."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping

from lifecycle_app.analytics.metrics.temporal import sort_events

from .config import EventType, event_type_value
from .models import EventModel, TicketModel

logger = logging.getLogger(__name__)

SOURCE_CONTROL_EVENTS: frozenset[str] = frozenset(
    t.value
    for t in (
        EventType.COMMIT_CREATED,
        EventType.BRANCH_CREATED,
        EventType.PR_OPENED,
        EventType.PR_REVIEWED,
        EventType.PR_APPROVED,
        EventType.PR_MERGED,
        EventType.DEPLOYED_TO_BRANCH,
    )
)


def group_events_by_ticket(events: Iterable[EventModel]) -> dict[str, list[EventModel]]:
    """Group events by ticket key, each list ascending by time."""
    grouped: defaultdict[str, list[EventModel]] = defaultdict(list)
    for event in events:
        grouped[event.ticket_key].append(event)
    return {key: sort_events(group) for key, group in grouped.items()}


EventsInput = Iterable[EventModel] | Mapping[str, list[EventModel]]


def ensure_grouped(events: EventsInput | None) -> dict[str, list[EventModel]]:
    """Accept a flat event iterable or a ticket-key mapping; return the mapping."""
    if events is None:
        return {}
    if isinstance(events, Mapping):
        return {key: list(group) for key, group in events.items()}
    return group_events_by_ticket(events)


def build_timeline(events: Iterable[EventModel]) -> list[EventModel]:
    """All events across tickets in a single ascending timeline."""
    return sort_events(events)


def uncorrelated_events(tickets: Iterable[TicketModel], events: Iterable[EventModel]) -> list[EventModel]:
    """Source-control events referencing a ticket key not present in ``tickets``.

    Such events usually belong to another project; they are reported, not
    removed.
    """
    known = {t.key for t in tickets}
    orphans = [
        e for e in events if event_type_value(e.event_type) in SOURCE_CONTROL_EVENTS and e.ticket_key not in known
    ]
    for event in orphans:
        logger.warning(
            "%s event references ticket %s which is not in the ticket set",
            event_type_value(event.event_type),
            event.ticket_key,
        )
    return orphans
