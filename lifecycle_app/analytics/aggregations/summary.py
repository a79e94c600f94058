"""Project-level summary: throughput, lead/cycle averages, flow efficiency, velocity."""

from __future__ import annotations

from collections.abc import Iterable

from lifecycle_app.core.config import SETTINGS, EventType, event_type_value
from lifecycle_app.core.models import FlowEfficiency, MetricsSummary, TicketModel
from lifecycle_app.core.overrides import included_tickets
from lifecycle_app.core.timeline import EventsInput, ensure_grouped

from .complexity import complexity_breakdown
from .discipline import build_window_frame, discipline_effort, efficiency_percent


def _is_completed(ticket: TicketModel) -> bool:
    return ticket.status_category == "Done" or ticket.resolved_at is not None


def _mean(values) -> float | None:
    present = values.dropna()
    if present.empty:
        return None
    return round(float(present.mean()), SETTINGS.round_digits)


def flow_efficiency(tickets: Iterable[TicketModel], events: EventsInput | None) -> FlowEfficiency:
    df = build_window_frame(tickets, events)
    if df.empty:
        return FlowEfficiency(active_hours=0.0, queue_hours=0.0, efficiency_percent=0.0)
    active = float(df["active_hours"].sum())
    queue = float(df["queue_hours"].sum())
    digits = SETTINGS.round_digits
    return FlowEfficiency(
        active_hours=round(active, digits),
        queue_hours=round(queue, digits),
        efficiency_percent=round(efficiency_percent(active, queue), digits),
    )


def velocity(tickets: Iterable[TicketModel], sprint_id: str | None = None) -> float:
    """Story points of completed tickets, optionally limited to one sprint."""
    total = 0.0
    for ticket in included_tickets(tickets):
        if sprint_id is not None and ticket.sprint_id != sprint_id:
            continue
        if ticket.status_category == "Done" and ticket.story_points:
            total += float(ticket.story_points)
    return total


def count_events(events: EventsInput | None, *event_types: EventType) -> int:
    wanted = {event_type_value(t) for t in event_types}
    grouped = ensure_grouped(events)
    return sum(1 for group in grouped.values() for e in group if event_type_value(e.event_type) in wanted)


def metrics_summary(
    tickets: Iterable[TicketModel],
    events: EventsInput | None,
    sprint_id: str | None = None,
) -> MetricsSummary:
    events = ensure_grouped(events)
    kept = included_tickets(tickets)
    windows = build_window_frame(kept, events)

    if windows.empty:
        avg_lead = avg_cycle = None
    else:
        avg_lead = _mean(windows["lead_hours"].astype(float))
        avg_cycle = _mean(windows["cycle_hours"].astype(float))

    return MetricsSummary(
        total_tickets=len(kept),
        completed_tickets=sum(1 for t in kept if _is_completed(t)),
        avg_lead_time_hours=avg_lead,
        avg_cycle_time_hours=avg_cycle,
        total_commits=count_events(events, EventType.COMMIT_CREATED),
        total_prs=count_events(events, EventType.PR_OPENED),
        velocity_points=velocity(kept, sprint_id),
        flow=flow_efficiency(kept, events),
        complexity=complexity_breakdown(kept),
        discipline_effort=discipline_effort(kept, events),
    )
