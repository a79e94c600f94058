"""Phase-based effort aggregations."""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from lifecycle_app.analytics.classification.phase import PhaseClassifier
from lifecycle_app.analytics.metrics.temporal import lifecycle_bounds, sort_events
from lifecycle_app.core.config import PHASE_COLORS, PHASE_LABELS, PHASE_ORDER, SETTINGS, UNKNOWN_BUCKET
from lifecycle_app.core.models import EventModel, PhaseDistribution, PhaseEffortMetric, TicketModel
from lifecycle_app.core.overrides import included_tickets
from lifecycle_app.core.timeline import EventsInput, ensure_grouped
from lifecycle_app.core.timeutils import ms_to_hours, normalize_timestamp


def ticket_hours(ticket: TicketModel, events: Iterable[EventModel]) -> float:
    """Hours attributed to a ticket when distributing effort across phases.

    Uses the stored lead time when present, otherwise the created->resolved
    span, otherwise created->last event (or last update). Zero when no span
    can be formed.
    """
    if ticket.lead_time_ms is not None:
        return ms_to_hours(ticket.lead_time_ms)

    ordered = sort_events(events)
    created, resolved = lifecycle_bounds(ticket, ordered)
    if created is None:
        return 0.0
    end = resolved
    if end is None and ordered:
        end = normalize_timestamp(ordered[-1].occurred_at)
    if end is None:
        end = normalize_timestamp(ticket.updated_at)
    if end is None:
        return 0.0
    return ms_to_hours((end - created).total_seconds() * 1000.0)


def _phase_rank(phase: str) -> int:
    try:
        return list(PHASE_ORDER).index(phase)
    except ValueError:
        return len(PHASE_ORDER)


def phase_distribution(
    tickets: Iterable[TicketModel],
    events: EventsInput | None,
    phase_classifier: PhaseClassifier,
) -> PhaseDistribution:
    """Distribute ticket hours across lifecycle phases.

    Parameters
    ----------
    tickets : Iterable[TicketModel]
        Tickets to aggregate; those excluded from metrics are dropped.
    events : Iterable[EventModel] or Mapping[str, list[EventModel]]
        Flat event list, or events already keyed by ticket key.
    phase_classifier : PhaseClassifier
        Resolves each ticket's phase (overrides included).

    Returns
    -------
    PhaseDistribution
        One entry per phase with tickets, sorted by share of hours (largest
        first). Empty when there are no tickets or no hours to distribute.
    """
    kept = included_tickets(tickets)
    grouped = ensure_grouped(events)
    rows = [
        {
            "key": t.key,
            "phase": phase_classifier.derive_phase(t) or UNKNOWN_BUCKET,
            "hours": ticket_hours(t, grouped.get(t.key, [])),
        }
        for t in kept
    ]
    if not rows:
        return PhaseDistribution(phases=[], total_hours=0.0, total_tickets=0)

    df = pd.DataFrame(rows)
    total = float(df["hours"].sum())
    if total <= 0:
        return PhaseDistribution(phases=[], total_hours=0.0, total_tickets=len(kept))

    agg = df.groupby("phase", sort=False).agg(ticket_count=("key", "count"), total_hours=("hours", "sum")).reset_index()
    agg["rank"] = agg["phase"].map(_phase_rank)
    agg = agg.sort_values(by=["rank", "phase"], kind="mergesort")
    agg["percentage"] = agg["total_hours"] / total * 100.0
    agg = agg.sort_values(by="percentage", ascending=False, kind="mergesort")

    digits = SETTINGS.round_digits
    phases = [
        PhaseEffortMetric(
            phase=row.phase,
            label=PHASE_LABELS.get(row.phase, str(row.phase).title()),
            ticket_count=int(row.ticket_count),
            total_hours=round(float(row.total_hours), digits),
            percentage=round(float(row.percentage), digits),
            color=PHASE_COLORS.get(row.phase, PHASE_COLORS[UNKNOWN_BUCKET]),
        )
        for row in agg.itertuples(index=False)
    ]
    return PhaseDistribution(phases=phases, total_hours=round(total, digits), total_tickets=len(kept))


def phase_breakdown_summary(distribution: PhaseDistribution) -> tuple[str, float]:
    """Label and percentage of the phase holding the largest share."""
    if not distribution.phases:
        return "N/A", 0.0
    top = distribution.phases[0]
    return top.label, top.percentage
