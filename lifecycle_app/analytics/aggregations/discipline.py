"""Discipline-based effort aggregations."""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from lifecycle_app.analytics.metrics.temporal import reconstruct
from lifecycle_app.core.config import SETTINGS, UNKNOWN_BUCKET
from lifecycle_app.core.models import DisciplineEffortMetric, TicketModel
from lifecycle_app.core.overrides import effective_discipline, included_tickets
from lifecycle_app.core.timeline import EventsInput, ensure_grouped
from lifecycle_app.core.timeutils import ms_to_hours, optional_hours


def efficiency_percent(active_hours: float, queue_hours: float) -> float:
    denominator = active_hours + queue_hours
    if denominator <= 0:
        return 0.0
    return active_hours / denominator * 100.0


def _median(series: pd.Series) -> float | None:
    values = series.dropna()
    if values.empty:
        return None
    return round(float(values.median()), SETTINGS.round_digits)


def build_window_frame(tickets: Iterable[TicketModel], events: EventsInput | None) -> pd.DataFrame:
    """One row per included ticket with its reconstructed timings in hours.

    ``events`` may be a flat event list or a mapping keyed by ticket key.
    """
    grouped = ensure_grouped(events)
    records = []
    for ticket in included_tickets(tickets):
        window = reconstruct(ticket, grouped.get(ticket.key, []))
        records.append(
            {
                "key": ticket.key,
                "discipline": effective_discipline(ticket) or UNKNOWN_BUCKET,
                "lead_hours": optional_hours(window.lead_ms),
                "cycle_hours": optional_hours(window.cycle_ms),
                "active_hours": ms_to_hours(window.active_ms),
                "queue_hours": ms_to_hours(window.queue_ms),
                "reopens": window.reopens,
                "oversize": bool(window.oversize),
            }
        )
    return pd.DataFrame(records)


def discipline_effort(
    tickets: Iterable[TicketModel],
    events: EventsInput | None,
) -> list[DisciplineEffortMetric]:
    df = build_window_frame(tickets, events)
    if df.empty:
        return []

    # None would make the column object dtype and break median()
    df["lead_hours"] = pd.to_numeric(df["lead_hours"], errors="coerce")
    df["cycle_hours"] = pd.to_numeric(df["cycle_hours"], errors="coerce")

    digits = SETTINGS.round_digits
    out: list[DisciplineEffortMetric] = []
    for discipline, group in df.groupby("discipline", sort=True):
        active = float(group["active_hours"].sum())
        queue = float(group["queue_hours"].sum())
        count = int(len(group))
        out.append(
            DisciplineEffortMetric(
                discipline=str(discipline),
                ticket_count=count,
                lead_time_median_hours=_median(group["lead_hours"]),
                cycle_time_median_hours=_median(group["cycle_hours"]),
                active_hours=round(active, digits),
                queue_hours=round(queue, digits),
                efficiency_percent=round(efficiency_percent(active, queue), digits),
                oversize_rate=round(float(group["oversize"].sum()) / count, digits),
                reopen_count=int(group["reopens"].sum()),
            )
        )
    return out
