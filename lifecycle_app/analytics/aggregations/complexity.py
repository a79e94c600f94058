"""Complexity-based aggregations."""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from lifecycle_app.core.config import SIZE_ORDER, UNKNOWN_BUCKET
from lifecycle_app.core.models import ComplexityBreakdown, TicketModel
from lifecycle_app.core.overrides import effective_complexity, effective_discipline, included_tickets


def _size_rank(size: str) -> int:
    try:
        return list(SIZE_ORDER).index(size)
    except ValueError:
        return len(SIZE_ORDER)


def complexity_breakdown(tickets: Iterable[TicketModel]) -> ComplexityBreakdown:
    """Ticket counts per effective size and discipline, plus the oversize count."""
    kept = included_tickets(tickets)
    if not kept:
        return ComplexityBreakdown(by_size={}, by_discipline={}, oversize_count=0)

    df = pd.DataFrame(
        {
            "size": [effective_complexity(t) or UNKNOWN_BUCKET for t in kept],
            "discipline": [effective_discipline(t) or UNKNOWN_BUCKET for t in kept],
            "oversize": [bool(t.oversize_flag) for t in kept],
        }
    )
    sizes = df["size"].value_counts()
    by_size = {str(k): int(sizes[k]) for k in sorted(sizes.index, key=lambda s: (_size_rank(s), s))}
    disciplines = df["discipline"].value_counts().sort_index()
    by_discipline = {str(k): int(v) for k, v in disciplines.items()}
    return ComplexityBreakdown(by_size=by_size, by_discipline=by_discipline, oversize_count=int(df["oversize"].sum()))
