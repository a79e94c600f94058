"""Read-time resolution of manual overrides.

Derived values are always computed from source data first; these helpers
layer a ticket's manual corrections on top when a value is read. Nothing here
feeds back into scoring or classification.
"""

from __future__ import annotations

from dataclasses import replace

from .models import DerivedMetrics, TicketModel


def effective_discipline(ticket: TicketModel) -> str | None:
    return ticket.override.discipline or ticket.discipline or None


def effective_complexity(ticket: TicketModel) -> str | None:
    return ticket.override.complexity or ticket.complexity_size or None


def is_excluded_from_metrics(ticket: TicketModel) -> bool:
    return ticket.override.excluded_from_metrics is True


def included_tickets(tickets) -> list[TicketModel]:
    return [t for t in tickets if not is_excluded_from_metrics(t)]


def effective_metrics(ticket: TicketModel, derived: DerivedMetrics, phase: str | None = None) -> DerivedMetrics:
    """Return ``derived`` with the ticket's phase/discipline/complexity overrides applied.

    A discipline override can move the phase, so callers holding a phase
    classifier pass the phase resolved from the effective discipline as
    ``phase``. Without it only an explicit phase override is applied.
    """
    override = ticket.override
    return replace(
        derived,
        phase=override.phase or phase or derived.phase,
        discipline=override.discipline or derived.discipline,
        complexity_size=override.complexity or derived.complexity_size,
    )
