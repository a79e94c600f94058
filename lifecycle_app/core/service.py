"""MetricsService: orchestrates ticket derivation and report aggregation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from pathlib import Path

from lifecycle_app.analytics.aggregations.complexity import complexity_breakdown
from lifecycle_app.analytics.aggregations.discipline import discipline_effort
from lifecycle_app.analytics.aggregations.phase import phase_distribution
from lifecycle_app.analytics.aggregations.summary import metrics_summary
from lifecycle_app.analytics.classification import complexity, discipline
from lifecycle_app.analytics.classification.ai_assist import detect_ai_assist
from lifecycle_app.analytics.classification.phase import PhaseClassifier
from lifecycle_app.analytics.metrics.temporal import reconstruct

from .models import (
    ComplexityBreakdown,
    DerivedMetrics,
    DisciplineEffortMetric,
    EventModel,
    MetricsSummary,
    PhaseDistribution,
    TicketModel,
)
from .overrides import effective_metrics
from .rules import RuleSet, load_rule_set
from .timeline import EventsInput, ensure_grouped, uncorrelated_events
from .timeutils import ms_to_hours

logger = logging.getLogger(__name__)


class MetricsService:
    def __init__(self, rules: RuleSet | None = None):
        self.rules = rules or load_rule_set()
        self.phase_classifier = PhaseClassifier(self.rules.phase)

    @classmethod
    def from_path(cls, base_path: str | Path) -> MetricsService:
        """Build a service from the rule documents found under ``base_path``."""
        return cls(load_rule_set(base_path))

    # ------------------ Derivation ------------------
    def derive_ticket(
        self,
        ticket: TicketModel,
        events: Iterable[EventModel] | None = None,
        repo_path: str | None = None,
    ) -> TicketModel:
        """Return a copy of ``ticket`` with its derived fields filled in.

        Complexity, discipline and the AI-assist flag are always computed from
        source fields. Lead and cycle times are only filled when ``events`` is
        given. The input ticket is left untouched.
        """
        result = complexity.score(ticket, self.rules.complexity)
        derived = replace(
            ticket,
            complexity_score=result.score,
            complexity_size=result.size,
            complexity_factors=dict(result.factors),
            discipline=discipline.classify_ticket(ticket, self.rules.discipline, repo_path),
            ai_flag=detect_ai_assist(ticket.summary, ticket.description, ticket.labels),
            oversize_flag=result.oversize,
        )
        if events is not None:
            window = reconstruct(derived, events)
            derived = replace(derived, lead_time_ms=window.lead_ms, cycle_time_ms=window.cycle_ms)
        logger.debug(
            "Derived %s: size=%s score=%s discipline=%s",
            derived.key,
            derived.complexity_size,
            derived.complexity_score,
            derived.discipline,
        )
        return derived

    def derive_all(
        self,
        tickets: Iterable[TicketModel],
        events: EventsInput | None = None,
        repo_paths: Mapping[str, str] | None = None,
    ) -> list[TicketModel]:
        grouped = ensure_grouped(events) if events is not None else None
        repo_paths = repo_paths or {}
        out = []
        for ticket in tickets:
            ticket_events = grouped.get(ticket.key, []) if grouped is not None else None
            out.append(self.derive_ticket(ticket, ticket_events, repo_paths.get(ticket.key)))
        logger.info("Derived metrics for %s tickets", len(out))
        return out

    def derive_metrics(
        self,
        ticket: TicketModel,
        events: Iterable[EventModel],
        repo_path: str | None = None,
    ) -> DerivedMetrics:
        """Source-derived metrics for one ticket (overrides not applied)."""
        events = list(events)
        derived = self.derive_ticket(ticket, events, repo_path)
        window = reconstruct(derived, events)
        return DerivedMetrics(
            key=derived.key,
            complexity_score=derived.complexity_score,
            complexity_size=derived.complexity_size,
            oversize=bool(derived.oversize_flag),
            factors=dict(derived.complexity_factors or {}),
            discipline=derived.discipline,
            # phase from source data only; overrides are layered by effective_view
            phase=self.phase_classifier.derive_from_arrays(derived.labels, derived.discipline),
            ai_flag=bool(derived.ai_flag),
            lead_ms=window.lead_ms,
            cycle_ms=window.cycle_ms,
            active_hours=round(ms_to_hours(window.active_ms), 2),
            queue_hours=round(ms_to_hours(window.queue_ms), 2),
            reopen_count=window.reopens,
        )

    def effective_view(
        self,
        ticket: TicketModel,
        events: Iterable[EventModel],
        repo_path: str | None = None,
    ) -> DerivedMetrics:
        """Derived metrics with the ticket's manual overrides applied.

        The phase is resolved the same way ``phase_distribution`` resolves it:
        an explicit phase override wins, otherwise the ticket's labels and its
        effective discipline decide.
        """
        metrics = self.derive_metrics(ticket, events, repo_path)
        phase = self.phase_classifier.derive_from_arrays(
            ticket.labels,
            ticket.override.discipline or metrics.discipline,
            ticket.override.phase,
        )
        return effective_metrics(ticket, metrics, phase)

    # ------------------ Reports ------------------
    def phase_distribution(self, tickets: Iterable[TicketModel], events: EventsInput | None = None) -> PhaseDistribution:
        return phase_distribution(tickets, events, self.phase_classifier)

    def discipline_effort(
        self,
        tickets: Iterable[TicketModel],
        events: EventsInput | None = None,
    ) -> list[DisciplineEffortMetric]:
        return discipline_effort(tickets, events)

    def complexity_breakdown(self, tickets: Iterable[TicketModel]) -> ComplexityBreakdown:
        return complexity_breakdown(tickets)

    def summary(
        self,
        tickets: Iterable[TicketModel],
        events: EventsInput | None = None,
        sprint_id: str | None = None,
    ) -> MetricsSummary:
        tickets = list(tickets)
        grouped = ensure_grouped(events)
        orphans = uncorrelated_events(tickets, [e for group in grouped.values() for e in group])
        if orphans:
            logger.warning("%s source-control events could not be matched to a ticket", len(orphans))
        return metrics_summary(tickets, grouped, sprint_id)
