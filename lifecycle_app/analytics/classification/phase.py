"""Lifecycle phase classification.

Precedence: a manual phase override wins outright; otherwise the stages in
``PhaseRulesConfig.priority`` are tried in order (label overrides, then the
discipline mapping by default), and ``config.default`` is the last resort.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from lifecycle_app.core.config import AVAILABLE_PHASES
from lifecycle_app.core.models import TicketModel
from lifecycle_app.core.overrides import effective_discipline
from lifecycle_app.core.rules import PhaseRulesConfig


def match_labels(labels: Iterable[str], config: PhaseRulesConfig) -> str | None:
    norm = [str(label).lower() for label in labels if label]
    for rule in config.label_overrides:
        if any(pattern in label for pattern in rule.patterns for label in norm):
            return rule.phase
    return None


def match_discipline(discipline: str | None, config: PhaseRulesConfig) -> str | None:
    if not discipline:
        return None
    return config.discipline_mapping.get(discipline.lower())


def derive_from_arrays(
    labels: Iterable[str] | None,
    discipline: str | None,
    phase_override: str | None,
    config: PhaseRulesConfig,
) -> str:
    if phase_override:
        return phase_override

    labels = list(labels or [])
    stages: dict[str, Callable[[], str | None]] = {
        "labels": lambda: match_labels(labels, config),
        "discipline": lambda: match_discipline(discipline, config),
    }
    for stage in config.priority:
        resolve = stages.get(stage)
        if resolve is None:
            continue
        phase = resolve()
        if phase:
            return phase
    return config.default


def derive_phase(ticket: TicketModel, config: PhaseRulesConfig) -> str:
    return derive_from_arrays(ticket.labels, effective_discipline(ticket), ticket.override.phase, config)


class PhaseClassifier:
    """Phase rules bound to a config, for callers that pass a classifier around."""

    def __init__(self, config: PhaseRulesConfig):
        self.config = config

    def derive_phase(self, ticket: TicketModel) -> str:
        return derive_phase(ticket, self.config)

    def derive_from_arrays(
        self,
        labels: Iterable[str] | None,
        discipline: str | None = None,
        phase_override: str | None = None,
    ) -> str:
        return derive_from_arrays(labels, discipline, phase_override, self.config)

    def available_phases(self) -> list[str]:
        return list(AVAILABLE_PHASES)

    def discipline_mapping(self) -> dict[str, str]:
        return dict(self.config.discipline_mapping)
