"""Relative complexity scoring.

Five independent factor counts are taken from a ticket's text, labels and
components:

- ``B`` bespoke work: distinct matches of the configured bespoke patterns
- ``T`` technology: distinct labels/components naming an allowlisted technology
- ``S`` systems: distinct labels/components/text tokens naming an allowlisted system
- ``A`` acceptance criteria markers (given/when/then, checklists, "acceptance")
- ``U`` distinct user-journey roles mentioned

Each count is clamped, weighted and summed into a score, which is bucketed
into a size from XS to XL.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from lifecycle_app.core.config import COMPLEXITY_FACTORS, SIZE_ORDER
from lifecycle_app.core.models import ComplexityResult, TicketModel
from lifecycle_app.core.rules import ComplexityConfig

ACCEPTANCE_PATTERN = re.compile(r"given|when|then|- \[[ x]\]|acceptance", re.IGNORECASE)
USER_ROLE_PATTERN = re.compile(r"\b(user|admin|operator|customer|developer)\b", re.IGNORECASE)


def _lower_all(values: Iterable[str] | None) -> list[str]:
    return [str(v).lower() for v in (values or []) if v is not None]


def score_bespoke(text: str, config: ComplexityConfig) -> int:
    hits: set[str] = set()
    for pattern in config.bespoke_patterns:
        for match in pattern.finditer(text):
            hits.add(match.group(0))
    return len(hits)


def score_technology(labels: list[str], components: list[str], config: ComplexityConfig) -> int:
    tokens = {
        value for value in (*labels, *components) if any(a in value for a in config.technology_allowlist)
    }
    return len(tokens)


def score_systems(text: str, labels: list[str], components: list[str], config: ComplexityConfig) -> int:
    tokens = {value for value in (*labels, *components) if any(a in value for a in config.systems_allowlist)}
    tokens.update(a for a in config.systems_allowlist if a in text)
    return len(tokens)


def score_acceptance(text: str) -> int:
    return len(ACCEPTANCE_PATTERN.findall(text))


def score_user_journeys(text: str) -> int:
    return len({m.lower() for m in USER_ROLE_PATTERN.findall(text)})


def clamp_factors(factors: dict[str, int], lo: int, hi: int) -> dict[str, int]:
    return {name: max(lo, min(hi, value)) for name, value in factors.items()}


def map_to_size(score: float, thresholds) -> str:
    """Return the largest size whose threshold ``score`` meets, else XS."""
    for size in reversed(SIZE_ORDER[1:]):
        if score >= thresholds[size]:
            return size
    return SIZE_ORDER[0]


def score_fields(
    summary: str | None,
    description: str | None,
    labels: Iterable[str] | None,
    components: Iterable[str] | None,
    config: ComplexityConfig,
) -> ComplexityResult:
    """Score raw ticket fields; missing values count as empty."""
    text = f"{summary or ''} {description or ''}".lower()
    norm_labels = _lower_all(labels)
    norm_components = _lower_all(components)

    raw = {
        "B": score_bespoke(text, config),
        "T": score_technology(norm_labels, norm_components, config),
        "S": score_systems(text, norm_labels, norm_components, config),
        "A": score_acceptance(text),
        "U": score_user_journeys(text),
    }
    factors = clamp_factors(raw, config.clamp_min, config.clamp_max)
    score = float(sum(factors[f] * config.weights[f] for f in COMPLEXITY_FACTORS))
    size = map_to_size(score, config.thresholds)
    return ComplexityResult(
        score=score,
        size=size,
        oversize=size == config.oversize_threshold,
        factors=factors,
    )


def score(ticket: TicketModel, config: ComplexityConfig) -> ComplexityResult:
    return score_fields(ticket.summary, ticket.description, ticket.labels, ticket.components, config)
