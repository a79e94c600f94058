"""Domain data models for tickets, lifecycle events, and derived metric reports."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class OverrideModel:
    phase: str | None = None
    discipline: str | None = None
    complexity: str | None = None
    excluded_from_metrics: bool = False
    custom_labels: list[str] = field(default_factory=list)
    modified_at: datetime | None = None


@dataclass(slots=True)
class TicketModel:
    key: str
    summary: str | None = None
    description: str | None = None
    issue_type: str | None = None
    priority: str | None = None
    status: str | None = None
    status_category: str | None = None
    assignee: str | None = None
    reporter: str | None = None
    sprint_id: str | None = None
    story_points: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    resolved_at: datetime | None = None
    labels: list[str] = field(default_factory=list)
    components: list[str] = field(default_factory=list)
    override: OverrideModel = field(default_factory=OverrideModel)

    # Derived metrics (populated later)
    complexity_score: float | None = None
    complexity_size: str | None = None
    complexity_factors: dict[str, int] | None = None
    discipline: str | None = None
    ai_flag: bool | None = None
    oversize_flag: bool | None = None
    lead_time_ms: float | None = None
    cycle_time_ms: float | None = None


@dataclass(slots=True)
class EventModel:
    ticket_key: str
    event_type: str
    occurred_at: datetime | None
    event_source: str = "jira"
    actor: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ComplexityResult:
    score: float
    size: str
    oversize: bool
    factors: dict[str, int]


@dataclass(frozen=True, slots=True)
class TicketWindow:
    """Time-in-state figures reconstructed from one ticket's event history.

    ``lead_ms`` and ``cycle_ms`` are ``None`` when the history cannot support
    them; aggregations skip ``None`` rather than reading it as zero.
    """

    lead_ms: float | None
    cycle_ms: float | None
    active_ms: float
    queue_ms: float
    reopens: int
    oversize: bool


@dataclass(slots=True)
class DerivedMetrics:
    key: str
    complexity_score: float
    complexity_size: str
    oversize: bool
    factors: dict[str, int]
    discipline: str
    phase: str
    ai_flag: bool
    lead_ms: float | None
    cycle_ms: float | None
    active_hours: float
    queue_hours: float
    reopen_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class PhaseEffortMetric:
    phase: str
    label: str
    ticket_count: int
    total_hours: float
    percentage: float
    color: str


@dataclass(slots=True)
class PhaseDistribution:
    phases: list[PhaseEffortMetric]
    total_hours: float
    total_tickets: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class DisciplineEffortMetric:
    discipline: str
    ticket_count: int
    lead_time_median_hours: float | None
    cycle_time_median_hours: float | None
    active_hours: float
    queue_hours: float
    efficiency_percent: float
    oversize_rate: float
    reopen_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ComplexityBreakdown:
    by_size: dict[str, int]
    by_discipline: dict[str, int]
    oversize_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class FlowEfficiency:
    active_hours: float
    queue_hours: float
    efficiency_percent: float


@dataclass(slots=True)
class MetricsSummary:
    total_tickets: int
    completed_tickets: int
    avg_lead_time_hours: float | None
    avg_cycle_time_hours: float | None
    total_commits: int
    total_prs: int
    velocity_points: float
    flow: FlowEfficiency
    complexity: ComplexityBreakdown
    discipline_effort: list[DisciplineEffortMetric] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
