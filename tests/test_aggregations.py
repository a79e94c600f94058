import pytest

from lifecycle_app.analytics.aggregations.complexity import complexity_breakdown
from lifecycle_app.analytics.aggregations.discipline import discipline_effort, efficiency_percent
from lifecycle_app.analytics.aggregations.phase import phase_breakdown_summary, phase_distribution, ticket_hours
from lifecycle_app.analytics.aggregations.summary import flow_efficiency, metrics_summary, velocity
from lifecycle_app.analytics.classification.phase import PhaseClassifier
from lifecycle_app.core.config import EventType
from lifecycle_app.core.models import EventModel, OverrideModel
from lifecycle_app.core.rules import rule_set_from_dicts

from builders import HOUR_MS, at, lifecycle_fixture, ticket

CLASSIFIER = PhaseClassifier(rule_set_from_dicts().phase)


def _phase_sample():
    return [
        ticket("P-1", labels=["spike"], lead_time_ms=10 * HOUR_MS),
        ticket("P-2", discipline="qa", lead_time_ms=30 * HOUR_MS),
        ticket("P-3", discipline="backend", lead_time_ms=60 * HOUR_MS),
        ticket(
            "P-4",
            discipline="backend",
            lead_time_ms=100 * HOUR_MS,
            override=OverrideModel(excluded_from_metrics=True),
        ),
    ]


def test_phase_distribution_percentages():
    dist = phase_distribution(_phase_sample(), {}, CLASSIFIER)
    assert dist.total_tickets == 3
    assert dist.total_hours == 100.0
    assert [p.phase for p in dist.phases] == ["development", "testing", "discovery"]
    assert [p.percentage for p in dist.phases] == [60.0, 30.0, 10.0]
    assert sum(p.percentage for p in dist.phases) == pytest.approx(100.0, abs=0.1)
    dev = dist.phases[0]
    assert dev.label == "Development"
    assert dev.ticket_count == 1
    assert dev.color.startswith("#")


def test_phase_distribution_ties_keep_canonical_order():
    tickets = [
        ticket("T-1", discipline="devops", lead_time_ms=5 * HOUR_MS),
        ticket("T-2", labels=["research"], lead_time_ms=5 * HOUR_MS),
    ]
    dist = phase_distribution(tickets, {}, CLASSIFIER)
    assert [p.phase for p in dist.phases] == ["discovery", "deployment"]


def test_phase_distribution_empty_and_zero_hours():
    dist = phase_distribution([], {}, CLASSIFIER)
    assert dist.phases == []
    assert dist.total_hours == 0
    assert dist.total_tickets == 0

    dist = phase_distribution([ticket("Z-1")], {}, CLASSIFIER)
    assert dist.phases == []
    assert dist.total_hours == 0
    assert dist.total_tickets == 1
    assert phase_breakdown_summary(dist) == ("N/A", 0.0)


def test_phase_breakdown_summary_picks_largest():
    dist = phase_distribution(_phase_sample(), {}, CLASSIFIER)
    assert phase_breakdown_summary(dist) == ("Development", 60.0)


def test_ticket_hours_fallbacks():
    assert ticket_hours(ticket("H-1", created_at=at(1, 0), resolved_at=at(3, 0)), []) == 48.0
    assert ticket_hours(ticket("H-2", created_at=at(1, 0), updated_at=at(1, 6)), []) == 6.0
    events = [EventModel(ticket_key="H-3", event_type=EventType.COMMIT_CREATED.value, occurred_at=at(1, 9))]
    assert ticket_hours(ticket("H-3", created_at=at(1, 0), updated_at=at(1, 6)), events) == 9.0
    assert ticket_hours(ticket("H-4"), []) == 0.0


def test_discipline_effort_lifecycle_fixture():
    tickets, events = lifecycle_fixture()
    rows = discipline_effort(tickets, events)
    assert [r.discipline for r in rows] == ["backend", "frontend"]

    backend, frontend = rows
    assert backend.ticket_count == 2
    assert backend.lead_time_median_hours == pytest.approx(48.0)
    assert backend.cycle_time_median_hours == pytest.approx(35.0)
    assert backend.active_hours == pytest.approx(62.0)
    assert backend.queue_hours == pytest.approx(34.0)
    assert backend.reopen_count == 1
    assert backend.oversize_rate == pytest.approx(0.5)
    assert backend.efficiency_percent > 50

    assert frontend.ticket_count == 1
    assert frontend.lead_time_median_hours == pytest.approx(24.0)
    assert frontend.efficiency_percent < 50
    assert frontend.oversize_rate == 0
    for row in rows:
        assert 0 <= row.efficiency_percent <= 100


def test_discipline_effort_drops_excluded_and_handles_missing():
    tickets = [
        ticket("X-1", discipline="data", override=OverrideModel(excluded_from_metrics=True)),
        ticket("X-2", created_at=at(1, 0)),
    ]
    rows = discipline_effort(tickets, {})
    assert [r.discipline for r in rows] == ["unknown"]
    row = rows[0]
    assert row.lead_time_median_hours is None
    assert row.cycle_time_median_hours is None
    assert row.efficiency_percent == 0
    assert discipline_effort([], {}) == []


def test_discipline_effort_uses_override():
    tickets, events = lifecycle_fixture()
    tickets[2].override = OverrideModel(discipline="backend")
    rows = discipline_effort(tickets, events)
    assert len(rows) == 1
    assert rows[0].ticket_count == 3


def test_aggregators_accept_flat_event_list():
    tickets, events = lifecycle_fixture()
    flat = [e for group in events.values() for e in group]

    assert discipline_effort(tickets, flat) == discipline_effort(tickets, events)
    assert phase_distribution(tickets, flat, CLASSIFIER) == phase_distribution(tickets, events, CLASSIFIER)
    assert flow_efficiency(tickets, flat) == flow_efficiency(tickets, events)
    assert metrics_summary(tickets, flat).total_tickets == 3
    assert discipline_effort(tickets, None)[0].discipline == "backend"


def test_efficiency_percent_bounds():
    assert efficiency_percent(0, 0) == 0
    assert efficiency_percent(3, 1) == 75.0


def test_complexity_breakdown():
    tickets = [
        ticket("C-1", complexity_size="S", discipline="backend"),
        ticket("C-2", complexity_size="XL", discipline="backend", oversize_flag=True),
        ticket("C-3", complexity_size="S", discipline="frontend", override=OverrideModel(complexity="M")),
        ticket("C-4"),
        ticket("C-5", complexity_size="L", override=OverrideModel(excluded_from_metrics=True)),
    ]
    breakdown = complexity_breakdown(tickets)
    assert breakdown.by_size == {"S": 1, "M": 1, "XL": 1, "unknown": 1}
    assert list(breakdown.by_size) == ["S", "M", "XL", "unknown"]
    assert breakdown.by_discipline == {"backend": 2, "frontend": 1, "unknown": 1}
    assert breakdown.oversize_count == 1
    assert complexity_breakdown([]).to_dict() == {"by_size": {}, "by_discipline": {}, "oversize_count": 0}


def test_flow_efficiency_and_velocity():
    tickets, events = lifecycle_fixture()
    flow = flow_efficiency(tickets, events)
    assert flow.active_hours == pytest.approx(70.0)
    assert flow.queue_hours == pytest.approx(50.0)
    assert flow.efficiency_percent == pytest.approx(58.33)

    tickets[0].story_points = 5
    tickets[1].story_points = 3
    tickets[1].sprint_id = "42"
    assert velocity(tickets) == 8.0
    assert velocity(tickets, sprint_id="42") == 3.0


def test_metrics_summary():
    tickets, events = lifecycle_fixture()
    events = dict(events)
    events["BE-1"] = events["BE-1"] + [
        EventModel(ticket_key="BE-1", event_type=EventType.COMMIT_CREATED.value, occurred_at=at(2, 12)),
        EventModel(ticket_key="BE-1", event_type=EventType.PR_OPENED.value, occurred_at=at(2, 13)),
    ]
    summary = metrics_summary(tickets, events)
    assert summary.total_tickets == 3
    assert summary.completed_tickets == 3
    assert summary.avg_lead_time_hours == pytest.approx(40.0)
    assert summary.total_commits == 1
    assert summary.total_prs == 1
    assert len(summary.discipline_effort) == 2
    assert summary.to_dict()["flow"]["efficiency_percent"] == pytest.approx(58.33)
