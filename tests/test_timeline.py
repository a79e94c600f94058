import logging

from lifecycle_app.core.config import EventType
from lifecycle_app.core.models import EventModel
from lifecycle_app.core.timeline import build_timeline, group_events_by_ticket, uncorrelated_events

from builders import at, status_event, ticket


def _events():
    return [
        status_event("A-1", at(1, 5), "Done"),
        status_event("B-1", at(1, 2), "In Progress"),
        status_event("A-1", at(1, 1), "In Progress"),
        EventModel(ticket_key="ZZ-9", event_type=EventType.COMMIT_CREATED, occurred_at=at(1, 3), event_source="github"),
        EventModel(ticket_key="ZZ-9", event_type="comment_added", occurred_at=at(1, 4)),
    ]


def test_group_events_by_ticket_sorts_each_group():
    grouped = group_events_by_ticket(_events())
    assert set(grouped) == {"A-1", "B-1", "ZZ-9"}
    assert [e.details["toStatus"] for e in grouped["A-1"]] == ["In Progress", "Done"]


def test_build_timeline_is_global_order():
    timeline = build_timeline(_events())
    assert [e.occurred_at.hour for e in timeline] == [1, 2, 3, 4, 5]


def test_uncorrelated_source_control_events_are_reported(caplog):
    tickets = [ticket("A-1"), ticket("B-1")]
    with caplog.at_level(logging.WARNING, logger="lifecycle_app.core.timeline"):
        orphans = uncorrelated_events(tickets, _events())
    assert len(orphans) == 1
    assert orphans[0].ticket_key == "ZZ-9"
    assert "ZZ-9" in caplog.text
