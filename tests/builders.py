"""Ticket/event builders shared by the test modules."""

from __future__ import annotations

from datetime import datetime

import pytz

from lifecycle_app.core.config import EventType
from lifecycle_app.core.models import EventModel, OverrideModel, TicketModel

HOUR_MS = 3_600_000


def at(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=pytz.UTC)


def status_event(key: str, when: datetime, to_status: str, from_status: str | None = None) -> EventModel:
    return EventModel(
        ticket_key=key,
        event_type=EventType.STATUS_CHANGED.value,
        occurred_at=when,
        details={"fromStatus": from_status, "toStatus": to_status},
    )


def ticket(key: str, **kwargs) -> TicketModel:
    override = kwargs.pop("override", None) or OverrideModel()
    return TicketModel(key=key, override=override, **kwargs)


def lifecycle_fixture():
    """Two backend tickets and one frontend ticket with known timings.

    BE-1: 24h queued, 24h active, oversize.
    BE-2: 10h queued, 38h active, reopened once.
    FE-1: 16h queued, 8h active.
    """
    tickets = [
        ticket(
            "BE-1",
            created_at=at(1, 9),
            resolved_at=at(3, 9),
            status="Done",
            status_category="Done",
            discipline="backend",
            oversize_flag=True,
            labels=["backend"],
        ),
        ticket(
            "BE-2",
            created_at=at(1, 10),
            resolved_at=at(3, 10),
            status="Done",
            status_category="Done",
            discipline="backend",
            oversize_flag=False,
            labels=["backend"],
        ),
        ticket(
            "FE-1",
            created_at=at(2, 8),
            resolved_at=at(3, 8),
            status="Done",
            status_category="Done",
            discipline="frontend",
            oversize_flag=False,
            labels=["frontend"],
        ),
    ]
    events = {
        "BE-1": [
            status_event("BE-1", at(2, 9), "In Progress", "To Do"),
            status_event("BE-1", at(3, 9), "Done", "In Progress"),
        ],
        "BE-2": [
            status_event("BE-2", at(1, 12), "In Progress", "To Do"),
            status_event("BE-2", at(2, 10), "Done", "In Progress"),
            status_event("BE-2", at(2, 18), "In Progress", "Done"),
            status_event("BE-2", at(3, 10), "Done", "In Progress"),
        ],
        "FE-1": [
            status_event("FE-1", at(2, 16), "In Progress", "To Do"),
            status_event("FE-1", at(3, 0), "Done", "In Progress"),
        ],
    }
    return tickets, events
