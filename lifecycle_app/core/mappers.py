"""Mapping raw Jira issue and GitHub commit/PR JSON into tickets and lifecycle events."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import asdict
from typing import Any

import pandas as pd

from .config import FIELD_IDS, TICKET_KEY_PATTERN, EventType, event_type_value
from .models import EventModel, TicketModel
from .status import map_status_category

TICKET_KEY_RE = re.compile(TICKET_KEY_PATTERN)


def extract_ticket_ids(text: str | None) -> list[str]:
    """Ticket keys (``PROJ-123``) mentioned in ``text``, deduplicated in order."""
    if not text:
        return []
    seen = set()
    out: list[str] = []
    for match in TICKET_KEY_RE.findall(text):
        if match not in seen:
            out.append(match)
            seen.add(match)
    return out


def extract_text_from_adf(body) -> str:
    """Extract plain text from Atlassian Document Format (ADF) content.

    REST v3 returns descriptions as ADF JSON; REST v2 returns plain strings.
    Both are reduced to plain text.
    """
    if body is None:
        return ""
    if isinstance(body, str):
        stripped = body.strip()
        if stripped.startswith("{") and '"type"' in stripped:
            try:
                body = json.loads(stripped)
            except (json.JSONDecodeError, ValueError):
                return stripped
        else:
            return stripped

    texts: list[str] = []

    def walk(node):
        if isinstance(node, dict):
            if node.get("type") == "text" and "text" in node:
                texts.append(str(node["text"]))
            for child in node.get("content") or []:
                walk(child)
        elif isinstance(node, list):
            for child in node:
                walk(child)

    walk(body)
    return " ".join(t for t in texts if t).strip()


def parse_dt(val):
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _name(value: Any, attr: str = "name") -> str | None:
    if isinstance(value, dict):
        return value.get(attr)
    return None


def _story_points(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _sprint_id(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, list):
        raw = raw[-1] if raw else None
    if isinstance(raw, dict):
        raw = raw.get("id") or raw.get("name")
    return str(raw) if raw is not None else None


def map_issue(raw: dict[str, Any]) -> TicketModel:
    fields = raw.get("fields", {}) or {}
    status = fields.get("status") or {}
    return TicketModel(
        key=raw.get("key"),
        summary=fields.get("summary"),
        description=extract_text_from_adf(fields.get("description")) or None,
        issue_type=_name(fields.get("issuetype")),
        priority=_name(fields.get("priority")),
        status=status.get("name"),
        status_category=map_status_category((status.get("statusCategory") or {}).get("key")),
        assignee=_name(fields.get("assignee"), "displayName"),
        reporter=_name(fields.get("reporter"), "displayName"),
        sprint_id=_sprint_id(fields.get(FIELD_IDS["sprint"])),
        story_points=_story_points(fields.get(FIELD_IDS["story_points"])),
        created_at=parse_dt(fields.get("created")),
        updated_at=parse_dt(fields.get("updated")),
        resolved_at=parse_dt(fields.get("resolutiondate")),
        labels=list(fields.get("labels", []) or []),
        components=[c.get("name") for c in fields.get("components", []) or [] if c.get("name")],
    )


def map_issue_events(raw: dict[str, Any]) -> list[EventModel]:
    """Lifecycle events for one Jira issue: creation, changelog, resolution."""
    key = raw.get("key")
    fields = raw.get("fields", {}) or {}
    events = [
        EventModel(
            ticket_key=key,
            event_type=EventType.TICKET_CREATED.value,
            event_source="jira",
            occurred_at=parse_dt(fields.get("created")),
            actor=_name(fields.get("reporter"), "displayName"),
            details={
                "metadata": {
                    "summary": fields.get("summary"),
                    "issueType": _name(fields.get("issuetype")),
                    "priority": _name(fields.get("priority")),
                }
            },
        )
    ]

    histories_raw = (raw.get("changelog") or {}).get("histories", []) or []
    for history in histories_raw:
        author = _name(history.get("author"), "displayName")
        created = parse_dt(history.get("created"))
        for item in history.get("items") or []:
            field_name = str(item.get("field") or "").lower()
            if field_name == "status":
                events.append(
                    EventModel(
                        ticket_key=key,
                        event_type=EventType.STATUS_CHANGED.value,
                        event_source="jira",
                        occurred_at=created,
                        actor=author,
                        details={"fromStatus": item.get("fromString"), "toStatus": item.get("toString")},
                    )
                )
            elif field_name == "assignee":
                events.append(
                    EventModel(
                        ticket_key=key,
                        event_type=EventType.ASSIGNEE_CHANGED.value,
                        event_source="jira",
                        occurred_at=created,
                        actor=author,
                        details={"from": item.get("fromString"), "to": item.get("toString")},
                    )
                )

    if fields.get("resolutiondate"):
        events.append(
            EventModel(
                ticket_key=key,
                event_type=EventType.RESOLVED.value,
                event_source="jira",
                occurred_at=parse_dt(fields.get("resolutiondate")),
                actor=_name(fields.get("assignee"), "displayName") or "Unknown",
            )
        )
    return events


def map_commit(raw: dict[str, Any]) -> list[EventModel]:
    """One ``commit_created`` event per ticket key named in the commit message."""
    commit = raw.get("commit") or {}
    author = commit.get("author") or {}
    message = commit.get("message") or ""
    return [
        EventModel(
            ticket_key=key,
            event_type=EventType.COMMIT_CREATED.value,
            event_source="github",
            occurred_at=parse_dt(author.get("date")),
            actor=author.get("name"),
            details={
                "commitSha": raw.get("sha"),
                "commitMessage": message,
                "commitUrl": raw.get("html_url"),
            },
        )
        for key in extract_ticket_ids(message)
    ]


def map_pull_request(raw: dict[str, Any]) -> list[EventModel]:
    """``pr_opened`` (and ``pr_merged`` when merged) events per referenced ticket."""
    title = raw.get("title") or ""
    head = (raw.get("head") or {}).get("ref") or ""
    keys = extract_ticket_ids(" ".join([title, raw.get("body") or "", head]))
    actor = _name(raw.get("user"), "login")
    details = {
        "prNumber": raw.get("number"),
        "prTitle": title,
        "prUrl": raw.get("html_url"),
        "branchName": head or None,
    }
    events: list[EventModel] = []
    for key in keys:
        events.append(
            EventModel(
                ticket_key=key,
                event_type=EventType.PR_OPENED.value,
                event_source="github",
                occurred_at=parse_dt(raw.get("created_at")),
                actor=actor,
                details={**details, "prState": "open"},
            )
        )
        if raw.get("merged_at"):
            events.append(
                EventModel(
                    ticket_key=key,
                    event_type=EventType.PR_MERGED.value,
                    event_source="github",
                    occurred_at=parse_dt(raw.get("merged_at")),
                    actor=actor,
                    details={**details, "prState": "merged"},
                )
            )
    return events


def tickets_to_dataframe(tickets: Iterable[TicketModel]) -> pd.DataFrame:
    rows = []
    for t in tickets:
        row = asdict(t)
        override = row.pop("override")
        row["labels"] = ", ".join(sorted({v for v in t.labels if v}, key=lambda s: s.lower()))
        row["components"] = ", ".join(sorted({v for v in t.components if v}, key=lambda s: s.lower()))
        row["phase_override"] = override["phase"]
        row["discipline_override"] = override["discipline"]
        row["complexity_override"] = override["complexity"]
        row["excluded_from_metrics"] = bool(override["excluded_from_metrics"])
        rows.append(row)
    return pd.DataFrame(rows)


def events_to_dataframe(events: Iterable[EventModel]) -> pd.DataFrame:
    rows = [
        {
            "ticket_key": e.ticket_key,
            "event_type": event_type_value(e.event_type),
            "event_source": e.event_source,
            "occurred_at": e.occurred_at,
            "actor": e.actor,
            "details": e.details,
        }
        for e in events
    ]
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    df["occurred_at"] = pd.to_datetime(df["occurred_at"], utc=True, errors="coerce")
    return df.sort_values(by="occurred_at", kind="mergesort", na_position="last").reset_index(drop=True)
