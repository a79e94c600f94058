"""Central configuration, constants, and default rule documents."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

# =============================================================================
# Lifecycle Phases
# =============================================================================
# Canonical order used when grouping tickets into phases
PHASE_ORDER: Sequence[str] = (
    "discovery",
    "definition",
    "design",
    "development",
    "testing",
    "deployment",
    "measure",
    "unknown",
)

# Phases a user may assign manually ("unknown" is only ever a fallback)
AVAILABLE_PHASES: Sequence[str] = tuple(p for p in PHASE_ORDER if p != "unknown")

PHASE_LABELS: dict[str, str] = {
    "discovery": "Discovery",
    "definition": "Definition",
    "design": "Design",
    "development": "Development",
    "testing": "Testing",
    "deployment": "Deployment",
    "measure": "Measure",
    "unknown": "Unknown",
}

PHASE_COLORS: dict[str, str] = {
    "discovery": "#8b5cf6",
    "definition": "#6366f1",
    "design": "#ec4899",
    "development": "#3b82f6",
    "testing": "#f59e0b",
    "deployment": "#10b981",
    "measure": "#14b8a6",
    "unknown": "#9ca3af",
}

# =============================================================================
# Complexity Sizes
# =============================================================================
SIZE_ORDER: Sequence[str] = ("XS", "S", "M", "L", "XL")
COMPLEXITY_FACTORS: Sequence[str] = ("B", "T", "S", "A", "U")

# Bucket used whenever a discipline / size / phase is missing
UNKNOWN_BUCKET = "unknown"


# =============================================================================
# Lifecycle Events
# =============================================================================
class EventType(str, Enum):
    # Jira events
    TICKET_CREATED = "ticket_created"
    STATUS_CHANGED = "status_changed"
    ASSIGNEE_CHANGED = "assignee_changed"
    SPRINT_ASSIGNED = "sprint_assigned"
    COMMENT_ADDED = "comment_added"
    RESOLVED = "resolved"

    # GitHub events
    COMMIT_CREATED = "commit_created"
    BRANCH_CREATED = "branch_created"
    PR_OPENED = "pr_opened"
    PR_REVIEWED = "pr_reviewed"
    PR_APPROVED = "pr_approved"
    PR_MERGED = "pr_merged"
    DEPLOYED_TO_BRANCH = "deployed_to_branch"


def event_type_value(value: EventType | str) -> str:
    """Plain string form of an event type given as enum member or string."""
    if isinstance(value, EventType):
        return value.value
    return str(value)


# =============================================================================
# Workflow Status Configuration
# =============================================================================
# Canonical display order for status rollups
STATUS_DISPLAY_ORDER: Sequence[str] = (
    "Backlog",
    "To Do",
    "In Progress",
    "In Review",
    "Testing",
    "Blocked",
    "Cancelled",
    "Done",
)

TERMINAL_STATUSES: frozenset[str] = frozenset({"Done", "Cancelled"})

# Keys should be lowercase for case-insensitive matching
STATUS_ALIASES: dict[str, str] = {
    "backlog": "Backlog",
    "to do": "To Do",
    "todo": "To Do",
    "open": "To Do",
    "new": "To Do",
    "reopened": "To Do",
    "in progress": "In Progress",
    "inprogress": "In Progress",
    "in-progress": "In Progress",
    "in development": "In Progress",
    "in review": "In Review",
    "code review": "In Review",
    "patch available": "In Review",
    "testing": "Testing",
    "in qa": "Testing",
    "blocked": "Blocked",
    "cancelled": "Cancelled",
    "canceled": "Cancelled",
    "won't do": "Cancelled",
    "done": "Done",
    "resolved": "Done",
    "closed": "Done",
    "complete": "Done",
    "completed": "Done",
}

# Jira statusCategory.key -> category shown on tickets
STATUS_CATEGORY_KEYS: dict[str, str] = {
    "new": "To Do",
    "indeterminate": "In Progress",
    "done": "Done",
}

# Free-text markers used by the time-in-state heuristics
ACTIVE_STATUS_MARKER = "progress"
DONE_STATUS_MARKER = "done"
TODO_STATUS_MARKER = "to do"

# =============================================================================
# Jira Custom Field IDs
# =============================================================================
FIELD_IDS = {
    "story_points": "customfield_10016",
    "sprint": "customfield_10104",
}

# Ticket keys such as KAFKA-19734 referenced from commits and pull requests
TICKET_KEY_PATTERN = r"\b[A-Z][A-Z0-9]+-\d+\b"

# =============================================================================
# Rule Documents
# =============================================================================
RULE_FILE_STEMS: dict[str, str] = {
    "complexity": "complexity",
    "discipline": "discipline_rules",
    "phase": "phase_rules",
}
RULE_FILE_SUFFIXES: Sequence[str] = (".yaml", ".yml", ".json")

DEFAULT_COMPLEXITY_CONFIG: dict = {
    "weights": {"B": 3, "T": 2, "S": 2, "A": 1, "U": 1},
    "thresholds": {"XS": 0, "S": 4, "M": 8, "L": 13, "XL": 20},
    "oversize": {"threshold": "XL"},
    "clamping": {"min": 0, "max": 5},
    "allowlists": {
        "T": [
            "react",
            "typescript",
            "python",
            "java",
            "kotlin",
            "swift",
            "graphql",
            "kafka",
            "postgres",
            "redis",
            "docker",
            "kubernetes",
            "terraform",
        ],
        "S": [
            "api",
            "database",
            "queue",
            "cache",
            "auth",
            "payment",
            "search",
            "storage",
            "notification",
            "gateway",
        ],
    },
    "bespokePatterns": [
        r"new module",
        r"new service",
        r"create table",
        r"migration",
        r"add endpoint",
        r"new endpoint",
        r"refactor\w*",
        r"from scratch",
    ],
}

DEFAULT_DISCIPLINE_RULES: dict = {
    "rules": [
        {
            "discipline": "frontend",
            "patterns": {"labels": ["frontend", "front-end", "css", "user-interface"], "components": ["web", "frontend"]},
        },
        {"discipline": "mobile", "patterns": {"labels": ["mobile", "android", "ios"], "components": ["mobile", "app"]}},
        {"discipline": "qa", "patterns": {"labels": ["qa", "test", "e2e"], "components": ["qa", "test"]}},
        {
            "discipline": "devops",
            "patterns": {"labels": ["devops", "infra", "ci-cd", "cicd", "deploy"], "components": ["infra", "build"], "repoPaths": ["infra/**", "**/.github/**"]},
        },
        {"discipline": "data", "patterns": {"labels": ["data", "etl", "analytics"], "components": ["analytics", "warehouse"]}},
        {
            "discipline": "backend",
            "patterns": {"labels": ["backend", "api", "server"], "components": ["api", "core", "server"], "repoPaths": ["services/**", "api/**"]},
        },
    ],
    "priority": ["labels", "components", "repoPaths"],
    "default": "backend",
}

DEFAULT_PHASE_RULES: dict = {
    "disciplineMapping": {
        "backend": "development",
        "frontend": "development",
        "mobile": "development",
        "data": "development",
        "qa": "testing",
        "devops": "deployment",
        "design": "design",
        "product": "definition",
    },
    "labelOverrides": [
        {"phase": "discovery", "patterns": ["research", "spike", "discovery"]},
        {"phase": "definition", "patterns": ["requirements", "refinement", "spec"]},
        {"phase": "design", "patterns": ["design", "ux", "mockup"]},
        {"phase": "testing", "patterns": ["qa", "test"]},
        {"phase": "deployment", "patterns": ["release", "deploy", "rollout"]},
        {"phase": "measure", "patterns": ["metrics", "analytics", "experiment"]},
    ],
    "priority": ["labels", "discipline"],
    "default": "development",
}


@dataclass(slots=True)
class AppSettings:
    round_digits: int = 2


SETTINGS = AppSettings()
