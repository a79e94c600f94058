"""AI-assisted work detection."""

from __future__ import annotations

import re
from collections.abc import Iterable

AI_TEXT_PATTERN = re.compile(r"ai-coauthored|ai-assisted|copilot", re.IGNORECASE)


def detect_ai_assist(summary: str | None, description: str | None, labels: Iterable[str] | None) -> bool:
    # Label match is a plain substring test, so "maintenance" also counts.
    if any("ai" in str(label).lower() for label in (labels or [])):
        return True
    text = f"{summary or ''} {description or ''}"
    return bool(AI_TEXT_PATTERN.search(text))
