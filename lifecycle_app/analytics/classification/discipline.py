"""Discipline classification from labels, components and repository paths."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from lifecycle_app.core.models import TicketModel
from lifecycle_app.core.rules import DisciplineRulesConfig

FRONTEND_HINT = re.compile(r"\b(?:frontend|ui|web)", re.IGNORECASE)
MOBILE_HINT = re.compile(r"android|ios|mobile", re.IGNORECASE)
BACKEND_HINT = re.compile(r"api|backend|server|service", re.IGNORECASE)
BACKEND_REPO_HINT = re.compile(r"api|server", re.IGNORECASE)


def glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a repo-path glob (``**`` any depth, ``*`` one segment) to a regex."""
    parts = re.split(r"(\*\*|\*)", pattern)
    translated = []
    for part in parts:
        if part == "**":
            translated.append(".*")
        elif part == "*":
            translated.append("[^/]*")
        else:
            translated.append(re.escape(part))
    return re.compile("".join(translated))


def _contains_any(patterns: Iterable[str], values: list[str]) -> bool:
    return any(p.lower() in value for p in patterns for value in values)


def _match_labels(patterns, labels, components, repo_path) -> bool:
    return _contains_any(patterns, labels)


def _match_components(patterns, labels, components, repo_path) -> bool:
    return _contains_any(patterns, components)


def _match_repo_paths(patterns, labels, components, repo_path) -> bool:
    if not repo_path:
        return False
    return any(glob_to_regex(p).search(repo_path) for p in patterns)


# Pattern kind -> matcher; the rule config's ``priority`` decides the order
PATTERN_MATCHERS: dict[str, Callable[..., bool]] = {
    "labels": _match_labels,
    "components": _match_components,
    "repoPaths": _match_repo_paths,
}


def match_rules(
    labels: list[str],
    components: list[str],
    repo_path: str | None,
    config: DisciplineRulesConfig,
) -> str | None:
    for kind in config.priority:
        matcher = PATTERN_MATCHERS.get(kind)
        if matcher is None:
            continue
        for rule in config.rules:
            patterns = rule.patterns.get(kind)
            if not patterns:
                continue
            if matcher(patterns, labels, components, repo_path):
                return rule.discipline
    return None


def fallback_heuristics(labels: list[str], components: list[str], repo_path: str | None = None) -> str | None:
    haystack = " ".join([*labels, *components])
    if FRONTEND_HINT.search(haystack):
        return "frontend"
    if MOBILE_HINT.search(haystack) or (repo_path and MOBILE_HINT.search(repo_path)):
        return "mobile"
    if BACKEND_HINT.search(haystack) or (repo_path and BACKEND_REPO_HINT.search(repo_path)):
        return "backend"
    return None


def classify(
    labels: Iterable[str] | None,
    components: Iterable[str] | None,
    repo_path: str | None,
    config: DisciplineRulesConfig,
) -> str:
    """Return the discipline for the given labels/components/repo path.

    Rules are tried pattern kind by pattern kind in ``config.priority`` order
    and, within a kind, in list order; the first match wins. Unmatched input
    falls back to keyword heuristics and finally to ``config.default``.
    """
    norm_labels = [str(v).lower() for v in (labels or []) if v]
    norm_components = [str(v).lower() for v in (components or []) if v]
    matched = match_rules(norm_labels, norm_components, repo_path, config)
    if matched:
        return matched
    return fallback_heuristics(norm_labels, norm_components, repo_path) or config.default


def classify_ticket(ticket: TicketModel, config: DisciplineRulesConfig, repo_path: str | None = None) -> str:
    return classify(ticket.labels, ticket.components, repo_path, config)
