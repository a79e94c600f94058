"""Rule configurations (complexity, discipline, phase) and their loader.

Rule documents are plain mappings, read from YAML or JSON files. Each one is
validated and frozen into a value object once, then passed by reference into
the scoring and classification functions. A missing file falls back to the
built-in default document; a malformed one raises ``RuleConfigError`` here,
never later inside a per-ticket computation.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .config import (
    COMPLEXITY_FACTORS,
    DEFAULT_COMPLEXITY_CONFIG,
    DEFAULT_DISCIPLINE_RULES,
    DEFAULT_PHASE_RULES,
    PHASE_ORDER,
    RULE_FILE_STEMS,
    RULE_FILE_SUFFIXES,
    SIZE_ORDER,
)

logger = logging.getLogger(__name__)

DISCIPLINE_PATTERN_KINDS: Sequence[str] = ("labels", "components", "repoPaths")
PHASE_PRIORITY_KINDS: Sequence[str] = ("labels", "discipline")


class RuleConfigError(ValueError):
    """Raised when a rule document is missing a section or holds bad values."""


@dataclass(frozen=True, slots=True)
class ComplexityConfig:
    weights: Mapping[str, float]
    thresholds: Mapping[str, float]
    oversize_threshold: str
    clamp_min: int
    clamp_max: int
    technology_allowlist: tuple[str, ...]
    systems_allowlist: tuple[str, ...]
    bespoke_patterns: tuple[re.Pattern, ...]


@dataclass(frozen=True, slots=True)
class DisciplineRule:
    discipline: str
    patterns: Mapping[str, tuple[str, ...]]


@dataclass(frozen=True, slots=True)
class DisciplineRulesConfig:
    rules: tuple[DisciplineRule, ...]
    priority: tuple[str, ...]
    default: str


@dataclass(frozen=True, slots=True)
class PhaseRule:
    phase: str
    patterns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PhaseRulesConfig:
    discipline_mapping: Mapping[str, str]
    label_overrides: tuple[PhaseRule, ...]
    priority: tuple[str, ...]
    default: str


@dataclass(frozen=True, slots=True)
class RuleSet:
    complexity: ComplexityConfig
    discipline: DisciplineRulesConfig
    phase: PhaseRulesConfig


# ------------------ Parsing ------------------
def _section(data: Mapping[str, Any], name: str, source: str) -> Any:
    if not isinstance(data, Mapping) or name not in data or data[name] is None:
        raise RuleConfigError(f"{source}: missing required section '{name}'")
    return data[name]


def _number(value: Any, where: str, source: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RuleConfigError(f"{source}: '{where}' must be a number, got {value!r}")
    return float(value)


def _string_list(value: Any, where: str, source: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise RuleConfigError(f"{source}: '{where}' must be a list of strings")
    return tuple(str(v) for v in value)


def parse_complexity_config(data: Mapping[str, Any], source: str = "complexity") -> ComplexityConfig:
    weights_raw = _section(data, "weights", source)
    thresholds_raw = _section(data, "thresholds", source)
    oversize_raw = _section(data, "oversize", source)
    clamping_raw = _section(data, "clamping", source)
    allowlists_raw = _section(data, "allowlists", source)
    patterns_raw = _section(data, "bespokePatterns", source)

    weights = {f: _number(_section(weights_raw, f, f"{source}.weights"), f"weights.{f}", source) for f in COMPLEXITY_FACTORS}
    thresholds = {
        s: _number(_section(thresholds_raw, s, f"{source}.thresholds"), f"thresholds.{s}", source) for s in SIZE_ORDER
    }
    oversize = str(_section(oversize_raw, "threshold", f"{source}.oversize"))
    if oversize not in SIZE_ORDER:
        raise RuleConfigError(f"{source}: oversize.threshold must be one of {list(SIZE_ORDER)}, got {oversize!r}")

    clamp_min = int(_number(_section(clamping_raw, "min", f"{source}.clamping"), "clamping.min", source))
    clamp_max = int(_number(_section(clamping_raw, "max", f"{source}.clamping"), "clamping.max", source))
    if clamp_min > clamp_max:
        raise RuleConfigError(f"{source}: clamping.min ({clamp_min}) exceeds clamping.max ({clamp_max})")

    technology = _string_list(_section(allowlists_raw, "T", f"{source}.allowlists"), "allowlists.T", source)
    systems = _string_list(_section(allowlists_raw, "S", f"{source}.allowlists"), "allowlists.S", source)

    compiled: list[re.Pattern] = []
    for pattern in _string_list(patterns_raw, "bespokePatterns", source):
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as exc:
            raise RuleConfigError(f"{source}: invalid bespoke pattern {pattern!r}: {exc}") from exc

    return ComplexityConfig(
        weights=weights,
        thresholds=thresholds,
        oversize_threshold=oversize,
        clamp_min=clamp_min,
        clamp_max=clamp_max,
        technology_allowlist=tuple(t.lower() for t in technology),
        systems_allowlist=tuple(s.lower() for s in systems),
        bespoke_patterns=tuple(compiled),
    )


def parse_discipline_rules(data: Mapping[str, Any], source: str = "discipline") -> DisciplineRulesConfig:
    rules_raw = _section(data, "rules", source)
    priority = _string_list(_section(data, "priority", source), "priority", source)
    default = str(_section(data, "default", source))

    unknown = [kind for kind in priority if kind not in DISCIPLINE_PATTERN_KINDS]
    if unknown:
        raise RuleConfigError(f"{source}: unknown pattern kinds in priority: {unknown}")

    rules: list[DisciplineRule] = []
    for idx, entry in enumerate(rules_raw):
        where = f"{source}.rules[{idx}]"
        discipline = str(_section(entry, "discipline", where))
        patterns_raw = _section(entry, "patterns", where)
        if not isinstance(patterns_raw, Mapping):
            raise RuleConfigError(f"{where}: 'patterns' must be a mapping")
        patterns = {
            kind: _string_list(values, f"rules[{idx}].patterns.{kind}", source)
            for kind, values in patterns_raw.items()
            if values is not None
        }
        rules.append(DisciplineRule(discipline=discipline, patterns=patterns))

    return DisciplineRulesConfig(rules=tuple(rules), priority=priority, default=default)


def parse_phase_rules(data: Mapping[str, Any], source: str = "phase") -> PhaseRulesConfig:
    mapping_raw = _section(data, "disciplineMapping", source)
    overrides_raw = _section(data, "labelOverrides", source)
    priority = _string_list(_section(data, "priority", source), "priority", source)
    default = str(_section(data, "default", source))

    unknown = [kind for kind in priority if kind not in PHASE_PRIORITY_KINDS]
    if unknown:
        raise RuleConfigError(f"{source}: unknown priority entries: {unknown}")
    if not isinstance(mapping_raw, Mapping):
        raise RuleConfigError(f"{source}: 'disciplineMapping' must be a mapping")

    phases = set(PHASE_ORDER)
    mapping: dict[str, str] = {}
    for discipline, phase in mapping_raw.items():
        if phase not in phases:
            raise RuleConfigError(f"{source}: disciplineMapping.{discipline} has unknown phase {phase!r}")
        mapping[str(discipline).lower()] = str(phase)

    overrides: list[PhaseRule] = []
    for idx, entry in enumerate(overrides_raw):
        where = f"{source}.labelOverrides[{idx}]"
        phase = str(_section(entry, "phase", where))
        if phase not in phases:
            raise RuleConfigError(f"{where}: unknown phase {phase!r}")
        patterns = _string_list(_section(entry, "patterns", where), f"labelOverrides[{idx}].patterns", source)
        overrides.append(PhaseRule(phase=phase, patterns=tuple(p.lower() for p in patterns)))

    if default not in phases:
        raise RuleConfigError(f"{source}: unknown default phase {default!r}")

    return PhaseRulesConfig(
        discipline_mapping=mapping,
        label_overrides=tuple(overrides),
        priority=priority,
        default=default,
    )


def rule_set_from_dicts(
    complexity: Mapping[str, Any] | None = None,
    discipline: Mapping[str, Any] | None = None,
    phase: Mapping[str, Any] | None = None,
) -> RuleSet:
    """Build a ``RuleSet`` from already-parsed documents (defaults when None)."""
    return RuleSet(
        complexity=parse_complexity_config(complexity if complexity is not None else DEFAULT_COMPLEXITY_CONFIG),
        discipline=parse_discipline_rules(discipline if discipline is not None else DEFAULT_DISCIPLINE_RULES),
        phase=parse_phase_rules(phase if phase is not None else DEFAULT_PHASE_RULES),
    )


# ------------------ File Loading ------------------
def _read_document(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RuleConfigError(f"{path}: could not parse rule document: {exc}") from exc
    if not isinstance(data, Mapping):
        raise RuleConfigError(f"{path}: rule document must be a mapping, got {type(data).__name__}")
    return data


def _find_document(base: Path, stem: str) -> Path | None:
    for suffix in RULE_FILE_SUFFIXES:
        candidate = base / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    return None


def load_rule_set(base_path: str | Path | None = None) -> RuleSet:
    """Load the three rule documents from ``base_path`` (default: ``rules/``).

    Each document is looked up as ``<stem>.yaml``, ``<stem>.yml`` or
    ``<stem>.json``; when none exists the built-in default is used.
    """
    base = Path(base_path or Path(__file__).resolve().parents[2] / "rules")
    defaults = {
        "complexity": DEFAULT_COMPLEXITY_CONFIG,
        "discipline": DEFAULT_DISCIPLINE_RULES,
        "phase": DEFAULT_PHASE_RULES,
    }
    parsers = {
        "complexity": parse_complexity_config,
        "discipline": parse_discipline_rules,
        "phase": parse_phase_rules,
    }
    parsed = {}
    for name, stem in RULE_FILE_STEMS.items():
        path = _find_document(base, stem)
        if path is None:
            logger.debug("No %s rule file under %s; using built-in defaults", name, base)
            parsed[name] = parsers[name](defaults[name], source=f"default {name} rules")
            continue
        logger.debug("Loading %s rules from %s", name, path)
        parsed[name] = parsers[name](_read_document(path), source=str(path))
    return RuleSet(**parsed)
