"""
Rule Engine
===========
One generic cascade shared by every rule domain.

A domain is data: a RuleSet holding MatchRules. Each MatchRule carries an
explicit integer priority, its trigger patterns, an optional guard and an
extractor that turns the matched text into file / line / metadata.

Cascade contract:
    - Rules run in ascending priority; the first match wins and later rules
      are never evaluated.
    - Matching is case-insensitive substring search (re.IGNORECASE).
    - Keyword gaps are bounded (GAP / SPAN); no rule pattern uses an
      unbounded .* gap.
    - Input is type-checked, stripped and truncated before matching.
    - Non-str, empty or whitespace-only input → None, never an exception.
    - Configuration faults (duplicate priority, unknown type, unknown
      language) raise at construction time and are never turned into a
      silent "no match".
"""
import re
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from rca.core.config import MAX_INPUT_CHARS
from rca.core.constants import LANGUAGES
from rca.models.diagnosis import DIAGNOSIS_TYPES, Diagnosis

logger = logging.getLogger(__name__)


def patterns(*sources: str) -> tuple[re.Pattern, ...]:
    """Compile trigger patterns, case-insensitive."""
    return tuple(re.compile(src, re.I) for src in sources)


# Keyword gaps inside rule patterns. Every gap is bounded, so matching cost
# stays linear in the input length however often a keyword repeats.
GAP = r"[^\n]{0,120}?"       # within one line
SPAN = r"[\s\S]{0,200}?"     # across lines


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Extraction:
    """Fields an extractor derives from one matched text."""
    file_path: str
    line: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


Extractor = Callable[[str, re.Match], Extraction]
Guard = Callable[[str, re.Match], bool]


@dataclass(frozen=True)
class MatchRule:
    """One entry of a domain's priority table."""
    priority: int
    error_type: str
    patterns: tuple[re.Pattern, ...]
    extract: Extractor
    guard: Optional[Guard] = None

    def match(self, text: str) -> Optional[re.Match]:
        """Return the first pattern match that passes the guard, else None."""
        for pattern in self.patterns:
            m = pattern.search(text)
            if m and (self.guard is None or self.guard(text, m)):
                return m
        return None


@dataclass(frozen=True)
class RuleSet:
    """An immutable, priority-ordered rule table for one error family."""
    domain: str
    language: str
    rules: tuple[MatchRule, ...]
    framework: Optional[str] = None

    def __post_init__(self):
        if self.language not in LANGUAGES:
            raise ValueError(f"RuleSet '{self.domain}': unknown language '{self.language}'")
        ordered = tuple(sorted(self.rules, key=lambda r: r.priority))
        seen: dict[int, str] = {}
        for rule in ordered:
            if rule.priority in seen:
                raise ValueError(
                    f"RuleSet '{self.domain}': priority {rule.priority} used by both "
                    f"'{seen[rule.priority]}' and '{rule.error_type}'"
                )
            if rule.error_type not in DIAGNOSIS_TYPES:
                raise ValueError(f"RuleSet '{self.domain}': unknown diagnosis type '{rule.error_type}'")
            if not rule.patterns:
                raise ValueError(f"RuleSet '{self.domain}': rule {rule.priority} has no patterns")
            seen[rule.priority] = rule.error_type
        object.__setattr__(self, "rules", ordered)

    @property
    def error_types(self) -> list[str]:
        """Distinct diagnosis types in precedence order."""
        result: list[str] = []
        for rule in self.rules:
            if rule.error_type not in result:
                result.append(rule.error_type)
        return result

    def matching_rules(self, text: str) -> list[MatchRule]:
        """
        Every rule whose predicate matches, in priority order.

        Diagnostic helper for precedence fixtures: classification itself
        stops at the first entry.
        """
        return [rule for rule in self.rules if rule.match(text) is not None]


# ---------------------------------------------------------------------------
# Input Normalisation
# ---------------------------------------------------------------------------
def normalize_input(text: Any, max_chars: int = MAX_INPUT_CHARS) -> Optional[str]:
    """Type-check, strip and truncate raw input. Returns None if unusable."""
    if not isinstance(text, str):
        return None
    stripped = text.strip()
    if not stripped:
        return None
    return stripped[:max_chars]


# ---------------------------------------------------------------------------
# Domain Parser
# ---------------------------------------------------------------------------
class DomainParser:
    """Runs one RuleSet's cascade against input text."""

    def __init__(self, rule_set: RuleSet, max_chars: int = MAX_INPUT_CHARS):
        self.rule_set = rule_set
        self.max_chars = min(max_chars, MAX_INPUT_CHARS)

    @property
    def domain(self) -> str:
        return self.rule_set.domain

    def classify(self, text: Any) -> Optional[Diagnosis]:
        """
        Classify diagnostic text with this domain's rules.

        Parameters
        ----------
        text : Any
            Raw diagnostic text. Anything other than a non-blank str yields None.

        Returns
        -------
        Diagnosis | None
            Diagnosis from the first matching rule, or None if no rule applies.
        """
        normalized = normalize_input(text, self.max_chars)
        if normalized is None:
            return None

        for rule in self.rule_set.rules:
            m = rule.match(normalized)
            if m is None:
                continue

            extraction = rule.extract(normalized, m)
            metadata = {k: v for k, v in extraction.metadata.items() if v is not None}
            logger.debug(
                "[%s] rule %d matched → %s (%s:%d)",
                self.domain, rule.priority, rule.error_type,
                extraction.file_path, extraction.line,
            )
            return Diagnosis(
                type=rule.error_type,
                message=normalized,
                file_path=extraction.file_path,
                line=extraction.line,
                language=self.rule_set.language,
                framework=self.rule_set.framework,
                metadata=metadata,
            )

        return None
