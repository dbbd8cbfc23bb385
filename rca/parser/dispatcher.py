"""
Dispatcher
==========
Routes diagnostic text through every enabled rule domain in a fixed order
and returns the first diagnosis produced.

Dispatch order:
    manifest → compose → layout → gradle → kotlin (generic fallback)

Contract:
    - FIRST WINS: later domains are never consulted once one matches.
    - Disabled domains are None slots and are skipped silently.
    - Built explicitly with build_dispatcher() and passed to callers;
      there is no module-level instance.
"""
import logging
from typing import Any, Iterable, Optional, Sequence

from rca.core.config import ALL_DOMAINS, ENABLED_DOMAINS, MAX_INPUT_CHARS
from rca.core.knowledge import DEFAULT_KNOWLEDGE, KnowledgeTables
from rca.models.diagnosis import Diagnosis
from rca.parser.compose_rules import build_compose_rules
from rca.parser.gradle_rules import build_gradle_rules
from rca.parser.kotlin_rules import build_kotlin_rules
from rca.parser.layout_rules import build_layout_rules
from rca.parser.manifest_rules import build_manifest_rules
from rca.parser.rules import DomainParser, normalize_input

logger = logging.getLogger(__name__)

# Android-specific domains, in dispatch order. "kotlin" is the fallback.
DOMAIN_PRIORITY: tuple[str, ...] = ("manifest", "compose", "layout", "gradle")
FALLBACK_DOMAIN = "kotlin"


class Dispatcher:
    """Fixed-priority fan-out over domain parsers."""

    def __init__(
        self,
        parsers: Sequence[Optional[DomainParser]],
        fallback: Optional[DomainParser] = None,
        max_chars: int = MAX_INPUT_CHARS,
    ):
        self.parsers = tuple(parsers)
        self.fallback = fallback
        self.max_chars = max_chars

    @property
    def domains(self) -> list[str]:
        """Enabled domain names in dispatch order."""
        chain = [*self.parsers, self.fallback]
        return [p.domain for p in chain if p is not None]

    def classify_any(self, text: Any) -> Optional[Diagnosis]:
        """
        Classify text with the first domain that recognises it.

        Parameters
        ----------
        text : Any
            Raw diagnostic text. Non-str or blank input yields None.

        Returns
        -------
        Diagnosis | None
            First non-None diagnosis in dispatch order, or None.
        """
        normalized = normalize_input(text, self.max_chars)
        if normalized is None:
            return None

        for parser in (*self.parsers, self.fallback):
            if parser is None:
                continue
            diagnosis = parser.classify(normalized)
            if diagnosis is not None:
                logger.debug("Dispatcher: '%s' domain won → %s", parser.domain, diagnosis.type)
                return diagnosis

        logger.debug("Dispatcher: no domain recognised the input")
        return None


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------
def build_parsers(
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
    max_chars: int = MAX_INPUT_CHARS,
) -> dict[str, DomainParser]:
    """Build one DomainParser per domain, keyed by domain name."""
    rule_sets = {
        "manifest": build_manifest_rules(knowledge),
        "compose": build_compose_rules(knowledge),
        "layout": build_layout_rules(knowledge),
        "gradle": build_gradle_rules(),
        "kotlin": build_kotlin_rules(knowledge),
    }
    return {name: DomainParser(rule_set, max_chars) for name, rule_set in rule_sets.items()}


def build_dispatcher(
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
    enabled_domains: Iterable[str] = ENABLED_DOMAINS,
    max_chars: int = MAX_INPUT_CHARS,
) -> Dispatcher:
    """
    Build a Dispatcher over the enabled domains.

    Raises
    ------
    ValueError
        If enabled_domains names a domain that does not exist.
    """
    enabled = {d.lower() for d in enabled_domains}
    unknown = enabled - set(ALL_DOMAINS)
    if unknown:
        raise ValueError(f"Unknown rule domain(s): {', '.join(sorted(unknown))}")

    parsers = build_parsers(knowledge, max_chars)
    chain = [parsers[d] if d in enabled else None for d in DOMAIN_PRIORITY]
    fallback = parsers[FALLBACK_DOMAIN] if FALLBACK_DOMAIN in enabled else None

    logger.info("Dispatcher built with domains: %s", ", ".join(d for d in ALL_DOMAINS if d in enabled) or "none")
    return Dispatcher(chain, fallback, max_chars)
