"""
Kotlin Rules
============
Generic Kotlin runtime and compiler failures. The dispatcher consults this
rule set last, after every Android-specific domain.

Priority table (lower runs first):
    10  kotlin_lateinit              lateinit property X has not been initialized
    20  kotlin_npe                   NullPointerException / IndexOutOfBoundsException
    30  kotlin_import_error          unresolved import (import context required)
    40  kotlin_unresolved_reference  Unresolved reference: X
    50  kotlin_type_mismatch         inferred type is A but B was expected
    60  kotlin_compilation_error     Expecting ..., syntax error, conflicting declarations
"""
import re

from rca.core.constants import UNKNOWN_FILE
from rca.core.knowledge import DEFAULT_KNOWLEDGE, KnowledgeTables
from rca.models.diagnosis import DiagnosisType
from rca.parser.extractors import first_group, first_user_frame, resolve_location
from rca.parser.rules import GAP, Extraction, MatchRule, RuleSet, patterns

# Short snippets that mention "import" are treated as import failures
IMPORT_CONTEXT_MAX_LINES = 5

_LATEINIT_PROPERTY = re.compile(r"lateinit property (\w+) has not been initialized", re.I)
_IMPORT_CONTEXT = (
    re.compile(rf"\bimport\b{GAP}unresolved", re.I),
    re.compile(rf"unresolved{GAP}\bimport\b", re.I),
)
_TYPE = r"(\w+(?:<[^>\n]{1,120}>)?\??)"


def _compiler_extraction(text: str, metadata: dict) -> Extraction:
    file_path, line = resolve_location(text, ("kt",), UNKNOWN_FILE)
    return Extraction(file_path=file_path, line=line, metadata=metadata)


def _has_import_context(text: str, m: re.Match) -> bool:
    if any(p.search(text) for p in _IMPORT_CONTEXT):
        return True
    return "import" in text.lower() and len(text.splitlines()) <= IMPORT_CONTEXT_MAX_LINES


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------
def _import_error(text: str, m: re.Match) -> Extraction:
    return _compiler_extraction(text, {"package_name": m.group(1)})


def _unresolved_reference(text: str, m: re.Match) -> Extraction:
    return _compiler_extraction(text, {"symbol_name": m.group(1)})


def _type_mismatch(text: str, m: re.Match) -> Extraction:
    # "inferred type is FOUND but EXPECTED was expected" lists found first
    if "inferred type" in m.group(0).lower():
        found, expected = m.group(1), m.group(2)
    else:
        expected, found = m.group(1), m.group(2)
    return _compiler_extraction(text, {"expected_type": expected, "found_type": found})


def _compilation(text: str, m: re.Match) -> Extraction:
    description = m.group(1) if m.re.groups and m.group(1) else m.group(0)
    return _compiler_extraction(text, {"description": description.strip()})


# ---------------------------------------------------------------------------
# Rule Set
# ---------------------------------------------------------------------------
def build_kotlin_rules(knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE) -> RuleSet:
    """Build the Kotlin fallback priority table bound to a knowledge vocabulary."""

    def runtime(text: str, metadata: dict) -> Extraction:
        file_path, line = resolve_location(text, ("kt",), UNKNOWN_FILE, knowledge.platform_prefixes)
        return Extraction(file_path=file_path, line=line, metadata=metadata)

    def lateinit(text, m):
        return runtime(text, {
            "property_name": first_group(text, _LATEINIT_PROPERTY),
            "exception": "UninitializedPropertyAccessException",
        })

    def npe(text, m):
        frame = first_user_frame(text, knowledge.platform_prefixes, ("kt",))
        exception = "IndexOutOfBoundsException" if "indexoutofbounds" in text.lower() else "NullPointerException"
        return runtime(text, {
            "exception": exception,
            "function": frame[0].rsplit(".", 1)[-1] if frame else None,
        })

    return RuleSet(
        domain="kotlin",
        language="kotlin",
        rules=(
            MatchRule(
                priority=10,
                error_type=DiagnosisType.KOTLIN_LATEINIT,
                patterns=patterns(
                    r"lateinit property \w+ has not been initialized",
                    r"UninitializedPropertyAccessException",
                ),
                extract=lateinit,
            ),
            MatchRule(
                priority=20,
                error_type=DiagnosisType.KOTLIN_NPE,
                patterns=patterns(r"NullPointerException", r"IndexOutOfBoundsException"),
                extract=npe,
            ),
            MatchRule(
                priority=30,
                error_type=DiagnosisType.KOTLIN_IMPORT_ERROR,
                patterns=patterns(
                    r"Unresolved reference:\s*(\w+(?:\.\w+)*)",
                    r"Cannot access\s+'([^']+)'",
                    r"Package '([^']+)' could not be resolved",
                ),
                guard=_has_import_context,
                extract=_import_error,
            ),
            MatchRule(
                priority=40,
                error_type=DiagnosisType.KOTLIN_UNRESOLVED_REFERENCE,
                patterns=patterns(
                    r"Unresolved reference:\s*(\w+)",
                    r"Cannot resolve symbol\s+'(\w+)'",
                    r"Unresolved reference to '(\w+)'",
                ),
                extract=_unresolved_reference,
            ),
            MatchRule(
                priority=50,
                error_type=DiagnosisType.KOTLIN_TYPE_MISMATCH,
                patterns=patterns(
                    rf"Type mismatch:{GAP}inferred type is\s+{_TYPE}\s+but\s+{_TYPE}\s+was expected",
                    rf"Required:\s*{_TYPE}\s*Found:\s*{_TYPE}",
                    r"Type mismatch:\s*required\s+(\w+)\s+found\s+(\w+)",
                ),
                extract=_type_mismatch,
            ),
            MatchRule(
                priority=60,
                error_type=DiagnosisType.KOTLIN_COMPILATION_ERROR,
                patterns=patterns(
                    r"Expecting\s+([^\n]*)",
                    r"Syntax error",
                    r"Declaration expected",
                    r"Modifier\s+'\w+'\s+is not applicable",
                    r"Function declaration must have a name",
                    r"(Conflicting (?:overloads|declarations)[^\n]*)",
                ),
                extract=_compilation,
            ),
        ),
    )
