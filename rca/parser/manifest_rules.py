"""
Manifest Rules
==============
Permission, component-declaration and manifest-merge failures.

Priority table (lower runs first):
    10  manifest_merge_conflict       Manifest merger failed / AAPT attribute error
    20  manifest_missing_permission   "requires android.permission.X", "requires X"
    30  manifest_undeclared_activity  Unable to find explicit activity class {...}
    40  manifest_undeclared_service   Service ... not registered
    50  manifest_undeclared_receiver  Receiver ... not registered
    60  manifest_invalid_syntax       AndroidManifest.xml + malformed / invalid

The bare permission constant ("requires CAMERA") is the only case-sensitive
fragment: an upper-case token is required so prose like "requires a" is
never read as a permission.
"""
import re

from rca.core.constants import FRAMEWORK_ANDROID, MANIFEST_FILE
from rca.core.knowledge import DEFAULT_KNOWLEDGE, KnowledgeTables
from rca.models.diagnosis import DiagnosisType
from rca.parser.extractors import find_line, first_group, is_sensitive_permission, permission_names
from rca.parser.rules import GAP, SPAN, Extraction, MatchRule, RuleSet, patterns

_MANIFEST_LINE = re.compile(r"AndroidManifest\.xml:(\d+)", re.I)

_CONFLICT_ATTRIBUTE = re.compile(rf"attribute\s+(\S+)\s+{GAP}has already been defined", re.I)
_CONFLICT_ELEMENT = re.compile(rf"element\s+<([\w.\-:]+)>\s+{GAP}conflicts", re.I)
_CONFLICT_AT_ATTRIBUTE = re.compile(r"Attribute\s+[\w\-]+@([\w:]+)\s+value=", re.I)


def _manifest_extraction(text: str, metadata: dict) -> Extraction:
    return Extraction(file_path=MANIFEST_FILE, line=find_line(text, _MANIFEST_LINE), metadata=metadata)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------
def _merge_conflict(text: str, m: re.Match) -> Extraction:
    metadata: dict = {"conflict_type": None}

    attribute = first_group(text, _CONFLICT_ATTRIBUTE)
    element = first_group(text, _CONFLICT_ELEMENT)
    if attribute:
        metadata["conflict_type"] = "attribute"
        metadata["conflict_attribute"] = attribute
    elif element:
        metadata["conflict_type"] = "element"
        metadata["conflict_element"] = element
    else:
        at_attribute = first_group(text, _CONFLICT_AT_ATTRIBUTE)
        if at_attribute:
            metadata["conflict_type"] = "attribute"
            metadata["conflict_attribute"] = at_attribute

    return _manifest_extraction(text, metadata)


def _missing_permission(knowledge: KnowledgeTables):
    def extract(text: str, m: re.Match) -> Extraction:
        qualified, short = permission_names(m.group(1))
        return _manifest_extraction(text, {
            "required_permission": qualified,
            "permission_name": short,
            "is_dangerous": is_sensitive_permission(short, knowledge),
        })
    return extract


def _undeclared(component_type: str):
    def extract(text: str, m: re.Match) -> Extraction:
        raw = m.group(1).strip()
        package_name = None
        component_class = raw
        # Intent component form: "com.example.app/.SettingsActivity"
        if "/" in raw:
            package_name, component_class = raw.split("/", 1)
            if component_class.startswith("."):
                component_class = package_name + component_class
        return _manifest_extraction(text, {
            "component_type": component_type,
            "component_class": component_class,
            "package_name": package_name,
        })
    return extract


def _invalid_manifest(text: str, m: re.Match) -> Extraction:
    return _manifest_extraction(text, {})


# ---------------------------------------------------------------------------
# Rule Set
# ---------------------------------------------------------------------------
def build_manifest_rules(knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE) -> RuleSet:
    """Build the manifest priority table bound to a knowledge vocabulary."""
    return RuleSet(
        domain="manifest",
        language="xml",
        framework=FRAMEWORK_ANDROID,
        rules=(
            MatchRule(
                priority=10,
                error_type=DiagnosisType.MANIFEST_MERGE_CONFLICT,
                patterns=patterns(r"Manifest merger failed", r"AAPT: error: attribute"),
                extract=_merge_conflict,
            ),
            MatchRule(
                priority=20,
                error_type=DiagnosisType.MANIFEST_MISSING_PERMISSION,
                patterns=patterns(
                    r"requires\s+(android\.permission\.[a-z0-9_]+)",
                    rf"missing\s+permissions?\s+required\b{GAP}(android\.permission\.[a-z0-9_]+)",
                    r"requires\s+(?-i:([A-Z][A-Z0-9_]{2,}))\b(?!\s+(?:runtime|version|level|\d))",
                ),
                extract=_missing_permission(knowledge),
            ),
            MatchRule(
                priority=30,
                error_type=DiagnosisType.MANIFEST_UNDECLARED_ACTIVITY,
                patterns=patterns(r"Unable to find explicit activity class\s+\{([^}]+)\}"),
                extract=_undeclared("activity"),
            ),
            MatchRule(
                priority=40,
                error_type=DiagnosisType.MANIFEST_UNDECLARED_SERVICE,
                patterns=patterns(
                    r"Service not registered:\s*([\w.$]+)",
                    rf"\bService\s+([\w.$]+)\b{GAP}\bnot\s+registered",
                ),
                extract=_undeclared("service"),
            ),
            MatchRule(
                priority=50,
                error_type=DiagnosisType.MANIFEST_UNDECLARED_RECEIVER,
                patterns=patterns(
                    r"Receiver not registered:\s*([\w.$]+)",
                    rf"\bReceiver\s+([\w.$]+)\b{GAP}\bnot\s+registered",
                ),
                extract=_undeclared("receiver"),
            ),
            MatchRule(
                priority=60,
                error_type=DiagnosisType.MANIFEST_INVALID_SYNTAX,
                patterns=patterns(
                    rf"AndroidManifest\.xml{SPAN}\b(?:malformed|invalid)\b",
                    rf"\b(?:malformed|invalid)\b{SPAN}AndroidManifest\.xml",
                ),
                extract=_invalid_manifest,
            ),
        ),
    )
