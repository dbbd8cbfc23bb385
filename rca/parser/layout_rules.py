"""
Layout Rules
============
Layout XML inflation, attribute and resource failures.

Priority table (lower runs first):
    10  xml_missing_attribute        "You must supply a layout_width attribute"
    20  xml_attribute_error          "attribute X not specified / missing / required"
    30  xml_inflation                "Binary XML file line #N"
    35  xml_inflation                InflateException without a line number
    40  xml_missing_id               NPE on a view method / after findViewById
    50  xml_namespace_error          missing xmlns / no resource identifier
    60  xml_tag_mismatch             unterminated / unclosed element
    70  xml_resource_not_found       Resources$NotFoundException, @type/name not found
    80  xml_duplicate_id             "Duplicate id @+id/X"
    90  xml_invalid_attribute_value  "\"v\" is not a valid value for attribute X"

The specific attribute rules sit ahead of the generic inflation rule: the
same "Binary XML file line #N" prefix carries both.
"""
import re

from rca.core.constants import FRAMEWORK_ANDROID, UNKNOWN_FILE, UNKNOWN_XML
from rca.core.knowledge import DEFAULT_KNOWLEDGE, KnowledgeTables
from rca.models.diagnosis import DiagnosisType
from rca.parser.extractors import find_line, find_xml_file, first_group, resolve_location
from rca.parser.rules import GAP, SPAN, Extraction, MatchRule, RuleSet, patterns

_BINARY_XML_LINE = re.compile(r"Binary XML file line #(\d+)", re.I)
_AT_LINE = re.compile(r"at line (\d+)", re.I)
_ANY_LINE = re.compile(r"\bline (\d+)", re.I)

_INFLATING_CLASS = re.compile(r"Error inflating class ([\w.]+)", re.I)
_VIEW_ID = re.compile(r"R\.id\.(\w+)")
_VIEW_CLASS = re.compile(r"android\.(?:widget|view)\.(\w+)")
_QUOTED_ATTRIBUTE = re.compile(r"attribute '([\w:]+)'", re.I)
_RESOURCE_HEX = re.compile(r"Resource ID #(0x[0-9a-f]+)", re.I)
_RESOURCE_REF = re.compile(r"@\+?([a-z]+)/(\w+)", re.I)


def _layout_extraction(text: str, metadata: dict, require_in: bool = True) -> Extraction:
    return Extraction(
        file_path=find_xml_file(text, require_in=require_in),
        line=find_line(text, _AT_LINE, _ANY_LINE),
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------
def _must_supply(text: str, m: re.Match) -> Extraction:
    return Extraction(
        file_path=find_xml_file(text, require_in=False),
        line=find_line(text, _BINARY_XML_LINE),
        metadata={"attribute_name": m.group(1)},
    )


def _attribute_error(text: str, m: re.Match) -> Extraction:
    return _layout_extraction(text, {"attribute_name": m.group(1)})


def _inflation(text: str, m: re.Match) -> Extraction:
    return Extraction(
        file_path=find_xml_file(text),
        line=int(m.group(1)),
        metadata={"class_name": first_group(text, _INFLATING_CLASS)},
    )


def _inflation_without_line(text: str, m: re.Match) -> Extraction:
    return Extraction(
        file_path=find_xml_file(text, require_in=False),
        line=0,
        metadata={"class_name": first_group(text, _INFLATING_CLASS)},
    )


def _namespace(text: str, m: re.Match) -> Extraction:
    metadata = {"attribute_name": first_group(text, _QUOTED_ATTRIBUTE)}
    return Extraction(
        file_path=find_xml_file(text, require_in=False),
        line=find_line(text, _AT_LINE),
        metadata=metadata,
    )


def _tag_mismatch(text: str, m: re.Match) -> Extraction:
    return _layout_extraction(text, {"tag_name": m.group(1)})


def _duplicate_id(text: str, m: re.Match) -> Extraction:
    return _layout_extraction(text, {"duplicate_id": m.group(1)})


def _invalid_value(text: str, m: re.Match) -> Extraction:
    return _layout_extraction(text, {"invalid_value": m.group(1), "attribute_name": m.group(2)})


# ---------------------------------------------------------------------------
# Rule Set
# ---------------------------------------------------------------------------
def build_layout_rules(knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE) -> RuleSet:
    """Build the layout XML priority table bound to a knowledge vocabulary."""

    def user_code(text: str, metadata: dict) -> Extraction:
        # View lookups fail in Kotlin / Java code, not in the layout file
        file_path, line = resolve_location(text, ("kt", "java"), UNKNOWN_FILE, knowledge.platform_prefixes)
        return Extraction(file_path=file_path, line=line, metadata=metadata)

    def missing_id(text, m):
        return user_code(text, {
            "view_id": first_group(text, _VIEW_ID),
            "view_class": first_group(text, _VIEW_CLASS),
        })

    def resource_not_found(text, m):
        metadata: dict = {"resource_id": first_group(text, _RESOURCE_HEX)}
        ref = _RESOURCE_REF.search(text)
        if ref:
            metadata["resource_type"] = ref.group(1).lower()
            metadata["resource_name"] = ref.group(2)
        in_layout = find_xml_file(text)
        if in_layout != UNKNOWN_XML:
            return Extraction(file_path=in_layout, line=find_line(text, _AT_LINE), metadata=metadata)
        return user_code(text, metadata)

    return RuleSet(
        domain="layout",
        language="xml",
        framework=FRAMEWORK_ANDROID,
        rules=(
            MatchRule(
                priority=10,
                error_type=DiagnosisType.XML_MISSING_ATTRIBUTE,
                patterns=patterns(r"You must supply (?:a|an) ([\w:]+) attribute"),
                extract=_must_supply,
            ),
            MatchRule(
                priority=20,
                error_type=DiagnosisType.XML_ATTRIBUTE_ERROR,
                patterns=patterns(r"attribute\s+([\w:]+)\s+(?:not specified|missing|required)"),
                extract=_attribute_error,
            ),
            MatchRule(
                priority=30,
                error_type=DiagnosisType.XML_INFLATION,
                patterns=patterns(r"Binary XML file line #(\d+)"),
                extract=_inflation,
            ),
            MatchRule(
                priority=35,
                error_type=DiagnosisType.XML_INFLATION,
                patterns=patterns(r"InflateException", r"Error inflating class"),
                extract=_inflation_without_line,
            ),
            MatchRule(
                priority=40,
                error_type=DiagnosisType.XML_MISSING_ID,
                patterns=patterns(
                    rf"NullPointerException{SPAN}method\s+'[^'\n]{{0,120}}android\.(?:widget|view)\.",
                    rf"NullPointerException{SPAN}findViewById",
                    rf"findViewById{SPAN}NullPointerException",
                ),
                extract=missing_id,
            ),
            MatchRule(
                priority=50,
                error_type=DiagnosisType.XML_NAMESPACE_ERROR,
                patterns=patterns(
                    r"No resource identifier found for attribute",
                    rf"\b(?:xmlns|namespace)\b{SPAN}\bMissing\b",
                    rf"\bMissing\b{SPAN}\b(?:xmlns|namespace)\b",
                ),
                extract=_namespace,
            ),
            MatchRule(
                priority=60,
                error_type=DiagnosisType.XML_TAG_MISMATCH,
                patterns=patterns(
                    r'element type "([^"]+)" must be terminated',
                    r"Unclosed tag: (\w+)",
                ),
                extract=_tag_mismatch,
            ),
            MatchRule(
                priority=70,
                error_type=DiagnosisType.XML_RESOURCE_NOT_FOUND,
                patterns=patterns(
                    r"NotFoundException",
                    r"@\+?[a-z]+/\w+\s+not found",
                    rf"\bResource\b{GAP}\bnot found\b",
                ),
                extract=resource_not_found,
            ),
            MatchRule(
                priority=80,
                error_type=DiagnosisType.XML_DUPLICATE_ID,
                patterns=patterns(r"Duplicate id @\+id/(\w+)"),
                extract=_duplicate_id,
            ),
            MatchRule(
                priority=90,
                error_type=DiagnosisType.XML_INVALID_ATTRIBUTE_VALUE,
                patterns=patterns(r'"([^"]+)" is not a valid value for attribute ([\w:]+)'),
                extract=_invalid_value,
            ),
        ),
    )
