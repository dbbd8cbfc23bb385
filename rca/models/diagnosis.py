"""
Diagnosis Model
===============
Pydantic model for a classified diagnostic.
This is the contract between the rule cascade and all downstream consumers
(remediation generators, the HTTP adapter, the editor integration).

Fields:
    type        — one of DIAGNOSIS_TYPES (closed, per-domain enumeration)
    message     — the trimmed, truncated input text
    file_path   — real file reference, or a sentinel ("unknown", "unknown.xml")
    line        — integer >= 0; 0 means unknown, never a guess
    language    — kotlin / java / xml / gradle
    framework   — android / compose, None when not framework-specific
    metadata    — keys drawn from METADATA_FIELDS[type]
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


# ---------------------------------------------------------------------------
# Diagnosis Type Constants
# ---------------------------------------------------------------------------
class DiagnosisType:
    """Supported diagnosis identifiers, grouped by rule domain."""
    # Manifest
    MANIFEST_MERGE_CONFLICT      = "manifest_merge_conflict"
    MANIFEST_MISSING_PERMISSION  = "manifest_missing_permission"
    MANIFEST_UNDECLARED_ACTIVITY = "manifest_undeclared_activity"
    MANIFEST_UNDECLARED_SERVICE  = "manifest_undeclared_service"
    MANIFEST_UNDECLARED_RECEIVER = "manifest_undeclared_receiver"
    MANIFEST_INVALID_SYNTAX      = "manifest_invalid_syntax"

    # Jetpack Compose
    COMPOSE_REMEMBER          = "compose_remember"
    COMPOSE_DERIVED_STATE     = "compose_derived_state"
    COMPOSE_RECOMPOSITION     = "compose_recomposition"
    COMPOSE_LAUNCHED_EFFECT   = "compose_launched_effect"
    COMPOSE_DISPOSABLE_EFFECT = "compose_disposable_effect"
    COMPOSE_COMPOSITION_LOCAL = "compose_composition_local"
    COMPOSE_MODIFIER          = "compose_modifier"
    COMPOSE_SIDE_EFFECT       = "compose_side_effect"
    COMPOSE_STATE_READ        = "compose_state_read"
    COMPOSE_SNAPSHOT          = "compose_snapshot"

    # Layout XML
    XML_MISSING_ATTRIBUTE       = "xml_missing_attribute"
    XML_ATTRIBUTE_ERROR         = "xml_attribute_error"
    XML_INFLATION               = "xml_inflation"
    XML_MISSING_ID              = "xml_missing_id"
    XML_NAMESPACE_ERROR         = "xml_namespace_error"
    XML_TAG_MISMATCH            = "xml_tag_mismatch"
    XML_RESOURCE_NOT_FOUND      = "xml_resource_not_found"
    XML_DUPLICATE_ID            = "xml_duplicate_id"
    XML_INVALID_ATTRIBUTE_VALUE = "xml_invalid_attribute_value"

    # Gradle
    GRADLE_PLUGIN_ERROR              = "gradle_plugin_error"
    GRADLE_DEPENDENCY_RESOLUTION     = "gradle_dependency_resolution_error"
    GRADLE_DEPENDENCY_CONFLICT       = "gradle_dependency_conflict"
    GRADLE_VERSION_MISMATCH          = "gradle_version_mismatch"
    GRADLE_BUILD_SCRIPT_SYNTAX       = "gradle_build_script_syntax_error"
    GRADLE_TASK_FAILURE              = "gradle_task_failure"
    GRADLE_COMPILATION_ERROR         = "gradle_compilation_error"

    # Kotlin (generic fallback)
    KOTLIN_LATEINIT             = "kotlin_lateinit"
    KOTLIN_NPE                  = "kotlin_npe"
    KOTLIN_IMPORT_ERROR         = "kotlin_import_error"
    KOTLIN_UNRESOLVED_REFERENCE = "kotlin_unresolved_reference"
    KOTLIN_TYPE_MISMATCH        = "kotlin_type_mismatch"
    KOTLIN_COMPILATION_ERROR    = "kotlin_compilation_error"


# ---------------------------------------------------------------------------
# Metadata shape per type
# ---------------------------------------------------------------------------
# METADATA_FIELDS[type] lists every key a rule may emit for that type.
# Its key set is the authoritative closed enumeration of diagnosis types.
METADATA_FIELDS: dict[str, tuple[str, ...]] = {
    DiagnosisType.MANIFEST_MERGE_CONFLICT:      ("conflict_type", "conflict_attribute", "conflict_element"),
    DiagnosisType.MANIFEST_MISSING_PERMISSION:  ("required_permission", "permission_name", "is_dangerous"),
    DiagnosisType.MANIFEST_UNDECLARED_ACTIVITY: ("component_type", "component_class", "package_name"),
    DiagnosisType.MANIFEST_UNDECLARED_SERVICE:  ("component_type", "component_class", "package_name"),
    DiagnosisType.MANIFEST_UNDECLARED_RECEIVER: ("component_type", "component_class", "package_name"),
    DiagnosisType.MANIFEST_INVALID_SYNTAX:      (),

    DiagnosisType.COMPOSE_REMEMBER:          ("state_variable",),
    DiagnosisType.COMPOSE_DERIVED_STATE:     (),
    DiagnosisType.COMPOSE_RECOMPOSITION:     ("recomposition_count", "composable", "severity"),
    DiagnosisType.COMPOSE_LAUNCHED_EFFECT:   ("effect_type", "key"),
    DiagnosisType.COMPOSE_DISPOSABLE_EFFECT: ("effect_type",),
    DiagnosisType.COMPOSE_COMPOSITION_LOCAL: ("local_name",),
    DiagnosisType.COMPOSE_MODIFIER:          ("modifiers", "relation"),
    DiagnosisType.COMPOSE_SIDE_EFFECT:       (),
    DiagnosisType.COMPOSE_STATE_READ:        (),
    DiagnosisType.COMPOSE_SNAPSHOT:          (),

    DiagnosisType.XML_MISSING_ATTRIBUTE:       ("attribute_name",),
    DiagnosisType.XML_ATTRIBUTE_ERROR:         ("attribute_name",),
    DiagnosisType.XML_INFLATION:               ("class_name",),
    DiagnosisType.XML_MISSING_ID:              ("view_id", "view_class"),
    DiagnosisType.XML_NAMESPACE_ERROR:         ("attribute_name",),
    DiagnosisType.XML_TAG_MISMATCH:            ("tag_name",),
    DiagnosisType.XML_RESOURCE_NOT_FOUND:      ("resource_id", "resource_type", "resource_name"),
    DiagnosisType.XML_DUPLICATE_ID:            ("duplicate_id",),
    DiagnosisType.XML_INVALID_ATTRIBUTE_VALUE: ("attribute_name", "invalid_value"),

    DiagnosisType.GRADLE_PLUGIN_ERROR:          ("plugin_id", "plugin_version"),
    DiagnosisType.GRADLE_DEPENDENCY_RESOLUTION: ("dependency", "group", "artifact", "version"),
    DiagnosisType.GRADLE_DEPENDENCY_CONFLICT:   ("module", "conflicting_versions", "conflicting_dependencies"),
    DiagnosisType.GRADLE_VERSION_MISMATCH:      ("binary_version", "expected_version", "module"),
    DiagnosisType.GRADLE_BUILD_SCRIPT_SYNTAX:   ("description",),
    DiagnosisType.GRADLE_TASK_FAILURE:          ("task_name", "reason"),
    DiagnosisType.GRADLE_COMPILATION_ERROR:     ("description",),

    DiagnosisType.KOTLIN_LATEINIT:             ("property_name", "exception"),
    DiagnosisType.KOTLIN_NPE:                  ("exception", "function"),
    DiagnosisType.KOTLIN_IMPORT_ERROR:         ("package_name",),
    DiagnosisType.KOTLIN_UNRESOLVED_REFERENCE: ("symbol_name",),
    DiagnosisType.KOTLIN_TYPE_MISMATCH:        ("expected_type", "found_type"),
    DiagnosisType.KOTLIN_COMPILATION_ERROR:    ("description",),
}

DIAGNOSIS_TYPES: set[str] = set(METADATA_FIELDS)


def domain_of(diagnosis_type: str) -> str:
    """Return the rule domain prefix of a diagnosis type (e.g. "xml")."""
    return diagnosis_type.split("_", 1)[0]


class Diagnosis(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    message: str
    file_path: str
    line: int = 0
    language: Literal["kotlin", "java", "xml", "gradle"]
    framework: Optional[str] = None
    metadata: dict[str, Any] = {}

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in DIAGNOSIS_TYPES:
            raise ValueError(f"Unknown diagnosis type '{v}'")
        return v

    @field_validator("line")
    @classmethod
    def _non_negative_line(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"line must be >= 0, got {v}")
        return v

    @field_validator("file_path")
    @classmethod
    def _non_empty_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("file_path must not be empty; use a sentinel")
        return v
