"""
Remediation
===========
THE SINGLE SOURCE OF TRUTH for fix wording and generated snippets.

DETERMINISM CONTRACT:
  - This module NEVER reads environment variables or files.
  - Given the same diagnosis and knowledge tables, every generator returns
    the same artifact.
  - Generators are TOTAL: a diagnosis of the wrong type, or one missing the
    metadata a generator needs (or carrying it with the wrong shape), yields
    None. They never raise on data.

Generators:
    recommend_permission_fix        manifest_missing_permission
    resolve_merge_conflict          manifest_merge_conflict
    generate_component_declaration  manifest_undeclared_{activity,service,receiver}
    suggest_modifier_order          compose_modifier
    describe_fix                    every diagnosis type (FIX_TEMPLATES)

remediate() runs all of them and returns every artifact that applies, in
the order listed above.

Summary line format:
    {type} error in {file_path} line {line} → Fix: {advice}
"""
import logging
from typing import Optional

from rca.core.knowledge import DEFAULT_KNOWLEDGE, KnowledgeTables
from rca.models.diagnosis import Diagnosis, DiagnosisType
from rca.models.remediation import RemediationArtifact

logger = logging.getLogger(__name__)

# U+2192 RIGHTWARDS ARROW
ARROW = "→"


# ---------------------------------------------------------------------------
# Fix Templates
# ---------------------------------------------------------------------------
# Structure:  FIX_TEMPLATES[diagnosis_type] = advice sentence
#
# RULES:
#   - Every DIAGNOSIS_TYPES member has exactly one entry.
#   - Sentences are lowercase and carry no trailing period.
# ---------------------------------------------------------------------------
FIX_TEMPLATES: dict[str, str] = {
    DiagnosisType.MANIFEST_MERGE_CONFLICT:      "override the conflicting declaration with a tools:replace or tools:node marker",
    DiagnosisType.MANIFEST_MISSING_PERMISSION:  "declare the permission in AndroidManifest.xml and request it at runtime if it is dangerous",
    DiagnosisType.MANIFEST_UNDECLARED_ACTIVITY: "declare the activity inside the <application> element of AndroidManifest.xml",
    DiagnosisType.MANIFEST_UNDECLARED_SERVICE:  "declare the service inside the <application> element of AndroidManifest.xml",
    DiagnosisType.MANIFEST_UNDECLARED_RECEIVER: "declare the receiver in AndroidManifest.xml or register it before unregistering",
    DiagnosisType.MANIFEST_INVALID_SYNTAX:      "fix the malformed element or attribute in AndroidManifest.xml",

    DiagnosisType.COMPOSE_REMEMBER:          "wrap the state in remember { } so it survives recomposition",
    DiagnosisType.COMPOSE_DERIVED_STATE:     "wrap derivedStateOf in remember so the derivation is cached",
    DiagnosisType.COMPOSE_RECOMPOSITION:     "stop writing state during composition and stabilise the composable's parameters",
    DiagnosisType.COMPOSE_LAUNCHED_EFFECT:   "key the LaunchedEffect on the values that should restart it",
    DiagnosisType.COMPOSE_DISPOSABLE_EFFECT: "return an onDispose { } block that releases what the effect acquired",
    DiagnosisType.COMPOSE_COMPOSITION_LOCAL: "provide the CompositionLocal with CompositionLocalProvider above the consumer",
    DiagnosisType.COMPOSE_MODIFIER:          "reorder the modifier chain so interaction and sizing come before decoration and spacing",
    DiagnosisType.COMPOSE_SIDE_EFFECT:       "move the side effect into SideEffect, LaunchedEffect or DisposableEffect",
    DiagnosisType.COMPOSE_STATE_READ:        "read and mutate state outside the composition body",
    DiagnosisType.COMPOSE_SNAPSHOT:          "mutate state only inside a writable snapshot",

    DiagnosisType.XML_MISSING_ATTRIBUTE:       "add the required attribute to the view declaration",
    DiagnosisType.XML_ATTRIBUTE_ERROR:         "add or correct the reported attribute in the layout",
    DiagnosisType.XML_INFLATION:               "check the view class name and its resource references at the reported layout line",
    DiagnosisType.XML_MISSING_ID:              "make sure the view id exists in the layout passed to setContentView",
    DiagnosisType.XML_NAMESPACE_ERROR:         "declare the missing xmlns namespace on the root element",
    DiagnosisType.XML_TAG_MISMATCH:            "close the unterminated element",
    DiagnosisType.XML_RESOURCE_NOT_FOUND:      "define the missing resource or correct the reference",
    DiagnosisType.XML_DUPLICATE_ID:            "give each view in the layout a unique id",
    DiagnosisType.XML_INVALID_ATTRIBUTE_VALUE: "use a value the attribute accepts",

    DiagnosisType.GRADLE_PLUGIN_ERROR:          "add the plugin to pluginManagement or the buildscript classpath",
    DiagnosisType.GRADLE_DEPENDENCY_RESOLUTION: "check the coordinate and make sure google() and mavenCentral() are declared repositories",
    DiagnosisType.GRADLE_DEPENDENCY_CONFLICT:   "exclude the duplicate module or force a single version with a dependency constraint",
    DiagnosisType.GRADLE_VERSION_MISMATCH:      "upgrade the Kotlin Gradle plugin to at least the library's metadata version",
    DiagnosisType.GRADLE_BUILD_SCRIPT_SYNTAX:   "fix the syntax error at the reported build script line",
    DiagnosisType.GRADLE_TASK_FAILURE:          "inspect the nested cause under the failed task",
    DiagnosisType.GRADLE_COMPILATION_ERROR:     "fix the compiler error reported above the build failure",

    DiagnosisType.KOTLIN_LATEINIT:             "initialise the lateinit property before first access or check ::property.isInitialized",
    DiagnosisType.KOTLIN_NPE:                  "guard the nullable value with ?. or ?: before dereferencing it",
    DiagnosisType.KOTLIN_IMPORT_ERROR:         "add the dependency that provides the package or correct the import",
    DiagnosisType.KOTLIN_UNRESOLVED_REFERENCE: "import the symbol or add the dependency that declares it",
    DiagnosisType.KOTLIN_TYPE_MISMATCH:        "convert the value to the expected type",
    DiagnosisType.KOTLIN_COMPILATION_ERROR:    "fix the compiler error at the reported line",
}


_RUNTIME_CHECK_TEMPLATE = (
    "// Runtime permission check (required for dangerous permissions)\n"
    "if (ContextCompat.checkSelfPermission(this, Manifest.permission.{name})\n"
    "    != PackageManager.PERMISSION_GRANTED) {{\n"
    "    ActivityCompat.requestPermissions(this,\n"
    "        arrayOf(Manifest.permission.{name}),\n"
    "        REQUEST_CODE_{name})\n"
    "}}"
)

_COMPONENT_TYPES = {
    DiagnosisType.MANIFEST_UNDECLARED_ACTIVITY,
    DiagnosisType.MANIFEST_UNDECLARED_SERVICE,
    DiagnosisType.MANIFEST_UNDECLARED_RECEIVER,
}


def _text(diagnosis: Diagnosis, key: str) -> Optional[str]:
    """Metadata value as a non-blank string, else None."""
    value = diagnosis.metadata.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _names(diagnosis: Diagnosis, key: str) -> list[str]:
    """Metadata value as a list of non-blank strings; any other shape is empty."""
    value = diagnosis.metadata.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        return []
    return value


# ---------------------------------------------------------------------------
# Manifest Generators
# ---------------------------------------------------------------------------
def recommend_permission_fix(
    diagnosis: Diagnosis,
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
) -> Optional[RemediationArtifact]:
    """
    Build the <uses-permission> declaration for a missing permission.

    Parameters
    ----------
    diagnosis : Diagnosis
        Must be manifest_missing_permission with a required_permission.
    knowledge : KnowledgeTables
        Supplies the runtime-grant vocabulary.

    Returns
    -------
    RemediationArtifact | None
        Declaration snippet; runtime_check is set only for permissions in
        knowledge.dangerous_permissions.
    """
    if diagnosis.type != DiagnosisType.MANIFEST_MISSING_PERMISSION:
        return None
    required = _text(diagnosis, "required_permission")
    if not required:
        return None

    qualified = required if "." in required else f"android.permission.{required}"
    short = _text(diagnosis, "permission_name") or qualified.rsplit(".", 1)[-1]
    dangerous = short.upper() in knowledge.dangerous_permissions

    category = "dangerous" if dangerous else "normal"
    return RemediationArtifact(
        category="permission",
        human_text=f"Add the {category} permission {qualified} to AndroidManifest.xml.",
        snippet=f'<uses-permission android:name="{qualified}" />',
        runtime_check=_RUNTIME_CHECK_TEMPLATE.format(name=short) if dangerous else None,
    )


def _qualify_attribute(name: str) -> str:
    return name if ":" in name else f"android:{name}"


def resolve_merge_conflict(
    diagnosis: Diagnosis,
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
) -> Optional[RemediationArtifact]:
    """
    Pick the merge-conflict override for the conflict's sub-kind.

    attribute → tools:replace, element → tools:node="remove",
    no sub-kind → tools namespace setup. A sub-kind without its name
    yields None.
    """
    if diagnosis.type != DiagnosisType.MANIFEST_MERGE_CONFLICT:
        return None

    conflict_type = _text(diagnosis, "conflict_type")
    fields: dict[str, str] = {}
    if conflict_type == "attribute":
        attribute = _text(diagnosis, "conflict_attribute")
        if not attribute:
            return None
        fields = {"attribute": attribute, "qualified_attribute": _qualify_attribute(attribute)}
    elif conflict_type == "element":
        element = _text(diagnosis, "conflict_element")
        if not element:
            return None
        fields = {"element": element}
    else:
        conflict_type = "unknown"

    template = knowledge.conflict_templates.get(conflict_type)
    if template is None:
        return None
    advice, markup = template
    return RemediationArtifact(
        category="merge_conflict",
        human_text=advice.format(**fields),
        snippet=markup.format(**fields),
    )


def generate_component_declaration(
    diagnosis: Diagnosis,
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
) -> Optional[RemediationArtifact]:
    """Build the manifest declaration for an undeclared component."""
    if diagnosis.type not in _COMPONENT_TYPES:
        return None
    component_type = _text(diagnosis, "component_type")
    component_class = _text(diagnosis, "component_class")
    template = knowledge.component_templates.get(component_type) if component_type else None
    if template is None or not component_class:
        return None

    return RemediationArtifact(
        category="component_declaration",
        human_text=f"Declare the {component_type} {component_class} inside <application> in AndroidManifest.xml.",
        snippet=template.format(component_class=component_class),
    )


# ---------------------------------------------------------------------------
# Compose Generators
# ---------------------------------------------------------------------------
def suggest_modifier_order(
    diagnosis: Diagnosis,
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
) -> Optional[RemediationArtifact]:
    """
    Reorder the extracted modifier chain by the conventional rank table.

    Modifiers without a rank keep their relative order after the ranked
    ones. Fewer than two modifiers yields None.
    """
    if diagnosis.type != DiagnosisType.COMPOSE_MODIFIER:
        return None
    modifiers = _names(diagnosis, "modifiers")
    if len(modifiers) < 2:
        return None

    unranked = max(knowledge.modifier_order.values(), default=0) + 1

    def rank(name: str) -> int:
        r = knowledge.modifier_rank(name)
        return unranked if r is None else r

    # sorted() is stable, so equal ranks keep their reported order
    ordered = [
        knowledge.modifier_name(m) if knowledge.modifier_rank(m) is not None else m
        for m in sorted(modifiers, key=rank)
    ]
    chain = "Modifier\n" + "\n".join(f"    .{name}(...)" for name in ordered)
    return RemediationArtifact(
        category="modifier_order",
        human_text="Apply modifiers in this order: " + ", ".join(ordered) + ".",
        snippet=chain,
    )


# ---------------------------------------------------------------------------
# Advice
# ---------------------------------------------------------------------------
def describe_fix(diagnosis: Diagnosis) -> str:
    """
    Look up the advice sentence for a diagnosis type.

    Raises
    ------
    ValueError
        If FIX_TEMPLATES has no entry for the type. Diagnosis already
        rejects unknown types, so this only fires on a missing template.
    """
    advice = FIX_TEMPLATES.get(diagnosis.type)
    if advice is None:
        raise ValueError(f"FIX_TEMPLATES has no entry for diagnosis type '{diagnosis.type}'")
    return advice


def format_summary(diagnosis: Diagnosis) -> str:
    """
    One-line summary of a diagnosis and its advice.

    Output format:
        {type} error in {file_path} line {line} → Fix: {advice}
    The "line {line}" token is omitted when the line is unknown (0).
    """
    location = diagnosis.file_path if diagnosis.line == 0 else f"{diagnosis.file_path} line {diagnosis.line}"
    return f"{diagnosis.type} error in {location} {ARROW} Fix: {describe_fix(diagnosis)}"


# ---------------------------------------------------------------------------
# Convenience: every applicable artifact
# ---------------------------------------------------------------------------
def remediate(
    diagnosis: Diagnosis,
    knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE,
) -> list[RemediationArtifact]:
    """
    Run every generator and collect the artifacts that apply.

    Returns
    -------
    list[RemediationArtifact]
        Specific artifacts first (in generator order), then the advice
        artifact, which is always present.
    """
    artifacts: list[RemediationArtifact] = []
    for generator in (
        recommend_permission_fix,
        resolve_merge_conflict,
        generate_component_declaration,
        suggest_modifier_order,
    ):
        artifact = generator(diagnosis, knowledge)
        if artifact is not None:
            artifacts.append(artifact)

    artifacts.append(RemediationArtifact(category="advice", human_text=describe_fix(diagnosis)))
    logger.debug("Remediation for %s: %d artifact(s)", diagnosis.type, len(artifacts))
    return artifacts
