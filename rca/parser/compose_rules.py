"""
Compose Rules
=============
Jetpack Compose state, effect, recomposition and modifier failures.

Priority table (lower runs first):
    10   compose_remember           state created without remember
    20   compose_derived_state      derivedStateOf not remembered
    30   compose_recomposition      "Recomposing N times" with N > 10
    35   compose_recomposition      excessive / infinite / unstable recomposition
    40   compose_launched_effect    LaunchedEffect keys, cancellation
    50   compose_disposable_effect  missing onDispose
    60   compose_composition_local  CompositionLocal not provided
    70   compose_modifier           modifier chain order
    80   compose_side_effect        side effects during composition
    90   compose_state_read         state read / mutation during composition
    100  compose_snapshot           snapshot system misuse

Locations come from the first non-platform stack frame of the trace.
"""
import re
from typing import Optional

from rca.core.constants import FRAMEWORK_COMPOSE, UNKNOWN_FILE
from rca.core.knowledge import DEFAULT_KNOWLEDGE, KnowledgeTables
from rca.models.diagnosis import DiagnosisType
from rca.parser.extractors import collect_unique, first_group, first_user_frame, resolve_location
from rca.parser.rules import GAP, Extraction, MatchRule, RuleSet, patterns

# Recompositions at or below this count are normal
RECOMPOSITION_THRESHOLD = 10
RECOMPOSITION_HIGH = 50

_STATE_VARIABLE = (
    re.compile(r"variable\s+'(\w+)'", re.I),
    re.compile(r"state\s+'(\w+)'", re.I),
    re.compile(r"mutableStateOf\s*\(\s*(\w+)", re.I),
    re.compile(r"remember\s*\{\s*(\w+)", re.I),
)

_COMPOSABLE_NAME = (
    re.compile(r"@Composable\s+(?:fun\s+)?(\w+)", re.I),
    re.compile(r"composable\s+'(\w+)'", re.I),
    re.compile(r"in\s+(\w+)\s+composable", re.I),
)

_EFFECT_KEY = (
    re.compile(r"key\s*=\s*(\w+)", re.I),
    re.compile(r"key\s+'([^']+)'", re.I),
    re.compile(r"LaunchedEffect\s*\(\s*(\w+)", re.I),
)

_LOCAL_NAME = (
    re.compile(r"\b(Local\w+)"),
    re.compile(r"CompositionLocal\s+(\w+)", re.I),
)

_MODIFIER_CALL = re.compile(r"Modifier\.(\w+)", re.I)
_MODIFIER_RELATION = re.compile(r"must\s+come\s+(before|after)", re.I)


# ---------------------------------------------------------------------------
# Field Helpers
# ---------------------------------------------------------------------------
def _composable_name(text: str, knowledge: KnowledgeTables) -> Optional[str]:
    name = first_group(text, *_COMPOSABLE_NAME)
    if name:
        return name
    # A Compose stack frame names the composable function itself
    frame = first_user_frame(text, knowledge.platform_prefixes, ("kt",))
    if frame:
        return frame[0].rsplit(".", 1)[-1].split("$", 1)[0]
    return None


def _modifier_names(text: str, knowledge: KnowledgeTables) -> list[str]:
    found = collect_unique(_MODIFIER_CALL, text)
    if not found:
        # Prose form: "Clickable modifier must come before padding"
        vocabulary = "|".join(sorted(knowledge.modifier_order, key=len, reverse=True))
        if vocabulary:
            found = collect_unique(re.compile(rf"\b({vocabulary})\b", re.I), text)

    names: list[str] = []
    for raw in found:
        name = knowledge.modifier_name(raw) if knowledge.modifier_rank(raw) is not None else raw
        if name not in names:
            names.append(name)
    return names


# ---------------------------------------------------------------------------
# Rule Set
# ---------------------------------------------------------------------------
def build_compose_rules(knowledge: KnowledgeTables = DEFAULT_KNOWLEDGE) -> RuleSet:
    """Build the Compose priority table bound to a knowledge vocabulary."""

    def locate(text: str, metadata: dict) -> Extraction:
        file_path, line = resolve_location(text, ("kt",), UNKNOWN_FILE, knowledge.platform_prefixes)
        return Extraction(file_path=file_path, line=line, metadata=metadata)

    def remember(text, m):
        return locate(text, {"state_variable": first_group(text, *_STATE_VARIABLE)})

    def plain(text, m):
        return locate(text, {})

    def recomposition_count(text, m):
        count = int(m.group(1))
        return locate(text, {
            "recomposition_count": count,
            "composable": _composable_name(text, knowledge),
            "severity": "high" if count > RECOMPOSITION_HIGH else "medium",
        })

    def recomposition(text, m):
        return locate(text, {
            "composable": _composable_name(text, knowledge),
            "severity": "critical" if "infinite" in text.lower() else "high",
        })

    def launched_effect(text, m):
        return locate(text, {"effect_type": "LaunchedEffect", "key": first_group(text, *_EFFECT_KEY)})

    def disposable_effect(text, m):
        return locate(text, {"effect_type": "DisposableEffect"})

    def composition_local(text, m):
        captured = m.group(1) if m.re.groups else None
        return locate(text, {"local_name": captured or first_group(text, *_LOCAL_NAME)})

    def modifier(text, m):
        relation = first_group(text, _MODIFIER_RELATION)
        return locate(text, {
            "modifiers": _modifier_names(text, knowledge),
            "relation": relation.lower() if relation else None,
        })

    return RuleSet(
        domain="compose",
        language="kotlin",
        framework=FRAMEWORK_COMPOSE,
        rules=(
            MatchRule(
                priority=10,
                error_type=DiagnosisType.COMPOSE_REMEMBER,
                patterns=patterns(
                    rf"Reading a state{GAP}created{GAP}composable function but not called with remember",
                    r"Creating a state object during composition without using remember",
                    rf"reading a state{GAP}without calling remember",
                    r"State should be created with remember",
                    r"mutableStateOf\s+should be wrapped in remember",
                    r"remember\s*\{[^}\n]{0,120}\}\s+should\s+have\s+keys",
                    r"rememberSaveable\s+is\s+required",
                    r"State\s+created\s+outside\s+of\s+remember",
                ),
                extract=remember,
            ),
            MatchRule(
                priority=20,
                error_type=DiagnosisType.COMPOSE_DERIVED_STATE,
                patterns=patterns(
                    r"derivedStateOf\s+should\s+be\s+used\s+with\s+remember",
                    r"derivedStateOf\s+recomputing\s+on\s+every\s+recomposition",
                    r"derivedStateOf\s+not\s+wrapped\s+in\s+remember",
                    rf"Expensive\s+derivation{GAP}derivedStateOf",
                ),
                extract=plain,
            ),
            MatchRule(
                priority=30,
                error_type=DiagnosisType.COMPOSE_RECOMPOSITION,
                patterns=patterns(r"Recompos(?:ing|ition)\s+(\d+)\s+times"),
                guard=lambda text, m: int(m.group(1)) > RECOMPOSITION_THRESHOLD,
                extract=recomposition_count,
            ),
            MatchRule(
                priority=35,
                error_type=DiagnosisType.COMPOSE_RECOMPOSITION,
                patterns=patterns(
                    r"excessive\s+recomposition",
                    rf"unstable\s+parameter{GAP}causing\s+recomposition",
                    rf"lambda{GAP}causing\s+unnecessary\s+recomposition",
                    r"recomposition\s+loop\s+detected",
                    r"infinite\s+recomposition",
                ),
                extract=recomposition,
            ),
            MatchRule(
                priority=40,
                error_type=DiagnosisType.COMPOSE_LAUNCHED_EFFECT,
                patterns=patterns(
                    rf"LaunchedEffect\s+called\s+with\s+key{GAP}runs\s+only\s+once",
                    r"LaunchedEffect\s+must\s+have\s+at\s+least\s+one\s+key",
                    r"LaunchedEffect\s+key\s+should\s+not\s+be\s+Unit",
                    r"LaunchedEffect\s+with\s+constant\s+key",
                    rf"LaunchedEffect{GAP}cancelled",
                    rf"LaunchedEffect{GAP}coroutine{GAP}exception",
                    rf"suspend\s+function{GAP}outside\s+LaunchedEffect",
                    rf"rememberCoroutineScope{GAP}instead\s+of\s+LaunchedEffect",
                ),
                extract=launched_effect,
            ),
            MatchRule(
                priority=50,
                error_type=DiagnosisType.COMPOSE_DISPOSABLE_EFFECT,
                patterns=patterns(
                    rf"DisposableEffect{GAP}onDispose\s+must\s+be\s+called",
                    rf"DisposableEffect{GAP}missing\s+onDispose",
                    r"DisposableEffect\s+key\s+should\s+not\s+be\s+Unit",
                    rf"DisposableEffect{GAP}not\s+properly\s+disposed",
                    r"onDispose\s+not\s+invoked",
                ),
                extract=disposable_effect,
            ),
            MatchRule(
                priority=60,
                error_type=DiagnosisType.COMPOSE_COMPOSITION_LOCAL,
                patterns=patterns(
                    r"CompositionLocal\s+(\w+)\s+not\s+present",
                    r"CompositionLocal\s+(\w+)\s+not\s+provided",
                    r"No\s+value\s+provided\s+for\s+(?:CompositionLocal\s+)?(\w+)",
                    rf"LocalComposition{GAP}not\s+found",
                    r"CompositionLocalProvider\s+missing",
                    rf"staticCompositionLocalOf{GAP}no\s+default",
                    rf"compositionLocalOf{GAP}not\s+in\s+scope",
                ),
                extract=composition_local,
            ),
            MatchRule(
                priority=70,
                error_type=DiagnosisType.COMPOSE_MODIFIER,
                patterns=patterns(
                    r"Clickable\s+modifier\s+must\s+come\s+(?:before|after)",
                    r"Modifier\.(\w+)\s+must\s+come\s+(?:before|after)\s+Modifier\.(\w+)",
                    r"Invalid\s+Modifier\s+chain",
                    rf"Modifier{GAP}order\s+matters",
                    r"Modifier\s+not\s+applied",
                    rf"then\s+modifier{GAP}order",
                    rf"Modifier\.composed{GAP}recomposition",
                ),
                extract=modifier,
            ),
            MatchRule(
                priority=80,
                error_type=DiagnosisType.COMPOSE_SIDE_EFFECT,
                patterns=patterns(
                    rf"Side\s+effect{GAP}called\s+during\s+composition",
                    rf"SideEffect\s+block{GAP}throwing",
                    rf"produceState{GAP}exception",
                    rf"snapshotFlow{GAP}collect{GAP}outside",
                ),
                extract=plain,
            ),
            MatchRule(
                priority=90,
                error_type=DiagnosisType.COMPOSE_STATE_READ,
                patterns=patterns(
                    r"Reading\s+state\s+during\s+composition",
                    r"state\s+read\s+in\s+composable\s+body",
                    rf"SnapshotStateList{GAP}concurrent\s+modification",
                    r"state\s+mutation\s+during\s+composition",
                ),
                extract=plain,
            ),
            MatchRule(
                priority=100,
                error_type=DiagnosisType.COMPOSE_SNAPSHOT,
                patterns=patterns(
                    r"Snapshot\s+is\s+not\s+writable",
                    rf"Cannot\s+modify\s+state{GAP}snapshot",
                    rf"SnapshotMutationPolicy{GAP}exception",
                    rf"Snapshot{GAP}already\s+disposed",
                ),
                extract=plain,
            ),
        ),
    )
