"""
Gradle Rules
============
Build configuration, dependency and task failures reported by Gradle.

Priority table (lower runs first):
    10  gradle_plugin_error                 Plugin [id: '...'] was not found
    20  gradle_dependency_resolution_error  Could not resolve / find / download g:a:v
    30  gradle_dependency_conflict          Duplicate class X found in modules
    40  gradle_dependency_conflict          Conflict found for '...', multiple versions
    50  gradle_version_mismatch             incompatible version of Kotlin metadata
    60  gradle_build_script_syntax_error    Build file '...' line: N
    70  gradle_task_failure                 Execution failed for task '...'
    80  gradle_compilation_error            Compilation error / failed

Specific causes outrank the task wrapper: most Gradle failures are
reported inside an "Execution failed for task" block.
"""
import re

from rca.models.diagnosis import DiagnosisType
from rca.parser.extractors import (
    collect_unique,
    extract_build_file,
    find_line,
    first_group,
    resolve_location,
    split_coordinate,
)
from rca.parser.rules import GAP, SPAN, Extraction, MatchRule, RuleSet, patterns

# group:artifact[:version]
_COORDINATE = r"[\w.\-]+:[\w.\-]+(?::[\w.\-]+)?"

# 'module' or "module" on one line
_QUOTED = r"['\"]([^'\"\n]+)['\"]"

_SCRIPT_LINE = (
    re.compile(r"Build file\s+'[^']*'\s+line:\s*(\d+)", re.I),
    re.compile(r"build file\s+'[^']*':\s*(\d+):", re.I),
    re.compile(r"build\.gradle(?:\.kts)?'?:?\s*(\d+):", re.I),
    re.compile(r"Script\s+'[^']*'\s+line:\s*(\d+)", re.I),
)
_SCRIPT_DESCRIPTION = re.compile(r"build\.gradle(?:\.kts)?'?:\s*\d+:\s*([^\n]+)", re.I)

_CONFLICT_DEPENDENCIES = re.compile(r"\((" + _COORDINATE + r")\)")
_CONFLICT_PAREN_VERSIONS = re.compile(r"\(([\d][\w.\-]*)\)")
_CONFLICT_VS_VERSIONS = re.compile(r"Versions?:\s*([\w.\-]+)\s+vs\.?\s+([\w.\-]+)", re.I)

_BINARY_VERSION = re.compile(r"binary version of its metadata is\s+([\d.]+?)\.?(?:,|\s|$)", re.I)
_EXPECTED_VERSION = re.compile(r"expected version is\s+([\d.]+?)\.?(?:,|\s|$)", re.I)
_METADATA_MODULE = re.compile(r"Module:\s*(\S+)", re.I)

_CAUSED_BY = re.compile(r"Caused by:\s*([^\n]+)", re.I)
_NESTED_REASON = re.compile(r">\s*([^\n]+)")
_COMPILER_MESSAGE = re.compile(r"(?:error:|\be:)\s*([^\n]+)", re.I)


def _build_extraction(text: str, metadata: dict, line: int = 0) -> Extraction:
    return Extraction(file_path=extract_build_file(text), line=line, metadata=metadata)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------
def _plugin(text: str, m: re.Match) -> Extraction:
    return _build_extraction(text, {"plugin_id": m.group(1), "plugin_version": m.group(2)})


def _resolution(text: str, m: re.Match) -> Extraction:
    dependency = m.group(1).rstrip(".")
    metadata = {"dependency": dependency}
    metadata.update(split_coordinate(dependency))
    return _build_extraction(text, metadata)


def _duplicate_class(text: str, m: re.Match) -> Extraction:
    return _build_extraction(text, {
        "module": m.group(1),
        "conflicting_dependencies": collect_unique(_CONFLICT_DEPENDENCIES, text),
    })


def _version_conflict(text: str, m: re.Match) -> Extraction:
    vs = _CONFLICT_VS_VERSIONS.search(text)
    if vs:
        versions = [vs.group(1), vs.group(2)]
    else:
        versions = collect_unique(_CONFLICT_PAREN_VERSIONS, text)
    return _build_extraction(text, {"module": m.group(1), "conflicting_versions": versions})


def _kotlin_metadata(text: str, m: re.Match) -> Extraction:
    return _build_extraction(text, {
        "binary_version": first_group(text, _BINARY_VERSION),
        "expected_version": first_group(text, _EXPECTED_VERSION),
        "module": first_group(text, _METADATA_MODULE),
    })


def _script_syntax(text: str, m: re.Match) -> Extraction:
    description = first_group(text, _SCRIPT_DESCRIPTION)
    return _build_extraction(
        text,
        {"description": description.strip() if description else None},
        line=find_line(text, *_SCRIPT_LINE),
    )


def _task_failure(text: str, m: re.Match) -> Extraction:
    reason = first_group(text, _CAUSED_BY, _NESTED_REASON)
    return _build_extraction(text, {
        "task_name": m.group(1),
        "reason": reason.strip() if reason else None,
    })


def _compilation(text: str, m: re.Match) -> Extraction:
    description = first_group(text, _COMPILER_MESSAGE) or m.group(0)
    file_path, line = resolve_location(text, ("kt", "java", "kts", "gradle"), extract_build_file(text))
    return Extraction(file_path=file_path.replace("\\", "/"), line=line, metadata={"description": description.strip()})


# ---------------------------------------------------------------------------
# Rule Set
# ---------------------------------------------------------------------------
def build_gradle_rules() -> RuleSet:
    """Build the Gradle priority table."""
    return RuleSet(
        domain="gradle",
        language="gradle",
        rules=(
            MatchRule(
                priority=10,
                error_type=DiagnosisType.GRADLE_PLUGIN_ERROR,
                patterns=patterns(r"Plugin \[id: '([^']+)'(?:, version: '([^']+)')?\] was not found"),
                extract=_plugin,
            ),
            MatchRule(
                priority=20,
                error_type=DiagnosisType.GRADLE_DEPENDENCY_RESOLUTION,
                patterns=patterns(
                    rf"Could not resolve\s+({_COORDINATE})",
                    rf"Could not find\s+({_COORDINATE})",
                    rf"Could not download\s+[\w.\-]+\s*\(({_COORDINATE})\)",
                    rf"Could not download\s+({_COORDINATE})",
                    rf"Failed to resolve:\s*({_COORDINATE})",
                ),
                extract=_resolution,
            ),
            MatchRule(
                priority=30,
                error_type=DiagnosisType.GRADLE_DEPENDENCY_CONFLICT,
                patterns=patterns(r"Duplicate class (\S+) found in modules"),
                extract=_duplicate_class,
            ),
            MatchRule(
                priority=40,
                error_type=DiagnosisType.GRADLE_DEPENDENCY_CONFLICT,
                patterns=patterns(
                    # a version must follow the quoted module
                    rf"Conflict{GAP}{_QUOTED}{GAP}\(([^\s)]+)\)",
                    rf"Conflict{GAP}{_QUOTED}{SPAN}Versions?:\s*[\w.\-]+\s+vs",
                    rf"Multiple{GAP}versions{GAP}{_QUOTED}",
                    rf"Version conflict{GAP}{_QUOTED}",
                ),
                extract=_version_conflict,
            ),
            MatchRule(
                priority=50,
                error_type=DiagnosisType.GRADLE_VERSION_MISMATCH,
                patterns=patterns(r"compiled with an incompatible version of Kotlin"),
                extract=_kotlin_metadata,
            ),
            MatchRule(
                priority=60,
                error_type=DiagnosisType.GRADLE_BUILD_SCRIPT_SYNTAX,
                patterns=patterns(*(p.pattern for p in _SCRIPT_LINE)),
                extract=_script_syntax,
            ),
            MatchRule(
                priority=70,
                error_type=DiagnosisType.GRADLE_TASK_FAILURE,
                patterns=patterns(r"Execution failed for task\s+'([^']+)'"),
                extract=_task_failure,
            ),
            MatchRule(
                priority=80,
                error_type=DiagnosisType.GRADLE_COMPILATION_ERROR,
                patterns=patterns(
                    r"Compilation (?:error|failed)",
                    r"Could not compile",
                    r"compileDebugKotlin FAILED",
                ),
                extract=_compilation,
            ),
        ),
    )
