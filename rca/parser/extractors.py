"""
Metadata Extractors
===================
Pure helpers that derive file, line and identifier fields from matched text.

Contract:
    - TOTAL: every helper returns a value, a sentinel or None. Never raises
      on odd input.
    - DETERMINISTIC: same text → same fields, always.
    - Heuristics are fixed fallback chains, never scoring.

File/line conventions (tried in this order):
    1. stack frames, skipping platform namespaces (trace-aware callers only)
    2. file:line:col
    3. file:line
    4. at symbol(file:line)
    5. (file:line)
    6. path/File.kt: (line, col)     — Kotlin compiler output
"""
import re
from typing import Optional

from rca.core.constants import DEFAULT_BUILD_FILE, UNKNOWN_FILE, UNKNOWN_XML
from rca.core.knowledge import KnowledgeTables


# ---------------------------------------------------------------------------
# Location Patterns
# ---------------------------------------------------------------------------
# Stack frame: at com.example.Screen$lambda-2(Screen.kt:35)
_FRAME_TEMPLATE = r"at\s+([\w.$<>\-]+)\(([\w$\-]+\.(?:{ext})):(\d+)\)"

# File-name groups only start at a token boundary
_CONVENTION_TEMPLATES: list[str] = [
    r"(?<![\w$\-])([\w$\-]+\.(?:{ext})):(\d+):\d+",             # file:line:col
    r"(?<![\w$\-])([\w$\-]+\.(?:{ext})):(\d+)",                 # file:line
    r"at\s+[\w.$<>\-]+\(([\w$\-]+\.(?:{ext})):(\d+)\)",         # at symbol(file:line)
    r"\(([\w.$\-]+\.(?:{ext})):(\d+)\)",                        # (file:line)
    r"(?<![\w$\-])([\w$\-]+\.(?:{ext})):\s*\((\d+),\s*\d+\)",   # File.kt: (line, col)
]

_XML_FILE_IN = re.compile(r"in ([a-zA-Z0-9_/\-]+\.xml)", re.I)
_XML_FILE_ANY = re.compile(r"(?<![a-zA-Z0-9_/\-])([a-zA-Z0-9_/\-]+\.xml)", re.I)

_BUILD_FILE_QUOTED = re.compile(r"'([^']*build\.gradle(?:\.kts)?)'", re.I)
_BUILD_FILE_BARE = re.compile(r"((?:(?<![\w/\\.\-])[\w/\\.\-]+[/\\])?build\.gradle(?:\.kts)?)", re.I)


def _compile(template: str, extensions: tuple[str, ...]) -> re.Pattern:
    ext = "|".join(re.escape(e) for e in extensions)
    return re.compile(template.format(ext=ext), re.I)


# ---------------------------------------------------------------------------
# Stack-Frame Filtering
# ---------------------------------------------------------------------------
def stack_frames(text: str, extensions: tuple[str, ...] = ("kt", "java")) -> list[tuple[str, str, int]]:
    """Return every (symbol, file, line) stack frame in order of appearance."""
    pattern = _compile(_FRAME_TEMPLATE, extensions)
    return [(m.group(1), m.group(2), int(m.group(3))) for m in pattern.finditer(text)]


def is_platform_symbol(symbol: str, prefixes: tuple[str, ...]) -> bool:
    """True if the qualified symbol belongs to a platform / stdlib namespace."""
    lowered = symbol.lower()
    return any(lowered.startswith(p.lower()) for p in prefixes)


def first_user_frame(
    text: str,
    prefixes: tuple[str, ...],
    extensions: tuple[str, ...] = ("kt", "java"),
) -> Optional[tuple[str, str, int]]:
    """
    Walk stack frames top to bottom and return the first non-platform frame.

    Returns
    -------
    tuple | None
        (symbol, file, line) of the first user frame, or None if the text
        has no frames or every frame is a platform frame.
    """
    for symbol, file_name, line in stack_frames(text, extensions):
        if not is_platform_symbol(symbol, prefixes):
            return symbol, file_name, line
    return None


# ---------------------------------------------------------------------------
# File / Line Resolution
# ---------------------------------------------------------------------------
def resolve_location(
    text: str,
    extensions: tuple[str, ...] = ("kt",),
    sentinel: str = UNKNOWN_FILE,
    platform_prefixes: Optional[tuple[str, ...]] = None,
) -> tuple[str, int]:
    """
    Resolve (file_path, line) from diagnostic text.

    Parameters
    ----------
    text : str
        Raw diagnostic text.
    extensions : tuple[str, ...]
        Source file extensions to look for (without the dot).
    sentinel : str
        File value returned when nothing matches.
    platform_prefixes : tuple[str, ...] | None
        When given, stack frames are searched first and platform frames are
        skipped. A trace made only of platform frames resolves to the sentinel.

    Returns
    -------
    tuple[str, int]
        (file_path, line); line is 0 when unknown.
    """
    if platform_prefixes is not None:
        frames = stack_frames(text, extensions)
        if frames:
            for symbol, file_name, line in frames:
                if not is_platform_symbol(symbol, platform_prefixes):
                    return file_name, line
            return sentinel, 0

    for template in _CONVENTION_TEMPLATES:
        m = _compile(template, extensions).search(text)
        if m:
            return m.group(1), int(m.group(2))

    return sentinel, 0


def find_xml_file(text: str, require_in: bool = True) -> str:
    """
    Find a layout / resource XML file name.

    With require_in, only "in name.xml" counts; otherwise any "name.xml"
    token is accepted. Returns the "unknown.xml" sentinel when absent.
    """
    m = _XML_FILE_IN.search(text)
    if m is None and not require_in:
        m = _XML_FILE_ANY.search(text)
    return m.group(1) if m else UNKNOWN_XML


def find_line(text: str, *patterns: re.Pattern) -> int:
    """Return the first integer captured by any of the patterns, else 0."""
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return int(m.group(1))
    return 0


def extract_build_file(text: str) -> str:
    """Return the Gradle build file referenced by the text (forward slashes)."""
    m = _BUILD_FILE_QUOTED.search(text) or _BUILD_FILE_BARE.search(text)
    if m:
        return m.group(1).replace("\\", "/")
    return DEFAULT_BUILD_FILE


# ---------------------------------------------------------------------------
# Identifier Helpers
# ---------------------------------------------------------------------------
def first_group(text: str, *patterns: re.Pattern) -> Optional[str]:
    """Return group 1 of the first pattern that matches, else None."""
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return None


def collect_unique(pattern: re.Pattern, text: str, group: int = 1) -> list[str]:
    """Collect every capture of the pattern, de-duplicated, first-seen order."""
    seen: list[str] = []
    for m in pattern.finditer(text):
        value = m.group(group)
        if value and value not in seen:
            seen.append(value)
    return seen


def split_coordinate(coordinate: str) -> dict[str, str]:
    """Split a Maven coordinate "group:artifact:version" into its parts."""
    parts = coordinate.split(":")
    return {
        "group": parts[0] if len(parts) > 0 and parts[0] else "unknown",
        "artifact": parts[1] if len(parts) > 1 and parts[1] else "unknown",
        "version": parts[2] if len(parts) > 2 and parts[2] else "unspecified",
    }


def permission_names(raw: str) -> tuple[str, str]:
    """
    Normalise a permission reference.

    Returns
    -------
    tuple[str, str]
        (fully qualified name, upper-case short name), e.g.
        ("android.permission.CAMERA", "CAMERA").
    """
    short = raw.rsplit(".", 1)[-1].upper()
    if "." in raw:
        prefix = raw.rsplit(".", 1)[0]
        if prefix.lower() == "android.permission":
            prefix = "android.permission"
        return f"{prefix}.{short}", short
    return f"android.permission.{short}", short


def is_sensitive_permission(short_name: str, knowledge: KnowledgeTables) -> bool:
    """Set membership in the runtime-grant vocabulary."""
    return short_name.upper() in knowledge.dangerous_permissions
