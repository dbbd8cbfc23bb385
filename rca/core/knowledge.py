"""
Knowledge Tables
================
Static Android domain data consumed by the rule sets and the remediation
generators.

Contents:
    dangerous_permissions — permissions that need an explicit runtime grant
    platform_prefixes     — namespaces treated as framework code in stack traces
    modifier_order        — Compose modifier name → conventional chain rank
    component_templates   — component kind → manifest declaration template
    conflict_templates    — merge-conflict sub-kind → (advice, markup) templates

Contract:
    - KnowledgeTables is frozen; every mapping is a read-only view.
    - DEFAULT_KNOWLEDGE is built once at import and shared by reference.
    - Alternate vocabularies are built with KnowledgeTables(...) and passed
      explicitly to rule builders and generators.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


# ---------------------------------------------------------------------------
# Permissions requiring a runtime grant (short names)
# ---------------------------------------------------------------------------
_DANGEROUS_PERMISSIONS = frozenset({
    "CAMERA",
    "READ_CONTACTS",
    "WRITE_CONTACTS",
    "GET_ACCOUNTS",
    "ACCESS_FINE_LOCATION",
    "ACCESS_COARSE_LOCATION",
    "ACCESS_BACKGROUND_LOCATION",
    "RECORD_AUDIO",
    "READ_PHONE_STATE",
    "CALL_PHONE",
    "READ_CALL_LOG",
    "WRITE_CALL_LOG",
    "ADD_VOICEMAIL",
    "USE_SIP",
    "PROCESS_OUTGOING_CALLS",
    "BODY_SENSORS",
    "ACTIVITY_RECOGNITION",
    "SEND_SMS",
    "RECEIVE_SMS",
    "READ_SMS",
    "RECEIVE_WAP_PUSH",
    "RECEIVE_MMS",
    "READ_EXTERNAL_STORAGE",
    "WRITE_EXTERNAL_STORAGE",
    "READ_MEDIA_IMAGES",
    "READ_MEDIA_VIDEO",
    "READ_MEDIA_AUDIO",
    "POST_NOTIFICATIONS",
    "BLUETOOTH_CONNECT",
    "BLUETOOTH_SCAN",
})


# ---------------------------------------------------------------------------
# Stack frames under these namespaces are never user code
# ---------------------------------------------------------------------------
_PLATFORM_PREFIXES = (
    "android.",
    "androidx.",
    "com.android.",
    "com.google.android.",
    "dalvik.",
    "java.",
    "javax.",
    "jdk.",
    "sun.",
    "kotlin.",
    "kotlinx.",
    "org.jetbrains.",
)


# ---------------------------------------------------------------------------
# Compose modifier chain convention (lower rank goes first)
# ---------------------------------------------------------------------------
# Interaction → sizing → decoration → spacing
_MODIFIER_ORDER = {
    "clickable":        0,
    "combinedclickable": 0,
    "toggleable":       0,
    "selectable":       0,
    "fillmaxsize":      1,
    "fillmaxwidth":     1,
    "fillmaxheight":    1,
    "size":             1,
    "width":            1,
    "height":           1,
    "requiredsize":     1,
    "wrapcontentsize":  1,
    "clip":             2,
    "shadow":           2,
    "border":           2,
    "background":       2,
    "padding":          3,
    "offset":           3,
}

# Canonical camelCase spellings, keyed by lowercase name
_MODIFIER_SPELLING = {
    "combinedclickable": "combinedClickable",
    "fillmaxsize":       "fillMaxSize",
    "fillmaxwidth":      "fillMaxWidth",
    "fillmaxheight":     "fillMaxHeight",
    "requiredsize":      "requiredSize",
    "wrapcontentsize":   "wrapContentSize",
}


# ---------------------------------------------------------------------------
# Manifest component declarations
# ---------------------------------------------------------------------------
_COMPONENT_TEMPLATES = {
    "activity": (
        '<activity\n'
        '    android:name="{component_class}"\n'
        '    android:exported="false" />'
    ),
    "service": (
        '<service\n'
        '    android:name="{component_class}"\n'
        '    android:enabled="true"\n'
        '    android:exported="false" />'
    ),
    "receiver": (
        '<receiver\n'
        '    android:name="{component_class}"\n'
        '    android:enabled="true"\n'
        '    android:exported="false">\n'
        '    <!-- Add intent filters here -->\n'
        '</receiver>'
    ),
}


# ---------------------------------------------------------------------------
# Manifest merge conflict resolutions: sub-kind → (advice, markup)
# ---------------------------------------------------------------------------
_CONFLICT_TEMPLATES = {
    "attribute": (
        'The attribute "{attribute}" is defined in multiple manifest files. '
        'Use tools:replace="{qualified_attribute}" to keep the value from your manifest.',
        '<application\n'
        '    android:name=".MyApp"\n'
        '    tools:replace="{qualified_attribute}">',
    ),
    "element": (
        'The element <{element}> conflicts with a library manifest. '
        'Use tools:node="remove" to exclude the library declaration.',
        '<{element} tools:node="remove" />',
    ),
    "unknown": (
        "Add the tools namespace to your manifest, then use tools:replace or "
        "tools:node=\"remove\" on the conflicting declaration.",
        '<manifest xmlns:android="http://schemas.android.com/apk/res/android"\n'
        '    xmlns:tools="http://schemas.android.com/tools">',
    ),
}


@dataclass(frozen=True)
class KnowledgeTables:
    """Immutable domain vocabulary shared by parsers and generators."""
    dangerous_permissions: frozenset = _DANGEROUS_PERMISSIONS
    platform_prefixes: tuple[str, ...] = _PLATFORM_PREFIXES
    modifier_order: Mapping[str, int] = field(default_factory=lambda: MappingProxyType(_MODIFIER_ORDER))
    modifier_spelling: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(_MODIFIER_SPELLING))
    component_templates: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(_COMPONENT_TEMPLATES))
    conflict_templates: Mapping[str, tuple[str, str]] = field(default_factory=lambda: MappingProxyType(_CONFLICT_TEMPLATES))

    def __post_init__(self):
        # Callers may pass plain sets / dicts; freeze them here
        object.__setattr__(self, "dangerous_permissions", frozenset(p.upper() for p in self.dangerous_permissions))
        object.__setattr__(self, "platform_prefixes", tuple(self.platform_prefixes))
        for name in ("modifier_order", "modifier_spelling", "component_templates", "conflict_templates"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def modifier_rank(self, name: str):
        """Return the conventional rank of a modifier, or None if unknown."""
        return self.modifier_order.get(name.lower())

    def modifier_name(self, name: str) -> str:
        """Return the canonical spelling of a modifier name."""
        key = name.lower()
        return self.modifier_spelling.get(key, key)


DEFAULT_KNOWLEDGE = KnowledgeTables()
