"""
Constants
Centralised storage for languages, frameworks and file sentinels.
"""
LANGUAGES = ("kotlin", "java", "xml", "gradle")

FRAMEWORK_ANDROID = "android"
FRAMEWORK_COMPOSE = "compose"

# Sentinels: never real paths, never confused with one downstream
UNKNOWN_FILE = "unknown"
UNKNOWN_XML = "unknown.xml"
MANIFEST_FILE = "AndroidManifest.xml"
DEFAULT_BUILD_FILE = "build.gradle"
