"""
Unit Tests — Gradle Rules
=========================
Plugin, dependency, version, build-script and task failure classification.
"""
import pytest

from android_samples import AG001, AG002, AG003, AG004, AG005, AM004, AM007
from rca.models.diagnosis import DiagnosisType
from rca.parser.gradle_rules import build_gradle_rules
from rca.parser.rules import DomainParser


@pytest.fixture(scope="module")
def parser():
    return DomainParser(build_gradle_rules())


# ===========================================================================
# 1. Samples
# ===========================================================================
class TestGradleSamples:

    def test_duplicate_class(self, parser):
        d = parser.classify(AG001)
        assert d.type == DiagnosisType.GRADLE_DEPENDENCY_CONFLICT
        assert d.language == "gradle"
        assert d.framework is None
        assert d.metadata["module"] == "com.google.common.util.concurrent.ListenableFuture"
        assert d.metadata["conflicting_dependencies"] == [
            "com.google.guava:guava:30.1-jre",
            "com.google.guava:listenablefuture:1.0",
        ]

    def test_kotlin_metadata_mismatch(self, parser):
        d = parser.classify(AG002)
        assert d.type == DiagnosisType.GRADLE_VERSION_MISMATCH
        assert d.metadata == {
            "binary_version": "1.9.0",
            "expected_version": "1.7.10",
            "module": "androidx.compose.runtime:runtime-desktop:1.5.0",
        }

    def test_resolution_strips_trailing_period(self, parser):
        d = parser.classify(AG003)
        assert d.type == DiagnosisType.GRADLE_DEPENDENCY_RESOLUTION
        assert d.metadata["dependency"] == "androidx.compose.ui:ui:1.5.0"
        assert d.metadata["group"] == "androidx.compose.ui"
        assert d.metadata["artifact"] == "ui"
        assert d.metadata["version"] == "1.5.0"

    def test_plugin(self, parser):
        d = parser.classify(AG004)
        assert d.type == DiagnosisType.GRADLE_PLUGIN_ERROR
        assert d.metadata == {"plugin_id": "com.google.gms.google-services", "plugin_version": "4.3.15"}

    def test_build_script_syntax(self, parser):
        d = parser.classify(AG005)
        assert d.type == DiagnosisType.GRADLE_BUILD_SCRIPT_SYNTAX
        assert d.line == 45
        assert d.file_path.endswith("build.gradle")
        assert "\\" not in d.file_path
        assert d.metadata["description"].startswith("unexpected token")

    def test_version_conflict(self, parser):
        d = parser.classify(AM007)
        assert d.type == DiagnosisType.GRADLE_DEPENDENCY_CONFLICT
        assert d.metadata["module"] == "androidx.core:core"
        assert d.metadata["conflicting_versions"] == ["1.10.0", "1.6.0"]

    def test_task_failure(self, parser):
        d = parser.classify(AM004)
        assert d.type == DiagnosisType.GRADLE_TASK_FAILURE
        assert d.metadata["task_name"] == ":app:compileDebugKotlin"
        assert d.metadata["reason"] == "Compilation error. See log for more details"


# ===========================================================================
# 2. Other forms
# ===========================================================================
class TestGradleForms:

    def test_plugin_without_version(self, parser):
        d = parser.classify("Plugin [id: 'org.jetbrains.kotlin.android'] was not found in any of the following sources")
        assert d.metadata == {"plugin_id": "org.jetbrains.kotlin.android"}

    def test_failed_to_resolve(self, parser):
        d = parser.classify("Failed to resolve: com.squareup.retrofit2:retrofit")
        assert d.metadata["artifact"] == "retrofit"
        assert d.metadata["version"] == "unspecified"

    def test_resolve_all_dependencies_alone_is_not_resolution(self, parser):
        assert parser.classify("Could not resolve all dependencies for configuration ':app:x'.") is None

    def test_conflict_versions_in_parentheses(self, parser):
        d = parser.classify("Conflict with dependency 'com.google.code.findbugs:jsr305' (3.0.2) and (1.3.9)")
        assert d.metadata["conflicting_versions"] == ["3.0.2", "1.3.9"]

    @pytest.mark.parametrize("text", [
        "e: Main.kt:12:9 Conflicting declarations: val 'count': Int",
        "e: Main.kt:5:5 Conflicting overloads: public fun greet(name: String): Unit defined in com.example in file Main.kt",
        "Conflict with 'kotlin' plugin",
    ])
    def test_conflict_without_versions_is_not_dependency_conflict(self, parser, text):
        assert parser.classify(text) is None

    def test_conflict_versions_vs_form(self, parser):
        d = parser.classify("Conflict with dependency 'androidx.core:core'\nVersions: 1.9.0 vs 1.12.0")
        assert d.type == DiagnosisType.GRADLE_DEPENDENCY_CONFLICT
        assert d.metadata["module"] == "androidx.core:core"
        assert d.metadata["conflicting_versions"] == ["1.9.0", "1.12.0"]

    def test_task_failure_caused_by(self, parser):
        text = ("Execution failed for task ':app:mergeDebugResources'.\n"
                "Caused by: com.android.aaptcompiler.ResourceCompilationException: bad png")
        d = parser.classify(text)
        assert d.metadata["reason"].startswith("com.android.aaptcompiler.ResourceCompilationException")

    def test_kts_script_line(self, parser):
        d = parser.classify("Script 'app/build.gradle.kts' line: 17")
        assert d.type == DiagnosisType.GRADLE_BUILD_SCRIPT_SYNTAX
        assert (d.file_path, d.line) == ("app/build.gradle.kts", 17)

    def test_compilation(self, parser):
        d = parser.classify("e: MainActivity.kt:12:5 Expecting ')'\nCompilation failed; see the compiler error output")
        assert d.type == DiagnosisType.GRADLE_COMPILATION_ERROR
        assert (d.file_path, d.line) == ("MainActivity.kt", 12)
        assert d.metadata["description"] == "MainActivity.kt:12:5 Expecting ')'"

    def test_default_build_file(self, parser):
        d = parser.classify("Failed to resolve: com.squareup.okhttp3:okhttp:4.12.0")
        assert d.file_path == "build.gradle"
