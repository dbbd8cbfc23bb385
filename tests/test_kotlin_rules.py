"""
Unit Tests — Kotlin Rules
=========================
Generic Kotlin runtime and compiler classification used as the fallback.
"""
import pytest

from android_samples import AM004, AM006
from rca.core.constants import UNKNOWN_FILE
from rca.models.diagnosis import DiagnosisType
from rca.parser.kotlin_rules import build_kotlin_rules
from rca.parser.rules import DomainParser


@pytest.fixture(scope="module")
def parser():
    return DomainParser(build_kotlin_rules())


class TestRuntime:

    def test_lateinit(self, parser):
        d = parser.classify(AM006)
        assert d.type == DiagnosisType.KOTLIN_LATEINIT
        assert (d.file_path, d.line) == ("MainScreen.kt", 35)
        assert d.metadata == {"property_name": "viewModel", "exception": "UninitializedPropertyAccessException"}
        assert d.framework is None

    def test_npe_uses_first_user_frame(self, parser):
        text = ("java.lang.NullPointerException\n"
                "    at kotlin.jvm.internal.Intrinsics.checkNotNull(Intrinsics.kt:12)\n"
                "    at com.example.MainActivity.onCreate(MainActivity.kt:45)")
        d = parser.classify(text)
        assert d.type == DiagnosisType.KOTLIN_NPE
        assert (d.file_path, d.line) == ("MainActivity.kt", 45)
        assert d.metadata == {"exception": "NullPointerException", "function": "onCreate"}

    def test_index_out_of_bounds(self, parser):
        d = parser.classify("java.lang.IndexOutOfBoundsException: Index 3 out of bounds for length 3")
        assert d.metadata["exception"] == "IndexOutOfBoundsException"
        assert (d.file_path, d.line) == (UNKNOWN_FILE, 0)


class TestCompiler:

    def test_unresolved_reference(self, parser):
        d = parser.classify(AM004)
        assert d.type == DiagnosisType.KOTLIN_UNRESOLVED_REFERENCE
        assert d.metadata["symbol_name"] == "viewModelScope"
        assert (d.file_path, d.line) == ("MainViewModel.kt", 23)

    def test_import_error_short_snippet(self, parser):
        d = parser.classify("MainActivity.kt:3:8 Unresolved reference: androidx.lifecycle\nimport androidx.lifecycle.ViewModel")
        assert d.type == DiagnosisType.KOTLIN_IMPORT_ERROR
        assert d.metadata["package_name"] == "androidx.lifecycle"
        assert (d.file_path, d.line) == ("MainActivity.kt", 3)

    def test_unresolved_without_import_context(self, parser):
        d = parser.classify("Unresolved reference: viewModelScope")
        assert d.type == DiagnosisType.KOTLIN_UNRESOLVED_REFERENCE

    def test_type_mismatch_inferred(self, parser):
        d = parser.classify("Type mismatch: inferred type is String? but String was expected")
        assert d.type == DiagnosisType.KOTLIN_TYPE_MISMATCH
        assert d.metadata == {"expected_type": "String", "found_type": "String?"}

    def test_type_mismatch_required_found(self, parser):
        d = parser.classify("Type mismatch.\nRequired: Int\nFound: String")
        assert d.metadata == {"expected_type": "Int", "found_type": "String"}

    def test_compilation(self, parser):
        d = parser.classify("Utils.kt:10:1 Expecting a top level declaration")
        assert d.type == DiagnosisType.KOTLIN_COMPILATION_ERROR
        assert d.metadata["description"] == "a top level declaration"
        assert (d.file_path, d.line) == ("Utils.kt", 10)

    def test_conflicting_declarations(self, parser):
        d = parser.classify("e: Main.kt:12:9 Conflicting declarations: val 'count': Int")
        assert d.type == DiagnosisType.KOTLIN_COMPILATION_ERROR
        assert d.metadata["description"] == "Conflicting declarations: val 'count': Int"
        assert (d.file_path, d.line) == ("Main.kt", 12)

    def test_conflicting_overloads(self, parser):
        d = parser.classify("e: Main.kt:5:5 Conflicting overloads: public fun greet(name: String): Unit")
        assert d.type == DiagnosisType.KOTLIN_COMPILATION_ERROR
        assert d.metadata["description"].startswith("Conflicting overloads")
        assert d.line == 5

    @pytest.mark.parametrize("value", [None, "", "   ", 7])
    def test_unusable_input(self, parser, value):
        assert parser.classify(value) is None
