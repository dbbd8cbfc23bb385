"""
Unit Tests — Remediation
========================
Permission, merge-conflict, component and modifier-order generators,
advice lookup and the one-line summary.
"""
import pytest

from android_samples import AM001, AM002, AM003, AC005
from rca.core.knowledge import KnowledgeTables
from rca.core.remediation import (
    ARROW,
    FIX_TEMPLATES,
    describe_fix,
    format_summary,
    generate_component_declaration,
    recommend_permission_fix,
    remediate,
    resolve_merge_conflict,
    suggest_modifier_order,
)
from rca.models.diagnosis import DIAGNOSIS_TYPES, Diagnosis, DiagnosisType
from rca.parser.dispatcher import build_dispatcher


def make(diagnosis_type, metadata=None, file_path="AndroidManifest.xml", line=0, language="xml"):
    return Diagnosis(
        type=diagnosis_type,
        message="test",
        file_path=file_path,
        line=line,
        language=language,
        metadata=metadata or {},
    )


@pytest.fixture(scope="module")
def dispatcher():
    return build_dispatcher()


# ===========================================================================
# 1. Permissions
# ===========================================================================
class TestPermissionFix:

    def test_dangerous_permission_has_runtime_check(self, dispatcher):
        artifact = recommend_permission_fix(dispatcher.classify_any(AM001))
        assert artifact.category == "permission"
        assert artifact.snippet == '<uses-permission android:name="android.permission.CAMERA" />'
        assert "Manifest.permission.CAMERA" in artifact.runtime_check
        assert "ActivityCompat.requestPermissions" in artifact.runtime_check
        assert artifact.human_text.startswith("Add the dangerous permission")

    def test_normal_permission_has_no_runtime_check(self):
        d = make(DiagnosisType.MANIFEST_MISSING_PERMISSION, {
            "required_permission": "android.permission.INTERNET",
            "permission_name": "INTERNET",
        })
        artifact = recommend_permission_fix(d)
        assert artifact.runtime_check is None
        assert artifact.human_text.startswith("Add the normal permission")

    def test_short_name_is_qualified(self):
        d = make(DiagnosisType.MANIFEST_MISSING_PERMISSION, {"required_permission": "RECORD_AUDIO"})
        artifact = recommend_permission_fix(d)
        assert 'android:name="android.permission.RECORD_AUDIO"' in artifact.snippet
        assert artifact.runtime_check is not None

    def test_custom_vocabulary(self, dispatcher):
        artifact = recommend_permission_fix(
            dispatcher.classify_any(AM001), KnowledgeTables(dangerous_permissions=set())
        )
        assert artifact.runtime_check is None

    def test_missing_metadata(self):
        assert recommend_permission_fix(make(DiagnosisType.MANIFEST_MISSING_PERMISSION)) is None

    def test_wrong_type(self, dispatcher):
        assert recommend_permission_fix(dispatcher.classify_any(AM002)) is None


# ===========================================================================
# 2. Merge conflicts
# ===========================================================================
class TestMergeConflict:

    def test_attribute_replace(self, dispatcher):
        artifact = resolve_merge_conflict(dispatcher.classify_any(AM003))
        assert artifact.category == "merge_conflict"
        assert 'tools:replace="android:allowBackup"' in artifact.snippet
        assert '"allowBackup"' in artifact.human_text

    def test_qualified_attribute_kept(self):
        d = make(DiagnosisType.MANIFEST_MERGE_CONFLICT,
                 {"conflict_type": "attribute", "conflict_attribute": "tools:label"})
        assert 'tools:replace="tools:label"' in resolve_merge_conflict(d).snippet

    def test_element_remove(self):
        d = make(DiagnosisType.MANIFEST_MERGE_CONFLICT,
                 {"conflict_type": "element", "conflict_element": "provider"})
        assert resolve_merge_conflict(d).snippet == '<provider tools:node="remove" />'

    def test_unknown_sets_up_tools_namespace(self):
        artifact = resolve_merge_conflict(make(DiagnosisType.MANIFEST_MERGE_CONFLICT))
        assert 'xmlns:tools="http://schemas.android.com/tools"' in artifact.snippet

    def test_attribute_without_name(self):
        d = make(DiagnosisType.MANIFEST_MERGE_CONFLICT, {"conflict_type": "attribute"})
        assert resolve_merge_conflict(d) is None

    def test_element_without_name(self):
        d = make(DiagnosisType.MANIFEST_MERGE_CONFLICT, {"conflict_type": "element"})
        assert resolve_merge_conflict(d) is None


# ===========================================================================
# 3. Component declarations
# ===========================================================================
class TestComponentDeclaration:

    def test_activity_from_sample(self, dispatcher):
        artifact = generate_component_declaration(dispatcher.classify_any(AM002))
        assert artifact.category == "component_declaration"
        assert artifact.snippet.startswith("<activity")
        assert 'android:name="com.example.app.SettingsActivity"' in artifact.snippet

    @pytest.mark.parametrize("diagnosis_type,kind", [
        (DiagnosisType.MANIFEST_UNDECLARED_SERVICE, "service"),
        (DiagnosisType.MANIFEST_UNDECLARED_RECEIVER, "receiver"),
    ])
    def test_other_kinds(self, diagnosis_type, kind):
        d = make(diagnosis_type, {"component_type": kind, "component_class": "com.example.Sync"})
        artifact = generate_component_declaration(d)
        assert artifact.snippet.startswith(f"<{kind}")
        assert 'android:exported="false"' in artifact.snippet

    def test_missing_class(self):
        d = make(DiagnosisType.MANIFEST_UNDECLARED_SERVICE, {"component_type": "service"})
        assert generate_component_declaration(d) is None

    def test_wrong_type(self, dispatcher):
        assert generate_component_declaration(dispatcher.classify_any(AM003)) is None


# ===========================================================================
# 4. Modifier order
# ===========================================================================
class TestModifierOrder:

    def _compose(self, modifiers):
        return make(DiagnosisType.COMPOSE_MODIFIER, {"modifiers": modifiers},
                    file_path="Screen.kt", language="kotlin")

    def test_interaction_first(self):
        artifact = suggest_modifier_order(self._compose(["size", "padding", "clickable"]))
        assert artifact.human_text == "Apply modifiers in this order: clickable, size, padding."
        assert artifact.snippet == "Modifier\n    .clickable(...)\n    .size(...)\n    .padding(...)"

    def test_sample(self, dispatcher):
        artifact = suggest_modifier_order(dispatcher.classify_any(AC005))
        assert artifact.human_text == "Apply modifiers in this order: clickable, size, padding."

    def test_unranked_last_in_reported_order(self):
        artifact = suggest_modifier_order(self._compose(["semantics", "padding", "testTag", "fillmaxwidth"]))
        assert artifact.human_text == "Apply modifiers in this order: fillMaxWidth, padding, semantics, testTag."

    def test_single_modifier(self):
        assert suggest_modifier_order(self._compose(["padding"])) is None

    def test_no_modifiers(self):
        assert suggest_modifier_order(self._compose([])) is None


# ===========================================================================
# 5. Advice and summary
# ===========================================================================
class TestAdvice:

    def test_every_type_has_advice(self):
        assert set(FIX_TEMPLATES) == DIAGNOSIS_TYPES

    def test_describe_fix(self):
        assert describe_fix(make(DiagnosisType.XML_DUPLICATE_ID)) == "give each view in the layout a unique id"

    def test_summary_with_line(self):
        d = make(DiagnosisType.KOTLIN_LATEINIT, file_path="MainScreen.kt", line=35, language="kotlin")
        assert format_summary(d) == (
            f"kotlin_lateinit error in MainScreen.kt line 35 {ARROW} Fix: "
            + FIX_TEMPLATES[DiagnosisType.KOTLIN_LATEINIT]
        )

    def test_summary_without_line(self):
        summary = format_summary(make(DiagnosisType.MANIFEST_MERGE_CONFLICT))
        assert summary.startswith(f"manifest_merge_conflict error in AndroidManifest.xml {ARROW} Fix: ")

    def test_remediate_ends_with_advice(self, dispatcher):
        artifacts = remediate(dispatcher.classify_any(AM001))
        assert [a.category for a in artifacts] == ["permission", "advice"]

    def test_remediate_advice_only(self):
        artifacts = remediate(make(DiagnosisType.XML_TAG_MISMATCH))
        assert len(artifacts) == 1
        assert artifacts[0].category == "advice"
        assert artifacts[0].snippet is None


# ===========================================================================
# 6. Malformed metadata
# ===========================================================================
class TestMalformedMetadata:

    @pytest.mark.parametrize("value", [123, None, "", ["CAMERA"], {"name": "CAMERA"}])
    def test_permission_not_a_string(self, value):
        d = make(DiagnosisType.MANIFEST_MISSING_PERMISSION, {"required_permission": value})
        assert recommend_permission_fix(d) is None

    def test_permission_name_wrong_shape_falls_back(self):
        d = make(DiagnosisType.MANIFEST_MISSING_PERMISSION, {
            "required_permission": "android.permission.CAMERA",
            "permission_name": 7,
        })
        assert "Manifest.permission.CAMERA" in recommend_permission_fix(d).runtime_check

    @pytest.mark.parametrize("key,value", [
        ("conflict_attribute", 5),
        ("conflict_attribute", ["allowBackup"]),
    ])
    def test_conflict_name_not_a_string(self, key, value):
        d = make(DiagnosisType.MANIFEST_MERGE_CONFLICT, {"conflict_type": "attribute", key: value})
        assert resolve_merge_conflict(d) is None

    def test_conflict_type_wrong_shape_is_unknown(self):
        d = make(DiagnosisType.MANIFEST_MERGE_CONFLICT, {"conflict_type": ["attribute"]})
        assert 'xmlns:tools="http://schemas.android.com/tools"' in resolve_merge_conflict(d).snippet

    @pytest.mark.parametrize("metadata", [
        {"component_type": ["service"], "component_class": "com.example.Sync"},
        {"component_type": "service", "component_class": 42},
        {"component_type": {"kind": "service"}, "component_class": "com.example.Sync"},
    ])
    def test_component_wrong_shape(self, metadata):
        d = make(DiagnosisType.MANIFEST_UNDECLARED_SERVICE, metadata)
        assert generate_component_declaration(d) is None

    @pytest.mark.parametrize("value", [[1, 2], ["padding", 3], "padding,size", {"a": 1}, ["padding", ""]])
    def test_modifiers_wrong_shape(self, value):
        d = make(DiagnosisType.COMPOSE_MODIFIER, {"modifiers": value}, file_path="Screen.kt", language="kotlin")
        assert suggest_modifier_order(d) is None

    def test_remediate_still_returns_advice(self):
        d = make(DiagnosisType.MANIFEST_MISSING_PERMISSION, {"required_permission": 123})
        assert [a.category for a in remediate(d)] == ["advice"]
