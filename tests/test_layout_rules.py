"""
Unit Tests — Layout Rules
=========================
Inflation, attribute, view-id and resource classification for layout XML.
"""
import pytest

from android_samples import AX001, AX002, AX003
from rca.core.constants import UNKNOWN_XML
from rca.models.diagnosis import DiagnosisType
from rca.parser.layout_rules import build_layout_rules
from rca.parser.rules import DomainParser


@pytest.fixture(scope="module")
def parser():
    return DomainParser(build_layout_rules())


# ===========================================================================
# 1. Samples
# ===========================================================================
class TestLayoutSamples:

    def test_inflation(self, parser):
        d = parser.classify(AX001)
        assert d.type == DiagnosisType.XML_INFLATION
        assert (d.file_path, d.line) == (UNKNOWN_XML, 23)
        assert d.metadata["class_name"] == "TextView"
        assert d.language == "xml"

    def test_must_supply_beats_inflation(self, parser):
        d = parser.classify(AX002)
        assert d.type == DiagnosisType.XML_MISSING_ATTRIBUTE
        assert d.line == 45
        assert d.metadata["attribute_name"] == "layout_width"

    def test_missing_view_id(self, parser):
        d = parser.classify(AX003)
        assert d.type == DiagnosisType.XML_MISSING_ID
        assert (d.file_path, d.line) == ("DetailActivity.kt", 34)
        assert d.metadata["view_class"] == "Button"


# ===========================================================================
# 2. Attribute and inflation rules
# ===========================================================================
class TestAttributesAndInflation:

    def test_generic_inflation_sentinel(self, parser):
        d = parser.classify("Binary XML file line #42: Error inflating class Foo")
        assert d.type == DiagnosisType.XML_INFLATION
        assert (d.file_path, d.line) == (UNKNOWN_XML, 42)
        assert d.metadata["class_name"] == "Foo"

    def test_inflation_with_layout_file(self, parser):
        d = parser.classify("Binary XML file line #8 in layout/activity_main.xml: "
                            "Error inflating class com.example.CustomView")
        assert d.file_path == "layout/activity_main.xml"
        assert d.metadata["class_name"] == "com.example.CustomView"

    def test_inflation_without_line(self, parser):
        d = parser.classify("android.view.InflateException: Error inflating class androidx.cardview.widget.CardView")
        assert d.type == DiagnosisType.XML_INFLATION
        assert d.line == 0

    def test_attribute_not_specified(self, parser):
        d = parser.classify("attribute android:layout_height not specified in item_row.xml at line 14")
        assert d.type == DiagnosisType.XML_ATTRIBUTE_ERROR
        assert d.metadata["attribute_name"] == "android:layout_height"
        assert (d.file_path, d.line) == ("item_row.xml", 14)

    def test_must_supply_beats_not_specified(self, parser):
        d = parser.classify("You must supply a layout_height attribute; attribute layout_height missing")
        assert d.type == DiagnosisType.XML_MISSING_ATTRIBUTE


# ===========================================================================
# 3. View ids and resources
# ===========================================================================
class TestIdsAndResources:

    def test_find_view_by_id_with_view_id(self, parser):
        text = ("java.lang.NullPointerException after findViewById(R.id.saveButton)\n"
                "    at com.example.DetailActivity.onCreate(DetailActivity.kt:20)")
        d = parser.classify(text)
        assert d.type == DiagnosisType.XML_MISSING_ID
        assert d.metadata["view_id"] == "saveButton"

    def test_plain_npe_is_not_a_view_error(self, parser):
        text = ("java.lang.NullPointerException\n"
                "    at android.view.View.performClick(View.java:7448)\n"
                "    at com.example.MainActivity.onClick(MainActivity.kt:45)")
        assert parser.classify(text) is None

    def test_resource_not_found_hex(self, parser):
        text = ("android.content.res.Resources$NotFoundException: String resource ID #0x7f0d0045\n"
                "    at android.content.res.Resources.getText(Resources.java:444)\n"
                "    at com.example.MainActivity.onCreate(MainActivity.kt:31)")
        d = parser.classify(text)
        assert d.type == DiagnosisType.XML_RESOURCE_NOT_FOUND
        assert d.metadata["resource_id"] == "0x7f0d0045"
        assert (d.file_path, d.line) == ("MainActivity.kt", 31)

    def test_resource_reference(self, parser):
        d = parser.classify("error: resource @string/app_title not found in activity_main.xml at line 9")
        assert d.metadata["resource_type"] == "string"
        assert d.metadata["resource_name"] == "app_title"
        assert (d.file_path, d.line) == ("activity_main.xml", 9)

    def test_namespace(self, parser):
        d = parser.classify("Error: No resource identifier found for attribute 'layout_width' in package 'android'")
        assert d.type == DiagnosisType.XML_NAMESPACE_ERROR
        assert d.metadata["attribute_name"] == "layout_width"

    def test_tag_mismatch(self, parser):
        d = parser.classify('The element type "LinearLayout" must be terminated by the matching end-tag')
        assert d.type == DiagnosisType.XML_TAG_MISMATCH
        assert d.metadata["tag_name"] == "LinearLayout"

    def test_duplicate_id(self, parser):
        d = parser.classify("Duplicate id @+id/title, already defined earlier in this layout")
        assert d.type == DiagnosisType.XML_DUPLICATE_ID
        assert d.metadata["duplicate_id"] == "title"

    def test_invalid_attribute_value(self, parser):
        d = parser.classify('"big" is not a valid value for attribute android:textSize')
        assert d.type == DiagnosisType.XML_INVALID_ATTRIBUTE_VALUE
        assert d.metadata == {"invalid_value": "big", "attribute_name": "android:textSize"}
