"""Unit tests for the field type registry."""

import pytest

from form_engine.errors import UnknownFieldType
from form_engine.registry.field_types import (
    CHOICE_KINDS,
    FieldCategory,
    FieldKind,
    accept_types_for,
    all_field_types,
    default_options_for,
    field_types_by_category,
    file_type_display,
    is_choice_like,
    is_generic_choice,
    lookup,
    resolve_kind,
)


class TestLookup:
    """Test lookup() and kind resolution."""

    @pytest.mark.parametrize("kind", list(FieldKind))
    def test_every_kind_is_registered(self, kind):
        field_type = lookup(kind.value)
        assert field_type.type_id == kind
        assert field_type.display_label

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownFieldType) as exc_info:
            lookup("hologram")
        assert exc_info.value.type_id == "hologram"

    def test_legacy_aliases(self):
        assert resolve_kind("phone") == FieldKind.TEL
        assert resolve_kind("checkbox") == FieldKind.MULTI_CHOICE
        assert resolve_kind("checkbox-group") == FieldKind.MULTI_CHOICE

    def test_text_defaults(self):
        field_type = lookup("text")
        assert field_type.default_label == "Full Name"
        assert field_type.default_placeholder == "Enter your name"
        assert field_type.category == FieldCategory.BASIC


class TestDefaultOptions:
    """Test default option sets."""

    def test_education_level_fixed_set(self):
        options = default_options_for("education-level")
        assert [o.value for o in options] == ["slc", "plus2", "bachelor", "master", "phd"]

    def test_proficiency_level_fixed_set(self):
        options = default_options_for("proficiency-level")
        assert len(options) == 6
        assert options[0].label == "Beginner (A1)"

    @pytest.mark.parametrize("type_id", ["select", "multi-choice", "radio", "multiselect"])
    def test_generic_choice_gets_single_placeholder(self, type_id):
        options = default_options_for(type_id)
        assert len(options) == 1
        assert options[0].id == "opt1"
        assert options[0].label == "Option 1"

    @pytest.mark.parametrize("type_id", ["text", "email", "file", "file-or-url", "select-fetch"])
    def test_non_choice_types_get_no_options(self, type_id):
        assert default_options_for(type_id) == []

    def test_returns_fresh_copies(self):
        first = default_options_for("time-preference")
        first[0].label = "changed"
        second = default_options_for("time-preference")
        assert second[0].label == "Morning (6:00 AM - 8:00 AM)"

    def test_every_choice_kind_has_options(self):
        for kind in CHOICE_KINDS:
            assert default_options_for(kind.value), kind


class TestClassification:
    """Test choice/category helpers."""

    def test_is_choice_like(self):
        assert is_choice_like("select")
        assert is_choice_like("education-level")
        assert is_choice_like("checkbox")
        assert not is_choice_like("text")
        assert not is_choice_like("select-fetch")
        assert not is_choice_like("unknown-kind")

    def test_is_generic_choice(self):
        assert is_generic_choice("radio")
        assert not is_generic_choice("language-selection")
        assert not is_generic_choice("unknown-kind")

    def test_grouping_covers_every_kind_once(self):
        grouped = field_types_by_category()
        seen = [ft.type_id for types in grouped.values() for ft in types]
        assert sorted(seen) == sorted(FieldKind)
        assert len(all_field_types()) == len(FieldKind)

    def test_consultancy_category(self):
        grouped = field_types_by_category()
        kinds = {ft.type_id for ft in grouped[FieldCategory.CONSULTANCY]}
        assert kinds == {
            FieldKind.LANGUAGE_SELECTION,
            FieldKind.PROFICIENCY_LEVEL,
            FieldKind.EDUCATION_LEVEL,
            FieldKind.TIME_PREFERENCE,
        }

    def test_multi_valued_flag(self):
        assert lookup("multi-choice").is_multi_valued
        assert not lookup("select").is_multi_valued


class TestUploadPurposes:
    """Test accepted file types per upload purpose."""

    def test_transcripts_pdf_only(self):
        assert accept_types_for("transcripts") == ".pdf"
        assert file_type_display("transcripts") == "PDF only"

    def test_unknown_purpose_uses_default(self):
        assert accept_types_for(None) == ".pdf,.doc,.docx,.jpg,.jpeg,.png"
        assert accept_types_for("selfies") == accept_types_for(None)

    def test_any_accepts_everything(self):
        assert accept_types_for("any") == ""
