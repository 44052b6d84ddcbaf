"""Unit tests for computed-field specs and resolution."""

import logging

import pytest

from form_engine.errors import DependencyError
from form_engine.runtime.computed import (
    ComputedFieldSpec,
    is_filled,
    resolve_computed_fields,
    validate_computed_specs,
)

FLAG = ComputedFieldSpec.from_template("https://flagcdn.com/w80/{code}.png")


class TestIsFilled:
    """Test the presence check used for dependencies."""

    @pytest.mark.parametrize("value", [None, "", [], (), set()])
    def test_empty_values(self, value):
        assert not is_filled(value)

    @pytest.mark.parametrize("value", ["x", 0, False, ["a"], " "])
    def test_present_values(self, value):
        assert is_filled(value)


class TestStrategies:
    """Test the three computation strategies."""

    def test_template_dependencies_default_to_placeholders(self):
        spec = ComputedFieldSpec.from_template("{first}-{last}-{first}")
        assert spec.depends_on == ("first", "last")

    def test_template_substitution(self):
        assert FLAG.compute({"code": "de"}) == "https://flagcdn.com/w80/de.png"

    def test_concat_with_separator(self):
        spec = ComputedFieldSpec.concat(["first", "last"], separator=" ")
        assert spec.compute({"first": "Ada", "last": "Lovelace"}) == "Ada Lovelace"

    def test_function_sees_full_map(self):
        spec = ComputedFieldSpec.from_function(
            ["hours"], lambda values: f"{values['hours']}h @ {values['rate']}"
        )
        assert spec.compute({"hours": "3", "rate": "20"}) == "3h @ 20"

    def test_list_values_joined(self):
        spec = ComputedFieldSpec.from_template("{langs}")
        assert spec.compute({"langs": ["ielts", "pte"]}) == "ielts,pte"


class TestFromConfig:
    """Test building specs from serialisable annotations."""

    def test_template_config(self):
        spec = ComputedFieldSpec.from_config("flag", {"template": "https://x/{code}.png"})
        assert spec.depends_on == ("code",)

    def test_concat_config(self):
        spec = ComputedFieldSpec.from_config(
            "full", {"dependsOn": ["first", "last"], "concat": {"separator": ", "}}
        )
        assert spec.compute({"first": "a", "last": "b"}) == "a, b"

    def test_concat_requires_dependencies(self):
        with pytest.raises(DependencyError):
            ComputedFieldSpec.from_config("full", {"concat": {"separator": " "}})

    def test_no_strategy(self):
        with pytest.raises(DependencyError) as exc_info:
            ComputedFieldSpec.from_config("flag", {"dependsOn": ["code"]})
        assert exc_info.value.field_name == "flag"


class TestValidateSpecs:
    """Test fail-fast checks at schema load."""

    def test_valid(self):
        validate_computed_specs({"flag": FLAG}, ["code", "flag"])

    def test_self_dependency(self):
        spec = ComputedFieldSpec.from_template("{flag}/x")
        with pytest.raises(DependencyError) as exc_info:
            validate_computed_specs({"flag": spec}, ["flag"])
        assert exc_info.value.field_name == "flag"
        assert "depends on itself" in str(exc_info.value)

    def test_unknown_dependency(self):
        with pytest.raises(DependencyError, match="unknown field 'code'"):
            validate_computed_specs({"flag": FLAG}, ["flag"])

    def test_multi_hop_rejected(self):
        specs = {
            "flag": FLAG,
            "thumbnail": ComputedFieldSpec.from_template("{flag}?size=small"),
        }
        with pytest.raises(DependencyError) as exc_info:
            validate_computed_specs(specs, ["code", "flag", "thumbnail"])
        assert exc_info.value.field_name == "thumbnail"

    def test_annotation_on_missing_field(self):
        with pytest.raises(DependencyError):
            validate_computed_specs({"flag": FLAG}, ["code"])

    def test_no_dependencies(self):
        spec = ComputedFieldSpec.from_function([], lambda values: "x")
        with pytest.raises(DependencyError, match="no dependencies"):
            validate_computed_specs({"static": spec}, ["static"])


class TestResolve:
    """Test resolve_computed_fields()."""

    def test_writes_when_satisfied(self):
        result = resolve_computed_fields({"code": "fr", "flag": ""}, {"flag": FLAG})
        assert result.values["flag"] == "https://flagcdn.com/w80/fr.png"
        assert result.computed == {"flag"}
        assert result.changed == {"flag"}

    def test_input_map_not_modified(self):
        values = {"code": "fr", "flag": ""}
        resolve_computed_fields(values, {"flag": FLAG})
        assert values["flag"] == ""

    def test_idempotent(self):
        first = resolve_computed_fields({"code": "de", "flag": ""}, {"flag": FLAG})
        second = resolve_computed_fields(first.values, {"flag": FLAG}, first.computed)
        assert second.values == first.values
        assert second.changed == frozenset()
        assert second.computed == {"flag"}

    def test_reverts_when_dependency_cleared(self):
        first = resolve_computed_fields({"code": "de", "flag": ""}, {"flag": FLAG})
        cleared = dict(first.values, code="")
        result = resolve_computed_fields(cleared, {"flag": FLAG}, first.computed)
        assert result.values["flag"] == ""
        assert result.computed == frozenset()
        assert result.changed == {"flag"}

    def test_reverts_to_field_blank(self):
        tags = ComputedFieldSpec.concat(["level"])
        result = resolve_computed_fields(
            {"level": "", "tags": ["b1"]}, {"tags": tags}, {"tags"}, blanks={"tags": []}
        )
        assert result.values["tags"] == []
        assert result.changed == {"tags"}

    def test_user_value_kept_when_never_computed(self):
        result = resolve_computed_fields({"code": "", "flag": "https://my/flag.png"}, {"flag": FLAG})
        assert result.values["flag"] == "https://my/flag.png"
        assert result.changed == frozenset()

    def test_all_dependencies_required(self):
        spec = ComputedFieldSpec.concat(["first", "last"], " ")
        result = resolve_computed_fields({"first": "Ada", "last": "", "full": ""}, {"full": spec})
        assert result.values["full"] == ""
        assert result.computed == frozenset()

    def test_overlapping_specs_are_order_independent(self):
        specs_a = {
            "full": ComputedFieldSpec.concat(["first", "last"], " "),
            "handle": ComputedFieldSpec.from_template("@{first}{last}"),
        }
        specs_b = dict(reversed(list(specs_a.items())))
        values = {"first": "ada", "last": "l", "full": "", "handle": ""}
        assert resolve_computed_fields(values, specs_a).values == resolve_computed_fields(values, specs_b).values

    def test_failing_function_is_logged_not_raised(self, caplog):
        spec = ComputedFieldSpec.from_function(["code"], lambda values: 1 / 0)
        with caplog.at_level(logging.ERROR, logger="form_engine.runtime.computed"):
            result = resolve_computed_fields({"code": "x", "broken": ""}, {"broken": spec})
        assert result.values["broken"] == ""
        assert "broken" not in result.computed
        assert "Computing field 'broken' failed" in caplog.text
