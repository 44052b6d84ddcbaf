"""
Computed-field resolution.

A computed field derives its value from other fields' current values
through exactly one strategy:
- FunctionStrategy: a pure function of the whole value map
- TemplateStrategy: "{name}" placeholders filled from the value map
- ConcatStrategy:   dependency values joined with a separator

Resolution is one hop: computed fields may only depend on plain input
fields. validate_computed_specs() rejects self-references, unknown
dependencies and computed-on-computed chains when a schema is loaded,
so resolve_computed_fields() never has to order evaluations. Every
strategy reads the same input snapshot, which makes the result
independent of evaluation order.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from form_engine.errors import DependencyError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


def is_filled(value: Any) -> bool:
    """True when a value counts as present (not None, blank string or empty list)."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    return True


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


@dataclass(frozen=True)
class FunctionStrategy:
    function: Callable[[Mapping[str, Any]], Any]

    def compute(self, values: Mapping[str, Any], depends_on: Tuple[str, ...]) -> Any:
        return self.function(values)


@dataclass(frozen=True)
class TemplateStrategy:
    template: str

    def compute(self, values: Mapping[str, Any], depends_on: Tuple[str, ...]) -> Any:
        return PLACEHOLDER_PATTERN.sub(lambda match: _as_text(values.get(match.group(1))), self.template)


@dataclass(frozen=True)
class ConcatStrategy:
    separator: str = ""

    def compute(self, values: Mapping[str, Any], depends_on: Tuple[str, ...]) -> Any:
        parts = [_as_text(values.get(name)) for name in depends_on if is_filled(values.get(name))]
        return self.separator.join(parts)


Strategy = Union[FunctionStrategy, TemplateStrategy, ConcatStrategy]


@dataclass(frozen=True)
class ComputedFieldSpec:
    """Render-time annotation making a field's value derived.

    Attributes:
        depends_on: Names of the input fields the value is derived from.
        strategy: How the value is derived.
    """

    depends_on: Tuple[str, ...]
    strategy: Strategy

    @classmethod
    def from_function(
        cls, depends_on: Iterable[str], function: Callable[[Mapping[str, Any]], Any]
    ) -> "ComputedFieldSpec":
        return cls(tuple(depends_on), FunctionStrategy(function))

    @classmethod
    def from_template(cls, template: str, depends_on: Optional[Iterable[str]] = None) -> "ComputedFieldSpec":
        """Template spec; dependencies default to the template's placeholders."""
        if depends_on is None:
            depends_on = dict.fromkeys(PLACEHOLDER_PATTERN.findall(template))
        return cls(tuple(depends_on), TemplateStrategy(template))

    @classmethod
    def concat(cls, depends_on: Iterable[str], separator: str = "") -> "ComputedFieldSpec":
        return cls(tuple(depends_on), ConcatStrategy(separator))

    @classmethod
    def from_config(cls, field_name: str, config: Mapping[str, Any]) -> "ComputedFieldSpec":
        """Build a spec from a serialisable annotation.

        Accepted shapes::

            {"template": "https://flagcdn.com/w80/{code}.png"}
            {"dependsOn": ["first", "last"], "concat": {"separator": " "}}

        Raises:
            DependencyError: If the mapping names no usable strategy.
        """
        depends_on = config.get("dependsOn", config.get("depends_on"))
        if isinstance(depends_on, str):
            depends_on = [depends_on]
        if "template" in config:
            return cls.from_template(str(config["template"]), depends_on)
        if "concat" in config:
            concat = config["concat"] or {}
            separator = concat.get("separator", "") if isinstance(concat, Mapping) else str(concat)
            if not depends_on:
                raise DependencyError(field_name, "concat strategy needs dependsOn")
            return cls.concat(depends_on, separator)
        raise DependencyError(field_name, "annotation must define 'template' or 'concat'")

    def is_satisfied(self, values: Mapping[str, Any]) -> bool:
        return all(is_filled(values.get(name)) for name in self.depends_on)

    def compute(self, values: Mapping[str, Any]) -> Any:
        return self.strategy.compute(values, self.depends_on)


@dataclass(frozen=True)
class ComputedResolution:
    """Result of one resolution pass.

    Attributes:
        values: The updated value map (a new dict).
        computed: Names whose current value came from their strategy.
        changed: Names whose value was written in this pass.
    """

    values: Dict[str, Any]
    computed: FrozenSet[str]
    changed: FrozenSet[str]


def validate_computed_specs(specs: Mapping[str, ComputedFieldSpec], field_names: Iterable[str]) -> None:
    """Fail fast on computed-field configurations resolution cannot honour.

    Raises:
        DependencyError: Naming the first offending field (sorted by name).
    """
    known = set(field_names)
    for name in sorted(specs):
        spec = specs[name]
        if name not in known:
            raise DependencyError(name, "annotates a field that is not in the schema")
        if not spec.depends_on:
            raise DependencyError(name, "declares no dependencies")
        for dependency in spec.depends_on:
            if dependency == name:
                raise DependencyError(name, "depends on itself")
            if dependency not in known:
                raise DependencyError(name, f"depends on unknown field '{dependency}'")
            if dependency in specs:
                raise DependencyError(
                    name, f"depends on computed field '{dependency}' (only one hop is supported)"
                )


def resolve_computed_fields(
    values: Mapping[str, Any],
    specs: Mapping[str, ComputedFieldSpec],
    previously_computed: Iterable[str] = (),
    blanks: Optional[Mapping[str, Any]] = None,
) -> ComputedResolution:
    """Recompute every computed field from one value-map snapshot.

    For each spec whose dependencies are all filled, the strategy result
    is written only when it differs from the current value. A field that
    was computed before and whose dependencies are no longer satisfied is
    cleared back to an editable blank value.

    Args:
        values: Current value map (not modified).
        specs: Computed annotations by field name.
        previously_computed: Names that held a computed value before this pass.
        blanks: Cleared value per field (``""`` for fields not listed).

    Returns:
        ComputedResolution with the new map and bookkeeping sets.
    """
    snapshot = dict(values)
    result = dict(values)
    previous = set(previously_computed)
    computed = set()
    changed = set()

    for name in sorted(specs):
        spec = specs[name]
        new_value = None
        if spec.is_satisfied(snapshot):
            try:
                new_value = spec.compute(snapshot)
            except Exception as e:
                # A faulty compute function must not break the form
                logger.error(f"Computing field '{name}' failed: {e}")
                new_value = None

        if is_filled(new_value):
            computed.add(name)
            if snapshot.get(name) != new_value:
                result[name] = new_value
                changed.add(name)
        elif name in previous and is_filled(snapshot.get(name)):
            blank = (blanks or {}).get(name, "")
            result[name] = list(blank) if isinstance(blank, list) else blank
            changed.add(name)

    return ComputedResolution(values=result, computed=frozenset(computed), changed=frozenset(changed))
