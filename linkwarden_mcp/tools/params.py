"""Argument coercion, validation and parameter mapping for tool handlers.

Tool arguments arrive as an untyped mapping decoded from JSON. Handlers pull
typed values out of it through a `Validator`, which collects every failure
instead of stopping at the first one, then copy the validated values into a
backend request model with `set_optional_parameters` / `build_params`.
"""
import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

from .registry import ToolResult

logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

ModelT = TypeVar("ModelT", bound=BaseModel)


class ValueKind(str, enum.Enum):
    STRING = "string"
    INT = "integer"
    FLOAT = "number"
    BOOL = "boolean"
    ARRAY = "array"
    MAP = "object"


class ParameterError(ValueError):
    """A single argument could not be extracted."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class MissingParameter(ParameterError):
    def __init__(self, name: str):
        super().__init__(name, f"missing required parameter: {name}")


class TypeMismatch(ParameterError):
    def __init__(self, name: str, kind: ValueKind):
        super().__init__(name, f"invalid parameter type: {name} (expected {kind.value})")
        self.kind = kind


# ──────────────────────────────────────────────────────────
# Coercion engine
# ──────────────────────────────────────────────────────────

_NO_VALUE = object()


def _to_string(value):
    return value if isinstance(value, str) else _NO_VALUE


def _to_int(value):
    # bool is a subclass of int; JSON true/false is never an integer
    if isinstance(value, bool):
        return _NO_VALUE
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return _NO_VALUE
        result = int(value)
    else:
        return _NO_VALUE
    if result < INT64_MIN or result > INT64_MAX:
        return _NO_VALUE
    return result


def _to_float(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return _NO_VALUE
    result = float(value)
    return result if math.isfinite(result) else _NO_VALUE


def _to_bool(value):
    return value if isinstance(value, bool) else _NO_VALUE


def _to_array(value):
    if isinstance(value, (list, tuple)):
        return list(value)
    return _NO_VALUE


def _to_map(value):
    if isinstance(value, Mapping) and all(isinstance(k, str) for k in value):
        return dict(value)
    return _NO_VALUE


_CONVERTERS = {
    ValueKind.STRING: _to_string,
    ValueKind.INT: _to_int,
    ValueKind.FLOAT: _to_float,
    ValueKind.BOOL: _to_bool,
    ValueKind.ARRAY: _to_array,
    ValueKind.MAP: _to_map,
}


def extract_value(args: Any, name: str, required: bool, kind: ValueKind) -> Optional[Any]:
    """Pull `name` out of `args` as a value of `kind`.

    Returns None when an optional parameter is absent (a JSON null counts as
    absent). Raises MissingParameter or TypeMismatch otherwise.
    """
    if not isinstance(args, Mapping):
        raise ParameterError(name, "invalid arguments type")

    value = args.get(name)
    if value is None:
        if required:
            raise MissingParameter(name)
        return None
    return coerce_value(name, value, kind)


def coerce_value(name: str, value: Any, kind: ValueKind) -> Any:
    """Convert a single decoded JSON value to `kind`, or raise TypeMismatch."""
    converted = _CONVERTERS[kind](value)
    if converted is _NO_VALUE:
        raise TypeMismatch(name, kind)
    return converted


# ──────────────────────────────────────────────────────────
# Validator
# ──────────────────────────────────────────────────────────

class Validator:
    """Fluent, fail-slow argument validator for one tool invocation.

    Every ``required_*``/``optional_*`` call extracts one argument and, on
    success, writes it into the caller's dict. Failures are queued and
    reported together by `handle_errors_if_any`.
    """

    def __init__(self, arguments: Any):
        self.arguments = arguments
        self.errors: List[ParameterError] = []
        # a non-object bag is reported once; every later extraction is skipped
        self.valid_bag = isinstance(arguments, Mapping)
        if not self.valid_bag:
            self.errors.append(ParameterError("arguments", "invalid arguments type"))

    def _add_error(self, err: ParameterError) -> "Validator":
        self.errors.append(err)
        return self

    def handle_errors_if_any(self) -> Optional[ToolResult]:
        """Render queued failures as one error result, or None if there are none."""
        if not self.errors:
            return None
        message = "Validation errors:\n- " + "\n- ".join(str(e) for e in self.errors)
        logger.info(f"Rejected tool arguments: {len(self.errors)} error(s)")
        return ToolResult.error(message)

    # generic forms

    def add(self, params: Dict[str, Any], name: str, kind: ValueKind, required: bool = False) -> "Validator":
        if not self.valid_bag:
            return self
        try:
            value = extract_value(self.arguments, name, required, kind)
        except ParameterError as e:
            return self._add_error(e)
        if value is not None:
            params[name] = value
        return self

    def add_to_path(self, target: Dict[str, Any], param_name: str, target_key: str,
                    kind: ValueKind) -> "Validator":
        """Extract an optional argument and store it under a different key."""
        if not self.valid_bag:
            return self
        try:
            value = extract_value(self.arguments, param_name, False, kind)
        except ParameterError as e:
            return self._add_error(e)
        if value is not None:
            target[target_key] = value
        return self

    # typed shorthands

    def required_string(self, params, name):
        return self.add(params, name, ValueKind.STRING, required=True)

    def optional_string(self, params, name):
        return self.add(params, name, ValueKind.STRING)

    def required_int(self, params, name):
        return self.add(params, name, ValueKind.INT, required=True)

    def optional_int(self, params, name):
        return self.add(params, name, ValueKind.INT)

    def required_float(self, params, name):
        return self.add(params, name, ValueKind.FLOAT, required=True)

    def optional_float(self, params, name):
        return self.add(params, name, ValueKind.FLOAT)

    def required_bool(self, params, name):
        return self.add(params, name, ValueKind.BOOL, required=True)

    def optional_bool(self, params, name):
        return self.add(params, name, ValueKind.BOOL)

    def required_array(self, params, name):
        return self.add(params, name, ValueKind.ARRAY, required=True)

    def optional_array(self, params, name):
        return self.add(params, name, ValueKind.ARRAY)

    def required_map(self, params, name):
        return self.add(params, name, ValueKind.MAP, required=True)

    def optional_map(self, params, name):
        return self.add(params, name, ValueKind.MAP)

    def optional_string_to_path(self, target, param_name, target_key):
        return self.add_to_path(target, param_name, target_key, ValueKind.STRING)

    def optional_int_to_path(self, target, param_name, target_key):
        return self.add_to_path(target, param_name, target_key, ValueKind.INT)

    def optional_bool_to_path(self, target, param_name, target_key):
        return self.add_to_path(target, param_name, target_key, ValueKind.BOOL)

    def pagination(self, params: Dict[str, Any]) -> "Validator":
        return self.optional_int(params, "count").optional_int(params, "skip")

    def add_array_of(self, params: Dict[str, Any], name: str, item_kind: ValueKind,
                     required: bool = False, target_key: Optional[str] = None) -> "Validator":
        """Extract an array whose every item must be of `item_kind`.

        Each bad item is reported on its own (``name[i]``); the array is only
        stored when all items convert.
        """
        if not self.valid_bag:
            return self
        try:
            values = extract_value(self.arguments, name, required, ValueKind.ARRAY)
        except ParameterError as e:
            return self._add_error(e)
        if values is None:
            return self

        items, failed = [], False
        for i, value in enumerate(values):
            try:
                items.append(coerce_value(f"{name}[{i}]", value, item_kind))
            except ParameterError as e:
                self._add_error(e)
                failed = True
        if not failed:
            params[target_key or name] = items
        return self

    def required_int_array(self, params, name):
        return self.add_array_of(params, name, ValueKind.INT, required=True)

    def expand(self, params: Dict[str, Any]) -> "Validator":
        """Validate the repeatable ``expand`` argument (a list of strings).

        All values are kept, as a list under ``expand[]``, so the query
        string repeats the key once per value.
        """
        values: Dict[str, Any] = {}
        self.add_array_of(values, "expand", ValueKind.STRING)
        if values.get("expand"):
            params["expand[]"] = values["expand"]
        return self


# ──────────────────────────────────────────────────────────
# Parameter mapper
# ──────────────────────────────────────────────────────────

class FieldType(str, enum.Enum):
    STRING = "string"
    INT = "int"
    INT64 = "int64"
    FLOAT64 = "float64"
    BOOL = "bool"


def _field_value(field_type: FieldType, value: Any):
    if field_type is FieldType.STRING:
        return value if isinstance(value, str) else _NO_VALUE
    if field_type in (FieldType.INT, FieldType.INT64):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return _NO_VALUE
    if field_type is FieldType.FLOAT64:
        return value if isinstance(value, float) else _NO_VALUE
    if field_type is FieldType.BOOL:
        return value if isinstance(value, bool) else _NO_VALUE
    raise AssertionError(f"unhandled field type: {field_type}")


@dataclass(frozen=True)
class ParameterMapping:
    """Copy validated ``key`` into request field ``field`` as ``type``."""

    key: str
    field: str
    type: FieldType

    def __post_init__(self):
        # accepts the plain tag strings ("int", "bool", ...) and rejects the rest
        object.__setattr__(self, "type", FieldType(self.type))


def set_optional_parameters(params: Mapping[str, Any], mappings: List[ParameterMapping],
                            target: Dict[str, Any]) -> Dict[str, Any]:
    """Copy each present, correctly typed key from `params` into `target`.

    Keys that are absent (or hold a value of another type) are left out of
    `target` entirely, so the request model keeps the field unset.
    """
    for mapping in mappings:
        if mapping.key not in params:
            continue
        value = _field_value(mapping.type, params[mapping.key])
        if value is not _NO_VALUE:
            target[mapping.field] = value
    return target


def build_params(model: Type[ModelT], params: Mapping[str, Any],
                 mappings: List[ParameterMapping]) -> ModelT:
    """Build `model` from the mapped subset of `params`."""
    for mapping in mappings:
        if mapping.field not in model.model_fields:
            raise ValueError(f"{model.__name__} has no field {mapping.field!r}")
    values = set_optional_parameters(params, mappings, {})
    return model(**values)
