# -*- coding: utf-8 -*-
"""pandas-ta-live -- indicator Parameter Sets.

A raw configuration ``{id, type, enabled, parameters}`` is resolved once, at
configuration time, into a ParameterSet whose ``params`` is the frozen
dataclass declared by the indicator family (SMAParams, MACDParams, ...).
Calculators never re-parse loose mappings on the compute path.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from loguru import logger

from .errors import (
    ConfigError,
    InvalidParameterCombination,
    MissingParameter,
    ParameterOutOfRange,
    UnknownIndicatorType,
)

PRICE_SOURCES: Tuple[str, ...] = (
    "close", "open", "high", "low", "hl2", "hlc3", "ohlc4", "volume",
)

# Alternate type names accepted on input, resolved to the registered kind.
TYPE_ALIASES: Dict[str, str] = {
    "bb": "bbands",
    "bollinger": "bbands",
}


class _Required:
    """Sentinel default of a required parameter (survives copy/deepcopy)."""

    def __repr__(self) -> str:
        return "<required>"

    def __copy__(self) -> "_Required":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "_Required":
        return self


_REQUIRED = _Required()


# ---------------------------------------------------------------------------
# Parameter schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParamSpec:
    """One declared parameter of an indicator family.

    ``key`` is the public (camelCase) name, ``attr`` the dataclass field.
    A spec without a default is required.
    """
    key:     str
    attr:    str
    kind:    str                        # "int" | "float" | "choice"
    default: Any = _REQUIRED
    label:   str = ""
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_exclusive: bool = False
    options: Tuple[str, ...] = ()

    @property
    def required(self) -> bool:
        return self.default is _REQUIRED

    def coerce(self, value: Any) -> Any:
        if self.kind == "int":
            value = _coerce_int(self.key, value)
        elif self.kind == "float":
            value = _coerce_float(self.key, value)
        elif self.kind == "choice":
            if not isinstance(value, str) or value.strip().lower() not in self.options:
                raise ParameterOutOfRange(
                    self.key, value, f"expected one of {', '.join(self.options)}"
                )
            return value.strip().lower()
        else:
            raise ConfigError(f"[X] unsupported parameter kind: {self.kind}")

        name = self.label or self.key
        if self.minimum is not None:
            if self.min_exclusive and value <= self.minimum:
                raise ParameterOutOfRange(self.key, value, f"{name} must be > {self.minimum}")
            if not self.min_exclusive and value < self.minimum:
                raise ParameterOutOfRange(self.key, value, f"{name} must be >= {self.minimum}")
        if self.maximum is not None and value > self.maximum:
            raise ParameterOutOfRange(self.key, value, f"{name} must be <= {self.maximum}")
        return value


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ParameterOutOfRange(key, value, "expected an integer")
    if isinstance(value, Integral):
        return int(value)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ParameterOutOfRange(key, value, "expected an integer") from None
    if isinstance(value, Real) and math.isfinite(value) and float(value).is_integer():
        return int(value)
    raise ParameterOutOfRange(key, value, "expected an integer")


def _coerce_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ParameterOutOfRange(key, value, "expected a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ParameterOutOfRange(key, value, "expected a number") from None
    if isinstance(value, Real) and math.isfinite(value):
        return float(value)
    raise ParameterOutOfRange(key, value, "expected a finite number")


def source_spec() -> ParamSpec:
    return ParamSpec("source", "source", "choice", "close", "Price Source", options=PRICE_SOURCES)


def period_spec(default: int, maximum: int, label: str = "Period") -> ParamSpec:
    return ParamSpec("period", "period", "int", default, label, minimum=1, maximum=maximum)


@dataclass(frozen=True)
class ParamSchema:
    """Declared parameters of a family + the typed dataclass they fill."""
    specs:  Tuple[ParamSpec, ...]
    cls:    Type[Any]
    check:  Optional[Callable[[Any], None]] = None

    def defaults(self) -> Dict[str, Any]:
        return {s.key: s.default for s in self.specs if not s.required}

    def parse(self, kind: str, raw: Optional[Mapping[str, Any]]) -> Any:
        """Coerce, bounds-check and default *raw* into ``self.cls``."""
        remaining = dict(raw or {})
        values: Dict[str, Any] = {}
        for spec in self.specs:
            given = {k: remaining.pop(k) for k in (spec.key, spec.attr) if k in remaining}
            given = {k: v for k, v in given.items() if v is not None}
            if len(given) == 2 and given[spec.key] != given[spec.attr]:
                raise InvalidParameterCombination(
                    f"[X] '{spec.key}' given twice: {given[spec.key]!r} and {given[spec.attr]!r}"
                )
            if given:
                values[spec.attr] = spec.coerce(next(iter(given.values())))
            elif spec.required:
                raise MissingParameter(spec.key, kind)
            else:
                values[spec.attr] = spec.default
        if remaining:
            logger.warning("{}: ignoring unknown parameters {}", kind, sorted(remaining))
        params = self.cls(**values)
        if self.check is not None:
            self.check(params)
        return params

    def to_mapping(self, params: Any) -> Dict[str, Any]:
        return {s.key: getattr(params, s.attr) for s in self.specs}


# ---------------------------------------------------------------------------
# Parameter Set
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParameterSet:
    """One configured indicator instance.

    ``type`` is the family tag and ``params`` the family dataclass, so field
    access (``ps.params.slow_period``) is checked once, here, and never again.
    """
    id:      str
    type:    str
    params:  Any
    enabled: bool = True

    def to_dict(self, registry: Any = None) -> Dict[str, Any]:
        """Inverse of :func:`parse_parameter_set`."""
        calc = _resolve(self.type, registry)
        return {
            "id": self.id,
            "type": self.type,
            "enabled": self.enabled,
            "parameters": calc.params.to_mapping(self.params),
        }


def _normalize_type(kind: str) -> str:
    kind = kind.strip().lower()
    return TYPE_ALIASES.get(kind, kind)


def _resolve(kind: str, registry: Any = None) -> Any:
    if registry is None:
        from .stateful import REGISTRY as registry
    calc = registry.get(kind)
    if calc is None:
        raise UnknownIndicatorType(kind)
    return calc


def make_parameter_set(
        id: str,
        type: str,
        parameters: Optional[Mapping[str, Any]] = None,
        enabled: bool = True,
        registry: Any = None,
) -> ParameterSet:
    """Validate one indicator instance configuration.

    Raises a ConfigError subclass; omitted parameters get family defaults.
    """
    if id is None or (isinstance(id, str) and not id.strip()):
        raise MissingParameter("id")
    if type is None or (isinstance(type, str) and not type.strip()):
        raise MissingParameter("type")
    if not isinstance(id, str):
        raise ParameterOutOfRange("id", id, "expected a string")
    if not isinstance(type, str):
        raise UnknownIndicatorType(type)
    if not isinstance(enabled, bool):
        raise ParameterOutOfRange("enabled", enabled, "expected a boolean")
    if parameters is not None and not isinstance(parameters, Mapping):
        raise ParameterOutOfRange("parameters", parameters, "expected a mapping")

    kind = _normalize_type(type)
    calc = _resolve(kind, registry)
    params = calc.params.parse(kind, parameters)
    return ParameterSet(id=id, type=kind, params=params, enabled=enabled)


def parse_parameter_set(raw: Mapping[str, Any], registry: Any = None) -> ParameterSet:
    """Validate a raw ``{id, type, enabled?, parameters?}`` mapping or a ParameterSet."""
    if isinstance(raw, ParameterSet):
        if not isinstance(raw.type, str):
            raise UnknownIndicatorType(raw.type)
        calc = _resolve(_normalize_type(raw.type), registry)
        if not isinstance(raw.params, calc.params.cls):
            raise ParameterOutOfRange(
                "parameters", raw.params, f"expected {calc.params.cls.__name__}"
            )
        # Built by hand: run the same checks as a raw mapping.
        return make_parameter_set(
            raw.id, raw.type, calc.params.to_mapping(raw.params), raw.enabled, registry
        )
    if not isinstance(raw, Mapping):
        raise ConfigError(f"[X] expected a parameter-set mapping, got {type(raw).__name__}")
    for key in ("id", "type"):
        if key not in raw:
            raise MissingParameter(key)
    return make_parameter_set(
        raw["id"],
        raw["type"],
        raw.get("parameters"),
        raw.get("enabled", True),
        registry,
    )
