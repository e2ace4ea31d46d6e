# -*- coding: utf-8 -*-
"""pandas-ta-live -- error taxonomy.

SeriesError   malformed input bars, fatal to the call
ConfigError   invalid / unknown indicator configuration, raised before
              any computation starts
NumericAnomaly  a warning category, never raised by the engine itself
"""
from __future__ import annotations

from typing import Any, Optional


class IndicatorError(Exception):
    """Base class of every error raised by pandas-ta-live."""


# ---------------------------------------------------------------------------
# Series errors
# ---------------------------------------------------------------------------

class SeriesError(IndicatorError):
    """The bar input is malformed."""

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


class EmptySeries(SeriesError):
    pass


class NonMonotonicTimestamp(SeriesError):
    pass


class NonFiniteField(SeriesError):
    def __init__(self, field: str, value: Any, index: Optional[int] = None) -> None:
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"[X] non-finite {field}={value!r}{where}", index)
        self.field = field
        self.value = value


class InvalidBar(SeriesError):
    """Missing field, non-numeric value or non-integral timestamp."""


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigError(IndicatorError):
    """An indicator Parameter Set was rejected."""


class UnknownIndicatorType(ConfigError):
    def __init__(self, kind: Any) -> None:
        super().__init__(f"[X] unknown indicator type: {kind!r}")
        self.kind = kind


class MissingParameter(ConfigError):
    def __init__(self, name: str, kind: Optional[str] = None) -> None:
        where = f" for '{kind}'" if kind else ""
        super().__init__(f"[X] missing parameter '{name}'{where}")
        self.name = name
        self.kind = kind


class ParameterOutOfRange(ConfigError):
    def __init__(self, name: str, value: Any, reason: str) -> None:
        super().__init__(f"[X] parameter '{name}'={value!r}: {reason}")
        self.name = name
        self.value = value


class InvalidParameterCombination(ConfigError):
    pass


class DuplicateInstance(ConfigError):
    pass


# ---------------------------------------------------------------------------
# Numeric anomalies
# ---------------------------------------------------------------------------

class NumericAnomaly(RuntimeWarning):
    """A non-finite value reached the channel boundary and was dropped."""


__all__ = [
    "IndicatorError",
    "SeriesError",
    "EmptySeries",
    "NonMonotonicTimestamp",
    "NonFiniteField",
    "InvalidBar",
    "ConfigError",
    "UnknownIndicatorType",
    "MissingParameter",
    "ParameterOutOfRange",
    "InvalidParameterCombination",
    "DuplicateInstance",
    "NumericAnomaly",
]
