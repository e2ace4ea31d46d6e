# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version as _version

try:
    version = _version("pandas-ta-live")
except PackageNotFoundError:
    version = "0.0.0"

from loguru import logger as _logger

from pandas_ta_live.errors import *
from pandas_ta_live.errors import __all__ as errors_all
from pandas_ta_live.bars import PRICE_FIELDS, Bar, BarSeries, validate_bar, validate_series
from pandas_ta_live.params import (
    PRICE_SOURCES,
    ParamSchema,
    ParamSpec,
    ParameterSet,
    make_parameter_set,
    parse_parameter_set,
)
from pandas_ta_live.channels import Channel, Point, channels_to_frame
from pandas_ta_live.stateful import *
from pandas_ta_live.stateful import __all__ as stateful_all
from pandas_ta_live.engine import ComputationEngine
from pandas_ta_live.log import setup_logger

# Library default: silent until the application opts in.
_logger.disable("pandas_ta_live")

__all__ = [
    "version",
    "PRICE_FIELDS",
    "PRICE_SOURCES",
    "Bar",
    "BarSeries",
    "validate_bar",
    "validate_series",
    "ParamSchema",
    "ParamSpec",
    "ParameterSet",
    "make_parameter_set",
    "parse_parameter_set",
    "Channel",
    "Point",
    "channels_to_frame",
    "ComputationEngine",
    "setup_logger",
]

__all__ += errors_all + stateful_all
