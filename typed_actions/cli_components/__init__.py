"""CLI components for output formatting and result aggregation.

Formatters turn diagnostics and command payloads into text or JSON; the
aggregator counts diagnostics and decides the exit code.
"""

from .output_formatter import ColoredFormatter, JsonFormatter, OutputFormatter
from .result_aggregator import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
    ResultAggregator,
    StandardResultAggregator,
)

__all__ = [
    "ColoredFormatter",
    "EXIT_FAILURE",
    "EXIT_OK",
    "EXIT_USAGE",
    "JsonFormatter",
    "OutputFormatter",
    "ResultAggregator",
    "StandardResultAggregator",
]
