"""Output formatting module."""

from .formatters import JSONFormatter, OutputFormatter, TableFormatter, get_formatter
from .response import (
    AnalysisReport,
    NotFoundReport,
    PrebondReport,
    ResponseFormatter,
    TokenReport,
)

__all__ = [
    "AnalysisReport",
    "NotFoundReport",
    "PrebondReport",
    "ResponseFormatter",
    "TokenReport",
    "OutputFormatter",
    "JSONFormatter",
    "TableFormatter",
    "get_formatter",
]
