"""
Shared infrastructure: errors, reporting, symbol tables and configuration.
"""

from .errors import InvalidArgumentError, DuplicateAssignmentError, UnknownSymbolError
from .reporting import (
    LogLevel,
    Reporter,
    SilentReporter,
    StreamReporter,
    JsonlReporter,
    TeeReporter,
    Reporters,
    resolve_reporter,
)
from .symbols import SymbolTable, MapSymbolTable, UNKNOWN_SYMBOL_ID
from .config import KMeansConfig, DEFAULT_CONFIG, load_config, validate_parameters

__all__ = [
    # Errors
    "InvalidArgumentError",
    "DuplicateAssignmentError",
    "UnknownSymbolError",
    # Reporting
    "LogLevel",
    "Reporter",
    "SilentReporter",
    "StreamReporter",
    "JsonlReporter",
    "TeeReporter",
    "Reporters",
    "resolve_reporter",
    # Symbols
    "SymbolTable",
    "MapSymbolTable",
    "UNKNOWN_SYMBOL_ID",
    # Config
    "KMeansConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "validate_parameters",
]
