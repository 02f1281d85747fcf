"""LayoutGuard package."""

from layoutguard.exceptions import (
    CurrencyMismatchError,
    IdentifierError,
    LayoutStoreError,
    PackageError,
    RuleDefinitionError,
    SchemaDefinitionError,
    SettingsError,
    ShardExecutionError,
    UnknownFileTypeError,
)
from layoutguard.logging import configure_logging, get_logger
from layoutguard.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("layoutguard")

__all__ = [
    "CurrencyMismatchError",
    "IdentifierError",
    "LayoutStoreError",
    "PackageError",
    "RuleDefinitionError",
    "SchemaDefinitionError",
    "Settings",
    "SettingsError",
    "ShardExecutionError",
    "UnknownFileTypeError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
]
