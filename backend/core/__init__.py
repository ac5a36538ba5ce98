"""Core package - Shared configuration, logging, and errors."""

from .config import Settings, get_settings, ml_available
from .errors import (
    ApproachError,
    InvalidInputError,
    UnknownApproachError,
    UnsupportedOperationError,
    CollaboratorError,
    SearchError,
    GenerationError,
    ConfigurationError,
)
from .logging import setup_logging, log_latency

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "ml_available",
    # Errors
    "ApproachError",
    "InvalidInputError",
    "UnknownApproachError",
    "UnsupportedOperationError",
    "CollaboratorError",
    "SearchError",
    "GenerationError",
    "ConfigurationError",
    # Logging
    "setup_logging",
    "log_latency",
]
