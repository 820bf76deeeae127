"""Utility modules for configuration, logging, and error handling."""

from .config import Config
from .errors import ClaimsIntakeError, ErrorContext, ErrorType

__all__ = [
    'Config',
    'ClaimsIntakeError',
    'ErrorContext',
    'ErrorType'
]
