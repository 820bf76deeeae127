"""Claims backend API client."""

from .client import ClaimsApiClient, DEFAULT_RPA_PATH, LEGACY_RPA_PATH

__all__ = ["ClaimsApiClient", "DEFAULT_RPA_PATH", "LEGACY_RPA_PATH"]
