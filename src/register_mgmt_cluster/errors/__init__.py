"""
Error handling module for the registration job.

This module provides the error hierarchy used to classify failures of a run.
Already-exists and not-found API responses are not errors; they are consumed
locally by the upsert helpers.
"""

from .registration_errors import (
    ConfigurationError,
    FormatError,
    KubernetesAPIError,
    RegistrationCancelledError,
    RegistrationError,
    TokenTimeoutError,
)

__all__ = [
    "RegistrationError",
    "FormatError",
    "KubernetesAPIError",
    "TokenTimeoutError",
    "ConfigurationError",
    "RegistrationCancelledError",
]
