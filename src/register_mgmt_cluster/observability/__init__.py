"""
Observability utilities for the registration job.

This module provides structured logging and run metrics for
troubleshooting failed registrations.
"""

from .logging import RegistrationLogger, configure_logging
from .metrics import RunMetrics

__all__ = [
    "RegistrationLogger",
    "RunMetrics",
    "configure_logging",
]
