"""
Registration error hierarchy with categorization.

This module defines the error types used throughout the registration job,
providing clear categorization and guidance for resolving failures. Every
error is fatal to the run; recovery relies on re-running the job.
"""


class RegistrationError(Exception):
    """
    Base error class for all registration-related exceptions.

    Provides categorization and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        user_action: str | None = None,
    ):
        """
        Initialize registration error.

        Args:
            message: Human-readable error description
            category: Error category (validation, external, timeout, configuration)
            user_action: What user should do to resolve the issue
        """
        super().__init__(message)
        self.category = category
        self.user_action = user_action

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class FormatError(RegistrationError):
    """Malformed command-line input, such as a bad label specification."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        action = user_action or "Use the format key1=value1,key2=value2"
        if field:
            message = f"Format error in '{field}': {message}"
        super().__init__(message=message, category="validation", user_action=action)


class KubernetesAPIError(RegistrationError):
    """Error communicating with the Kubernetes API."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        user_action: str | None = None,
    ):
        if reason:
            message = f"{message} (reason: {reason})"

        if status in (401, 403):
            action = user_action or "Check RBAC permissions of the job ServiceAccount"
        else:
            action = user_action or "Check cluster connectivity and re-run the job"

        super().__init__(
            message=f"Kubernetes API error: {message}",
            category="external",
            user_action=action,
        )
        self.reason = reason
        self.status = status


class TokenTimeoutError(RegistrationError, TimeoutError):
    """Service account token was not populated within the polling budget."""

    def __init__(self, message: str, attempts: int):
        super().__init__(
            message=message,
            category="timeout",
            user_action=(
                "Check that the token controller is running, or use the "
                "TokenRequest API by omitting --service-account-token"
            ),
        )
        self.attempts = attempts


class ConfigurationError(RegistrationError):
    """Error in job configuration or local environment."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="configuration",
            user_action=user_action or "Review and correct configuration",
        )


class RegistrationCancelledError(RegistrationError):
    """The run was interrupted by a termination signal."""

    def __init__(self, message: str = "Registration cancelled"):
        super().__init__(message=message, category="cancelled")
