"""Centralized job settings using pydantic-settings.

This module provides a single source of truth for the environment-driven
configuration of the registration job. Uses pydantic for automatic validation,
type coercion, and documentation. Per-run inputs (labels, registration name,
token strategy) come from the command line instead; see ``cli``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from register_mgmt_cluster.constants import (
    DEFAULT_CA_BUNDLE_PATH,
    DEFAULT_TOKEN_EXPIRATION_SECONDS,
    DEFAULT_TOKEN_POLL_ATTEMPTS,
    DEFAULT_TOKEN_POLL_INTERVAL_SECONDS,
)


class Settings(BaseSettings):
    """Job configuration loaded from environment variables.

    All settings have sensible defaults for running as an in-cluster Job.
    Override via environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    log_run_id: bool = Field(
        default=True,
        validation_alias="LOG_RUN_ID",
        description="Stamp every log line of a run with the same run ID",
    )

    # Cluster access
    ca_bundle_path: str = Field(
        default=DEFAULT_CA_BUNDLE_PATH,
        validation_alias="CA_BUNDLE_PATH",
        description="CA bundle embedded in the generated kubeconfig",
    )
    kube_context: str = Field(
        default="",
        validation_alias="KUBE_CONTEXT",
        description="Kubeconfig context used when not running in-cluster",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to every Kubernetes API request",
    )

    # Token acquisition
    token_expiration_seconds: int = Field(
        default=DEFAULT_TOKEN_EXPIRATION_SECONDS,
        ge=0,
        validation_alias="TOKEN_EXPIRATION_SECONDS",
        description="Requested lifetime of TokenRequest tokens (0 = server default)",
    )
    token_poll_attempts: int = Field(
        default=DEFAULT_TOKEN_POLL_ATTEMPTS,
        ge=1,
        validation_alias="TOKEN_POLL_ATTEMPTS",
        description="Reads of the token Secret before giving up",
    )
    token_poll_interval_seconds: float = Field(
        default=DEFAULT_TOKEN_POLL_INTERVAL_SECONDS,
        ge=0,
        validation_alias="TOKEN_POLL_INTERVAL_SECONDS",
        description="Delay between reads of the token Secret",
    )

    # Metrics
    pushgateway_url: str = Field(
        default="",
        validation_alias="PUSHGATEWAY_URL",
        description="Prometheus Pushgateway address (empty = do not push run metrics)",
    )
    pushgateway_job: str = Field(
        default="register-mgmt-cluster",
        validation_alias="PUSHGATEWAY_JOB",
        description="Job label used when pushing run metrics",
    )


# Global settings instance - initialized once at module import
settings = Settings()
