"""
Run configuration for a management cluster registration.

The configuration is assembled once from command-line flags and environment
settings, frozen, and passed explicitly to the registrar.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from register_mgmt_cluster.constants import (
    DEFAULT_CLUSTER_NAME,
    DEFAULT_CLUSTER_NAMESPACE,
    DEFAULT_TOKEN_EXPIRATION_SECONDS,
    DEFAULT_TOKEN_POLL_ATTEMPTS,
    DEFAULT_TOKEN_POLL_INTERVAL_SECONDS,
    KUBECONFIG_SECRET_SUFFIX,
    RENEWAL_INTERVAL_SECONDS,
    SVELTOS_CLUSTER_ROLE_BINDING_NAME,
    SVELTOS_CLUSTER_ROLE_NAME,
    SVELTOS_IDENTITY_NAME,
    SVELTOS_IDENTITY_NAMESPACE,
)


class RegistrationConfig(BaseModel):
    """Immutable inputs of one registration run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # SveltosCluster representing the management cluster
    cluster_namespace: str = Field(
        DEFAULT_CLUSTER_NAMESPACE,
        min_length=1,
        description="Namespace of the SveltosCluster and its kubeconfig Secret",
    )
    cluster_name: str = Field(
        DEFAULT_CLUSTER_NAME, min_length=1, description="Name of the SveltosCluster"
    )
    labels: dict[str, str] | None = Field(
        None, description="Labels merged into the SveltosCluster"
    )

    # Identity used by Sveltos to reach the management cluster
    identity_namespace: str = Field(SVELTOS_IDENTITY_NAMESPACE, min_length=1)
    identity_name: str = Field(SVELTOS_IDENTITY_NAME, min_length=1)
    cluster_role_name: str = Field(SVELTOS_CLUSTER_ROLE_NAME, min_length=1)
    cluster_role_binding_name: str = Field(
        SVELTOS_CLUSTER_ROLE_BINDING_NAME, min_length=1
    )

    # Token acquisition
    service_account_token: bool = Field(
        False,
        description=(
            "Use a kubernetes.io/service-account-token Secret instead of the "
            "TokenRequest API"
        ),
    )
    token_expiration_seconds: int = Field(DEFAULT_TOKEN_EXPIRATION_SECONDS, ge=0)
    token_poll_attempts: int = Field(DEFAULT_TOKEN_POLL_ATTEMPTS, ge=1)
    token_poll_interval_seconds: float = Field(
        DEFAULT_TOKEN_POLL_INTERVAL_SECONDS, ge=0
    )

    renewal_interval_seconds: int = Field(RENEWAL_INTERVAL_SECONDS, gt=0)

    @field_validator("labels")
    @classmethod
    def _freeze_labels(cls, value: dict[str, str] | None) -> dict[str, str] | None:
        # Copy so later mutation of the caller's dict cannot leak in
        return dict(value) if value is not None else None

    @property
    def kubeconfig_secret_name(self) -> str:
        """Name of the Secret holding the generated kubeconfig."""
        return f"{self.cluster_name}{KUBECONFIG_SECRET_SUFFIX}"
