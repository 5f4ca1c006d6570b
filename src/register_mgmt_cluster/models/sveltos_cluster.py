"""
Pydantic models for the SveltosCluster custom resource.

Only the fields written by the registration job are modelled. Everything
else on the resource (status, readiness) is owned by Sveltos.
"""

from typing import Any

from pydantic import BaseModel, Field

from register_mgmt_cluster.constants import (
    SVELTOS_CLUSTER_GROUP,
    SVELTOS_CLUSTER_KIND,
    SVELTOS_CLUSTER_VERSION,
)


def format_go_duration(seconds: int) -> str:
    """
    Format whole seconds the way Go's time.Duration.String() does.

    The SveltosCluster API stores durations as metav1.Duration, which is
    serialised in this form (3600 -> "1h0m0s", 90 -> "1m30s").
    """
    if seconds < 0:
        raise ValueError("duration must not be negative")
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class TokenRequestRenewalOption(BaseModel):
    """How often Sveltos renews the token in the kubeconfig Secret."""

    model_config = {"populate_by_name": True}

    renew_token_request_interval: str = Field(
        ...,
        alias="renewTokenRequestInterval",
        description="Renewal period as a Go duration string",
    )


class SveltosClusterSpec(BaseModel):
    """Spec written to the SveltosCluster representing the management cluster."""

    model_config = {"populate_by_name": True}

    token_request_renewal_option: TokenRequestRenewalOption | None = Field(
        None, alias="tokenRequestRenewalOption"
    )

    @classmethod
    def with_renewal_interval(cls, seconds: int) -> "SveltosClusterSpec":
        """Build a spec that only carries the token renewal interval."""
        return cls(
            token_request_renewal_option=TokenRequestRenewalOption(
                renew_token_request_interval=format_go_duration(seconds)
            )
        )

    def to_body(self) -> dict[str, Any]:
        """Serialise to the camelCase form expected by the API server."""
        return self.model_dump(by_alias=True, exclude_none=True)


def build_sveltos_cluster(
    namespace: str,
    name: str,
    labels: dict[str, str] | None,
    spec: SveltosClusterSpec,
) -> dict[str, Any]:
    """Build the body of a new SveltosCluster object."""
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if labels:
        metadata["labels"] = dict(labels)

    return {
        "apiVersion": f"{SVELTOS_CLUSTER_GROUP}/{SVELTOS_CLUSTER_VERSION}",
        "kind": SVELTOS_CLUSTER_KIND,
        "metadata": metadata,
        "spec": spec.to_body(),
    }
