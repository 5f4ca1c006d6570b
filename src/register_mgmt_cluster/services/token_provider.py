"""
Token acquisition strategies for the Sveltos identity.

Two interchangeable providers produce a bearer token for a ServiceAccount:

- TokenRequestProvider asks the TokenRequest API for a time-bounded token.
- SecretTokenProvider creates a ``kubernetes.io/service-account-token`` Secret
  and waits for the API server to populate it.

The strategy is chosen once, when the run starts, by ``select_token_provider``.
"""

import base64
import logging
import threading
from abc import ABC, abstractmethod

from kubernetes import client

from ..constants import ERROR_TOKEN_SECRET_TIMEOUT, TOKEN_KEY
from ..errors import TokenTimeoutError
from ..models.registration import RegistrationConfig
from ..utils.kubernetes import (
    API_CALL_ERRORS,
    HTTP_NOT_FOUND,
    KubernetesAPIs,
    api_error,
    ensure_token_secret,
    error_reason,
    error_status,
    has_status,
)
from ..utils.polling import poll_attempts

logger = logging.getLogger(__name__)


class TokenProvider(ABC):
    """Produces a bearer token for a ServiceAccount."""

    def __init__(self, apis: KubernetesAPIs):
        self.apis = apis

    @abstractmethod
    def get_token(self, namespace: str, service_account_name: str) -> str:
        """
        Return a bearer token for ``namespace/service_account_name``.

        Raises:
            KubernetesAPIError: If the API rejects a call
        """


class TokenRequestProvider(TokenProvider):
    """Requests a time-bounded token through the TokenRequest API."""

    def __init__(self, apis: KubernetesAPIs, expiration_seconds: int):
        super().__init__(apis)
        self.expiration_seconds = expiration_seconds

    def get_token(self, namespace: str, service_account_name: str) -> str:
        spec = client.V1TokenRequestSpec(audiences=[])
        if self.expiration_seconds:
            spec.expiration_seconds = self.expiration_seconds
        body = client.AuthenticationV1TokenRequest(spec=spec)

        logger.info(
            f"Create Token for ServiceAccount {namespace}/{service_account_name}",
            extra={
                "resource_type": "TokenRequest",
                "resource_name": service_account_name,
                "namespace": namespace,
                "operation": "create",
            },
        )
        try:
            response = self.apis.core_v1.create_namespaced_service_account_token(
                name=service_account_name,
                namespace=namespace,
                body=body,
                **self.apis.request_kwargs(),
            )
        except API_CALL_ERRORS as e:
            logger.error(
                f"Failed to create token for ServiceAccount "
                f"{namespace}/{service_account_name}: {error_reason(e)}",
                extra={
                    "resource_type": "TokenRequest",
                    "resource_name": service_account_name,
                    "namespace": namespace,
                    "operation": "create",
                    "http_status": error_status(e),
                },
            )
            raise api_error(
                e, "create token for", "ServiceAccount", service_account_name, namespace
            ) from e

        return response.status.token


class SecretTokenProvider(TokenProvider):
    """Creates a token Secret and polls until the API server populates it."""

    def __init__(
        self,
        apis: KubernetesAPIs,
        attempts: int,
        interval: float,
        cancel_event: threading.Event | None = None,
    ):
        super().__init__(apis)
        self.attempts = attempts
        self.interval = interval
        self.cancel_event = cancel_event

    def get_token(self, namespace: str, service_account_name: str) -> str:
        ensure_token_secret(self.apis, namespace, service_account_name)
        # The token Secret shares the ServiceAccount's name
        secret_name = service_account_name

        for attempt in poll_attempts(self.attempts, self.interval, self.cancel_event):
            token = self._read_token(namespace, secret_name)
            if token is not None:
                logger.debug(
                    f"Token Secret {namespace}/{secret_name} populated "
                    f"after {attempt} attempt(s)",
                    extra={"attempt": attempt},
                )
                return token
            logger.debug(
                f"Token Secret {namespace}/{secret_name} not populated yet "
                f"(attempt {attempt}/{self.attempts})",
                extra={"attempt": attempt},
            )

        message = ERROR_TOKEN_SECRET_TIMEOUT.format(
            namespace, service_account_name, namespace, secret_name, self.attempts
        )
        logger.error(message)
        raise TokenTimeoutError(message, attempts=self.attempts)

    def _read_token(self, namespace: str, secret_name: str) -> str | None:
        """
        Read the token from the Secret.

        Returns:
            The decoded token, or None while the Secret is missing or not yet
            populated

        Raises:
            KubernetesAPIError: For read failures other than NotFound
        """
        try:
            secret = self.apis.core_v1.read_namespaced_secret(
                name=secret_name, namespace=namespace, **self.apis.request_kwargs()
            )
        except API_CALL_ERRORS as e:
            # The token controller may not have persisted the Secret yet
            if has_status(e, HTTP_NOT_FOUND):
                return None
            logger.error(
                f"Failed to read Secret {namespace}/{secret_name}: {error_reason(e)}",
                extra={
                    "resource_type": "Secret",
                    "resource_name": secret_name,
                    "namespace": namespace,
                    "operation": "read",
                    "http_status": error_status(e),
                },
            )
            raise api_error(e, "read", "Secret", secret_name, namespace) from e

        encoded = (secret.data or {}).get(TOKEN_KEY)
        if not encoded:
            return None
        return base64.b64decode(encoded).decode("utf-8")


def select_token_provider(
    config: RegistrationConfig,
    apis: KubernetesAPIs,
    cancel_event: threading.Event | None = None,
) -> TokenProvider:
    """Pick the token strategy requested by the run configuration."""
    if config.service_account_token:
        return SecretTokenProvider(
            apis,
            attempts=config.token_poll_attempts,
            interval=config.token_poll_interval_seconds,
            cancel_event=cancel_event,
        )
    return TokenRequestProvider(apis, expiration_seconds=config.token_expiration_seconds)
