"""Outbound request construction.

`RequestBuilder` receives the server configuration explicitly and resolves
the credential on every `build` call; nothing about the credential is kept
between scans.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from core.config import ServerConfig
from core.domain.models import ProfileRequest
from core.errors import CredentialResolutionError, SecretNotFound
from core.interfaces.secret_store import SecretStore

logger = logging.getLogger(__name__)


class CredentialMode(str, Enum):
    ANONYMOUS = "anonymous"
    DIRECT = "direct"
    SECRET = "secret"


@dataclass
class RequestBuilder:
    config: ServerConfig
    secret_store: SecretStore | None = None

    @property
    def credential_mode(self) -> CredentialMode:
        # Si vienen ambas opciones, la key directa gana.
        if self.config.api_key:
            return CredentialMode.DIRECT
        if self.config.api_key_id:
            return CredentialMode.SECRET
        return CredentialMode.ANONYMOUS

    def resolve_credential(self) -> str | None:
        """Return the bearer token to send, or None for public access.

        Raises:
            CredentialResolutionError: a secret reference is configured but
                cannot be resolved.
        """

        mode = self.credential_mode
        if mode is CredentialMode.DIRECT:
            return self.config.api_key
        if mode is CredentialMode.ANONYMOUS:
            return None

        reference = self.config.api_key_id or ""
        if self.secret_store is None:
            raise CredentialResolutionError(
                "api_key_id is configured but no secret store is available",
                details={"api_key_id": reference},
            )
        try:
            secret = self.secret_store.get_secret(reference)
        except SecretNotFound as exc:
            raise CredentialResolutionError(
                f"Failed to retrieve API key from secret store using ID: {reference}",
                details={"api_key_id": reference},
            ) from exc
        if not secret:
            raise CredentialResolutionError(
                f"Failed to retrieve API key from secret store using ID: {reference}",
                details={"api_key_id": reference, "reason": "empty secret"},
            )
        return secret

    def base_headers(self) -> dict[str, str]:
        return {
            "user-agent": self.config.user_agent,
            "accept": "application/json",
        }

    def build(self, address_hash: str) -> ProfileRequest:
        headers = self.base_headers()
        token = self.resolve_credential()
        if token:
            headers["authorization"] = f"Bearer {token}"

        url = f"{self.config.api_url.rstrip('/')}/{address_hash}"
        logger.debug("Built profile request for %s (%s)", url, self.credential_mode.value)
        return ProfileRequest(url=url, headers=headers)
