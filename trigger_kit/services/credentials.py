"""CredentialLifecycleManager - OAuth2 authorization code + PKCE, and refresh.

The service is stateless across the redirect: the PKCE verifier travels to the
provider and back in the ``state`` parameter. Credentials are returned to the
host, never stored here.

Error policy differs per operation:
- exchange_code: any failure is logged and returned as AUTH_FAILED
- refresh: failures propagate to whatever scheduled the refresh
"""

import base64
import hashlib
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from urllib.parse import urlencode

from pydantic import ValidationError as SchemaValidationError

from trigger_kit.errors import ConnectorError, RemoteError
from trigger_kit.models.credential import (
    AccountIdentity,
    AuthorizationResult,
    AuthResultKind,
    Credential,
    PKCEPair,
    TokenResponse,
)
from trigger_kit.remote import RemoteCaller

logger = logging.getLogger(__name__)

IdentityLoader = Callable[[str], Awaitable[AccountIdentity]]

# 64 random bytes -> 86 URL-safe characters (RFC 7636 allows 43..128)
CODE_VERIFIER_BYTES = 64


@dataclass
class OAuthConfig:
    """OAuth configuration for a provider."""

    provider: str
    client_id: str
    client_secret: str
    authorize_url: str
    token_url: str
    scopes: list[str] = field(default_factory=list)


def generate_code_verifier() -> str:
    return secrets.token_urlsafe(CODE_VERIFIER_BYTES)


def generate_code_challenge(code_verifier: str) -> str:
    """S256 challenge: unpadded base64url of the verifier's SHA-256 digest."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def basic_auth_header(client_id: str, client_secret: str) -> dict[str, str]:
    token = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode("ascii")
    return {"Authorization": f"Basic {token}"}


class CredentialLifecycleManager:
    """PKCE authorization-code flow and token refresh for one provider.

    Usage:
        manager = CredentialLifecycleManager(config, remote, identity_loader)
        url = manager.build_authorization_url()
        result = await manager.exchange_code(code, redirect_uri, code_verifier=state)
        credential = await manager.refresh(refresh_token)
    """

    def __init__(
        self,
        config: OAuthConfig,
        remote: RemoteCaller,
        identity_loader: IdentityLoader,
    ) -> None:
        self.config = config
        self.remote = remote
        self.identity_loader = identity_loader

    @staticmethod
    def generate_pkce_pair() -> PKCEPair:
        verifier = generate_code_verifier()
        return PKCEPair(code_verifier=verifier, code_challenge=generate_code_challenge(verifier))

    def build_authorization_url(self, scopes: list[str] | None = None) -> str:
        """Authorization URL for a fresh attempt, verifier embedded in ``state``."""
        pair = self.generate_pkce_pair()
        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "scope": " ".join(scopes if scopes is not None else self.config.scopes),
            "code_challenge": pair.code_challenge,
            "code_challenge_method": "S256",
            "state": pair.code_verifier,
        }
        return f"{self.config.authorize_url}?{urlencode(params)}"

    def _token_headers(self) -> dict[str, str]:
        return basic_auth_header(self.config.client_id, self.config.client_secret)

    async def _post_token(self, form: dict[str, str], log_tag: str) -> TokenResponse:
        data = await self.remote.request(
            "POST",
            self.config.token_url,
            form=form,
            headers=self._token_headers(),
            log_tag=log_tag,
        )
        try:
            return TokenResponse.model_validate(data)
        except SchemaValidationError as e:
            raise RemoteError(
                f"Malformed token response from {self.config.provider}",
                system=self.config.provider,
            ) from e

    async def exchange_code(
        self, code: str, redirect_uri: str, code_verifier: str
    ) -> AuthorizationResult:
        """Exchange an authorization code, then look up the account identity.

        Never raises for remote failures: returns ``AuthorizationResult.failed()``.
        """
        form = {
            "grant_type": "authorization_code",
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        }

        try:
            token = await self._post_token(form, log_tag="exchangeCode")
        except ConnectorError as e:
            logger.error(f"[exchangeCode] code exchange error: {e.message}")
            return AuthorizationResult.failed()

        try:
            identity = await self.identity_loader(token.access_token)
        except ConnectorError as e:
            logger.error(f"[exchangeCode] identity lookup error: {e.message}")
            return AuthorizationResult.failed()

        logger.info(f"[exchangeCode] connected {self.config.provider} account {identity.label}")

        return AuthorizationResult(
            kind=AuthResultKind.OK,
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_in_seconds=token.expires_in,
            account_label=identity.label,
            account_avatar_url=identity.avatar_url,
            user_data=identity.user_data,
        )

    async def refresh(self, refresh_token: str) -> Credential:
        """Refresh an access token; keeps the old refresh token if none is rotated in."""
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        try:
            token = await self._post_token(form, log_tag="refreshToken")
        except ConnectorError as e:
            logger.error(f"[refreshToken] error: {e.message}")
            raise

        return Credential(
            access_token=token.access_token,
            refresh_token=token.refresh_token or refresh_token,
            expires_in_seconds=token.expires_in,
        )
