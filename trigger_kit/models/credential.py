"""Credential models for the OAuth authorization-code + PKCE flow.

Nothing here is persisted by the service: every credential is returned to the
host, which decides where it lives.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HostModel(BaseModel):
    """Base for payloads exchanged with the host (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PKCEPair(BaseModel):
    """Per-attempt PKCE verifier and its S256 challenge."""

    code_verifier: str
    code_challenge: str

    model_config = ConfigDict(frozen=True)


class Credential(HostModel):
    """Tokens issued by a token endpoint."""

    access_token: str
    refresh_token: str | None = None
    expires_in_seconds: int | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TokenResponse(BaseModel):
    """Raw OAuth2 token endpoint response."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str | None = None
    scope: str | None = None


class AccountIdentity(BaseModel):
    """Human-readable account info looked up with a fresh access token."""

    label: str
    avatar_url: str | None = None
    user_data: dict[str, Any] = Field(default_factory=dict)


class AuthResultKind(str, Enum):
    """Outcome of an authorization code exchange."""

    OK = "ok"
    AUTH_FAILED = "auth_failed"


class AuthorizationResult(HostModel):
    """Normalized result of exchanging an authorization code.

    ``AUTH_FAILED`` is a value, not an exception: an interrupted connection
    attempt must not abort the host's connection-setup flow.
    """

    kind: AuthResultKind
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in_seconds: int | None = None
    account_label: str | None = None
    account_avatar_url: str | None = Field(None, alias="accountAvatarURL")
    user_data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failed(cls) -> "AuthorizationResult":
        return cls(kind=AuthResultKind.AUTH_FAILED)

    @property
    def ok(self) -> bool:
        return self.kind == AuthResultKind.OK

    def to_host(self) -> dict[str, Any]:
        """Host form: the credential fields, or ``{}`` for a failed exchange."""
        if not self.ok:
            return {}
        data = self.model_dump(by_alias=True, exclude={"kind"})
        data["overwrite"] = True
        return data
