"""Host invocation contracts for triggers, authorization callbacks and webhooks."""

from typing import Any

from pydantic import Field

from trigger_kit.models.credential import HostModel
from trigger_kit.models.entity import Entity


class TriggerInvocation(HostModel):
    """Inbound polling trigger invocation."""

    trigger_data: dict[str, Any] = Field(default_factory=dict)
    state: dict[str, Any] | None = None
    learning_mode: bool = False


class TriggerResult(HostModel):
    """Events to fire plus the state the host must persist (None: keep nothing)."""

    events: list[Entity] = Field(default_factory=list)
    state: dict[str, Any] | None = None


class SampleRequest(HostModel):
    criteria: dict[str, Any] = Field(default_factory=dict)


class AuthorizationCallback(HostModel):
    """Redirect back from the provider; ``state`` carries the PKCE verifier."""

    code: str
    redirect_uri: str = Field(..., alias="redirectURI")
    state: str


class RefreshRequest(HostModel):
    refresh_token: str


class ConnectionURLResponse(HostModel):
    url: str


class WebhookRegistration(HostModel):
    callback_url: str


class WebhookEvent(HostModel):
    """A pushed event in the same envelope for every source."""

    name: str
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookEventsResult(HostModel):
    events: list[WebhookEvent] = Field(default_factory=list)
    connection_id: str | None = None


class TriggerMatchRequest(HostModel):
    """Trigger instances to test against one pushed event."""

    triggers: list[dict[str, Any]] = Field(default_factory=list)
    event_data: dict[str, Any] = Field(default_factory=dict)


class TriggerMatchResult(HostModel):
    ids: list[str] = Field(default_factory=list)
