"""Pydantic models for trigger invocations, credentials and dictionaries."""

from trigger_kit.models.credential import (
    AccountIdentity,
    AuthorizationResult,
    AuthResultKind,
    Credential,
    PKCEPair,
    TokenResponse,
)
from trigger_kit.models.dictionary import (
    DictionaryItem,
    DictionaryPage,
    DictionaryPayload,
    RemotePage,
)
from trigger_kit.models.entity import Delta, DetectMode, Entity, Snapshot
from trigger_kit.models.invocation import (
    AuthorizationCallback,
    ConnectionURLResponse,
    RefreshRequest,
    SampleRequest,
    TriggerInvocation,
    TriggerMatchRequest,
    TriggerMatchResult,
    TriggerResult,
    WebhookEvent,
    WebhookEventsResult,
    WebhookRegistration,
)

__all__ = [
    # Change detection
    "Entity",
    "Snapshot",
    "Delta",
    "DetectMode",
    # Credentials
    "AccountIdentity",
    "AuthorizationResult",
    "AuthResultKind",
    "Credential",
    "PKCEPair",
    "TokenResponse",
    # Dictionaries
    "DictionaryItem",
    "DictionaryPage",
    "DictionaryPayload",
    "RemotePage",
    # Host invocations
    "AuthorizationCallback",
    "ConnectionURLResponse",
    "RefreshRequest",
    "SampleRequest",
    "TriggerInvocation",
    "TriggerResult",
    "TriggerMatchRequest",
    "TriggerMatchResult",
    "WebhookEvent",
    "WebhookEventsResult",
    "WebhookRegistration",
]
