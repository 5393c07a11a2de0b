"""Trigger-source connectors.

This module provides the standardized interface every external system
(Airtable, Telegram, ...) implements: polling triggers, dictionaries, sample
loaders, OAuth and webhooks.
"""

from trigger_kit.connectors.base import BaseConnector, ConnectorError, ConnectorRegistry

# Import connectors to trigger registration via @ConnectorRegistry.register decorator
from trigger_kit.connectors.airtable import AirtableConnector  # noqa: F401
from trigger_kit.connectors.telegram import TelegramConnector  # noqa: F401

__all__ = [
    "AirtableConnector",
    "BaseConnector",
    "ConnectorError",
    "ConnectorRegistry",
    "TelegramConnector",
]
