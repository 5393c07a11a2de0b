"""Tests for connector infrastructure."""

import pytest

from trigger_kit.connectors.base import (
    BaseConnector,
    ConfigurationError,
    ConnectorError,
    ConnectorRegistry,
    NotFoundError,
    AuthenticationError,
    RateLimitError,
    RemoteError,
    ValidationError,
    dictionary,
    sample_loader,
    trigger,
)
from trigger_kit.models.dictionary import DictionaryPage
from trigger_kit.models.invocation import TriggerInvocation, TriggerMatchRequest, TriggerResult


class MockConnector(BaseConnector):
    """Mock connector for testing."""

    system = "mock"

    @trigger("onThing")
    async def on_thing(self, invocation: TriggerInvocation) -> TriggerResult:
        return TriggerResult()

    @dictionary("get-things")
    async def get_things(self, payload) -> DictionaryPage:
        return DictionaryPage()

    @sample_loader("onThing")
    async def load_thing(self, criteria):
        return None


class ChildConnector(MockConnector):
    """Overrides one inherited dictionary and adds another."""

    system = "child"

    @dictionary("get-things")
    async def get_other_things(self, payload) -> DictionaryPage:
        return DictionaryPage(cursor="child")

    @dictionary("get-more")
    async def get_more(self, payload) -> DictionaryPage:
        return DictionaryPage()


class TestConnectorRegistry:
    """Tests for ConnectorRegistry."""

    def setup_method(self):
        """Keep the real registrations for the rest of the suite."""
        self._saved = dict(ConnectorRegistry._connectors)

    def teardown_method(self):
        ConnectorRegistry._connectors.clear()
        ConnectorRegistry._connectors.update(self._saved)

    def test_register_connector(self):
        """Test registering a connector."""
        ConnectorRegistry.register(MockConnector)

        assert "mock" in ConnectorRegistry.list_systems()
        assert ConnectorRegistry.get("mock") == MockConnector

    def test_get_unknown_connector(self):
        """Test getting unknown connector returns None."""
        assert ConnectorRegistry.get("unknown") is None

    def test_list_connectors(self):
        """Test listing all connectors."""
        ConnectorRegistry.register(MockConnector)

        connectors = ConnectorRegistry.list_connectors()
        assert MockConnector in connectors

    def test_builtin_connectors_registered(self):
        assert {"airtable", "telegram"} <= set(ConnectorRegistry.list_systems())

    def test_handlers_collected_on_register(self):
        ConnectorRegistry.register(MockConnector)

        assert MockConnector.handlers["trigger"] == {"onThing": MockConnector.on_thing}
        assert MockConnector.handlers["dictionary"] == {"get-things": MockConnector.get_things}
        assert MockConnector.handlers["sample"] == {"onThing": MockConnector.load_thing}

    def test_subclass_overrides_inherited_tags(self):
        ConnectorRegistry.register(ChildConnector)

        assert ChildConnector.handlers["dictionary"] == {
            "get-things": ChildConnector.get_other_things,
            "get-more": ChildConnector.get_more,
        }
        assert ChildConnector.handlers["trigger"] == {"onThing": MockConnector.on_thing}


class TestBaseConnector:
    """Tests for BaseConnector methods."""

    def test_require_keys(self):
        assert BaseConnector.require_keys({"a": 1, "b": "x"}, "a", "b") == [1, "x"]

    def test_require_keys_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            BaseConnector.require_keys({"a": 1, "b": ""}, "a", "b", "c", system="mock")

        assert exc_info.value.message == "Missing required parameter(s): b, c"
        assert exc_info.value.system == "mock"

    def test_require_keys_none_data(self):
        with pytest.raises(ValidationError):
            BaseConnector.require_keys(None, "a")

    def test_require_access_token(self, settings):
        assert MockConnector(settings, access_token="t").require_access_token() == "t"

        with pytest.raises(ValidationError):
            MockConnector(settings).require_access_token()

    def test_credential_manager_not_supported(self, settings):
        with pytest.raises(ValidationError):
            MockConnector(settings).credential_manager()

    @pytest.mark.asyncio
    async def test_webhooks_not_supported(self, settings):
        connector = MockConnector(settings)

        with pytest.raises(ValidationError):
            await connector.upsert_webhook("https://host/hook")
        with pytest.raises(ValidationError):
            await connector.delete_webhook()
        with pytest.raises(ValidationError):
            await connector.resolve_events({}, {})
        with pytest.raises(ValidationError):
            await connector.select_matched("onThing", TriggerMatchRequest())


class TestConnectorErrors:
    """Tests for connector error types."""

    def test_connector_error(self):
        """Test base ConnectorError."""
        error = ConnectorError("Test error", system="mock", retriable=True)

        assert str(error) == "Test error"
        assert error.system == "mock"
        assert error.retriable is True
        assert error.to_dict() == {"message": "Test error", "httpStatusCode": None, "type": None}

    def test_remote_error(self):
        error = RemoteError("[AirtableError]: bad", http_status_code=422, error_type="INVALID")

        assert error.to_dict() == {
            "message": "[AirtableError]: bad",
            "httpStatusCode": 422,
            "type": "INVALID",
        }

    def test_not_found_error(self):
        """Test NotFoundError."""
        error = NotFoundError("Not found", system="mock")

        assert isinstance(error, RemoteError)
        assert isinstance(error, ConnectorError)
        assert error.retriable is False

    def test_authentication_error(self):
        """Test AuthenticationError."""
        error = AuthenticationError("Auth failed", http_status_code=401, system="mock")

        assert isinstance(error, RemoteError)
        assert error.http_status_code == 401

    def test_rate_limit_error(self):
        """Test RateLimitError."""
        error = RateLimitError("Rate limited", retry_after=60, system="mock")

        assert error.retriable is True
        assert error.retry_after == 60

    def test_local_errors(self):
        assert ConfigurationError("missing column").to_dict()["type"] == "CONFIGURATION_ERROR"
        assert ValidationError("missing baseId").to_dict()["type"] == "VALIDATION_ERROR"
        assert not isinstance(ConfigurationError("x"), RemoteError)
