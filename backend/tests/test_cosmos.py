"""Tests for Cosmos DB connection settings and client setup."""

from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import ServiceRequestError

from flashdeck.db.cosmos import (
    EMULATOR_ENDPOINT,
    EMULATOR_KEY,
    CosmosDBSettings,
    close_client,
    ensure_containers,
    get_client,
    get_flashcards_container,
    get_settings,
    verify_connection,
)


class TestCosmosDBSettings:
    """Tests for CosmosDBSettings configuration."""

    def test_default_settings(self, monkeypatch):
        for name in (
            "COSMOS_ENDPOINT",
            "COSMOS_DB_NAME",
            "COSMOS_DECKS_CONTAINER",
            "COSMOS_FLASHCARDS_CONTAINER",
            "COSMOS_EMULATOR",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = CosmosDBSettings()

        assert settings.endpoint == ""
        assert settings.database_name == "flashdeck"
        assert settings.decks_container == "decks"
        assert settings.flashcards_container == "flashcards"
        assert settings.use_emulator is False
        assert settings.is_configured() is False

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("COSMOS_ENDPOINT", "https://test.documents.azure.com:443/")
        monkeypatch.setenv("COSMOS_DB_NAME", "testdb")
        monkeypatch.setenv("COSMOS_DECKS_CONTAINER", "test-decks")
        monkeypatch.setenv("COSMOS_FLASHCARDS_CONTAINER", "test-flashcards")

        settings = CosmosDBSettings()

        assert settings.endpoint == "https://test.documents.azure.com:443/"
        assert settings.database_name == "testdb"
        assert settings.decks_container == "test-decks"
        assert settings.flashcards_container == "test-flashcards"
        assert settings.is_configured() is True

    @pytest.mark.parametrize("value", ["true", "TRUE", "True"])
    def test_emulator_mode(self, monkeypatch, value):
        monkeypatch.delenv("COSMOS_ENDPOINT", raising=False)
        monkeypatch.setenv("COSMOS_EMULATOR", value)

        settings = CosmosDBSettings()

        assert settings.use_emulator is True
        assert settings.is_configured() is True


class TestCosmosDBClient:
    """Tests for client initialization."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        yield
        close_client()
        get_settings.cache_clear()

    @patch("flashdeck.db.cosmos.CosmosClient")
    def test_get_client_emulator_mode(self, mock_cosmos_client, monkeypatch):
        monkeypatch.setenv("COSMOS_EMULATOR", "true")
        get_settings.cache_clear()

        get_client()

        args, kwargs = mock_cosmos_client.call_args
        assert args[0] == EMULATOR_ENDPOINT
        assert kwargs["credential"] == EMULATOR_KEY
        assert kwargs["connection_verify"] is False

    @patch("flashdeck.db.cosmos.DefaultAzureCredential")
    @patch("flashdeck.db.cosmos.CosmosClient")
    def test_get_client_azure_mode(self, mock_cosmos_client, mock_credential, monkeypatch):
        monkeypatch.setenv("COSMOS_ENDPOINT", "https://test.documents.azure.com:443/")
        get_settings.cache_clear()

        client = get_client()

        mock_credential.assert_called_once()
        assert mock_cosmos_client.call_args[0][0] == "https://test.documents.azure.com:443/"
        assert get_client() is client

    def test_get_client_not_configured(self):
        with pytest.raises(RuntimeError) as exc_info:
            get_client()

        assert "not configured" in str(exc_info.value)

    @patch("flashdeck.db.cosmos.CosmosClient")
    def test_flashcards_container(self, mock_cosmos_client, monkeypatch):
        monkeypatch.setenv("COSMOS_EMULATOR", "true")
        get_settings.cache_clear()

        get_flashcards_container()

        database = mock_cosmos_client.return_value.get_database_client
        database.assert_called_once_with("flashdeck")
        database.return_value.get_container_client.assert_called_once_with("flashcards")


class TestCosmosDBConnection:
    """Tests for connection verification."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        yield
        close_client()
        get_settings.cache_clear()

    @patch("flashdeck.db.cosmos.get_database")
    @patch("flashdeck.db.cosmos.get_settings")
    def test_verify_connection_success(self, mock_settings, mock_database):
        mock_settings.return_value = MagicMock(is_configured=lambda: True)

        assert verify_connection() is True
        mock_database.return_value.read.assert_called_once()

    @patch("flashdeck.db.cosmos.get_settings")
    def test_verify_connection_not_configured(self, mock_settings):
        mock_settings.return_value = MagicMock(is_configured=lambda: False)

        assert verify_connection() is False

    @patch("flashdeck.db.cosmos.get_database")
    @patch("flashdeck.db.cosmos.get_settings")
    def test_verify_connection_failure(self, mock_settings, mock_database):
        mock_settings.return_value = MagicMock(is_configured=lambda: True)
        mock_database.return_value.read.side_effect = ServiceRequestError("Connection failed")

        assert verify_connection() is False


class TestEnsureContainers:
    """Tests for database and container provisioning."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        yield
        close_client()
        get_settings.cache_clear()

    def test_create_containers_follows_emulator(self, monkeypatch):
        monkeypatch.setenv("COSMOS_EMULATOR", "true")
        assert CosmosDBSettings().create_containers is True

        monkeypatch.setenv("COSMOS_EMULATOR", "false")
        monkeypatch.setenv("COSMOS_CREATE_CONTAINERS", "true")
        assert CosmosDBSettings().create_containers is True

        monkeypatch.delenv("COSMOS_CREATE_CONTAINERS")
        assert CosmosDBSettings().create_containers is False

    @patch("flashdeck.db.cosmos.CosmosClient")
    def test_partition_keys(self, mock_cosmos_client, monkeypatch):
        monkeypatch.setenv("COSMOS_EMULATOR", "true")
        get_settings.cache_clear()

        ensure_containers()

        client = mock_cosmos_client.return_value
        client.create_database_if_not_exists.assert_called_once_with(id="flashdeck")
        calls = client.create_database_if_not_exists.return_value.create_container_if_not_exists.call_args_list
        paths = {call.kwargs["id"]: call.kwargs["partition_key"]["paths"] for call in calls}
        assert paths == {"decks": ["/id"], "flashcards": ["/deckId"]}
