"""Tests for copilot_client module."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from subagent_dispatch.copilot_client import (
    client_options,
    create_client,
    open_client,
)
from subagent_dispatch.models.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
	for var in ("COPILOT_CLI_URL", "GITHUB_TOKEN", "LOG_LEVEL"):
		monkeypatch.delenv(var, raising=False)


class TestCreateClient:
	"""Tests for create_client factory function."""

	@patch("subagent_dispatch.copilot_client.CopilotClient")
	def test_external_server_mode(self, mock_client_class: MagicMock):
		"""Client uses cli_url when set (external server mode)."""
		cfg = Config(COPILOT_CLI_URL="localhost:8080", LOG_LEVEL="debug",
		             GITHUB_TOKEN="ghp_test123")

		create_client(cfg)

		mock_client_class.assert_called_once_with({
		    "cli_url": "localhost:8080",
		    "log_level": "debug",
		})

	@patch("subagent_dispatch.copilot_client.CopilotClient")
	def test_native_stdio_mode_with_token(self, mock_client_class: MagicMock):
		"""Client passes github_token in native mode for auth."""
		cfg = Config(GITHUB_TOKEN="ghp_test123", LOG_LEVEL="warning")

		create_client(cfg)

		mock_client_class.assert_called_once_with({
		    "log_level": "warning",
		    "github_token": "ghp_test123",
		})

	def test_native_mode_without_token(self):
		assert client_options(Config(LOG_LEVEL="info")) == {
		    "log_level": "info"
		}


@pytest.mark.asyncio
@patch("subagent_dispatch.copilot_client.CopilotClient")
async def test_open_client_starts_and_stops(mock_client_class: MagicMock):
	client = MagicMock()
	client.start = AsyncMock()
	client.stop = AsyncMock()
	mock_client_class.return_value = client

	async with open_client(Config()) as opened:
		assert opened is client
		client.start.assert_awaited_once()
		client.stop.assert_not_awaited()

	client.stop.assert_awaited_once()


@pytest.mark.asyncio
@patch("subagent_dispatch.copilot_client.CopilotClient")
async def test_open_client_stops_on_error(mock_client_class: MagicMock):
	client = MagicMock()
	client.start = AsyncMock()
	client.stop = AsyncMock(side_effect=RuntimeError("already gone"))
	mock_client_class.return_value = client

	with pytest.raises(ValueError):
		async with open_client(Config()):
			raise ValueError("boom")

	client.stop.assert_awaited_once()
