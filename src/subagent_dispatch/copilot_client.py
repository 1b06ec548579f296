"""
Copilot client lifecycle.

Builds a CopilotClient for either an external CLI server or the native
stdio mode, and wraps its start/stop in an async context manager for
the CLI.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from copilot import CopilotClient

from subagent_dispatch.models.config import Config
from subagent_dispatch.utils.logging import get_logger

logger = get_logger(__name__)


def client_options(config: Config) -> dict[str, Any]:
	"""Return CopilotClient options for the configured connection mode.

	An external server manages its own auth, so the token is only passed
	in native stdio mode.
	"""
	opts: dict[str, Any] = {"log_level": config.log_level}
	if config.cli_url:
		opts["cli_url"] = config.cli_url
	elif config.github_token:
		opts["github_token"] = config.github_token
	return opts


def create_client(config: Config) -> CopilotClient:
	return CopilotClient(client_options(config))


@asynccontextmanager
async def open_client(config: Config) -> AsyncIterator[CopilotClient]:
	"""Start a client for the duration of the block."""
	client = create_client(config)
	await client.start()
	try:
		yield client
	finally:
		try:
			await client.stop()
		except Exception:
			logger.debug("failed to stop copilot client", exc_info=True)


__all__ = ["client_options", "create_client", "open_client"]
