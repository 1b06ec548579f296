"""
MCP server configuration loading.

Reads an ``mcpServers`` JSON map, the layout shared by the Copilot,
Claude and Cursor clients, and narrows it to the servers one agent may
use.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from subagent_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

# Copilot's wildcard for "every tool this server offers".
ALL_TOOLS = ["*"]


def load_mcp_servers(path: str | Path | None) -> dict[str, dict[str, Any]]:
	"""
	Load the ``mcpServers`` map from a JSON file.

	An unset path or a missing file yields no servers.

	Raises:
		ValueError: The file is not JSON or has no ``mcpServers`` object.
	"""
	if not path:
		return {}
	p = Path(path).expanduser()
	if not p.is_file():
		logger.warning("MCP config %s not found; no MCP servers", p)
		return {}
	try:
		payload = json.loads(p.read_text(encoding="utf-8"))
	except json.JSONDecodeError as exc:
		raise ValueError(f"invalid MCP config {p}: {exc}") from exc
	servers = payload.get("mcpServers") if isinstance(payload, dict) else None
	if not isinstance(servers, dict):
		raise ValueError(f"MCP config {p} has no mcpServers object")
	loaded = {}
	for name, cfg in servers.items():
		if not isinstance(cfg, dict):
			logger.warning("skipping MCP server %s: not an object", name)
			continue
		loaded[name] = dict(cfg)
	return loaded


def select_mcp_servers(
        servers: dict[str, dict[str, Any]],
        allowed: dict[str, list[str] | None] | None,
) -> dict[str, dict[str, Any]]:
	"""
	Narrow configured servers to an agent's MCP allowlist.

	``allowed`` of None keeps every server. A server mapped to None
	exposes all of its tools, a list exposes only those tools. Allowed
	names with no configured server are skipped.
	"""
	if allowed is None:
		selected = {}
		for name, cfg in servers.items():
			entry = dict(cfg)
			entry.setdefault("tools", list(ALL_TOOLS))
			selected[name] = entry
		return selected

	selected = {}
	for name, tools in allowed.items():
		cfg = servers.get(name)
		if cfg is None:
			logger.warning("MCP server %s is not configured", name)
			continue
		entry = dict(cfg)
		entry["tools"] = list(ALL_TOOLS) if tools is None else list(tools)
		selected[name] = entry
	return selected


__all__ = ["ALL_TOOLS", "load_mcp_servers", "select_mcp_servers"]
