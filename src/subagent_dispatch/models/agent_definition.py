"""
Agent definition model.

Defines the AgentDefinition Pydantic model for agents declared as
markdown files with YAML frontmatter under ``.crush/agents``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_core.core_schema import ValidationInfo


def split_list_field(v: Any) -> list[str] | None:
	"""Normalize a header list that may be a comma string or a YAML list.

	Returns None (inherit everything) when the value is absent or yields
	no entries, otherwise the trimmed, non-blank items in order.
	"""
	if v is None:
		return None
	if isinstance(v, str):
		items = [p.strip() for p in v.split(",")]
	elif isinstance(v, (list, tuple)):
		items = [str(p).strip() for p in v if p is not None]
	else:
		raise ValueError(f"expected a list or comma-separated string, got {type(v).__name__}")
	items = [p for p in items if p]
	return items or None


class AgentDefinition(BaseModel):
	"""Agent definition loaded from markdown frontmatter.

	``tools``, ``mcp_servers`` and ``lsp_servers`` are tri-state:
	None means the agent inherits everything, a list is an explicit
	allowlist.
	"""

	name: str = Field(description="Agent name, unique registry key")
	description: str = Field(description="Short description of the agent")
	tools: list[str] | None = Field(
	    default=None, description="Allowed tools, None inherits all")
	mcp_servers: list[str] | None = Field(
	    default=None, description="Allowed MCP servers, None inherits all")
	lsp_servers: list[str] | None = Field(
	    default=None, description="Allowed LSP servers, None inherits all")
	system_prompt: str = Field(description="Agent prompt body content")
	file_path: str | None = Field(default=None,
	                              description="Source markdown file")
	is_priority: bool = Field(
	    default=False, description="True for project-level definitions")

	@field_validator("tools", "mcp_servers", "lsp_servers", mode="before")
	@classmethod
	def split_lists(cls, v: Any) -> list[str] | None:
		return split_list_field(v)

	@field_validator("name", "description", "system_prompt", mode="before")
	@classmethod
	def require_text(cls, v: Any, info: ValidationInfo) -> str:
		"""Reject missing or blank required fields."""
		text = "" if v is None else str(v).strip()
		if not text:
			label = "system prompt" if info.field_name == "system_prompt" else info.field_name
			raise ValueError(f"agent {label} is required")
		return text


__all__ = ["AgentDefinition", "split_list_field"]
