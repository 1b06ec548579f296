"""
Runtime agent profile model.

An Agent is what the registry hands to the dispatcher: the identity,
model tier and permission allowlists derived from an AgentDefinition
or declared as a built-in.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ModelTier(str, Enum):
	"""Which configured model an agent runs on."""

	LARGE = "large"
	SMALL = "small"


class Agent(BaseModel):
	"""Runtime profile for a dispatchable agent.

	Allowlists use None for "everything". ``allowed_mcp`` maps a server
	name to the tools allowed on it, where None again means all of them.
	"""

	id: str = Field(description="Registry key")
	name: str = Field(default="", description="Display name")
	description: str = Field(default="", description="Agent description")
	model: ModelTier = Field(default=ModelTier.LARGE,
	                         description="Model tier")
	allowed_tools: list[str] | None = Field(default=None)
	allowed_mcp: dict[str, list[str] | None] | None = Field(default=None)
	allowed_lsp: list[str] | None = Field(default=None)
	disabled: bool = Field(default=False)
	system_prompt: str | None = Field(
	    default=None, description="Agent-specific system prompt")

	@property
	def inherits_all_tools(self) -> bool:
		return self.allowed_tools is None


__all__ = ["Agent", "ModelTier"]
