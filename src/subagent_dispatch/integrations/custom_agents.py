"""
Custom agent conversion utilities.

Converts runtime Agent profiles to Copilot SDK CustomAgentConfig typed
dicts, and builds the session system message that carries the agent's
instructions.
"""

from __future__ import annotations

from pathlib import Path

from copilot.session import CustomAgentConfig

from subagent_dispatch.loaders.prompts import compose_system_prompt
from subagent_dispatch.models.agent import Agent


def to_custom_agent(agent: Agent) -> CustomAgentConfig:
	"""
	Convert an Agent to a Copilot CustomAgentConfig.

	The full instructions go to the session system message (see
	``to_system_message``), so the custom agent prompt only names the
	role. ``tools`` is only set for agents with an explicit allowlist, so
	an agent without one keeps every tool.

	Parameters:
		agent: The runtime agent profile.

	Returns:
		Copilot SDK compatible custom agent configuration.
	"""
	cfg: CustomAgentConfig = {
	    "name": agent.id,
	    "prompt": agent.description or f"You are the {agent.id} agent.",
	    "infer": False,
	}
	if agent.name:
		cfg["display_name"] = agent.name
	if agent.description:
		cfg["description"] = agent.description
	if agent.allowed_tools is not None:
		cfg["tools"] = list(agent.allowed_tools)
	return cfg


def to_system_message(agent: Agent,
                      provider: str | None = None,
                      working_dir: str | Path | None = None) -> dict:
	"""Agent prompt plus the sub-agent base prompt, appended to the session."""
	return {
	    "mode": "append",
	    "content": compose_system_prompt(agent.system_prompt, provider,
	                                     working_dir),
	}


__all__ = ["to_custom_agent", "to_system_message"]
