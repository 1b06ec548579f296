"""
Definition to runtime profile conversion.
"""

from __future__ import annotations

from subagent_dispatch.models.agent import Agent, ModelTier
from subagent_dispatch.models.agent_definition import AgentDefinition


def convert_definition_to_agent(definition: AgentDefinition,
                                model_tier: ModelTier) -> Agent:
	"""
	Convert an AgentDefinition into a runtime Agent profile.

	Nonempty tool, MCP and LSP lists become explicit allowlists. Absent
	or empty ones map to None so the agent inherits everything. Each MCP
	server maps to None, meaning every tool on that server.

	Parameters:
		definition: The loaded definition.
		model_tier: Model tier to run the agent on.

	Returns:
		Runtime agent profile keyed by the definition name.
	"""
	allowed_mcp = None
	if definition.mcp_servers:
		allowed_mcp = {server: None for server in definition.mcp_servers}

	return Agent(
	    id=definition.name,
	    name=definition.name,
	    description=definition.description,
	    model=model_tier,
	    allowed_tools=list(definition.tools) if definition.tools else None,
	    allowed_mcp=allowed_mcp,
	    allowed_lsp=list(definition.lsp_servers)
	    if definition.lsp_servers else None,
	    system_prompt=definition.system_prompt,
	)


__all__ = ["convert_definition_to_agent"]
