"""
Agent registry.

An explicitly constructed registry value mapping agent names to their
runtime profile and execution service. The dispatcher reads it at call
time, so lookups and error listings always reflect what is registered
now.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

from subagent_dispatch.core.converter import convert_definition_to_agent
from subagent_dispatch.models.agent import Agent, ModelTier
from subagent_dispatch.models.agent_definition import AgentDefinition
from subagent_dispatch.utils.logging import get_logger
from subagent_dispatch.utils.protocols import AgentService

logger = get_logger(__name__)

CODER_AGENT_ID = "coder"
TASK_AGENT_ID = "task"

ServiceFactory = Callable[[Agent], AgentService]


def builtin_agents() -> list[Agent]:
	"""Return the built-in agents: the top-level coder and a general task agent."""
	return [
	    Agent(
	        id=CODER_AGENT_ID,
	        name="Coder",
	        description="Top-level coding agent",
	        model=ModelTier.LARGE,
	    ),
	    Agent(
	        id=TASK_AGENT_ID,
	        name="Task Agent",
	        description=("General-purpose agent for searching code, reading "
	                     "files and answering questions about the codebase"),
	        model=ModelTier.LARGE,
	    ),
	]


class AgentRegistry:
	"""Registry of dispatchable agents and their execution services."""

	def __init__(self) -> None:
		self._agents: dict[str, Agent] = {}
		self._services: dict[str, AgentService] = {}

	def register(self, agent: Agent, service: AgentService) -> None:
		"""Register (or replace) an agent and its service."""
		self._agents[agent.id] = agent
		self._services[agent.id] = service

	def unregister(self, name: str) -> None:
		self._agents.pop(name, None)
		self._services.pop(name, None)

	def get(self, name: str) -> Agent | None:
		return self._agents.get(name)

	def service(self, name: str) -> AgentService | None:
		return self._services.get(name)

	def names(self) -> list[str]:
		"""Return all registered agent names, sorted."""
		return sorted(self._services)

	def agents(self) -> list[Agent]:
		return [self._agents[n] for n in self.names()]

	def subagents(self) -> list[Agent]:
		"""Agents the top-level agent may delegate to.

		Excludes the coder agent itself and disabled agents.
		"""
		return [
		    a for a in self.agents()
		    if a.id != CODER_AGENT_ID and not a.disabled
		]

	def subagent_names(self) -> list[str]:
		"""Names the dispatcher accepts, sorted."""
		return [a.id for a in self.subagents()]

	def is_dispatchable(self, name: str) -> bool:
		"""True for a registered, enabled agent other than the coder."""
		agent = self._agents.get(name)
		return (agent is not None and name in self._services and
		        name != CODER_AGENT_ID and not agent.disabled)

	def __contains__(self, name: object) -> bool:
		return name in self._services

	def __len__(self) -> int:
		return len(self._services)


def build_registry(
    definitions: Mapping[str, AgentDefinition],
    service_factory: ServiceFactory,
    model_tier: ModelTier = ModelTier.LARGE,
    builtins: Iterable[Agent] | None = None,
    disabled: Iterable[str] = (),
) -> AgentRegistry:
	"""
	Build a registry from built-in agents and loaded definitions.

	File-defined agents are registered after built-ins, so a definition
	named ``task`` replaces the built-in task agent. The coder agent is
	never replaced.

	Parameters:
		definitions: Loaded definitions keyed by name.
		service_factory: Creates the execution service for an agent.
		model_tier: Model tier assigned to file-defined agents.
		builtins: Built-in agents; defaults to ``builtin_agents()``.
		disabled: Agent names to mark disabled.

	Returns:
		Populated AgentRegistry.
	"""
	disabled_names = set(disabled)
	registry = AgentRegistry()
	for agent in (builtins if builtins is not None else builtin_agents()):
		if agent.id in disabled_names:
			agent = agent.model_copy(update={"disabled": True})
		registry.register(agent, service_factory(agent))

	for name in sorted(definitions):
		if name == CODER_AGENT_ID:
			logger.warning("ignoring agent definition %s: name is reserved",
			               definitions[name].file_path or name)
			continue
		agent = convert_definition_to_agent(definitions[name], model_tier)
		if agent.id in disabled_names:
			agent = agent.model_copy(update={"disabled": True})
		registry.register(agent, service_factory(agent))
		logger.info("registered agent: %s", agent.id)
	return registry


__all__ = [
    "AgentRegistry",
    "ServiceFactory",
    "CODER_AGENT_ID",
    "TASK_AGENT_ID",
    "builtin_agents",
    "build_registry",
]
