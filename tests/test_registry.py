"""Tests for definition conversion and the agent registry."""

from subagent_dispatch.core.converter import convert_definition_to_agent
from subagent_dispatch.core.registry import (
    AgentRegistry,
    CODER_AGENT_ID,
    TASK_AGENT_ID,
    build_registry,
    builtin_agents,
)
from subagent_dispatch.models.agent import Agent, ModelTier
from subagent_dispatch.models.agent_definition import AgentDefinition


class DummyService:

	def __init__(self, agent: Agent):
		self.agent = agent

	def run(self, context, session_id, prompt):
		raise NotImplementedError

	def cancel(self, session_id):
		pass


def _definition(name="code-reviewer", **kwargs):
	data = {"description": "Reviews code", "system_prompt": "Review."}
	data.update(kwargs)
	return AgentDefinition(name=name, **data)


def test_convert_maps_allowlists():
	d = _definition(tools="view, grep", mcp_servers=["github", "jira"],
	                lsp_servers="pyright")
	agent = convert_definition_to_agent(d, ModelTier.SMALL)
	assert agent.id == "code-reviewer"
	assert agent.name == "code-reviewer"
	assert agent.model == ModelTier.SMALL
	assert agent.allowed_tools == ["view", "grep"]
	assert agent.allowed_mcp == {"github": None, "jira": None}
	assert agent.allowed_lsp == ["pyright"]
	assert agent.system_prompt == "Review."
	assert not agent.inherits_all_tools


def test_convert_absent_lists_inherit_all():
	agent = convert_definition_to_agent(_definition(), ModelTier.LARGE)
	assert agent.allowed_tools is None
	assert agent.allowed_mcp is None
	assert agent.allowed_lsp is None
	assert agent.inherits_all_tools


def test_registry_basic_operations():
	registry = AgentRegistry()
	a = Agent(id="b-agent")
	b = Agent(id="a-agent")
	registry.register(a, DummyService(a))
	registry.register(b, DummyService(b))
	assert registry.names() == ["a-agent", "b-agent"]
	assert "a-agent" in registry
	assert len(registry) == 2
	assert registry.get("a-agent") is b
	assert registry.service("a-agent").agent is b

	registry.unregister("a-agent")
	assert registry.names() == ["b-agent"]
	assert registry.get("a-agent") is None
	assert registry.service("a-agent") is None
	registry.unregister("missing")


def test_build_registry_includes_builtins_and_definitions():
	registry = build_registry({"code-reviewer": _definition()}, DummyService)
	assert registry.names() == ["code-reviewer", CODER_AGENT_ID, TASK_AGENT_ID]
	assert registry.get(TASK_AGENT_ID).name == "Task Agent"
	assert registry.service("code-reviewer").agent.id == "code-reviewer"


def test_subagents_exclude_coder_and_disabled():
	registry = build_registry(
	    {
	        "code-reviewer": _definition(),
	        "debugger": _definition("debugger"),
	    },
	    DummyService,
	    disabled=["debugger"],
	)
	ids = [a.id for a in registry.subagents()]
	assert ids == ["code-reviewer", TASK_AGENT_ID]
	assert registry.get("debugger").disabled is True
	# registered, but not dispatchable
	assert "debugger" in registry
	assert registry.subagent_names() == ["code-reviewer", TASK_AGENT_ID]
	assert registry.is_dispatchable("code-reviewer")
	assert registry.is_dispatchable(TASK_AGENT_ID)
	assert not registry.is_dispatchable("debugger")
	assert not registry.is_dispatchable(CODER_AGENT_ID)
	assert not registry.is_dispatchable("ghost")


def test_definition_overrides_builtin_task_but_not_coder():
	registry = build_registry(
	    {
	        "task": _definition("task", description="custom task"),
	        "coder": _definition("coder", description="hijack"),
	    },
	    DummyService,
	    model_tier=ModelTier.SMALL,
	)
	assert registry.get(TASK_AGENT_ID).description == "custom task"
	assert registry.get(TASK_AGENT_ID).model == ModelTier.SMALL
	assert registry.get(CODER_AGENT_ID).description == "Top-level coding agent"


def test_build_registry_custom_builtins():
	registry = build_registry({}, DummyService, builtins=[Agent(id="solo")])
	assert registry.names() == ["solo"]


def test_builtin_agents_are_fresh():
	first = builtin_agents()
	first[0].description = "changed"
	assert builtin_agents()[0].description != "changed"
