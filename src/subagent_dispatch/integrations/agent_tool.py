"""
Agent tool for Copilot sessions.

Exposes the dispatcher to a calling agent as the ``agent`` tool. The
tool description lists every dispatchable agent; calls are validated,
dispatched, and turned into ToolResult dicts. Caller mistakes and
controlled errors come back as failure results the calling agent can
read; hard failures propagate.
"""

from __future__ import annotations

from typing import Any

from copilot import Tool, ToolInvocation, ToolResult
from pydantic import BaseModel, Field, ValidationError

from subagent_dispatch.core.dispatcher import Dispatcher
from subagent_dispatch.core.registry import AgentRegistry
from subagent_dispatch.errors import AgentNotFoundError, DispatchValidationError
from subagent_dispatch.loaders.prompts import load_prompt
from subagent_dispatch.models.outcome import DispatchOutcome
from subagent_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

AGENT_TOOL_NAME = "agent"
DEFAULT_AGENT_DESCRIPTION = "Specialized agent for various tasks"


class AgentParams(BaseModel):
	"""Arguments of an agent tool call."""

	prompt: str = Field(default="", description="The task for the agent")
	agent_name: str | None = Field(default=None,
	                               description="Agent to dispatch to")


def build_agent_tool_description(registry: AgentRegistry) -> str:
	"""
	Render the agent tool description from the live registry.

	Each dispatchable agent is listed as ``- id: description``, sorted
	by id. The coder and disabled agents are left out.
	"""
	lines = [
	    f"- {a.id}: {a.description or DEFAULT_AGENT_DESCRIPTION}"
	    for a in registry.subagents()
	]
	return load_prompt("agent_tool.md").replace("{agents}", "\n".join(lines))


def _success(outcome: DispatchOutcome) -> ToolResult:
	return {
	    "textResultForLlm": outcome.text,
	    "resultType": "success",
	    "toolTelemetry": {},
	    "sessionLog": "",
	    "binaryResultsForLlm": [],
	    "data": {
	        "agent_name": outcome.agent_name,
	        "session_id": outcome.session_id,
	        "recovered_by": outcome.recovered_by,
	    },
	}


def _failure(msg: str, data: dict | None = None) -> ToolResult:
	return {
	    "textResultForLlm": msg,
	    "resultType": "failure",
	    "toolTelemetry": {},
	    "sessionLog": "",
	    "binaryResultsForLlm": [],
	    "data": {
	        "error": msg,
	        **(data or {})
	    },
	}


async def handle_agent_call(
    dispatcher: Dispatcher,
    caller_session_id: str,
    caller_message_id: str,
    call_id: str,
    arguments: dict[str, Any] | None,
) -> ToolResult:
	"""
	Run one agent tool call.

	Parameters:
		dispatcher: Dispatcher to delegate to.
		caller_session_id: Session of the calling agent.
		caller_message_id: Message of the calling agent.
		call_id: Id of this tool call.
		arguments: Raw tool arguments.

	Returns:
		A success ToolResult with the agent's text, or a failure
		ToolResult for invalid arguments, unknown agents and controlled
		errors.

	Raises:
		DispatchError: Timeouts, execution and state sync failures.
	"""
	try:
		params = AgentParams.model_validate(arguments or {})
	except ValidationError as exc:
		return _failure(f"invalid agent tool arguments: {exc}")

	try:
		outcome = await dispatcher.dispatch(caller_session_id,
		                                    caller_message_id, call_id,
		                                    params.agent_name, params.prompt)
	except DispatchValidationError as exc:
		return _failure(str(exc))
	except AgentNotFoundError as exc:
		return _failure(str(exc), {"available": exc.available})

	if outcome.is_error:
		return _failure(outcome.text, {
		    "agent_name": outcome.agent_name,
		    "session_id": outcome.session_id,
		})
	return _success(outcome)


def agent_tool(dispatcher: Dispatcher,
               registry: AgentRegistry,
               caller_session_id: str,
               caller_message_id: str | None = None) -> Tool:
	"""Define the agent tool bound to one calling session.

	When no message id is given, the invoking tool call id stands in
	for it.
	"""

	async def handler(invocation: ToolInvocation) -> ToolResult:
		call_id = invocation.get("tool_call_id") or ""
		return await handle_agent_call(
		    dispatcher,
		    caller_session_id,
		    caller_message_id or call_id,
		    call_id,
		    invocation.get("arguments"),
		)

	return Tool(
	    name=AGENT_TOOL_NAME,
	    description=build_agent_tool_description(registry),
	    parameters={
	        "type": "object",
	        "properties": {
	            "prompt": {
	                "type": "string",
	                "description": "The task for the agent to perform",
	            },
	            "agent_name": {
	                "type":
	                "string",
	                "description":
	                "Name of the agent to use (see the list of available "
	                "agents)",
	            },
	        },
	        "required": ["prompt", "agent_name"],
	    },
	    handler=handler,
	)


__all__ = [
    "AGENT_TOOL_NAME",
    "DEFAULT_AGENT_DESCRIPTION",
    "AgentParams",
    "build_agent_tool_description",
    "handle_agent_call",
    "agent_tool",
]
