"""
Copilot-backed agent execution service.

Runs one agent per Copilot session: the agent is installed as a custom
agent, the prompt is sent and awaited, and the session's events are
collected into the RawResult the dispatcher recovers a response from.
Usage cost is saved onto the child task session before the result is
delivered, so the dispatcher's roll-up sees it.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from copilot.generated.session_events import SessionEventType

from subagent_dispatch.integrations.custom_agents import (
    to_custom_agent,
    to_system_message,
)
from subagent_dispatch.loaders.mcp import load_mcp_servers, select_mcp_servers
from subagent_dispatch.models.agent import Agent
from subagent_dispatch.models.config import Config
from subagent_dispatch.models.message import (
    FinishReason,
    MessageRole,
    RawResult,
    RunResult,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from subagent_dispatch.models.usage import UsageStats
from subagent_dispatch.utils.logging import get_logger
from subagent_dispatch.utils.protocols import (
    CopilotClientProtocol,
    ExecutionContextProtocol,
    SessionProtocol,
    SessionStore,
)

logger = get_logger(__name__)


def _arguments_text(arguments: Any) -> str:
	if arguments is None:
		return ""
	if isinstance(arguments, str):
		return arguments
	try:
		return json.dumps(arguments, ensure_ascii=False)
	except (TypeError, ValueError):
		return str(arguments)


def _result_text(data: Any) -> str:
	"""Extract the text of a completed tool execution event."""
	result = getattr(data, "result", None)
	if result is not None:
		content = getattr(result, "content", None)
		if content is None and isinstance(result, str):
			content = result
		if content:
			return str(content)
	error = getattr(data, "error", None)
	if error:
		return str(getattr(error, "message", None) or error)
	return ""


class ResultCollector:
	"""Collect session events into a RawResult and usage totals."""

	def __init__(self, agent_name: str) -> None:
		self.agent_name = agent_name
		self.chunks: list[str] = []
		self.last_message: str | None = None
		self.usage = UsageStats()
		self.error: str | None = None
		self._calls: dict[str, ToolCallPart] = {}
		self._results: list[ToolResultPart] = []

	def handler(self, event: Any) -> None:
		"""Handle a session event."""
		et = getattr(event, "type", None)
		data = getattr(event, "data", None)
		if et == SessionEventType.ASSISTANT_MESSAGE_DELTA:
			self.chunks.append(getattr(data, "delta_content", "") or "")
		elif et == SessionEventType.ASSISTANT_MESSAGE:
			content = getattr(data, "content", "") or ""
			if content:
				self.last_message = content
		elif et == SessionEventType.ASSISTANT_USAGE:
			self.usage.merge_turn(
			    input_tokens=getattr(data, "input_tokens", 0) or 0,
			    output_tokens=getattr(data, "output_tokens", 0) or 0,
			    cost=getattr(data, "cost", 0) or 0,
			    # SDK reports duration in milliseconds, convert to seconds
			    duration=(getattr(data, "duration", 0) or 0) / 1000.0,
			)
		elif et == SessionEventType.TOOL_EXECUTION_START:
			call_id = getattr(data, "tool_call_id", None) or ""
			name = getattr(data, "tool_name", None) or getattr(
			    data, "name", "") or ""
			self._calls[call_id] = ToolCallPart(
			    id=call_id,
			    name=name,
			    input=_arguments_text(getattr(data, "arguments", None)),
			    finished=False,
			)
		elif et == SessionEventType.TOOL_EXECUTION_COMPLETE:
			call_id = getattr(data, "tool_call_id", None) or ""
			call = self._calls.get(call_id)
			if call is not None:
				call.finished = True
			name = call.name if call else (getattr(data, "tool_name", None) or "")
			self._results.append(
			    ToolResultPart(
			        tool_call_id=call_id,
			        name=name,
			        content=_result_text(data),
			        is_error=not getattr(data, "success", True),
			    ))
		elif et == SessionEventType.SESSION_ERROR:
			self.error = getattr(data, "message", None) or str(data)
			logger.warning("agent %s session error: %s", self.agent_name,
			               self.error)

	@property
	def text(self) -> str:
		"""Concatenate collected deltas into a single string."""
		return "".join(self.chunks)

	def build(self, content: str | None, *, aborted: bool = False) -> RawResult:
		"""
		Build the final RawResult for the run.

		Parameters:
			content: Final assistant content, if the send returned one.
			aborted: True when the run was stopped before going idle.

		Returns:
			RawResult with the assistant text first, then tool activity.
		"""
		text = content or self.last_message or self.text
		parts: list[Any] = []
		if text:
			parts.append(TextPart(text=text))
		parts.extend(self._calls.values())
		parts.extend(self._results)

		if aborted:
			finish = FinishReason.CANCELED
		elif self.error:
			finish = FinishReason.ERROR
		elif text:
			finish = FinishReason.END_TURN
		else:
			# left for the recovery engine to infer
			finish = FinishReason.UNKNOWN
		return RawResult(role=MessageRole.ASSISTANT, parts=parts,
		                 finish_reason=finish)


async def fetch_last_assistant_message(session: Any) -> str | None:
	"""Fallback to retrieve the last assistant message from session messages."""
	try:
		messages = await session.get_messages()
	except Exception:
		logger.debug("failed to fetch session messages", exc_info=True)
		return None
	for ev in reversed(messages or []):
		if getattr(ev, "type", None) == SessionEventType.ASSISTANT_MESSAGE:
			return getattr(getattr(ev, "data", None), "content", None)
	return None


async def destroy_session_safe(session: SessionProtocol | None,
                               label: str) -> None:
	"""Destroy a session, logging but not raising on failure."""
	if not session:
		return
	try:
		await session.destroy()
	except Exception:
		logger.debug("failed to destroy %s session", label, exc_info=True)


class CopilotAgentService:
	"""Agent execution service running one agent on Copilot sessions."""

	def __init__(
	    self,
	    client: CopilotClientProtocol,
	    agent: Agent,
	    config: Config,
	    sessions: SessionStore,
	    tools: list | None = None,
	    provider: str | None = None,
	    mcp_servers: dict | None = None,
	) -> None:
		self.client = client
		self.agent = agent
		self.config = config
		self.sessions = sessions
		self.tools = tools or []
		self.provider = provider
		self.mcp_servers = mcp_servers or {}
		self._runs: dict[str, asyncio.Task] = {}

	def build_session_config(self, session_id: str) -> dict:
		"""Build the create_session() config for a run of this agent."""
		config: dict = {
		    "model": self.config.model_for_tier(self.agent.model),
		    "streaming": True,
		    "custom_agents": [to_custom_agent(self.agent)],
		    "system_message": to_system_message(self.agent, self.provider,
		                                        Path(self.config.project_dir)),
		    "tools": self.tools,
		    "available_tools": self.agent.allowed_tools,
		    "session_id": session_id,
		}
		mcp_servers = select_mcp_servers(self.mcp_servers,
		                                 self.agent.allowed_mcp)
		if mcp_servers:
			config["mcp_servers"] = mcp_servers
		return config

	def run(self, context: ExecutionContextProtocol, session_id: str,
	        prompt: str) -> asyncio.Task:
		"""Start a run; the returned task resolves to one RunResult."""
		task = asyncio.ensure_future(self._run(context, session_id, prompt))
		self._runs[session_id] = task
		task.add_done_callback(lambda _t: self._runs.pop(session_id, None))
		return task

	def cancel(self, session_id: str) -> None:
		task = self._runs.get(session_id)
		if task is not None and not task.done():
			task.cancel()

	async def _run(self, context: ExecutionContextProtocol, session_id: str,
	               prompt: str) -> RunResult:
		collector = ResultCollector(self.agent.id)
		session = None
		content: str | None = None
		aborted = False
		try:
			session = await self.client.create_session(
			    self.build_session_config(session_id))
			session.on(collector.handler)
			try:
				response = await session.send_and_wait(
				    {"prompt": f"@{self.agent.id}\n{prompt}"},
				    timeout=max(1, int(context.remaining())))
				if response and getattr(response, "data", None):
					content = response.data.content
			except asyncio.TimeoutError:
				aborted = True
				logger.warning("agent %s did not go idle before deadline",
				               self.agent.id)
				try:
					await session.abort()
				except Exception:
					logger.debug("failed to abort session %s", session_id,
					             exc_info=True)
			if not content and not aborted:
				content = collector.text or await fetch_last_assistant_message(
				    session)
		except asyncio.CancelledError:
			if session is not None:
				try:
					await session.abort()
				except Exception:
					logger.debug("failed to abort session %s", session_id,
					             exc_info=True)
			raise
		except Exception as exc:
			logger.exception("agent %s run failed", self.agent.id)
			return RunResult(error=str(exc))
		finally:
			await destroy_session_safe(session, f"agent {self.agent.id}")

		await self._record_usage(session_id, collector.usage)
		return RunResult(message=collector.build(content, aborted=aborted))

	async def _record_usage(self, session_id: str, usage: UsageStats) -> None:
		if usage.turns:
			await self.sessions.update(session_id, usage.apply_to)


def copilot_service_factory(client: CopilotClientProtocol,
                            config: Config,
                            sessions: SessionStore,
                            tools: list | None = None,
                            provider: str | None = None):
	"""Return a registry service factory bound to one Copilot client."""
	mcp_servers = load_mcp_servers(config.mcp_config)

	def factory(agent: Agent) -> CopilotAgentService:
		return CopilotAgentService(client, agent, config, sessions, tools,
		                           provider, mcp_servers)

	return factory


__all__ = [
    "ResultCollector",
    "CopilotAgentService",
    "copilot_service_factory",
    "fetch_last_assistant_message",
    "destroy_session_safe",
]
