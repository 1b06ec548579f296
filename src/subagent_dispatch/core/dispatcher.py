"""
Sub-agent dispatcher.

Delegates a prompt to a named agent: creates a child task session,
runs the agent under its own execution ceiling, recovers a usable
response from whatever the run produced, and rolls the child's cost
into the caller's session.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from subagent_dispatch.core.cost import roll_up_cost
from subagent_dispatch.core.recovery import recover
from subagent_dispatch.core.registry import AgentRegistry
from subagent_dispatch.errors import (
    DispatchError,
    DispatchTimeoutError,
    DispatchValidationError,
    AgentNotFoundError,
    ExecutionError,
)
from subagent_dispatch.models.agent import Agent
from subagent_dispatch.models.config import DEFAULT_DISPATCH_TIMEOUT_SECONDS
from subagent_dispatch.models.message import RunResult
from subagent_dispatch.models.outcome import DispatchOutcome
from subagent_dispatch.utils.logging import get_logger
from subagent_dispatch.utils.protocols import AgentService, SessionStore

logger = get_logger(__name__)

KNOWN_AGENT_TITLES = {
    "task": "Task Agent",
    "code-reviewer": "Code Reviewer",
    "debugger": "Debugger",
    "test-runner": "Test Runner",
    "refactorer": "Refactorer",
}


def format_agent_name(name: str) -> str:
	"""
	Format an agent id into a display name.

	Known built-in ids map to fixed titles. Otherwise hyphens become
	spaces and each word is capitalized; an empty id becomes "Agent".
	"""
	if name in KNOWN_AGENT_TITLES:
		return KNOWN_AGENT_TITLES[name]
	words = name.replace("-", " ").split()
	if not words:
		return "Agent"
	return " ".join(w[:1].upper() + w[1:] for w in words)


def resolve_session_title(agent: Agent | None, agent_name: str) -> str:
	"""Use the agent's configured display name, else a formatted id."""
	if agent is not None and agent.name:
		return agent.name
	return format_agent_name(agent_name)


@dataclass
class ExecutionContext:
	"""Context handed to an agent run.

	Carries only the caller's correlation ids and the run's own deadline.
	It shares nothing with the caller's cancellation.
	"""

	session_id: str
	message_id: str
	timeout_seconds: float = DEFAULT_DISPATCH_TIMEOUT_SECONDS
	started_at: float = field(default_factory=time.monotonic)

	@property
	def deadline(self) -> float:
		return self.started_at + self.timeout_seconds

	def remaining(self) -> float:
		"""Seconds left before the ceiling, never negative."""
		return max(0.0, self.deadline - time.monotonic())


class Dispatcher:
	"""Runs sub-agents on behalf of a calling agent."""

	def __init__(
	    self,
	    registry: AgentRegistry,
	    sessions: SessionStore,
	    timeout_seconds: float = DEFAULT_DISPATCH_TIMEOUT_SECONDS,
	    legacy_default_agent: str | None = None,
	) -> None:
		"""
		Parameters:
			registry: Live agent registry.
			sessions: Session store used for task sessions and cost.
			timeout_seconds: Execution ceiling per run.
			legacy_default_agent: When set, an empty agent name dispatches
				to this agent instead of failing validation.
		"""
		self.registry = registry
		self.sessions = sessions
		self.timeout_seconds = timeout_seconds
		self.legacy_default_agent = legacy_default_agent
		self._inflight: set[asyncio.Task] = set()

	def _resolve_agent_name(self, agent_name: str | None) -> str:
		name = (agent_name or "").strip()
		if name:
			return name
		if self.legacy_default_agent:
			logger.info("agent_name omitted, using legacy default agent %s",
			            self.legacy_default_agent)
			return self.legacy_default_agent
		raise DispatchValidationError(
		    "agent_name is required. Check the tool description for "
		    "available agents.")

	async def dispatch(
	    self,
	    caller_session_id: str,
	    caller_message_id: str,
	    call_id: str,
	    agent_name: str | None,
	    prompt: str,
	) -> DispatchOutcome:
		"""
		Delegate ``prompt`` to ``agent_name`` and wait for its response.

		The run executes in its own task shielded from cancellation of
		the caller; only its own ceiling stops it. If the caller is
		cancelled, the run still finishes and its cost is still rolled up.

		Parameters:
			caller_session_id: Session of the calling agent.
			caller_message_id: Message of the calling agent.
			call_id: Id of the tool call requesting the dispatch.
			agent_name: Registry name of the agent to run.
			prompt: Task for the agent.

		Returns:
			DispatchOutcome with nonempty text; ``is_error`` marks a
			controlled error.

		Raises:
			DispatchValidationError: Empty prompt, agent name or ids.
			AgentNotFoundError: Unknown, disabled or coder agent name.
			DispatchTimeoutError: The run exceeded the ceiling.
			ExecutionError: The run failed.
			StateSyncError: Cost roll-up failed after a completed run.
		"""
		if not prompt or not prompt.strip():
			raise DispatchValidationError("prompt is required")
		name = self._resolve_agent_name(agent_name)

		available = self.registry.subagent_names()
		logger.info("agent tool invoked: requested_agent=%s available=%s",
		            name, available)
		if not self.registry.is_dispatchable(name):
			if name in self.registry:
				logger.warning("refusing dispatch to %s: coder or disabled", name)
			raise AgentNotFoundError(name, available)
		if not caller_session_id or not caller_message_id:
			raise DispatchValidationError(
			    "session_id and message_id are required")

		task = asyncio.ensure_future(
		    self._execute(caller_session_id, caller_message_id, call_id,
		                  name, prompt))
		self._inflight.add(task)
		task.add_done_callback(self._on_done)
		return await asyncio.shield(task)

	def _on_done(self, task: asyncio.Task) -> None:
		self._inflight.discard(task)
		if not task.cancelled() and task.exception() is not None:
			logger.debug("dispatch task finished with %r", task.exception())

	async def wait_inflight(self) -> None:
		"""Wait for runs whose callers went away."""
		if self._inflight:
			await asyncio.gather(*self._inflight, return_exceptions=True)

	async def _execute(self, caller_session_id: str, caller_message_id: str,
	                   call_id: str, name: str,
	                   prompt: str) -> DispatchOutcome:
		agent = self.registry.get(name)
		service = self.registry.service(name)
		if service is None:
			raise AgentNotFoundError(name, self.registry.subagent_names())

		title = resolve_session_title(agent, name)
		try:
			session = await self.sessions.create_task_session(
			    call_id, caller_session_id, title)
		except Exception as exc:
			raise DispatchError(f"error creating session: {exc}") from exc

		context = ExecutionContext(
		    session_id=caller_session_id,
		    message_id=caller_message_id,
		    timeout_seconds=self.timeout_seconds,
		)
		logger.info("dispatching to %s (session=%s, title=%r, timeout=%ss)",
		            name, session.id, title, self.timeout_seconds)

		result = await self._await_result(service, context, session.id, name,
		                                  prompt)
		outcome = recover(result.message, name)

		await roll_up_cost(self.sessions, session.id, caller_session_id)
		return outcome.model_copy(update={"session_id": session.id})

	async def _await_result(self, service: AgentService,
	                        context: ExecutionContext, session_id: str,
	                        name: str, prompt: str) -> RunResult:
		try:
			completion = service.run(context, session_id, prompt)
		except Exception as exc:
			raise ExecutionError(f"error generating agent: {exc}") from exc

		try:
			result = await asyncio.wait_for(completion,
			                                timeout=context.remaining())
		except asyncio.TimeoutError:
			logger.warning("agent %s timed out after %ss (session=%s)", name,
			               self.timeout_seconds, session_id)
			self._cancel(service, session_id)
			raise DispatchTimeoutError(name, self.timeout_seconds) from None
		except asyncio.CancelledError:
			raise
		except Exception as exc:
			raise ExecutionError(f"error generating agent: {exc}") from exc

		if result.error:
			raise ExecutionError(f"error generating agent: {result.error}")
		if result.message is None:
			raise ExecutionError(
			    "error generating agent: run finished without a message")
		return result

	def _cancel(self, service: AgentService, session_id: str) -> None:
		try:
			service.cancel(session_id)
		except Exception:
			logger.debug("failed to cancel agent run %s", session_id,
			             exc_info=True)


__all__ = [
    "Dispatcher",
    "ExecutionContext",
    "KNOWN_AGENT_TITLES",
    "format_agent_name",
    "resolve_session_title",
]
