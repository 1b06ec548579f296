"""
Protocol definitions for dependency injection.

Defines the interfaces the dispatcher consumes (agent execution
service, session store) and the Copilot client/session surface used by
the Copilot-backed execution service, so tests can substitute fakes.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from subagent_dispatch.models.message import RunResult
from subagent_dispatch.models.session import Session


class ExecutionContextProtocol(Protocol):
	session_id: str
	message_id: str

	def remaining(self) -> float:
		...


class AgentService(Protocol):
	"""
	Protocol for an agent execution service.

	``run`` starts a run and returns a single-shot awaitable that yields
	exactly one RunResult.
	"""

	def run(self, context: ExecutionContextProtocol, session_id: str,
	        prompt: str) -> Awaitable[RunResult]:
		...

	def cancel(self, session_id: str) -> None:
		...


class SessionStore(Protocol):
	"""Protocol for session persistence."""

	async def get(self, session_id: str) -> Session:
		...

	async def save(self, session: Session) -> Session:
		...

	async def create(self, title: str) -> Session:
		...

	async def create_task_session(self, call_id: str, parent_session_id: str,
	                              title: str) -> Session:
		...

	async def update(self, session_id: str,
	                 mutate: Callable[[Session], None]) -> Session:
		"""Apply ``mutate`` to a session atomically and persist it."""
		...

	async def list_children(self, parent_session_id: str) -> list[Session]:
		...


class SessionProtocol(Protocol):
	"""
	Protocol for Copilot session interface.

	Defines the expected methods for interacting with a Copilot session.
	"""

	async def send_and_wait(self, options: dict,
	                        timeout: int | None = None) -> Any:
		...

	async def abort(self) -> Any:
		...

	async def destroy(self) -> Any:
		...

	def on(self, handler: Any) -> Any:
		...

	async def get_messages(self) -> Any:
		...


class CopilotClientProtocol(Protocol):
	"""Protocol for Copilot client interface."""

	async def start(self) -> Any:
		...

	async def stop(self) -> Any:
		...

	async def create_session(self, config: dict) -> SessionProtocol:
		...


__all__ = [
    "ExecutionContextProtocol",
    "AgentService",
    "SessionStore",
    "SessionProtocol",
    "CopilotClientProtocol",
]
