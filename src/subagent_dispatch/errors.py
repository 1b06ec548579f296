"""
Error types raised by the dispatcher and the definition loader.

Hard failures propagate as exceptions derived from ``DispatchError``.
Controlled errors (interrupted runs, exhausted recovery) are not
exceptions; they travel as text on ``DispatchOutcome``.
"""

from __future__ import annotations

from pathlib import Path


class DispatchError(Exception):
	"""Base class for dispatch failures."""


class DispatchValidationError(DispatchError, ValueError):
	"""Caller supplied an empty prompt, agent name, or correlation id."""


class AgentNotFoundError(DispatchError, LookupError):
	"""Requested agent is not present in the live registry."""

	def __init__(self, requested: str, available: list[str]) -> None:
		self.requested = requested
		self.available = list(available)
		super().__init__(f"agent '{requested}' not found. "
		                 f"Available agents: {', '.join(self.available)}")


class ExecutionError(DispatchError):
	"""The agent run failed to produce a result."""


class DispatchTimeoutError(ExecutionError):
	"""The agent run exceeded its execution ceiling."""

	def __init__(self, agent_name: str, timeout_seconds: float) -> None:
		self.agent_name = agent_name
		self.timeout_seconds = timeout_seconds
		super().__init__(f"sub-agent '{agent_name}' timed out after "
		                 f"{_format_seconds(timeout_seconds)}")


class StateSyncError(DispatchError):
	"""Generation succeeded but session bookkeeping failed."""


class SessionNotFoundError(LookupError):
	"""No session exists for the given id."""

	def __init__(self, session_id: str) -> None:
		self.session_id = session_id
		super().__init__(f"session not found: {session_id}")


class AgentDefinitionError(Exception):
	"""An agent definition file could not be parsed or validated."""

	def __init__(self, path: Path | str | None, message: str) -> None:
		self.path = Path(path) if path else None
		self.message = message
		if self.path:
			super().__init__(f"{message}: {self.path}")
		else:
			super().__init__(message)


def _format_seconds(seconds: float) -> str:
	if seconds >= 60 and seconds % 60 == 0:
		minutes = int(seconds // 60)
		return f"{minutes} minute{'s' if minutes != 1 else ''}"
	return f"{seconds:g}s"


__all__ = [
    "DispatchError",
    "DispatchValidationError",
    "AgentNotFoundError",
    "ExecutionError",
    "DispatchTimeoutError",
    "StateSyncError",
    "SessionNotFoundError",
    "AgentDefinitionError",
]
