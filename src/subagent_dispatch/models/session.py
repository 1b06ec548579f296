"""
Session model.

A session is a persisted conversation record with an accumulating cost
counter. Task sessions are children spawned by a dispatch and point at
the caller's session and the tool call that created them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _now() -> datetime:
	return datetime.now(timezone.utc)


class Session(BaseModel):
	"""Conversation session with cost accounting."""

	id: str = Field(default_factory=lambda: uuid.uuid4().hex)
	parent_session_id: str | None = Field(
	    default=None, description="Caller session for task sessions")
	call_id: str | None = Field(
	    default=None, description="Tool call that spawned this session")
	title: str = Field(default="", description="Session title")
	cost: float = Field(default=0.0, description="Accumulated cost")
	prompt_tokens: float = Field(default=0, description="Input tokens")
	completion_tokens: float = Field(default=0, description="Output tokens")
	created_at: datetime = Field(default_factory=_now)
	updated_at: datetime = Field(default_factory=_now)

	@property
	def is_task_session(self) -> bool:
		return self.parent_session_id is not None

	def add_usage(self, *, cost: float = 0, prompt_tokens: float = 0,
	              completion_tokens: float = 0) -> None:
		"""Accumulate usage onto this session."""
		self.cost += cost or 0
		self.prompt_tokens += prompt_tokens or 0
		self.completion_tokens += completion_tokens or 0
		self.updated_at = _now()


__all__ = ["Session"]
