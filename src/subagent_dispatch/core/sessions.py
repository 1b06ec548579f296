"""
In-memory session store.

Serializes read-modify-write updates per session id with an asyncio
lock, so concurrent dispatches rolling cost into the same parent never
lose an update. A lock lives only while some update holds or waits on
it.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from subagent_dispatch.errors import SessionNotFoundError
from subagent_dispatch.models.session import Session, _now


class InMemorySessionStore:
	"""Session store backed by a dict, with per-session update locks."""

	def __init__(self) -> None:
		self._sessions: dict[str, Session] = {}
		self._locks: dict[str, asyncio.Lock] = {}
		self._lock_users: Counter[str] = Counter()

	@asynccontextmanager
	async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
		lock = self._locks.setdefault(session_id, asyncio.Lock())
		self._lock_users[session_id] += 1
		try:
			async with lock:
				yield
		finally:
			self._lock_users[session_id] -= 1
			if self._lock_users[session_id] <= 0:
				del self._lock_users[session_id]
				del self._locks[session_id]

	async def get(self, session_id: str) -> Session:
		"""Return a copy of the stored session."""
		session = self._sessions.get(session_id)
		if session is None:
			raise SessionNotFoundError(session_id)
		return session.model_copy(deep=True)

	async def save(self, session: Session) -> Session:
		stored = session.model_copy(deep=True)
		stored.updated_at = _now()
		self._sessions[stored.id] = stored
		return stored.model_copy(deep=True)

	async def create(self, title: str) -> Session:
		return await self.save(Session(title=title))

	async def create_task_session(self, call_id: str, parent_session_id: str,
	                              title: str) -> Session:
		"""Create a child session linked to its caller and tool call."""
		return await self.save(
		    Session(
		        title=title,
		        parent_session_id=parent_session_id,
		        call_id=call_id,
		    ))

	async def update(self, session_id: str,
	                 mutate: Callable[[Session], None]) -> Session:
		"""Apply ``mutate`` to the session under its lock and persist it."""
		async with self._session_lock(session_id):
			session = await self.get(session_id)
			mutate(session)
			return await self.save(session)

	async def list_children(self, parent_session_id: str) -> list[Session]:
		return [
		    s.model_copy(deep=True) for s in self._sessions.values()
		    if s.parent_session_id == parent_session_id
		]

	def __len__(self) -> int:
		return len(self._sessions)


__all__ = ["InMemorySessionStore"]
