"""
Cost roll-up from child task sessions into their caller.
"""

from __future__ import annotations

from subagent_dispatch.errors import StateSyncError
from subagent_dispatch.models.session import Session
from subagent_dispatch.utils.logging import get_logger
from subagent_dispatch.utils.protocols import SessionStore

logger = get_logger(__name__)


async def roll_up_cost(store: SessionStore, child_session_id: str,
                       parent_session_id: str) -> Session:
	"""
	Add a finished child session's cost to its parent, once.

	The parent update goes through ``store.update`` so concurrent
	roll-ups into the same parent are serialized by the store.

	Parameters:
		store: Session store.
		child_session_id: The finished task session.
		parent_session_id: The caller's session.

	Returns:
		The saved parent session.

	Raises:
		StateSyncError: If either session cannot be read or the parent
			cannot be saved.
	"""
	try:
		child = await store.get(child_session_id)
	except Exception as exc:
		raise StateSyncError(f"error getting session: {exc}") from exc

	def _add(parent: Session) -> None:
		parent.add_usage(
		    cost=child.cost,
		    prompt_tokens=child.prompt_tokens,
		    completion_tokens=child.completion_tokens,
		)

	try:
		parent = await store.update(parent_session_id, _add)
	except Exception as exc:
		raise StateSyncError(
		    f"error updating parent session {parent_session_id}: {exc}"
		) from exc

	logger.debug("rolled cost %.6f from %s into %s (total %.6f)", child.cost,
	             child_session_id, parent_session_id, parent.cost)
	return parent


__all__ = ["roll_up_cost"]
