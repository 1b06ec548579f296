"""Tests for the in-memory session store and cost roll-up."""

import asyncio

import pytest

from subagent_dispatch.core.cost import roll_up_cost
from subagent_dispatch.core.sessions import InMemorySessionStore
from subagent_dispatch.errors import SessionNotFoundError, StateSyncError
from subagent_dispatch.models.session import Session


@pytest.mark.asyncio
async def test_create_and_get_return_copies():
	store = InMemorySessionStore()
	s = await store.create("root")
	fetched = await store.get(s.id)
	fetched.cost = 99
	assert (await store.get(s.id)).cost == 0
	assert not s.is_task_session


@pytest.mark.asyncio
async def test_get_missing_raises():
	store = InMemorySessionStore()
	with pytest.raises(SessionNotFoundError) as exc:
		await store.get("nope")
	assert exc.value.session_id == "nope"


@pytest.mark.asyncio
async def test_task_session_links_parent():
	store = InMemorySessionStore()
	parent = await store.create("root")
	child = await store.create_task_session("call-7", parent.id, "Debugger")
	assert child.is_task_session
	assert child.parent_session_id == parent.id
	assert child.call_id == "call-7"
	assert [c.id for c in await store.list_children(parent.id)] == [child.id]
	assert len(store) == 2


@pytest.mark.asyncio
async def test_save_updates_timestamp():
	store = InMemorySessionStore()
	s = Session(title="x")
	saved = await store.save(s)
	assert saved.updated_at >= s.updated_at


@pytest.mark.asyncio
async def test_update_serializes_read_modify_write():
	store = InMemorySessionStore()
	s = await store.create("root")

	async def bump():
		await store.update(s.id, lambda x: x.add_usage(cost=1))

	await asyncio.gather(*[bump() for _ in range(50)])
	assert (await store.get(s.id)).cost == 50


@pytest.mark.asyncio
async def test_roll_up_cost_adds_child_usage():
	store = InMemorySessionStore()
	parent = await store.create("root")
	await store.update(parent.id, lambda s: s.add_usage(cost=1.5))
	child = await store.create_task_session("c", parent.id, "Task Agent")
	await store.update(
	    child.id, lambda s: s.add_usage(cost=0.5, prompt_tokens=100,
	                                    completion_tokens=20))

	updated = await roll_up_cost(store, child.id, parent.id)

	assert updated.cost == pytest.approx(2.0)
	assert updated.prompt_tokens == 100
	assert updated.completion_tokens == 20
	assert (await store.get(child.id)).cost == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_roll_up_cost_missing_child():
	store = InMemorySessionStore()
	parent = await store.create("root")
	with pytest.raises(StateSyncError, match="error getting session"):
		await roll_up_cost(store, "missing", parent.id)


class FailingSaveStore(InMemorySessionStore):

	def __init__(self, fail_id):
		super().__init__()
		self.fail_id = fail_id

	async def save(self, session):
		if session.id == self.fail_id:
			raise RuntimeError("write failed")
		return await super().save(session)


@pytest.mark.asyncio
async def test_roll_up_cost_save_failure():
	parent = Session(title="root")
	store = FailingSaveStore(parent.id)
	store._sessions[parent.id] = parent
	child = await store.create_task_session("c", parent.id, "t")
	with pytest.raises(StateSyncError, match="write failed"):
		await roll_up_cost(store, child.id, parent.id)


class YieldingStore(InMemorySessionStore):
	"""Store whose reads suspend, so unguarded read-modify-writes interleave."""

	async def get(self, session_id):
		await asyncio.sleep(0)
		return await super().get(session_id)


@pytest.mark.asyncio
async def test_concurrent_roll_ups_of_distinct_costs_sum_exactly():
	store = YieldingStore()
	parent = await store.create("root")
	costs = [0.1, 0.2, 0.4, 0.8, 1.6]
	children = []
	for i, cost in enumerate(costs):
		child = await store.create_task_session(f"c{i}", parent.id, "t")
		await store.update(child.id,
		                   lambda s, cost=cost: s.add_usage(cost=cost))
		children.append(child)

	await asyncio.gather(
	    *[roll_up_cost(store, c.id, parent.id) for c in children])

	assert (await store.get(parent.id)).cost == pytest.approx(sum(costs))


@pytest.mark.asyncio
async def test_update_locks_are_released_when_idle():
	store = YieldingStore()
	s = await store.create("root")
	await asyncio.gather(
	    *[store.update(s.id, lambda x: x.add_usage(cost=1)) for _ in range(5)])
	assert (await store.get(s.id)).cost == 5
	assert store._locks == {}
	assert not store._lock_users


@pytest.mark.asyncio
async def test_update_lock_released_after_failed_mutation():
	store = InMemorySessionStore()
	s = await store.create("root")

	def boom(session):
		raise RuntimeError("bad mutation")

	with pytest.raises(RuntimeError):
		await store.update(s.id, boom)
	with pytest.raises(SessionNotFoundError):
		await store.update("missing", lambda x: None)
	assert store._locks == {}
