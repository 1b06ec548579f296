"""Tests for the sub-agent dispatcher."""

import asyncio

import pytest

from subagent_dispatch.core.dispatcher import (
    Dispatcher,
    ExecutionContext,
    format_agent_name,
    resolve_session_title,
)
from subagent_dispatch.core.registry import AgentRegistry
from subagent_dispatch.core.sessions import InMemorySessionStore
from subagent_dispatch.errors import (
    AgentNotFoundError,
    DispatchError,
    DispatchTimeoutError,
    DispatchValidationError,
    ExecutionError,
    StateSyncError,
)
from subagent_dispatch.models.agent import Agent
from subagent_dispatch.models.message import (
    FinishReason,
    RawResult,
    RunResult,
    TextPart,
)


def _text_result(text="done"):
	return RawResult(parts=[TextPart(text=text)],
	                 finish_reason=FinishReason.END_TURN)


class DummyService:
	"""Agent service that resolves after ``delay`` and bills ``cost``."""

	def __init__(self, sessions, message=None, cost=0.0, delay=0.0,
	             error=None, fail_on_run=False):
		self.sessions = sessions
		self.message = message if message is not None else _text_result()
		self.cost = cost
		self.delay = delay
		self.error = error
		self.fail_on_run = fail_on_run
		self.calls = []
		self.cancelled = []
		self.completed = []
		self._tasks = {}

	def run(self, context, session_id, prompt):
		if self.fail_on_run:
			raise RuntimeError("service unavailable")
		self.calls.append((context, session_id, prompt))
		task = asyncio.ensure_future(self._run(session_id))
		self._tasks[session_id] = task
		return task

	async def _run(self, session_id):
		await asyncio.sleep(self.delay)
		if self.cost:
			await self.sessions.update(
			    session_id, lambda s: s.add_usage(cost=self.cost,
			                                      prompt_tokens=10,
			                                      completion_tokens=5))
		self.completed.append(session_id)
		if self.error:
			return RunResult(error=self.error)
		return RunResult(message=self.message)

	def cancel(self, session_id):
		self.cancelled.append(session_id)
		task = self._tasks.get(session_id)
		if task is not None:
			task.cancel()


async def _setup(service_kwargs=None, agents=None, **dispatcher_kwargs):
	sessions = InMemorySessionStore()
	registry = AgentRegistry()
	services = {}
	for agent in agents or [Agent(id="code-reviewer"), Agent(id="task",
	                                                         name="Task Agent")]:
		services[agent.id] = DummyService(sessions, **(service_kwargs or {}))
		registry.register(agent, services[agent.id])
	parent = await sessions.create("parent")
	dispatcher = Dispatcher(registry, sessions, **dispatcher_kwargs)
	return dispatcher, registry, sessions, services, parent


@pytest.mark.parametrize(
    "name,expected",
    [
        ("task", "Task Agent"),
        ("code-reviewer", "Code Reviewer"),
        ("debugger", "Debugger"),
        ("test-runner", "Test Runner"),
        ("refactorer", "Refactorer"),
        ("security-audit-bot", "Security Audit Bot"),
        ("", "Agent"),
    ],
)
def test_format_agent_name(name, expected):
	assert format_agent_name(name) == expected


def test_resolve_session_title_prefers_display_name():
	assert resolve_session_title(Agent(id="x", name="Custom"), "x") == "Custom"
	assert resolve_session_title(Agent(id="test-runner"),
	                             "test-runner") == "Test Runner"
	assert resolve_session_title(None, "debugger") == "Debugger"


def test_execution_context_remaining():
	ctx = ExecutionContext(session_id="s", message_id="m", timeout_seconds=5)
	assert 0 < ctx.remaining() <= 5
	expired = ExecutionContext(session_id="s", message_id="m",
	                           timeout_seconds=1, started_at=0.0)
	assert expired.remaining() == 0.0


@pytest.mark.asyncio
async def test_dispatch_success_creates_child_and_rolls_up_cost():
	dispatcher, _, sessions, services, parent = await _setup(
	    {"cost": 0.25})

	outcome = await dispatcher.dispatch(parent.id, "msg-1", "call-1",
	                                    "code-reviewer", "Review auth.py")

	assert outcome.text == "done"
	assert not outcome.is_error
	assert outcome.agent_name == "code-reviewer"
	children = await sessions.list_children(parent.id)
	assert len(children) == 1
	child = children[0]
	assert outcome.session_id == child.id
	assert child.call_id == "call-1"
	assert child.title == "Code Reviewer"
	assert child.cost == pytest.approx(0.25)

	updated = await sessions.get(parent.id)
	assert updated.cost == pytest.approx(0.25)
	assert updated.prompt_tokens == 10
	assert updated.completion_tokens == 5

	context, session_id, prompt = services["code-reviewer"].calls[0]
	assert session_id == child.id
	assert prompt == "Review auth.py"
	assert context.session_id == parent.id
	assert context.message_id == "msg-1"


@pytest.mark.asyncio
async def test_display_name_used_as_title():
	dispatcher, _, sessions, _, parent = await _setup()
	await dispatcher.dispatch(parent.id, "m", "c", "task", "find things")
	children = await sessions.list_children(parent.id)
	assert children[0].title == "Task Agent"


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", ["", "   "])
async def test_empty_prompt_is_validation_error(prompt):
	dispatcher, _, sessions, services, parent = await _setup()
	with pytest.raises(DispatchValidationError, match="prompt is required"):
		await dispatcher.dispatch(parent.id, "m", "c", "code-reviewer", prompt)
	assert len(sessions) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("agent", [
    Agent(id="debugger", disabled=True),
    Agent(id="coder", name="Coder Agent"),
])
async def test_disabled_or_coder_agent_is_refused(agent):
	dispatcher, registry, sessions, services, parent = await _setup()
	service = DummyService(sessions)
	registry.register(agent, service)

	with pytest.raises(AgentNotFoundError) as exc:
		await dispatcher.dispatch(parent.id, "m", "c", agent.id, "task")

	assert exc.value.requested == agent.id
	assert exc.value.available == ["code-reviewer", "task"]
	assert service.calls == []
	assert len(sessions) == 1
	assert services["code-reviewer"].calls == []


@pytest.mark.asyncio
async def test_empty_agent_name_is_validation_error():
	dispatcher, _, sessions, _, parent = await _setup()
	with pytest.raises(DispatchValidationError, match="agent_name is required"):
		await dispatcher.dispatch(parent.id, "m", "c", "", "task")
	assert len(sessions) == 1


@pytest.mark.asyncio
async def test_legacy_mode_uses_default_agent():
	dispatcher, _, _, services, parent = await _setup(
	    legacy_default_agent="task")
	outcome = await dispatcher.dispatch(parent.id, "m", "c", None, "look")
	assert outcome.agent_name == "task"
	assert len(services["task"].calls) == 1


@pytest.mark.asyncio
async def test_unknown_agent_lists_live_registry():
	dispatcher, registry, sessions, _, parent = await _setup()
	late = Agent(id="debugger")
	registry.register(late, DummyService(sessions))

	with pytest.raises(AgentNotFoundError) as exc:
		await dispatcher.dispatch(parent.id, "m", "c", "ghost", "task")

	assert exc.value.requested == "ghost"
	assert exc.value.available == ["code-reviewer", "debugger", "task"]
	assert "Available agents: code-reviewer, debugger, task" in str(exc.value)
	assert len(sessions) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("session_id,message_id", [("", "m"), ("s", "")])
async def test_missing_caller_ids(session_id, message_id):
	dispatcher, _, _, _, _ = await _setup()
	with pytest.raises(DispatchValidationError, match="message_id are required"):
		await dispatcher.dispatch(session_id, message_id, "c",
		                          "code-reviewer", "task")


@pytest.mark.asyncio
async def test_timeout_cancels_run_and_attributes_no_cost():
	dispatcher, _, sessions, services, parent = await _setup(
	    {"cost": 1.0, "delay": 5}, timeout_seconds=0.05)

	with pytest.raises(DispatchTimeoutError) as exc:
		await dispatcher.dispatch(parent.id, "m", "c", "code-reviewer", "slow")

	assert isinstance(exc.value, ExecutionError)
	assert exc.value.agent_name == "code-reviewer"
	child = (await sessions.list_children(parent.id))[0]
	assert services["code-reviewer"].cancelled == [child.id]
	assert services["code-reviewer"].completed == []
	assert (await sessions.get(parent.id)).cost == 0


def test_timeout_message_in_minutes():
	assert str(DispatchTimeoutError("a", 1800)) == \
	    "sub-agent 'a' timed out after 30 minutes"
	assert str(DispatchTimeoutError("a", 2.5)) == \
	    "sub-agent 'a' timed out after 2.5s"


@pytest.mark.asyncio
async def test_run_error_is_execution_error():
	dispatcher, _, sessions, _, parent = await _setup({"error": "model down"})
	with pytest.raises(ExecutionError, match="error generating agent: model down"):
		await dispatcher.dispatch(parent.id, "m", "c", "code-reviewer", "x")
	assert (await sessions.get(parent.id)).cost == 0


@pytest.mark.asyncio
async def test_service_raising_is_execution_error():
	dispatcher, _, _, _, parent = await _setup({"fail_on_run": True})
	with pytest.raises(ExecutionError, match="service unavailable"):
		await dispatcher.dispatch(parent.id, "m", "c", "code-reviewer", "x")


@pytest.mark.asyncio
async def test_unknown_caller_session_is_state_sync_error():
	dispatcher, _, _, _, _ = await _setup({"cost": 0.5})
	with pytest.raises(StateSyncError, match="error updating parent session"):
		await dispatcher.dispatch("missing-parent", "m", "c", "code-reviewer",
		                          "x")


class FailingCreateStore(InMemorySessionStore):

	async def create_task_session(self, call_id, parent_session_id, title):
		raise RuntimeError("disk full")


@pytest.mark.asyncio
async def test_session_creation_failure():
	sessions = FailingCreateStore()
	registry = AgentRegistry()
	agent = Agent(id="task")
	registry.register(agent, DummyService(sessions))
	parent = await sessions.create("p")
	dispatcher = Dispatcher(registry, sessions)
	with pytest.raises(DispatchError, match="error creating session: disk full"):
		await dispatcher.dispatch(parent.id, "m", "c", "task", "x")


@pytest.mark.asyncio
async def test_controlled_error_is_returned_not_raised():
	empty = RawResult(finish_reason=FinishReason.CANCELED)
	dispatcher, _, sessions, _, parent = await _setup({
	    "message": empty,
	    "cost": 0.1
	})
	outcome = await dispatcher.dispatch(parent.id, "m", "c", "task", "x")
	assert outcome.is_error
	assert outcome.text == "Sub-agent execution was interrupted"
	assert (await sessions.get(parent.id)).cost == pytest.approx(0.1)


class YieldingStore(InMemorySessionStore):
	"""Store whose reads suspend, so unguarded read-modify-writes interleave."""

	async def get(self, session_id):
		await asyncio.sleep(0)
		return await super().get(session_id)


@pytest.mark.asyncio
async def test_concurrent_dispatches_sum_distinct_costs_exactly():
	sessions = YieldingStore()
	registry = AgentRegistry()
	costs = [0.1, 0.2, 0.4, 0.8, 1.6]
	for i, cost in enumerate(costs):
		agent = Agent(id=f"worker-{i}")
		registry.register(agent, DummyService(sessions, cost=cost))
	parent = await sessions.create("parent")
	dispatcher = Dispatcher(registry, sessions)

	outcomes = await asyncio.gather(*[
	    dispatcher.dispatch(parent.id, "m", f"call-{i}", f"worker-{i}",
	                        f"job {i}") for i in range(len(costs))
	])

	assert all(o.text == "done" for o in outcomes)
	assert len({o.session_id for o in outcomes}) == len(costs)
	updated = await sessions.get(parent.id)
	assert updated.cost == pytest.approx(sum(costs))
	assert updated.prompt_tokens == 10 * len(costs)


@pytest.mark.asyncio
async def test_caller_cancellation_does_not_stop_run():
	dispatcher, _, sessions, services, parent = await _setup({
	    "cost": 0.5,
	    "delay": 0.05
	})
	caller = asyncio.ensure_future(
	    dispatcher.dispatch(parent.id, "m", "c", "code-reviewer", "x"))
	await asyncio.sleep(0.01)
	caller.cancel()
	with pytest.raises(asyncio.CancelledError):
		await caller

	await dispatcher.wait_inflight()

	assert services["code-reviewer"].cancelled == []
	assert len(services["code-reviewer"].completed) == 1
	assert (await sessions.get(parent.id)).cost == pytest.approx(0.5)
