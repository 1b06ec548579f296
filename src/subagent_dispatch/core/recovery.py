"""
Response recovery for sub-agent results.

Turns the raw final message of an agent run into a DispatchOutcome.
Generative runs can end with no text, an unknown finish reason, or only
tool activity; the strategies below are tried in order and the first one
that yields nonempty text wins. The last strategy always yields, so a
completed run never produces an empty response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from subagent_dispatch.models.message import (
    FinishReason,
    MessageRole,
    RawResult,
)
from subagent_dispatch.models.outcome import DispatchOutcome
from subagent_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

INTERRUPTED_MESSAGE = "Sub-agent execution was interrupted"
ERRORED_MESSAGE = "Sub-agent encountered an error"
INVALID_RESPONSE_MESSAGE = "Sub-agent did not produce a valid response"

ANALYSIS_PREFIX = "Sub-agent analysis: "
FINDINGS_PREFIX = "Sub-agent completed task with findings:\n"
ISSUES_PREFIX = "Sub-agent encountered issues:\n"


@dataclass(frozen=True)
class RecoveryInput:
	"""What every strategy sees: the result, its effective finish reason,
	and the agent name for messages."""

	result: RawResult
	finish_reason: FinishReason
	agent_name: str


@dataclass(frozen=True)
class RecoveryStrategy:
	"""A named extractor. ``extract`` returns None when it does not apply."""

	name: str
	extract: Callable[[RecoveryInput], Optional[DispatchOutcome]]


def _blank(text: str | None) -> bool:
	return not text or not text.strip()


def infer_finish_reason(result: RawResult) -> FinishReason:
	"""
	Return the declared finish reason, inferring one when it is unknown.

	Pending tool calls mean tool_use, direct text means end_turn, and
	anything else is treated as canceled.
	"""
	if result.finish_reason != FinishReason.UNKNOWN:
		return result.finish_reason
	if result.tool_calls():
		return FinishReason.TOOL_USE
	if not _blank(result.content()):
		return FinishReason.END_TURN
	return FinishReason.CANCELED


def interrupted(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	if inp.finish_reason == FinishReason.CANCELED:
		return DispatchOutcome.controlled_error(INTERRUPTED_MESSAGE)
	if inp.finish_reason == FinishReason.ERROR:
		return DispatchOutcome.controlled_error(ERRORED_MESSAGE)
	return None


def non_assistant(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	"""Salvage a successful tool result from a non-assistant message."""
	if inp.result.role == MessageRole.ASSISTANT:
		return None
	logger.warning("agent %s returned non-assistant message (role=%s)",
	               inp.agent_name, inp.result.role.value)
	for tr in inp.result.tool_results():
		if not tr.is_error and not _blank(tr.content):
			return DispatchOutcome.success(tr.content)
	return DispatchOutcome.controlled_error(INVALID_RESPONSE_MESSAGE)


def direct_content(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	content = inp.result.content()
	if _blank(content):
		return None
	return DispatchOutcome.success(content)


def reasoning(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	thinking = inp.result.reasoning()
	if _blank(thinking):
		return None
	return DispatchOutcome.success(ANALYSIS_PREFIX + thinking)


def _tool_lines(inp: RecoveryInput, errors: bool) -> list[str]:
	lines = []
	for tr in inp.result.tool_results():
		if tr.is_error != errors or _blank(tr.content):
			continue
		if not tr.name:
			lines.append(tr.content)
		elif errors:
			lines.append(f"{tr.name} error: {tr.content}")
		else:
			lines.append(f"{tr.name}: {tr.content}")
	return lines


def tool_findings(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	lines = _tool_lines(inp, errors=False)
	if not lines:
		return None
	return DispatchOutcome.success(FINDINGS_PREFIX + "\n".join(lines))


def tool_issues(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	lines = _tool_lines(inp, errors=True)
	if not lines:
		return None
	return DispatchOutcome.success(ISSUES_PREFIX + "\n".join(lines))


def text_parts(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	texts = [p.text for p in inp.result.text_parts() if not _blank(p.text)]
	if not texts:
		return None
	return DispatchOutcome.success(" ".join(texts))


def tool_call_summary(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	names = [tc.name for tc in inp.result.tool_calls()]
	if not names:
		return None
	return DispatchOutcome.success(
	    f"Sub-agent executed {len(names)} tools ({', '.join(names)}) but "
	    "produced no text output. The agent may have completed its task "
	    "through tool actions.")


def diagnostic(inp: RecoveryInput) -> Optional[DispatchOutcome]:
	result = inp.result
	logger.error(
	    "all recovery strategies failed for agent %s: finish_reason=%s "
	    "parts=%d tool_calls=%d role=%s",
	    inp.agent_name,
	    inp.finish_reason.value or "unknown",
	    len(result.parts),
	    len(result.tool_calls()),
	    result.role.value,
	)
	return DispatchOutcome.controlled_error(
	    f"Sub-agent '{inp.agent_name}' completed but produced no output. "
	    "This typically indicates the agent encountered an issue but didn't "
	    "report it properly. Possible causes: task was unclear, agent lacked "
	    "necessary permissions, or an internal error occurred. Consider "
	    "re-running with more specific instructions or checking agent logs.")


DEFAULT_STRATEGIES: tuple[RecoveryStrategy, ...] = (
    RecoveryStrategy("interrupted", interrupted),
    RecoveryStrategy("non_assistant", non_assistant),
    RecoveryStrategy("content", direct_content),
    RecoveryStrategy("reasoning", reasoning),
    RecoveryStrategy("tool_findings", tool_findings),
    RecoveryStrategy("tool_issues", tool_issues),
    RecoveryStrategy("text_parts", text_parts),
    RecoveryStrategy("tool_call_summary", tool_call_summary),
    RecoveryStrategy("diagnostic", diagnostic),
)


def recover(
    result: RawResult,
    agent_name: str,
    strategies: Sequence[RecoveryStrategy] = DEFAULT_STRATEGIES,
) -> DispatchOutcome:
	"""
	Classify a raw agent result and produce the dispatch outcome.

	Parameters:
		result: Final message of the agent run.
		agent_name: Agent that produced it, used in messages and logs.
		strategies: Ordered strategies; the first that yields wins.

	Returns:
		DispatchOutcome with nonempty text, tagged with the strategy that
		produced it.
	"""
	finish_reason = result.finish_reason
	if finish_reason == FinishReason.UNKNOWN:
		finish_reason = infer_finish_reason(result)
		logger.warning(
		    "agent %s returned empty finish reason, recovered as %s "
		    "(tool_calls=%d, has_content=%s)",
		    agent_name,
		    finish_reason.value,
		    len(result.tool_calls()),
		    not _blank(result.content()),
		)

	inp = RecoveryInput(result=result, finish_reason=finish_reason,
	                    agent_name=agent_name)
	for strategy in strategies:
		outcome = strategy.extract(inp)
		if outcome is None:
			continue
		if outcome.is_error:
			logger.warning(
			    "agent %s returned controlled error via %s (finish_reason=%s)",
			    agent_name, strategy.name, finish_reason.value)
		elif strategy.name != "content":
			logger.info("agent %s response recovered via %s", agent_name,
			            strategy.name)
		return outcome.model_copy(update={
		    "agent_name": agent_name,
		    "recovered_by": strategy.name,
		})

	# A custom strategy list without a terminal fallback ran dry.
	return diagnostic(inp).model_copy(update={
	    "agent_name": agent_name,
	    "recovered_by": "diagnostic",
	})


__all__ = [
    "INTERRUPTED_MESSAGE",
    "ERRORED_MESSAGE",
    "INVALID_RESPONSE_MESSAGE",
    "ANALYSIS_PREFIX",
    "FINDINGS_PREFIX",
    "ISSUES_PREFIX",
    "RecoveryInput",
    "RecoveryStrategy",
    "DEFAULT_STRATEGIES",
    "infer_finish_reason",
    "recover",
]
