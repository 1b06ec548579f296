"""
Raw agent result models.

A RawResult is the final message an agent run produced: who produced
it, its content parts, and the declared finish reason. The recovery
engine reads these to build the dispatch outcome.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator


class MessageRole(str, Enum):
	"""Producer of a message."""

	ASSISTANT = "assistant"
	USER = "user"
	TOOL = "tool"
	SYSTEM = "system"


class FinishReason(str, Enum):
	"""Terminal classification of a generative turn.

	UNKNOWN covers both a missing and an unrecognised reason.
	"""

	END_TURN = "end_turn"
	TOOL_USE = "tool_use"
	MAX_TOKENS = "max_tokens"
	ERROR = "error"
	CANCELED = "canceled"
	UNKNOWN = ""


class TextPart(BaseModel):
	type: Literal["text"] = "text"
	text: str = ""


class ReasoningPart(BaseModel):
	type: Literal["reasoning"] = "reasoning"
	thinking: str = ""


class ToolCallPart(BaseModel):
	type: Literal["tool_call"] = "tool_call"
	id: str = ""
	name: str
	input: str = ""
	finished: bool = True


class ToolResultPart(BaseModel):
	type: Literal["tool_result"] = "tool_result"
	tool_call_id: str = ""
	name: str = ""
	content: str = ""
	is_error: bool = False


ContentPart = Annotated[Union[TextPart, ReasoningPart, ToolCallPart,
                              ToolResultPart],
                        Field(discriminator="type")]


class RawResult(BaseModel):
	"""Final message produced by an agent run."""

	id: str = Field(default_factory=lambda: uuid.uuid4().hex)
	role: MessageRole = MessageRole.ASSISTANT
	parts: list[ContentPart] = Field(default_factory=list)
	finish_reason: FinishReason = FinishReason.UNKNOWN

	@field_validator("finish_reason", mode="before")
	@classmethod
	def coerce_finish_reason(cls, v):
		"""Map None and unrecognised values to UNKNOWN."""
		if v is None:
			return FinishReason.UNKNOWN
		try:
			return FinishReason(v)
		except ValueError:
			return FinishReason.UNKNOWN

	def content(self) -> str:
		"""Return the direct text content (first text part)."""
		for part in self.parts:
			if isinstance(part, TextPart):
				return part.text
		return ""

	def text_parts(self) -> list[TextPart]:
		return [p for p in self.parts if isinstance(p, TextPart)]

	def reasoning(self) -> str:
		"""Return the concatenated reasoning text."""
		return "".join(p.thinking for p in self.parts
		               if isinstance(p, ReasoningPart))

	def tool_calls(self) -> list[ToolCallPart]:
		return [p for p in self.parts if isinstance(p, ToolCallPart)]

	def tool_results(self) -> list[ToolResultPart]:
		return [p for p in self.parts if isinstance(p, ToolResultPart)]


class RunResult(BaseModel):
	"""The single value delivered by an agent run.

	Exactly one of ``message`` or ``error`` is expected to be set.
	"""

	message: RawResult | None = None
	error: str | None = None


__all__ = [
    "MessageRole",
    "FinishReason",
    "TextPart",
    "ReasoningPart",
    "ToolCallPart",
    "ToolResultPart",
    "ContentPart",
    "RawResult",
    "RunResult",
]
