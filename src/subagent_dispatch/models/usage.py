"""
Per-run usage accounting.

Accumulates the usage events of one agent run so they can be billed to
the run's task session in a single update.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .session import Session


class UsageStats(BaseModel):
	"""Usage accumulated over the turns of one agent run."""

	input_tokens: float = Field(0, description="Input tokens")
	output_tokens: float = Field(0, description="Output tokens")
	cost: float = Field(0, description="Billed cost")
	duration: float = Field(0, description="Model time in seconds")
	turns: int = Field(0, description="Usage events seen")

	@property
	def total_tokens(self) -> float:
		return self.input_tokens + self.output_tokens

	def merge_turn(self, *, input_tokens: float = 0, output_tokens: float = 0,
	               cost: float = 0, duration: float = 0) -> None:
		"""Accumulate one turn's usage."""
		self.input_tokens += input_tokens or 0
		self.output_tokens += output_tokens or 0
		self.cost += cost or 0
		self.duration += duration or 0
		self.turns += 1

	def apply_to(self, session: Session) -> None:
		"""Bill this run's usage to ``session``."""
		session.add_usage(
		    cost=self.cost,
		    prompt_tokens=self.input_tokens,
		    completion_tokens=self.output_tokens,
		)


__all__ = ["UsageStats"]
