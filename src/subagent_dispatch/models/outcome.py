"""
Dispatch outcome model.

Defines what a completed dispatch hands back to the calling agent:
nonempty text, flagged as a controlled error when the sub-agent did not
succeed.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class DispatchOutcome(BaseModel):
	"""Result of a dispatch that ran to completion.

	``is_error`` marks a controlled error: it is still delivered to the
	caller as text rather than raised.
	"""

	text: str = Field(description="Response text, never empty")
	is_error: bool = Field(default=False,
	                       description="True for controlled errors")
	agent_name: str | None = Field(default=None)
	session_id: str | None = Field(default=None,
	                               description="Child task session")
	recovered_by: str | None = Field(
	    default=None, description="Recovery strategy that produced text")

	@field_validator("text")
	@classmethod
	def require_text(cls, v: str) -> str:
		if not v or not v.strip():
			raise ValueError("dispatch outcome text must not be empty")
		return v

	@classmethod
	def success(cls, text: str, **kwargs) -> DispatchOutcome:
		return cls(text=text, is_error=False, **kwargs)

	@classmethod
	def controlled_error(cls, text: str, **kwargs) -> DispatchOutcome:
		return cls(text=text, is_error=True, **kwargs)


__all__ = ["DispatchOutcome"]
