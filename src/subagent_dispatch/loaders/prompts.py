"""
Prompt loading utilities.

Provides functions for loading prompt templates from the prompts directory
and composing the base instructions given to every sub-agent.
"""

from __future__ import annotations

import os
import platform
from datetime import date
from pathlib import Path

# Prompts directory relative to this module
PROMPTS_DIR = Path(__file__).resolve().parents[1] / "prompts"

_PROVIDER_PROMPTS = {
    "openai": "subagent_openai.md",
    "gemini": "subagent_gemini.md",
}
_DEFAULT_PROVIDER_PROMPT = "subagent_anthropic.md"


def load_prompt(name: str) -> str:
	"""
	Load a prompt file from the prompts directory.

	Parameters:
		name: Filename of the prompt to load.

	Returns:
		Contents of the prompt file.
	"""
	return (PROMPTS_DIR / name).read_text(encoding="utf-8")


def environment_info(working_dir: str | Path | None = None) -> str:
	"""Describe the working directory, platform and date for the agent."""
	cwd = Path(working_dir) if working_dir else Path(os.getcwd())
	return ("<env>\n"
	        f"Working directory: {cwd.resolve()}\n"
	        f"Platform: {platform.system().lower()}\n"
	        f"Today's date: {date.today().isoformat()}\n"
	        "</env>")


def sub_agent_base_prompt(provider: str | None = None,
                          working_dir: str | Path | None = None) -> str:
	"""
	Build the base instructions shared by every sub-agent.

	Parameters:
		provider: Inference provider id ("openai", "gemini", anything
			else falls back to the anthropic flavour).
		working_dir: Directory reported in the environment block.

	Returns:
		Provider prompt, tool instructions and environment block.
	"""
	name = _PROVIDER_PROMPTS.get((provider or "").lower(),
	                             _DEFAULT_PROVIDER_PROMPT)
	parts = [
	    load_prompt(name).strip(),
	    load_prompt("tool_instructions.md").strip(),
	    environment_info(working_dir),
	]
	return "\n\n".join(parts)


def compose_system_prompt(agent_prompt: str | None,
                          provider: str | None = None,
                          working_dir: str | Path | None = None) -> str:
	"""Prepend an agent's own prompt to the sub-agent base prompt."""
	base = sub_agent_base_prompt(provider, working_dir)
	if agent_prompt and agent_prompt.strip():
		return f"{agent_prompt.strip()}\n\n{base}"
	return base


__all__ = [
    "PROMPTS_DIR",
    "load_prompt",
    "environment_info",
    "sub_agent_base_prompt",
    "compose_system_prompt",
]
