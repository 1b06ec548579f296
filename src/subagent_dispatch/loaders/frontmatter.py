"""
YAML frontmatter parsing utilities.

Splits agent markdown files of the form ``---\\n<yaml>\\n---\\n<body>``
into a header mapping and a body.
"""

from __future__ import annotations

from typing import Any

import yaml

from subagent_dispatch.errors import AgentDefinitionError


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
	"""
	Split YAML frontmatter from markdown body.

	Extracts the YAML block between `---` delimiters at the start
	of the document and returns it along with the remaining body.

	Parameters:
		text: The full markdown file content.

	Returns:
		Tuple of (frontmatter dict, body text).

	Raises:
		AgentDefinitionError: If the frontmatter is missing, unterminated,
			not valid YAML, or not a mapping.
	"""
	lines = text.lstrip("\ufeff").splitlines()

	if not lines or lines[0].strip() != "---":
		raise AgentDefinitionError(
		    None, "invalid agent file format: missing YAML frontmatter")

	end_idx = -1
	for i, ln in enumerate(lines[1:], start=1):
		if ln.strip() == "---":
			end_idx = i
			break

	if end_idx < 0:
		raise AgentDefinitionError(
		    None, "invalid agent file format: unterminated YAML frontmatter")

	fm_text = "\n".join(lines[1:end_idx])
	body = "\n".join(lines[end_idx + 1:])

	try:
		meta = yaml.safe_load(fm_text) or {}
	except yaml.YAMLError as exc:
		raise AgentDefinitionError(
		    None, f"failed to parse YAML frontmatter ({exc})") from exc
	if not isinstance(meta, dict):
		raise AgentDefinitionError(None,
		                           "YAML frontmatter must be a mapping")

	return meta, body


__all__ = ["split_frontmatter"]
