"""
Agent definition loader.

Loads agent definitions from markdown files with YAML frontmatter found
in the user-level and project-level ``.crush/agents`` directories and
merges them into a single mapping keyed by agent name.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from subagent_dispatch.errors import AgentDefinitionError
from subagent_dispatch.loaders.frontmatter import split_frontmatter
from subagent_dispatch.models.agent_definition import AgentDefinition
from subagent_dispatch.utils.logging import get_logger

logger = get_logger(__name__)

AGENTS_SUBDIR = Path(".crush") / "agents"

_HEADER_FIELDS = ("tools", "mcp_servers", "lsp_servers")


def _first_error(exc: ValidationError) -> str:
	errors = exc.errors()
	if not errors:
		return str(exc)
	msg = str(errors[0].get("msg", ""))
	prefix = "Value error, "
	if msg.startswith(prefix):
		msg = msg[len(prefix):]
	loc = errors[0].get("loc") or ()
	if loc and loc[0] in _HEADER_FIELDS:
		msg = f"{loc[0]}: {msg}"
	return msg


def parse_agent_markdown(text: str,
                         path: str | Path | None = None,
                         is_priority: bool = False) -> AgentDefinition:
	"""
	Parse the content of an agent markdown file.

	Parameters:
		text: Full file content.
		path: Source path, recorded on the definition and used in errors.
		is_priority: True for project-level definitions.

	Returns:
		Validated AgentDefinition.

	Raises:
		AgentDefinitionError: If the frontmatter is malformed or the name,
			description or prompt body is missing.
	"""
	try:
		meta, body = split_frontmatter(text)
	except AgentDefinitionError as exc:
		raise AgentDefinitionError(path, exc.message) from exc

	try:
		return AgentDefinition(
		    name=meta.get("name"),
		    description=meta.get("description"),
		    tools=meta.get("tools"),
		    mcp_servers=meta.get("mcp_servers"),
		    lsp_servers=meta.get("lsp_servers"),
		    system_prompt=body,
		    file_path=str(path) if path else None,
		    is_priority=is_priority,
		)
	except ValidationError as exc:
		raise AgentDefinitionError(path, _first_error(exc)) from exc


def load_agent_definition(path: str | Path,
                          is_priority: bool = False) -> AgentDefinition:
	"""
	Load an agent definition from a markdown file with frontmatter.

	Parameters:
		path: Path to the agent markdown file.
		is_priority: True for project-level definitions.

	Returns:
		AgentDefinition with parsed metadata and prompt body.
	"""
	path = Path(path)
	try:
		raw = path.read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as exc:
		raise AgentDefinitionError(path,
		                           f"failed to read agent file ({exc})") from exc
	return parse_agent_markdown(raw, path, is_priority)


def merge_definition(agents: dict[str, AgentDefinition],
                     definition: AgentDefinition) -> bool:
	"""Merge a definition into ``agents`` honouring priority.

	The incoming definition replaces an existing one only when it is a
	priority definition or the existing one is not.

	Returns:
		True if the definition was stored.
	"""
	existing = agents.get(definition.name)
	if existing is None or definition.is_priority or not existing.is_priority:
		agents[definition.name] = definition
		return True
	return False


def load_agents_from_dir(directory: str | Path,
                         agents: dict[str, AgentDefinition],
                         is_priority: bool) -> int:
	"""
	Load every ``*.md`` definition in a directory into ``agents``.

	Invalid files are logged and skipped. A missing directory
	contributes nothing.

	Parameters:
		directory: Directory to scan (non-recursive).
		agents: Mapping to merge definitions into.
		is_priority: True for the project-level directory.

	Returns:
		Number of definitions stored.

	Raises:
		OSError: If the directory exists but cannot be listed.
	"""
	directory = Path(directory)
	if not directory.is_dir():
		return 0

	stored = 0
	for entry in sorted(directory.iterdir()):
		if entry.is_dir() or entry.suffix != ".md":
			continue
		try:
			definition = load_agent_definition(entry, is_priority)
		except AgentDefinitionError as exc:
			logger.warning("failed to load agent from %s: %s", entry,
			               exc.message)
			continue
		if merge_definition(agents, definition):
			stored += 1
			logger.debug("loaded agent %s from %s", definition.name, entry)
		else:
			logger.debug("agent %s from %s shadowed by project agent",
			             definition.name, entry)
	return stored


def load_agent_definitions(
    working_dir: str | Path,
    home_dir: str | Path | None = None,
) -> dict[str, AgentDefinition]:
	"""
	Load agent definitions from the user and project directories.

	User-level agents (``<home>/.crush/agents``) are loaded first, then
	project-level agents (``<working_dir>/.crush/agents``), which win on
	name collisions.

	Parameters:
		working_dir: Project root.
		home_dir: User home. Defaults to the current user's home.

	Returns:
		Mapping of agent name to definition.
	"""
	agents: dict[str, AgentDefinition] = {}

	try:
		home = Path(home_dir) if home_dir is not None else Path.home()
	except RuntimeError:
		home = None
		logger.warning("could not resolve user home, skipping user agents")

	sources = []
	if home is not None:
		sources.append(("user", home / AGENTS_SUBDIR, False))
	sources.append(("project", Path(working_dir) / AGENTS_SUBDIR, True))

	for label, directory, is_priority in sources:
		try:
			load_agents_from_dir(directory, agents, is_priority)
		except OSError as exc:
			logger.warning("failed to load %s agents from %s: %s", label,
			               directory, exc)

	logger.info("loaded %d agent definition(s)", len(agents))
	return agents


__all__ = [
    "AGENTS_SUBDIR",
    "parse_agent_markdown",
    "load_agent_definition",
    "load_agents_from_dir",
    "load_agent_definitions",
    "merge_definition",
]
