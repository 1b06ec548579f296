"""File and resource loading utilities.

This subpackage handles loading agent definitions and bundled prompts.

Key modules:
    - frontmatter: YAML frontmatter parsing
    - agents: Agent definition loading and merging
    - prompts: Prompt template loading
    - mcp: MCP server configuration loading
"""

from .frontmatter import split_frontmatter
from .agents import (
    AGENTS_SUBDIR,
    parse_agent_markdown,
    load_agent_definition,
    load_agents_from_dir,
    load_agent_definitions,
    merge_definition,
)
from .prompts import load_prompt, sub_agent_base_prompt, compose_system_prompt
from .mcp import load_mcp_servers, select_mcp_servers

__all__ = [
    "split_frontmatter",
    "AGENTS_SUBDIR",
    "parse_agent_markdown",
    "load_agent_definition",
    "load_agents_from_dir",
    "load_agent_definitions",
    "merge_definition",
    "load_prompt",
    "sub_agent_base_prompt",
    "compose_system_prompt",
    "load_mcp_servers",
    "select_mcp_servers",
]
