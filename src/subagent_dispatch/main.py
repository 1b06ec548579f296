from __future__ import annotations

import asyncio
import sys
import uuid

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.main import get_command

from subagent_dispatch.copilot_client import open_client
from subagent_dispatch.core.dispatcher import Dispatcher, ExecutionContext
from subagent_dispatch.core.recovery import recover
from subagent_dispatch.core.registry import (
    AgentRegistry,
    CODER_AGENT_ID,
    build_registry,
)
from subagent_dispatch.core.sessions import InMemorySessionStore
from subagent_dispatch.errors import DispatchError
from subagent_dispatch.integrations.agent_tool import agent_tool
from subagent_dispatch.integrations.copilot_service import (
    CopilotAgentService,
    copilot_service_factory,
)
from subagent_dispatch.loaders.agents import load_agent_definitions
from subagent_dispatch.loaders.mcp import load_mcp_servers
from subagent_dispatch.models.agent_definition import AgentDefinition
from subagent_dispatch.models.config import Config, load_env
from subagent_dispatch.models.outcome import DispatchOutcome
from subagent_dispatch.models.session import Session
from subagent_dispatch.utils.logging import configure_logging

cli = typer.Typer(add_completion=False, no_args_is_help=True)


@cli.callback()
def root() -> None:
	"""
	Root callback for the subagent-dispatch CLI.

	Sets up the Typer application with no-args-is-help behavior.
	"""
	return None


def _setup(timeout: int | None = None) -> Config:
	load_env()
	if timeout is None:
		config = Config()
	else:
		config = Config(DISPATCH_TIMEOUT_SECONDS=timeout)
	configure_logging(config.log_level)
	return config


def _registry(config: Config,
              service_factory,
              definitions: dict[str, AgentDefinition] | None = None
              ) -> AgentRegistry:
	if definitions is None:
		definitions = load_agent_definitions(config.project_path,
		                                     config.home_path)
	return build_registry(
	    definitions,
	    service_factory,
	    model_tier=config.agent_model_tier,
	    disabled=config.disabled_agents,
	)


def _allowlist(values) -> str:
	if values is None:
		return "all"
	return ", ".join(values) or "none"


def agent_source(agent_id: str,
                 definitions: dict[str, AgentDefinition]) -> str:
	"""Return where an agent came from: project, user or built-in."""
	definition = definitions.get(agent_id)
	if definition is None or agent_id == CODER_AGENT_ID:
		return "built-in"
	return "project" if definition.is_priority else "user"


def render_agents_table(registry: AgentRegistry,
                        definitions: dict[str, AgentDefinition]) -> Table:
	"""Render registered agents with their source and allowlists."""
	table = Table(show_header=True, expand=True, box=box.ROUNDED)
	table.add_column("Agent")
	table.add_column("Name")
	table.add_column("Source")
	table.add_column("Tools")
	table.add_column("MCP")
	table.add_column("LSP")
	table.add_column("Model")
	for agent in registry.agents():
		style = "dim" if agent.disabled or agent.id == CODER_AGENT_ID else None
		table.add_row(
		    agent.id,
		    agent.name,
		    agent_source(agent.id, definitions),
		    _allowlist(agent.allowed_tools),
		    _allowlist(list(agent.allowed_mcp)
		               if agent.allowed_mcp is not None else None),
		    _allowlist(agent.allowed_lsp),
		    agent.model.value,
		    style=style,
		)
	return table


def _print_outcome(console: Console, outcome: DispatchOutcome,
                   session: Session) -> None:
	style = "red" if outcome.is_error else None
	console.print(outcome.text, style=style, markup=False)
	console.print(
	    f"[dim]agent={outcome.agent_name} via={outcome.recovered_by} "
	    f"cost={session.cost:g} tokens={session.prompt_tokens:g}/"
	    f"{session.completion_tokens:g}[/dim]")


async def dispatch_once(config: Config, agent_name: str,
                        prompt: str) -> tuple[DispatchOutcome, Session]:
	"""Dispatch one prompt to an agent from a fresh CLI session."""
	sessions = InMemorySessionStore()
	async with open_client(config) as client:
		registry = _registry(config,
		                     copilot_service_factory(client, config, sessions))
		dispatcher = Dispatcher(
		    registry,
		    sessions,
		    timeout_seconds=config.dispatch_timeout_seconds,
		    legacy_default_agent=config.legacy_default_agent,
		)
		parent = await sessions.create("CLI")
		outcome = await dispatcher.dispatch(parent.id, uuid.uuid4().hex,
		                                    uuid.uuid4().hex, agent_name,
		                                    prompt)
		return outcome, await sessions.get(parent.id)


async def delegate_once(config: Config,
                        prompt: str) -> tuple[DispatchOutcome, Session]:
	"""Run the coder agent with the agent tool so it can delegate."""
	sessions = InMemorySessionStore()
	async with open_client(config) as client:
		registry = _registry(config,
		                     copilot_service_factory(client, config, sessions))
		dispatcher = Dispatcher(
		    registry,
		    sessions,
		    timeout_seconds=config.dispatch_timeout_seconds,
		    legacy_default_agent=config.legacy_default_agent,
		)
		coder = registry.get(CODER_AGENT_ID)
		session = await sessions.create(coder.name or CODER_AGENT_ID)
		service = CopilotAgentService(
		    client,
		    coder,
		    config,
		    sessions,
		    tools=[agent_tool(dispatcher, registry, session.id)],
		    mcp_servers=load_mcp_servers(config.mcp_config),
		)
		context = ExecutionContext(
		    session_id=session.id,
		    message_id=uuid.uuid4().hex,
		    timeout_seconds=config.dispatch_timeout_seconds,
		)
		try:
			result = await asyncio.wait_for(service.run(context, session.id,
			                                            prompt),
			                                timeout=context.remaining())
		finally:
			await dispatcher.wait_inflight()
		if result.error or result.message is None:
			raise DispatchError(f"error generating agent: {result.error}")
		outcome = recover(result.message, CODER_AGENT_ID)
		return outcome, await sessions.get(session.id)


@cli.command()
def agents(
    project_dir: str = typer.Option(None, "--project-dir",
                                    help="Project root holding .crush/agents"),
) -> None:
	"""List the agents available for dispatch."""
	config = _setup()
	if project_dir:
		config.project_dir = project_dir
	definitions = load_agent_definitions(config.project_path,
	                                     config.home_path)
	# listing only, no execution services
	registry = _registry(config, lambda agent: None, definitions)
	Console().print(render_agents_table(registry, definitions))


@cli.command()
def run(
    agent_name: str,
    prompt: str,
    timeout: int = typer.Option(None,
                                "--timeout",
                                min=1,
                                help="Override dispatch timeout seconds"),
) -> None:
	"""Dispatch PROMPT to AGENT_NAME and print its response."""
	config = _setup(timeout)
	console = Console()
	try:
		outcome, session = asyncio.run(dispatch_once(config, agent_name,
		                                             prompt))
	except DispatchError as exc:
		console.print(f"[red]dispatch failed:[/red] {escape(str(exc))}")
		raise typer.Exit(code=1)
	_print_outcome(console, outcome, session)
	if outcome.is_error:
		raise typer.Exit(code=2)


@cli.command()
def delegate(
    prompt: str,
    timeout: int = typer.Option(None,
                                "--timeout",
                                min=1,
                                help="Override dispatch timeout seconds"),
) -> None:
	"""Give PROMPT to the coder agent, which may dispatch sub-agents."""
	config = _setup(timeout)
	console = Console()
	try:
		outcome, session = asyncio.run(delegate_once(config, prompt))
	except (DispatchError, asyncio.TimeoutError) as exc:
		console.print(f"[red]delegation failed:[/red] {escape(repr(exc))}")
		raise typer.Exit(code=1)
	_print_outcome(console, outcome, session)


def entrypoint(argv=None, *, standalone_mode: bool = True):
	"""
	Typer entrypoint that defaults to `run` when appropriate.

	Allows calling 'subagent-dispatch AGENT "prompt"' without explicitly
	specifying the 'run' subcommand.

	Parameters:
		argv: Command-line arguments. Defaults to sys.argv[1:].
		standalone_mode: If True, Click handles exit codes.

	Returns:
		Result of the Click application main invocation.
	"""
	args = sys.argv[1:] if argv is None else list(argv)

	_click_app = get_command(cli)
	commands = getattr(_click_app, "commands", {}).keys()
	if args and not args[0].startswith("-") and args[0] not in commands:
		args = ["run"] + args
	return _click_app.main(
	    args=args,
	    prog_name="subagent-dispatch",
	    standalone_mode=standalone_mode,
	)


if __name__ == "__main__":
	entrypoint()
