"""
Subagent Dispatch - Delegation of tasks from a coding agent to sub-agents.

Loads agent definitions from markdown files, keeps them in an explicit
registry, and runs delegated prompts on Copilot sessions with bounded
execution, response recovery and cost roll-up.

Main entry points:
    - subagent_dispatch.main: CLI entrypoint
    - subagent_dispatch.core.dispatcher: Dispatcher.dispatch()
    - subagent_dispatch.loaders.agents: load_agent_definitions()
    - subagent_dispatch.models.config: Config and load_env()
"""
