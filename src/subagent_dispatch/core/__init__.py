"""Core dispatch logic.

Key modules:
    - registry: Explicit agent registry and its builder
    - converter: AgentDefinition to runtime Agent conversion
    - dispatcher: Dispatch orchestration with bounded execution
    - recovery: Ordered response recovery strategies
    - cost: Child-to-parent cost roll-up
    - sessions: In-memory session store with per-session locks
"""

from subagent_dispatch.core.converter import convert_definition_to_agent
from subagent_dispatch.core.registry import (
    AgentRegistry,
    CODER_AGENT_ID,
    TASK_AGENT_ID,
    builtin_agents,
    build_registry,
)
from subagent_dispatch.core.recovery import recover, infer_finish_reason
from subagent_dispatch.core.cost import roll_up_cost
from subagent_dispatch.core.sessions import InMemorySessionStore
from subagent_dispatch.core.dispatcher import (
    Dispatcher,
    ExecutionContext,
    format_agent_name,
    resolve_session_title,
)

__all__ = [
    "convert_definition_to_agent",
    "AgentRegistry",
    "CODER_AGENT_ID",
    "TASK_AGENT_ID",
    "builtin_agents",
    "build_registry",
    "recover",
    "infer_finish_reason",
    "roll_up_cost",
    "InMemorySessionStore",
    "Dispatcher",
    "ExecutionContext",
    "format_agent_name",
    "resolve_session_title",
]
