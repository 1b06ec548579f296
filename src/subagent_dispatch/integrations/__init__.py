"""External service integrations.

This subpackage connects the dispatcher to the Copilot SDK.

Key modules:
    - custom_agents: Agent to CustomAgentConfig and system message conversion
    - copilot_service: Agent execution on Copilot sessions
    - agent_tool: The ``agent`` tool exposed to calling agents
"""

from subagent_dispatch.integrations.custom_agents import (
    to_custom_agent,
    to_system_message,
)
from subagent_dispatch.integrations.copilot_service import (
    CopilotAgentService,
    ResultCollector,
    copilot_service_factory,
    fetch_last_assistant_message,
)
from subagent_dispatch.integrations.agent_tool import (
    AGENT_TOOL_NAME,
    AgentParams,
    agent_tool,
    build_agent_tool_description,
    handle_agent_call,
)

__all__ = [
    # custom_agents
    "to_custom_agent",
    "to_system_message",
    # copilot_service
    "CopilotAgentService",
    "ResultCollector",
    "copilot_service_factory",
    "fetch_last_assistant_message",
    # agent_tool
    "AGENT_TOOL_NAME",
    "AgentParams",
    "agent_tool",
    "build_agent_tool_description",
    "handle_agent_call",
]
