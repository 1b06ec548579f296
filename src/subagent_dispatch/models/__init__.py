"""
Subagent dispatch models.

This subpackage contains Pydantic models for configuration, agent
definitions, runtime agent profiles, sessions and agent results.

Key models:
    - Config: Application configuration loaded from environment
    - AgentDefinition: Agent declared in a markdown file
    - Agent: Runtime agent profile held by the registry
    - Session: Persisted session with accumulating cost
    - RawResult: Final message produced by an agent run
    - DispatchOutcome: Text handed back to the calling agent
"""

from .agent import Agent, ModelTier
from .agent_definition import AgentDefinition
from .config import Config, load_env, DEFAULT_DISPATCH_TIMEOUT_SECONDS
from .message import (
    MessageRole,
    FinishReason,
    TextPart,
    ReasoningPart,
    ToolCallPart,
    ToolResultPart,
    ContentPart,
    RawResult,
    RunResult,
)
from .outcome import DispatchOutcome
from .session import Session
from .usage import UsageStats

__all__ = [
    "Agent",
    "ModelTier",
    "AgentDefinition",
    "Config",
    "load_env",
    "DEFAULT_DISPATCH_TIMEOUT_SECONDS",
    "MessageRole",
    "FinishReason",
    "TextPart",
    "ReasoningPart",
    "ToolCallPart",
    "ToolResultPart",
    "ContentPart",
    "RawResult",
    "RunResult",
    "DispatchOutcome",
    "Session",
    "UsageStats",
]
