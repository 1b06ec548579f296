"""Shared utility functions.

Key modules:
    - logging: Logging configuration and credential redaction
    - protocols: Protocol definitions for dependency injection
"""

from .logging import configure_logging, get_logger, sanitize_text
from .protocols import (
    AgentService,
    SessionStore,
    SessionProtocol,
    CopilotClientProtocol,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "sanitize_text",
    "AgentService",
    "SessionStore",
    "SessionProtocol",
    "CopilotClientProtocol",
]
