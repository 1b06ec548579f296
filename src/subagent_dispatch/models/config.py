from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_core.core_schema import ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

from .agent import ModelTier

# Ceiling for a single sub-agent run, in seconds.
DEFAULT_DISPATCH_TIMEOUT_SECONDS = 30 * 60


def load_env(env_file: str | Path | None = None) -> None:
	"""Load environment variables from an `.env` file if present."""
	env_path = Path(env_file) if env_file else Path(".env")
	if env_path.exists():
		load_dotenv(env_path)


class Config(BaseSettings):
	"""Runtime configuration loaded from environment variables."""

	model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

	cli_url: str | None = Field(
	    default=None,
	    alias="COPILOT_CLI_URL",
	    description=
	    "External Copilot CLI server URL. If unset, spawns native CLI via stdio.",
	)
	model: str = Field(
	    "Claude Sonnet 4.5",
	    alias="COPILOT_MODEL",
	    description="Model used by large-tier agents",
	)
	small_model: str = Field(
	    "Claude Haiku 4.5",
	    alias="COPILOT_SMALL_MODEL",
	    description="Model used by small-tier agents",
	)
	github_token: str | None = Field(
	    default=None,
	    alias="GITHUB_TOKEN",
	    description="GitHub token for Copilot authentication",
	)
	log_level: str = Field("info", alias="LOG_LEVEL",
	                       description="Log level")
	dispatch_timeout_seconds: int = Field(
	    DEFAULT_DISPATCH_TIMEOUT_SECONDS,
	    alias="DISPATCH_TIMEOUT_SECONDS",
	    description="Execution ceiling for a single sub-agent run",
	)
	agents_home_dir: str | None = Field(
	    default=None,
	    alias="AGENTS_HOME_DIR",
	    description="Home directory holding .crush/agents (default: user home)",
	)
	project_dir: str = Field(
	    ".",
	    alias="PROJECT_DIR",
	    description="Project root holding .crush/agents",
	)
	agent_model_tier: ModelTier = Field(
	    ModelTier.LARGE,
	    alias="AGENT_MODEL_TIER",
	    description="Model tier assigned to file-defined agents",
	)
	legacy_default_agent: str | None = Field(
	    default=None,
	    alias="LEGACY_DEFAULT_AGENT",
	    description=
	    "Agent used when agent_name is omitted. Unset makes agent_name required.",
	)
	mcp_config: str | None = Field(
	    default=None,
	    alias="MCP_CONFIG",
	    description="JSON file with an mcpServers map for sub-agent sessions",
	)
	disabled_agents: Any = Field(
	    default_factory=list,
	    alias="DISABLED_AGENTS",
	    description="Agent names hidden from the agent tool",
	)

	@field_validator("disabled_agents", mode="before")
	@classmethod
	def split_disabled_agents(cls, v: Any) -> list[str]:
		"""Normalize disabled agents to a list regardless of input format."""
		if v is None or v == "":
			return []
		if isinstance(v, list):
			return v
		if isinstance(v, tuple):
			return list(v)
		# fallback: comma-separated string
		return [p.strip() for p in str(v).split(",") if p.strip()]

	@field_validator("legacy_default_agent", "mcp_config", mode="before")
	@classmethod
	def blank_is_unset(cls, v: Any) -> Any:
		if isinstance(v, str) and not v.strip():
			return None
		return v

	@field_validator("dispatch_timeout_seconds")
	@classmethod
	def validate_positive(cls, v: Any, info: "ValidationInfo") -> Any:
		if v is None:
			return v
		if int(v) <= 0:
			raise ValueError(f"{info.field_name} must be > 0")
		return v

	@property
	def use_native_cli(self) -> bool:
		"""Return True when using native stdio mode (no external server)."""
		return not self.cli_url

	@property
	def home_path(self) -> Path:
		"""Return the directory whose .crush/agents holds user-level agents."""
		if self.agents_home_dir:
			return Path(self.agents_home_dir).expanduser()
		return Path.home()

	@property
	def project_path(self) -> Path:
		return Path(self.project_dir).expanduser()

	def model_for_tier(self, tier: ModelTier) -> str:
		"""Return the configured model name for a model tier."""
		if tier == ModelTier.SMALL:
			return self.small_model
		return self.model


__all__ = ["Config", "load_env", "DEFAULT_DISPATCH_TIMEOUT_SECONDS"]
