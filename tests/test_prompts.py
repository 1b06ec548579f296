"""Tests for prompt loading and sub-agent base prompts."""

from subagent_dispatch.loaders.prompts import (
    PROMPTS_DIR,
    compose_system_prompt,
    environment_info,
    load_prompt,
    sub_agent_base_prompt,
)


def test_prompt_files_are_packaged():
	for name in ("subagent_anthropic.md", "subagent_openai.md",
	             "subagent_gemini.md", "tool_instructions.md",
	             "agent_tool.md"):
		assert (PROMPTS_DIR / name).is_file()
		assert load_prompt(name).strip()


def test_agent_tool_template_has_placeholder():
	assert "{agents}" in load_prompt("agent_tool.md")


def test_environment_info(tmp_path):
	info = environment_info(tmp_path)
	assert info.startswith("<env>")
	assert f"Working directory: {tmp_path.resolve()}" in info
	assert "Today's date:" in info


def test_provider_flavours_differ():
	anthropic = sub_agent_base_prompt("anthropic")
	assert sub_agent_base_prompt(None) == anthropic
	assert sub_agent_base_prompt("unknown") == anthropic
	assert sub_agent_base_prompt("OpenAI").startswith(
	    load_prompt("subagent_openai.md").strip())
	assert sub_agent_base_prompt("gemini").startswith(
	    load_prompt("subagent_gemini.md").strip())
	assert load_prompt("tool_instructions.md").strip() in anthropic


def test_compose_system_prompt():
	base = sub_agent_base_prompt()
	assert compose_system_prompt(None) == base
	assert compose_system_prompt("   ") == base
	assert compose_system_prompt(" Review. ") == f"Review.\n\n{base}"
