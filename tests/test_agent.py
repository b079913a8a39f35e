"""Tests for prompt assembly and conversation history."""

import pytest

from ecce_app_cli.agent import DEFAULT_TEMPLATE
from ecce_app_cli.agent import AgentSession
from ecce_app_cli.errors import GenerationError
from ecce_app_cli.settings import AgentConfig
from ecce_app_cli.settings import TaskConfig


class RecordingExecutor:
    def __init__(self, reply="reply"):
        self.reply = reply
        self.calls = []

    async def generate(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        return self.reply


def test_prompt_without_history_uses_default_template():
    session = AgentSession(AgentConfig(name="a"), RecordingExecutor())

    prompt = session.build_prompt("What is X?", "")

    assert prompt.startswith(DEFAULT_TEMPLATE)
    assert "Question: What is X?" in prompt
    assert "Previous Conversation" not in prompt
    assert prompt.endswith("Please provide slide content in Markdown format.")


def test_task_template_replaces_default():
    task = TaskConfig(name="short", template="Answer in one slide.")
    session = AgentSession(AgentConfig(name="a"), RecordingExecutor(), task)

    prompt = session.build_prompt("Why?", "")

    assert prompt.startswith("Answer in one slide.")
    assert DEFAULT_TEMPLATE not in prompt


def test_context_files_are_labelled(tmp_path):
    notes = tmp_path / "notes.md"
    notes.write_text("Outline goes here", encoding="utf-8")
    session = AgentSession(AgentConfig(name="a", context_files=[str(notes)]), RecordingExecutor())

    context = session.load_context()

    assert f"--- Context from {notes} ---" in context
    assert context.endswith("Outline goes here")


def test_missing_context_file_is_generation_error(tmp_path):
    session = AgentSession(AgentConfig(name="a", context_files=[str(tmp_path / "gone.md")]), RecordingExecutor())

    with pytest.raises(GenerationError, match="Failed to read context file"):
        session.load_context()


@pytest.mark.asyncio
async def test_generate_response_records_history():
    executor = RecordingExecutor(reply="Slide about X")
    session = AgentSession(AgentConfig(name="a", system_prompt="Be brief."), executor)

    first = await session.generate_response("What is X?")
    await session.generate_response("And Y?")

    assert first == "Slide about X"
    assert executor.calls[0][0] == "Be brief."
    second_prompt = executor.calls[1][1]
    assert second_prompt.startswith("## Previous Conversation:")
    assert "User: What is X?" in second_prompt
    assert "Assistant: Slide about X" in second_prompt
    assert [m.role for m in session.history] == ["User", "Assistant", "User", "Assistant"]


@pytest.mark.asyncio
async def test_failed_generation_leaves_history_untouched():
    class FailingExecutor:
        async def generate(self, system_prompt, user_prompt):
            raise GenerationError("no")

    session = AgentSession(AgentConfig(name="a"), FailingExecutor())

    with pytest.raises(GenerationError):
        await session.generate_response("Q")
    assert session.history == []
