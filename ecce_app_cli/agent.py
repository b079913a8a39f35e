"""Agent session: assembles prompts and keeps conversation history.

Each trigger's payload becomes one question. The user prompt sent to the
executor contains, in order:

1. Previous questions and answers from this session
2. The task template (or the default instruction)
3. The agent's context files
4. The question itself
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import GenerationError
from .executor import PromptExecutor
from .settings import AgentConfig
from .settings import TaskConfig

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = (
    "Answer the following question by creating new slides that explain and elaborate on the concept."
)

DEFAULT_AGENT = AgentConfig(
    name="default",
    description="Built-in slide writer",
    system_prompt="You are a helpful assistant that writes clear, concise Markdown slide content.",
)


@dataclass
class Message:
    role: str
    content: str


class AgentSession:
    """One agent bound to one executor for a watch session."""

    def __init__(self, agent: AgentConfig, executor: PromptExecutor, task: TaskConfig | None = None):
        self.agent = agent
        self.executor = executor
        self.task = task
        self.history: list[Message] = []

    def load_context(self) -> str:
        """Concatenate the agent's context files.

        Raises:
            GenerationError: If a context file cannot be read
        """
        context = ""
        for file_path in self.agent.context_files:
            try:
                content = Path(file_path).expanduser().read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise GenerationError(f"Failed to read context file: {file_path}") from e
            context += f"\n\n--- Context from {file_path} ---\n"
            context += content
        return context

    def build_prompt(self, question: str, context: str) -> str:
        template = self.task.template if self.task else DEFAULT_TEMPLATE

        prompt = ""
        if self.history:
            prompt += "## Previous Conversation:\n\n"
            for msg in self.history:
                prompt += f"{msg.role}: {msg.content}\n\n"
            prompt += "---\n\n"

        prompt += (
            f"{template}\n\nContext:\n{context}\n\nQuestion: {question}\n\n"
            "Please provide slide content in Markdown format."
        )
        return prompt

    async def generate_response(self, question: str) -> str:
        """Generate a response for one question and record the exchange.

        Raises:
            GenerationError: If context loading or the executor fails
        """
        context = self.load_context()
        user_prompt = self.build_prompt(question, context)

        logger.debug(f"Requesting generation from agent {self.agent.name} ({len(user_prompt)} chars)")
        response = await self.executor.generate(self.agent.system_prompt, user_prompt)

        self.history.append(Message(role="User", content=question))
        self.history.append(Message(role="Assistant", content=response))
        return response
