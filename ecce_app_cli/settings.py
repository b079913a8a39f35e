"""Settings manager for ~/.ecce/settings.yaml.

Holds the agents, task templates, default agent, and Claude Code executable
the watch command consumes. The file layout:

```yaml
default_agent: slides
claude_executable: claude
agents:
  slides:
    name: slides
    description: Slide writer
    system_prompt: You write concise Markdown slides.
    context_files: [notes/outline.md]
tasks:
  expand:
    name: expand
    template: Expand the question into two slides.
```
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .errors import SettingsError

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"


class AgentConfig(BaseModel):
    """An agent: a system prompt plus the context files sent with every request."""

    name: str = Field(..., description="Unique agent identifier")
    description: str | None = Field(None, description="Human-readable description")
    system_prompt: str = Field("", description="System prompt passed to the executor")
    context_files: list[str] = Field(default_factory=list, description="Files prepended as context")
    tools: list[str] | None = Field(None, description="Tool names (informational)")
    model: str | None = Field(None, description="Model name (informational)")


class TaskConfig(BaseModel):
    """A reusable prompt template."""

    name: str
    template: str


class EcceSettings(BaseModel):
    """Everything stored in settings.yaml."""

    agents: dict[str, AgentConfig] = Field(default_factory=dict)
    tasks: dict[str, TaskConfig] = Field(default_factory=dict)
    default_agent: str | None = None
    claude_executable: str | None = None


def default_config_dir() -> Path:
    env_home = os.environ.get("ECCE_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".ecce"


class SettingsManager:
    """Loads and saves EcceSettings.

    Contract:
    - load() on a missing file returns empty settings
    - Every mutating method loads, changes, and saves atomically
    - Unknown names raise SettingsError
    """

    def __init__(self, config_dir: Path | None = None):
        """Initialize settings manager.

        Args:
            config_dir: Directory holding settings.yaml (default: $ECCE_HOME or ~/.ecce)
        """
        self.config_dir = config_dir or default_config_dir()
        self.settings_file = self.config_dir / "settings.yaml"

    def load(self) -> EcceSettings:
        if not self.settings_file.exists():
            return EcceSettings()
        try:
            with open(self.settings_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"Failed to read {self.settings_file}: {e}") from e
        try:
            return EcceSettings.model_validate(data)
        except ValidationError as e:
            raise SettingsError(f"Invalid settings in {self.settings_file}: {e}") from e

    def save(self, settings: EcceSettings) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        data = settings.model_dump(exclude_none=True)
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=self.config_dir, prefix="settings_", suffix=".tmp", delete=False
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            try:
                yaml.safe_dump(data, tmp_file, default_flow_style=False, sort_keys=False, allow_unicode=True)
                tmp_file.flush()
                temp_path.replace(self.settings_file)
            except Exception as e:
                with contextlib.suppress(Exception):
                    temp_path.unlink()
                raise SettingsError(f"Failed to save settings: {e}") from e
        logger.debug(f"Saved settings to {self.settings_file}")

    # Agents

    def get_agent(self, name: str) -> AgentConfig:
        settings = self.load()
        if name not in settings.agents:
            raise SettingsError(f"Agent '{name}' not found")
        return settings.agents[name]

    def get_default_agent(self) -> AgentConfig | None:
        settings = self.load()
        if settings.default_agent:
            return settings.agents.get(settings.default_agent)
        return None

    def add_agent(self, agent: AgentConfig) -> None:
        settings = self.load()
        settings.agents[agent.name] = agent
        self.save(settings)
        logger.info(f"Saved agent: {agent.name}")

    def remove_agent(self, name: str) -> None:
        settings = self.load()
        if name not in settings.agents:
            raise SettingsError(f"Agent '{name}' not found")
        del settings.agents[name]
        if settings.default_agent == name:
            settings.default_agent = None
        self.save(settings)
        logger.info(f"Removed agent: {name}")

    def set_default_agent(self, name: str | None) -> None:
        """Set (or clear, with None) the default agent."""
        settings = self.load()
        if name is not None and name not in settings.agents:
            raise SettingsError(f"Agent '{name}' not found")
        settings.default_agent = name
        self.save(settings)

    # Tasks

    def get_task(self, name: str) -> TaskConfig:
        settings = self.load()
        if name not in settings.tasks:
            raise SettingsError(f"Task '{name}' not found")
        return settings.tasks[name]

    def add_task(self, task: TaskConfig) -> None:
        settings = self.load()
        settings.tasks[task.name] = task
        self.save(settings)
        logger.info(f"Saved task: {task.name}")

    def remove_task(self, name: str) -> None:
        settings = self.load()
        if name not in settings.tasks:
            raise SettingsError(f"Task '{name}' not found")
        del settings.tasks[name]
        self.save(settings)
        logger.info(f"Removed task: {name}")

    def get_claude_executable(self) -> str:
        return self.load().claude_executable or "claude"

    # Agent files

    def import_agent_file(self, path: Path) -> AgentConfig:
        """Parse an agent Markdown file and save it.

        The file carries YAML frontmatter (name, description, tools, model,
        context_files); the body is the system prompt.
        """
        agent = parse_agent_markdown(Path(path).read_text(encoding="utf-8"), default_name=Path(path).stem)
        self.add_agent(agent)
        return agent

    def export_agent_file(self, name: str, directory: Path) -> Path:
        agent = self.get_agent(name)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / f"{name}.md"
        target.write_text(render_agent_markdown(agent), encoding="utf-8")
        return target


def parse_agent_markdown(text: str, default_name: str | None = None) -> AgentConfig:
    """Build an AgentConfig from frontmatter Markdown.

    Raises:
        SettingsError: If the frontmatter is malformed or the agent has no name
    """
    frontmatter: dict[str, Any] = {}
    body = text
    lines = text.splitlines()
    if lines and lines[0].strip() == FRONTMATTER_DELIMITER:
        try:
            end = next(i for i, line in enumerate(lines[1:], start=1) if line.strip() == FRONTMATTER_DELIMITER)
        except StopIteration as e:
            raise SettingsError("Unterminated frontmatter block") from e
        try:
            frontmatter = yaml.safe_load("\n".join(lines[1:end])) or {}
        except yaml.YAMLError as e:
            raise SettingsError(f"Invalid frontmatter: {e}") from e
        if not isinstance(frontmatter, dict):
            raise SettingsError("Frontmatter must be a mapping")
        body = "\n".join(lines[end + 1 :])

    tools = frontmatter.get("tools")
    if isinstance(tools, str):
        # Claude Code agent files list tools as "Read, Write"
        tools = [t.strip() for t in tools.split(",") if t.strip()]

    name = frontmatter.get("name") or default_name
    if not name:
        raise SettingsError("Agent file has no name")

    return AgentConfig(
        name=name,
        description=frontmatter.get("description"),
        system_prompt=body.strip(),
        context_files=frontmatter.get("context_files") or [],
        tools=tools,
        model=frontmatter.get("model"),
    )


def render_agent_markdown(agent: AgentConfig) -> str:
    frontmatter: dict[str, Any] = {"name": agent.name}
    if agent.description:
        frontmatter["description"] = agent.description
    if agent.tools:
        frontmatter["tools"] = ", ".join(agent.tools)
    if agent.model:
        frontmatter["model"] = agent.model
    if agent.context_files:
        frontmatter["context_files"] = agent.context_files
    header = yaml.safe_dump(frontmatter, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return f"{FRONTMATTER_DELIMITER}\n{header}{FRONTMATTER_DELIMITER}\n\n{agent.system_prompt}\n"
