"""Agent registry: the loaded records plus on-demand agent construction."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from helixrun.agents.base import Agent
from helixrun.agents.builder import AgentBuilder
from helixrun.errors import AgentNotFoundError, ConfigError
from helixrun.models.agent_config import AgentConfig

logger = logging.getLogger(__name__)


def load_agent_config(path: Path) -> AgentConfig:
    """Parse and validate one agent record file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"failed to read agent config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"agent config {path} must be a JSON object")

    data.setdefault("id", path.stem)
    try:
        config = AgentConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid agent config {path}: {e}") from e
    if not config.id:
        config.id = path.stem
    return config


class AgentRegistry:
    """Holds agent records by id and builds a new agent per request."""

    def __init__(self, configs: list[AgentConfig], builder: AgentBuilder | None = None) -> None:
        self._configs: dict[str, AgentConfig] = {}
        for config in configs:
            if config.id in self._configs:
                raise ConfigError(f"duplicate agent id: {config.id}")
            self._configs[config.id] = config
        self.builder = builder or AgentBuilder()

    @classmethod
    def load(cls, directory: str | Path, builder: AgentBuilder | None = None) -> "AgentRegistry":
        """Load every *.json record in `directory`.

        Raises ConfigError for a missing or empty directory, an unreadable or
        invalid record, or an id declared twice.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ConfigError(f"agent config directory not found: {directory}")

        paths = sorted(directory.glob("*.json"))
        if not paths:
            raise ConfigError(f"no agent configs found in {directory}")

        configs: list[AgentConfig] = []
        sources: dict[str, Path] = {}
        for path in paths:
            config = load_agent_config(path)
            if config.id in sources:
                raise ConfigError(
                    f"duplicate agent id {config.id!r} in {path} (already defined in {sources[config.id]})"
                )
            sources[config.id] = path
            configs.append(config)

        registry = cls(configs, builder=builder)
        logger.info("loaded %d agent(s) from %s: %s", len(configs), directory, ", ".join(registry.list_agent_ids()))
        return registry

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)

    def list_agent_ids(self) -> list[str]:
        return sorted(self._configs)

    def get_config(self, agent_id: str) -> AgentConfig:
        config = self._configs.get(agent_id)
        if config is None:
            raise AgentNotFoundError(agent_id)
        return config

    def build_agent(self, agent_id: str) -> Agent:
        """Build a new agent instance; instances are never cached."""
        return self.builder.build(self.get_config(agent_id))
