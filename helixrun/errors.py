"""Exception taxonomy for agent loading, building and execution."""


class HelixRunError(Exception):
    """Base class for all helixrun errors."""


class ConfigError(HelixRunError):
    """An agent record is malformed or the config directory is unusable."""


class BuildError(HelixRunError):
    """An agent could not be constructed from its record."""


class AgentNotFoundError(BuildError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f"unknown agent ID: {agent_id}")
        self.agent_id = agent_id


class UnsupportedAgentTypeError(BuildError):
    pass


class UnsupportedProviderError(BuildError):
    pass


class CredentialError(BuildError):
    pass


class UnknownToolError(BuildError):
    pass


class CompileError(BuildError):
    """A graph record references nodes that were never declared."""


class ExecutionError(HelixRunError):
    """An agent failed while running."""


class ModelExecutionError(ExecutionError):
    pass


class ToolExecutionError(ExecutionError):
    pass


def classify_error(error: BaseException) -> str:
    """Classify an error into one of the wire error types."""
    if isinstance(error, BuildError):
        return "build"
    if isinstance(error, ToolExecutionError):
        return "tool"
    if isinstance(error, ModelExecutionError):
        return "model"
    if isinstance(error, ExecutionError):
        return "flow"

    # errors raised by provider SDKs never subclass our hierarchy
    error_name = type(error).__name__.lower()
    if any(x in error_name for x in ["openai", "api", "rate", "timeout", "connection"]):
        return "model"
    if any(x in error_name for x in ["tool", "function"]):
        return "tool"
    return "flow"
