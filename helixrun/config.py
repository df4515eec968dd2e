"""Process settings for the helixrun server.

Loaded from environment variables (a local .env file is honoured by the
server entrypoint through python-dotenv).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_DIR = "./configs/agents"
DEFAULT_HTTP_ADDR = ":8081"
DEFAULT_APP_NAME = "helixrun-starter"


def _parse_addr(addr: str) -> tuple[str, int]:
    """Split a "host:port" listen address (":8081", "127.0.0.1:9000")."""
    host, _, port = addr.rpartition(":")
    if not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    return host or "0.0.0.0", int(port)


@dataclass
class Settings:
    """Runtime settings for the agent server."""

    config_dir: Path = Path(DEFAULT_CONFIG_DIR)
    host: str = "0.0.0.0"
    port: int = 8081
    app_name: str = DEFAULT_APP_NAME
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    max_tool_iterations: int = 10
    graph_max_steps: int = 100
    stream_buffer: int = 1

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Environment variables:
            HELIXRUN_CONFIG_DIR: directory holding agent *.json records
            HELIXRUN_HTTP_ADDR: listen address, e.g. ":8081"
            HELIXRUN_APP_NAME: app name used to scope sessions
            HELIXRUN_LOG_LEVEL: logging level (default: INFO)
            CORS_ORIGINS: comma-separated allowed origins (default: *)
            HELIXRUN_MAX_TOOL_ITERATIONS: model calls per single agent run (default: 10)
            HELIXRUN_GRAPH_MAX_STEPS: superstep ceiling for graph agents (default: 100)
            HELIXRUN_STREAM_BUFFER: events buffered between engine and transport (default: 1)
        """
        host, port = _parse_addr(os.getenv("HELIXRUN_HTTP_ADDR") or DEFAULT_HTTP_ADDR)
        log_level = (os.getenv("HELIXRUN_LOG_LEVEL") or "INFO").upper()

        return cls(
            config_dir=Path(os.getenv("HELIXRUN_CONFIG_DIR") or DEFAULT_CONFIG_DIR),
            host=host,
            port=port,
            app_name=os.getenv("HELIXRUN_APP_NAME") or DEFAULT_APP_NAME,
            log_level=log_level,
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
            max_tool_iterations=int(os.getenv("HELIXRUN_MAX_TOOL_ITERATIONS", "10")),
            graph_max_steps=int(os.getenv("HELIXRUN_GRAPH_MAX_STEPS", "100")),
            stream_buffer=max(1, int(os.getenv("HELIXRUN_STREAM_BUFFER", "1"))),
        )
