"""FastAPI application serving agent runs over SSE.

Serve with `python -m server` or `uvicorn --factory server.app:create_app`.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helixrun import __version__
from helixrun.agents import AgentBuilder, AgentRegistry
from helixrun.config import Settings
from helixrun.runner import Runner
from server.chat_routes import router as chat_router

load_dotenv()  # load environment variables from .env file

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_runner(settings: Settings) -> Runner:
    """Load the agent registry and wrap it in a runner.

    Raises ConfigError when the agent directory cannot be loaded.
    """
    builder = AgentBuilder(
        max_tool_iterations=settings.max_tool_iterations,
        graph_max_steps=settings.graph_max_steps,
    )
    registry = AgentRegistry.load(settings.config_dir, builder=builder)
    return Runner(registry, app_name=settings.app_name, buffer_size=settings.stream_buffer)


def create_app(settings: Settings | None = None, runner: Runner | None = None) -> FastAPI:
    """Create the app; a prebuilt runner skips loading agents from disk."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load agents on startup."""
        app.state.runner = runner or build_runner(settings)
        logger.info("serving agents: %s", ", ".join(app.state.runner.registry.list_agent_ids()))
        yield

    app = FastAPI(
        title="helixrun",
        description="Run declaratively configured agents and stream their execution events",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat_router)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": __version__,
            "agents": app.state.runner.registry.list_agent_ids(),
            "endpoints": {
                "chat": "/chat",
                "agents": "/agents",
            },
        }

    @app.get("/agents")
    def list_agents() -> list[str]:
        """list the ids of all configured agents."""
        return app.state.runner.registry.list_agent_ids()

    return app

