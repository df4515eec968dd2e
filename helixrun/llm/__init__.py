"""Model capability: protocol, langchain adapter and provider resolution."""

from helixrun.llm.model import ChatModelAdapter, Model
from helixrun.llm.resolver import ModelResolver, resolve_api_key

__all__ = [
    "ChatModelAdapter",
    "Model",
    "ModelResolver",
    "resolve_api_key",
]
