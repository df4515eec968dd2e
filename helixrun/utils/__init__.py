"""Utility functions for helixrun."""

from helixrun.utils.identifiers import (
    generate_event_id,
    generate_invocation_id,
    generate_request_id,
    generate_session_id,
    generate_tool_call_id,
    utc_now,
)

__all__ = [
    "generate_event_id",
    "generate_invocation_id",
    "generate_request_id",
    "generate_session_id",
    "generate_tool_call_id",
    "utc_now",
]
