"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_event_id() -> str:
    """Generate a unique event ID (UUID4)."""
    return str(uuid.uuid4())


def generate_invocation_id() -> str:
    """Generate a unique invocation ID (UUID4)."""
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """Generate a unique request ID (UUID4)."""
    return str(uuid.uuid4())


def generate_session_id() -> str:
    """Generate a unique session ID (UUID4)."""
    return str(uuid.uuid4())


def generate_tool_call_id() -> str:
    """Generate a tool call ID in the provider's call_ style."""
    return f"call_{uuid.uuid4().hex[:24]}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)

