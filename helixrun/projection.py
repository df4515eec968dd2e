"""Project internal execution events onto the wire event.

`build_ui_event` is pure and is called once per event in arrival order.
Partial responses contribute only delta fields; final responses contribute
only aggregates and usage. Graph metadata is decoded best-effort: a payload
that does not decode leaves its field unset and the rest of the event
intact.
"""

import logging

from pydantic import BaseModel, ValidationError

from helixrun.models.events import (
    METADATA_KEY_CHANNEL,
    METADATA_KEY_MODEL,
    METADATA_KEY_NODE,
    METADATA_KEY_PREGEL,
    METADATA_KEY_STATE,
    ChannelUpdateMetadata,
    ExecutionEvent,
    ModelExecutionMetadata,
    NodeExecutionMetadata,
    PregelStepMetadata,
    StateUpdateMetadata,
)
from helixrun.models.response import ObjectType
from helixrun.models.ui_event import UIEvent

logger = logging.getLogger(__name__)

# UIEvent field -> (state_delta key, metadata model)
_METADATA_FIELDS: dict[str, tuple[str, type[BaseModel]]] = {
    "model_metadata": (METADATA_KEY_MODEL, ModelExecutionMetadata),
    "node_metadata": (METADATA_KEY_NODE, NodeExecutionMetadata),
    "pregel_metadata": (METADATA_KEY_PREGEL, PregelStepMetadata),
    "channel_metadata": (METADATA_KEY_CHANNEL, ChannelUpdateMetadata),
    "state_metadata": (METADATA_KEY_STATE, StateUpdateMetadata),
}

_RUN_ENDING = {ObjectType.runner_completion.value, ObjectType.error.value}


def _decode_metadata(event: ExecutionEvent, key: str, model: type[BaseModel]) -> BaseModel | None:
    raw = event.state_delta.get(key)
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        logger.debug("dropping undecodable %s on event %s: %s", key, event.id, e)
        return None


def build_ui_event(event: ExecutionEvent) -> UIEvent:
    """Build the wire event for one execution event."""
    fields: dict = {
        "type": event.object,
        "object": event.object,
        "event_id": event.id,
        "author": event.author,
        "timestamp": event.timestamp.isoformat(),
        "request_id": event.request_id,
        "invocation_id": event.invocation_id,
        "parent_invocation_id": event.parent_invocation_id,
        "filter_key": event.filter_key,
        "error": event.error,
    }

    response = event.response
    if response is not None and response.choices:
        choice = response.choices[0]
        if response.is_partial:
            fields["content_delta"] = choice.delta.content
            if choice.delta.tool_calls:
                fields["tool_calls_delta"] = choice.delta.tool_calls
        else:
            fields["content"] = choice.message.content
            if choice.message.tool_calls:
                fields["tool_calls"] = choice.message.tool_calls
            fields["usage"] = response.usage
    if response is not None and response.error is not None and event.error is None:
        fields["error"] = response.error

    for name, (key, model) in _METADATA_FIELDS.items():
        fields[name] = _decode_metadata(event, key, model)

    if event.object in _RUN_ENDING:
        fields["runner_completion"] = True
    elif event.done and not event.is_partial:
        fields["step_completion"] = True

    return UIEvent(**fields)
