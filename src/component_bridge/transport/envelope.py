"""
Wire codec: envelope construction, inbound parsing and item sanitizing.
"""

from collections.abc import Mapping, MutableMapping
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from component_bridge.models.envelope import Envelope, InboundEnvelope

WireValue = Union[str, dict[str, Any]]

# Graph back-references that never cross the boundary
RELATION_FIELDS = ("parent", "children")


def build_envelope(
    action: str,
    data: Any,
    message_id: str,
    session_key: Optional[str] = None,
) -> Envelope:
    return Envelope(action=action, data=data, message_id=message_id, session_key=session_key)


def encode(envelope: Envelope, text_mode: bool) -> WireValue:
    """JSON text for the text channel, a plain dict for the structured one."""
    if text_mode:
        return envelope.model_dump_json(by_alias=True)
    return envelope.model_dump(by_alias=True)


def parse_envelope(raw: Any) -> Optional[InboundEnvelope]:
    """Parse an inbound payload. Returns None if invalid."""
    if not isinstance(raw, Mapping):
        return None
    try:
        return InboundEnvelope.model_validate(dict(raw))
    except ValidationError:
        return None


def sanitize_item(item: Union[Mapping[str, Any], BaseModel]) -> dict[str, Any]:
    """Shallow copy of an item with its parent/children relations nulled."""
    if isinstance(item, BaseModel):
        copy = dict(item.__dict__)
        extra = item.__pydantic_extra__
        if extra:
            copy.update(extra)
    elif isinstance(item, Mapping):
        copy = dict(item)
    else:
        raise TypeError(f"Cannot sanitize item of type {type(item).__name__}")
    for field in RELATION_FIELDS:
        copy[field] = None
    return copy


def stamp_item(item: Union[MutableMapping[str, Any], BaseModel], when: datetime) -> None:
    """Set updated_at on the caller's own record."""
    if isinstance(item, BaseModel):
        setattr(item, "updated_at", when)
    else:
        item["updated_at"] = when
