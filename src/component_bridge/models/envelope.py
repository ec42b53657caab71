"""
Component protocol envelopes.
"""

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

API_NAME = "component"


class Envelope(BaseModel):
    """Outbound message. Dumped by alias, so keys match the host's camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    action: str
    data: Optional[Any] = None
    message_id: str = Field(alias="messageId")
    session_key: Optional[str] = Field(default=None, alias="sessionKey")
    api: Literal["component"] = API_NAME


class OriginalRef(BaseModel):
    """The originating envelope echoed back inside a reply."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    message_id: str = Field(alias="messageId")
    action: Optional[str] = None


class InboundEnvelope(BaseModel):
    """Anything the host sends: handshake, theme push or reply."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    action: Optional[str] = None
    data: Optional[Any] = None
    session_key: Optional[str] = Field(default=None, alias="sessionKey")
    component_data: Optional[dict[str, Any]] = Field(default=None, alias="componentData")
    original: Optional[OriginalRef] = None

    @property
    def is_reply(self) -> bool:
        return self.original is not None
