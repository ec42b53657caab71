"""
Session established by the component-registered handshake.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class Environment(str, Enum):
    WEB = "web"
    DESKTOP = "desktop"
    MOBILE = "mobile"


class Session(BaseModel):
    session_key: Optional[str] = None
    component_data: dict[str, Any] = {}
    environment: Optional[str] = None  # one of Environment, kept raw for unknown hosts
    uuid: Optional[str] = None
