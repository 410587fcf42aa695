from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class EndpointType(str, Enum):
    TRIGGER = "trigger"
    CALLBACK = "callback"


@dataclass(slots=True)
class AgentEndpoint:
    """Webhook pair of an agent. ``secret`` is the decrypted value; storage keeps it Fernet-encrypted."""
    agent_id: UUID
    type: EndpointType
    url: Optional[str]
    secret: str
    id: UUID = field(default_factory=uuid4)
    is_active: bool = True
