from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

# Attributes a tenant user may change through the API.
EDITABLE_FIELDS = (
    "name",
    "short_name",
    "industry",
    "company_size",
    "country",
    "phone",
    "timezone",
    "logo_url",
    "description",
    "settings",
)


@dataclass(slots=True)
class Organization:
    tenant_id: str
    name: str
    id: UUID = field(default_factory=uuid4)
    short_name: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def apply(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply editable changes; returns the fields that actually changed."""
        changed: Dict[str, Any] = {}
        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                continue
            if getattr(self, key) != value:
                setattr(self, key, value)
                changed[key] = value
        return changed
