from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class PaymentMethodType(str, Enum):
    CARD = "card"
    BANK_ACCOUNT = "bank_account"
    PAYPAL = "paypal"


@dataclass(slots=True)
class PaymentMethod:
    tenant_id: str
    type: PaymentMethodType = PaymentMethodType.CARD
    id: UUID = field(default_factory=uuid4)
    is_default: bool = False
    last4: Optional[str] = None
    brand: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None
