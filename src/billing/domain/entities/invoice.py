from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from src.shared.clock import utcnow


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    VOID = "void"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class LineItemType(str, Enum):
    BASE_PLAN = "base_plan"
    AGENT_ADDON = "agent_addon"
    USAGE_OVERAGE = "usage_overage"


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """``INV-YYYYMM-XXXXXX`` with six random upper-case hex characters."""
    now = now or utcnow()
    return f"INV-{now:%Y%m}-{secrets.token_hex(3).upper()}"


@dataclass(slots=True)
class InvoiceLineItem:
    type: LineItemType
    description: str
    quantity: int
    unit_price: Decimal
    amount: Decimal
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, type: LineItemType, description: str, quantity: int, unit_price: Decimal, **metadata: Any) -> "InvoiceLineItem":
        unit_price = Decimal(unit_price)
        return cls(
            type=type,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            amount=(unit_price * quantity).quantize(Decimal("0.01")),
            metadata=metadata,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "amount": str(self.amount),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvoiceLineItem":
        return cls(
            type=LineItemType(data["type"]),
            description=data.get("description", ""),
            quantity=int(data.get("quantity", 1)),
            unit_price=Decimal(str(data.get("unit_price", "0"))),
            amount=Decimal(str(data.get("amount", "0"))),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(slots=True)
class Invoice:
    tenant_id: str
    period_start: datetime
    period_end: datetime
    invoice_number: str = field(default_factory=generate_invoice_number)
    id: UUID = field(default_factory=uuid4)
    subscription_id: Optional[UUID] = None
    subtotal: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    currency: str = "USD"
    status: InvoiceStatus = InvoiceStatus.PENDING
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    line_items: List[InvoiceLineItem] = field(default_factory=list)
    retry_count: int = 0
    last_reminder_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def add_line_item(self, item: InvoiceLineItem) -> None:
        self.line_items.append(item)

    def recalculate_total(self) -> Decimal:
        self.subtotal = sum((i.amount for i in self.line_items), Decimal("0.00"))
        self.total = self.subtotal + self.tax
        return self.total

    def retry_payment(self) -> int:
        self.retry_count += 1
        self.status = InvoiceStatus.PENDING
        return self.retry_count

    def record_reminder(self, now: Optional[datetime] = None) -> None:
        self.last_reminder_at = now or utcnow()
