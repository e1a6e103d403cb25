"""
Types de la feature 'payments': statuts, table de correspondance ITN, notification typée.
"""
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# payment_status PayFast -> (orders.status, payments.status)
STATUS_MAP: Dict[str, Tuple[OrderStatus, PaymentStatus]] = {
    "COMPLETE": (OrderStatus.CONFIRMED, PaymentStatus.COMPLETED),
    "FAILED": (OrderStatus.CANCELLED, PaymentStatus.FAILED),
    "CANCELLED": (OrderStatus.CANCELLED, PaymentStatus.CANCELLED),
}


def map_status(external_status: Optional[str]) -> Tuple[OrderStatus, PaymentStatus]:
    """Correspondance exacte (sensible à la casse); statut inconnu ou absent => (pending, PENDING)."""
    return STATUS_MAP.get(external_status or "", (OrderStatus.PENDING, PaymentStatus.PENDING))


class PaymentNotification(BaseModel):
    """
    Notification ITN authentifiée et validée.
    Seule forme sous laquelle le reconciler voit une notification (jamais le dict brut).
    """
    model_config = ConfigDict(frozen=True)

    payment_status: str
    transaction_id: str
    amount_gross: Decimal
    amount_fee: Decimal = Decimal("0")
    amount_net: Decimal = Decimal("0")
    order_id: str
    user_id: str
    subscription_type: Optional[str] = None
    subscription_option: Optional[str] = None
    extra: Dict[str, str] = Field(default_factory=dict)


class ReconcileOutcome(BaseModel):
    """Résultat de la réconciliation d'une notification (sérialisable via model_dump(mode="json"))."""
    model_config = ConfigDict(frozen=True)

    order_id: str
    order_status: OrderStatus
    payment_status: PaymentStatus
    payment_recorded: bool
    subscription_provisioned: bool = False
