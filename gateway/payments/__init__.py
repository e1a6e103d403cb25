"""
Module 'payments' (feature-first): point d'entrée public.
Formulaire PayFast signé, vérification ITN, réconciliation commande/paiement.
"""

from .models import OrderStatus, PaymentStatus, PaymentNotification, ReconcileOutcome, map_status
from .builder import PaymentRequestBuilder, format_amount
from .verifier import NotificationVerifier
from .reconciler import OrderReconciler

__all__ = [
    # models
    "OrderStatus",
    "PaymentStatus",
    "PaymentNotification",
    "ReconcileOutcome",
    "map_status",
    # builder
    "PaymentRequestBuilder",
    "format_amount",
    # verifier
    "NotificationVerifier",
    # reconciler
    "OrderReconciler",
]
