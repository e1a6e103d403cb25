"""
Application d'une notification ITN validée aux enregistrements orders / payments.

1) UPDATE conditionné de la commande (id + user_id): 0 ligne => OrderNotFound
2) UPSERT du paiement sur order_id: un échec est journalisé, jamais fatal
3) Provisioning d'abonnement 'chat' si applicable (non fatal)
Rejouer la même notification réécrit les mêmes valeurs: aucun effet supplémentaire.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from gateway.errors import OrderNotFound, PaymentUpsertFailed
from gateway.payments.models import PaymentNotification, ReconcileOutcome, map_status

logger = logging.getLogger(__name__)

PAYMENT_METHOD = "payfast"


class OrderReconciler:
    def __init__(
        self,
        repository: Any,
        currency: str = "ZAR",
        provision_subscription: Optional[Callable[..., bool]] = None,
    ):
        """
        repository: objet (ou module) exposant update_order_status(order_id, user_id, status) -> int
                    et upsert_payment(row) -> None, chacun atomique.
        provision_subscription: callable(user_id, option, pending_subscription_id) -> bool, optionnel.
        """
        self.repository = repository
        self.currency = currency
        self.provision_subscription = provision_subscription

    def payment_row(self, notification: PaymentNotification) -> Dict[str, Any]:
        _, payment_status = map_status(notification.payment_status)
        return {
            "order_id": notification.order_id,
            "user_id": notification.user_id,
            "amount": float(notification.amount_gross),
            "currency": self.currency,
            "status": payment_status.value,
            "payment_method": PAYMENT_METHOD,
            "transaction_id": notification.transaction_id,
            "metadata": {
                "payfast_payment_id": notification.transaction_id,
                "amount_fee": float(notification.amount_fee),
                "amount_net": float(notification.amount_net),
                "payment_status": notification.payment_status,
                "webhook_data": dict(notification.extra),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        }

    def _record_payment(self, notification: PaymentNotification) -> bool:
        try:
            self.repository.upsert_payment(self.payment_row(notification))
            return True
        except Exception as e:
            failure = PaymentUpsertFailed(getattr(e, "detail", None) or type(e).__name__)
            # Dérive orders/payments à rattraper: niveau ERROR + champs structurés pour la supervision
            logger.error(
                "payments.reconcile payment_upsert_failed order_id=%s pf_payment_id=%s status=%s reason=%s",
                notification.order_id, notification.transaction_id, notification.payment_status, failure.detail,
                extra={
                    "event": "payment_upsert_failed",
                    "order_id": notification.order_id,
                    "transaction_id": notification.transaction_id,
                },
            )
            return False

    def _provision(self, notification: PaymentNotification) -> bool:
        if self.provision_subscription is None:
            return False
        if notification.payment_status != "COMPLETE" or notification.subscription_type != "chat":
            return False
        try:
            return bool(self.provision_subscription(
                notification.user_id,
                notification.subscription_option,
                notification.order_id,
            ))
        except Exception:
            logger.exception("payments.reconcile subscription_provisioning_failed user_id=%s", notification.user_id)
            return False

    def reconcile(self, notification: PaymentNotification) -> ReconcileOutcome:
        """
        Transition idempotente commande + paiement.
        La dernière notification livrée l'emporte: pas de garde contre un retour en arrière
        (un PENDING tardif après COMPLETE repasse la commande en pending).
        - OrderNotFound (500): aucune commande (id, user_id) correspondante, rien n'est écrit
        - StorageError / StorageUnavailable: propagées (500 / 503) si la mise à jour de commande échoue
        """
        order_status, payment_status = map_status(notification.payment_status)

        affected = self.repository.update_order_status(notification.order_id, notification.user_id, order_status.value)
        if not affected:
            logger.error(
                "payments.reconcile order_not_found order_id=%s user_id=%s pf_payment_id=%s",
                notification.order_id, notification.user_id, notification.transaction_id,
            )
            raise OrderNotFound()

        recorded = self._record_payment(notification)
        provisioned = self._provision(notification)

        logger.info(
            "payments.reconcile order_id=%s order_status=%s payment_status=%s payment_recorded=%s",
            notification.order_id, order_status.value, payment_status.value, recorded,
        )
        return ReconcileOutcome(
            order_id=notification.order_id,
            order_status=order_status,
            payment_status=payment_status,
            payment_recorded=recorded,
            subscription_provisioned=provisioned,
        )
