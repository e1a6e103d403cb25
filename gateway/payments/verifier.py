"""
Vérification des notifications ITN PayFast.

Received -> SignatureChecked -> FieldsValidated -> Accepted, ou Rejected à n'importe quelle étape.
La signature est vérifiée avant toute logique métier; ce module n'écrit jamais en base.
"""
import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Optional

from gateway.errors import InvalidSignature, MissingCorrelationData
from gateway.signature.codec import SignatureCodec, SIGNATURE_FIELD
from gateway.payments.models import PaymentNotification
from gateway.utils.params import parse_payload

logger = logging.getLogger(__name__)

# Champs consommés explicitement; le reste part dans PaymentNotification.extra
CORE_FIELDS = (
    SIGNATURE_FIELD,
    "payment_status",
    "pf_payment_id",
    "amount_gross",
    "amount_fee",
    "amount_net",
    "custom_str1",
    "custom_str2",
)
REQUIRED_FIELDS = ("payment_status", "pf_payment_id", "amount_gross", "custom_str1", "custom_str2")


class VerificationStage(str, Enum):
    RECEIVED = "received"
    SIGNATURE_CHECKED = "signature_checked"
    FIELDS_VALIDATED = "fields_validated"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def _decimal(raw: Optional[str], field: str, *, required: bool = False) -> Decimal:
    if raw is None or raw.strip() == "":
        if required:
            raise MissingCorrelationData(f"{field} manquant")
        return Decimal("0")
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise MissingCorrelationData(f"{field} invalide")
    if not value.is_finite():
        raise MissingCorrelationData(f"{field} invalide")
    return value


class NotificationVerifier:
    def __init__(self, codec: SignatureCodec):
        self.codec = codec

    def check_signature(self, params: Dict[str, str]) -> None:
        claimed = params.get(SIGNATURE_FIELD)
        if not self.codec.verify(params, claimed):
            raise InvalidSignature()

    def validate_fields(self, params: Dict[str, str]) -> PaymentNotification:
        missing = [f for f in REQUIRED_FIELDS if not (params.get(f) or "").strip()]
        if missing:
            raise MissingCorrelationData("Missing required data: " + ", ".join(missing))
        extra = {k: v for k, v in params.items() if k not in CORE_FIELDS}
        return PaymentNotification(
            payment_status=params["payment_status"].strip(),
            transaction_id=params["pf_payment_id"].strip(),
            amount_gross=_decimal(params.get("amount_gross"), "amount_gross", required=True),
            amount_fee=_decimal(params.get("amount_fee"), "amount_fee"),
            amount_net=_decimal(params.get("amount_net"), "amount_net"),
            order_id=params["custom_str1"].strip(),
            user_id=params["custom_str2"].strip(),
            subscription_type=(params.get("subscription_type") or None),
            subscription_option=(params.get("subscription_option") or None),
            extra=extra,
        )

    def verify(self, params: Dict[str, str]) -> PaymentNotification:
        """
        Authentifie puis valide une notification déjà parsée.
        - InvalidSignature: empreinte absente ou différente (aucune lecture des champs métier avant)
        - MissingCorrelationData: statut, pf_payment_id, amount_gross, custom_str1 (order) ou custom_str2 (user) manquant
        """
        stage = VerificationStage.RECEIVED
        try:
            self.check_signature(params)
            stage = VerificationStage.SIGNATURE_CHECKED
            notification = self.validate_fields(params)
            stage = VerificationStage.FIELDS_VALIDATED
        except (InvalidSignature, MissingCorrelationData) as e:
            logger.warning(
                "payments.itn %s after=%s reason=%s pf_payment_id=%s",
                VerificationStage.REJECTED.value, stage.value, e.detail, params.get("pf_payment_id"),
            )
            raise
        logger.info(
            "payments.itn %s after=%s pf_payment_id=%s order_id=%s status=%s",
            VerificationStage.ACCEPTED.value, stage.value, notification.transaction_id, notification.order_id, notification.payment_status,
        )
        return notification

    def verify_payload(self, body: bytes, content_type: Optional[str]) -> PaymentNotification:
        """Corps HTTP brut -> notification typée (MalformedRequest si le corps n'est pas un jeu plat)."""
        return self.verify(parse_payload(body, content_type))
