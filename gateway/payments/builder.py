"""
Construction des paramètres de redirection vers PayFast (formulaire / URL de process).
Assemblage pur: aucune I/O, aucune persistance.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from gateway.errors import InvalidAmount, MissingField
from gateway.signature.codec import SignatureCodec, SIGNATURE_FIELD, stringify

PAYFAST_PROCESS_URLS = {
    "sandbox": "https://sandbox.payfast.co.za/eng/process",
    "production": "https://www.payfast.co.za/eng/process",
}

# Champs d'abonnement relayés tels quels s'ils sont fournis
SUBSCRIPTION_FIELDS = (
    "subscription_type",
    "billing_date",
    "recurring_amount",
    "frequency",
    "cycles",
    "subscription_notify_email",
    "subscription_notify_webhook",
    "subscription_notify_buyer",
)

MONEY_QUANT = Decimal("0.01")


def format_amount(amount: Any) -> str:
    """'100' / 99.999 -> '100.00'; montant arrondi <= 0 (ex: 0.004) ou non numérique => InvalidAmount."""
    if isinstance(amount, bool):
        raise InvalidAmount(f"Montant invalide: {amount!r}")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Montant invalide: {amount!r}")
    if not value.is_finite():
        raise InvalidAmount(f"Montant invalide: {amount!r}")
    quantized = value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)
    if quantized <= 0:
        raise InvalidAmount(f"Montant invalide: {amount!r}")
    return str(quantized)


class PaymentRequestBuilder:
    def __init__(self, codec: SignatureCodec, merchant_id: str, merchant_key: str, sandbox: bool = True):
        self.codec = codec
        self.merchant_id = merchant_id
        self.merchant_key = merchant_key
        self.sandbox = sandbox

    @property
    def process_url(self) -> str:
        return PAYFAST_PROCESS_URLS["sandbox" if self.sandbox else "production"]

    def build(
        self,
        *,
        amount: Any,
        item_name: str,
        order_id: str,
        return_url: str,
        cancel_url: str,
        notify_url: str,
        user_id: str,
        item_description: Optional[str] = None,
        name_first: Optional[str] = None,
        name_last: Optional[str] = None,
        email_address: Optional[str] = None,
        cell_number: Optional[str] = None,
        subscription: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, str]:
        """
        Retourne le jeu de paramètres signé, dans l'ordre documenté par PayFast:
        marchand, client, transaction, champs custom, abonnement, puis `signature`.
        - m_payment_id et custom_str1 portent l'order_id, custom_str2 le user_id
        - Erreurs: InvalidAmount (montant <= 0), MissingField (order_id, user_id, item_name, URLs)
        """
        order_id = (order_id or "").strip() if isinstance(order_id, str) else ""
        if not order_id:
            raise MissingField("order_id manquant")
        if not (user_id or "").strip():
            raise MissingField("user_id manquant")
        if not (item_name or "").strip():
            raise MissingField("item_name manquant")
        for name, url in (("return_url", return_url), ("cancel_url", cancel_url), ("notify_url", notify_url)):
            if not (url or "").strip():
                raise MissingField(f"{name} manquant")
        formatted = format_amount(amount)

        params: Dict[str, str] = {
            "merchant_id": self.merchant_id,
            "merchant_key": self.merchant_key,
            "return_url": return_url,
            "cancel_url": cancel_url,
            "notify_url": notify_url,
        }
        # Champs client: omis s'ils sont vides
        for key, value in (
            ("name_first", name_first),
            ("name_last", name_last),
            ("email_address", email_address),
            ("cell_number", cell_number),
        ):
            if value:
                params[key] = value
        params["m_payment_id"] = order_id
        params["amount"] = formatted
        params["item_name"] = item_name
        params["item_description"] = item_description or item_name
        params["custom_str1"] = order_id
        params["custom_str2"] = user_id
        for key in SUBSCRIPTION_FIELDS:
            value = (subscription or {}).get(key)
            if value is not None and value != "":
                params[key] = stringify(value)

        params[SIGNATURE_FIELD] = self.codec.sign(params)
        return params

    def redirect_url(self, params: Dict[str, str]) -> str:
        """URL GET vers la page de process PayFast (sandbox ou production)."""
        return f"{self.process_url}?{urlencode(params)}"
