"""
Adaptateur Stripe: rail carte secondaire (PaymentIntent), à côté de PayFast.
"""
import stripe
from typing import Any, Dict
from fastapi import HTTPException

# module gateway.payments.stripe_client
def require_stripe() -> stripe:
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY (lu à l'appel, jamais renvoyé au client).
    - 500 si la clé est absente: le rail carte n'est pas configuré côté serveur.
    """
    from gateway.config import STRIPE_SECRET_KEY
    if not STRIPE_SECRET_KEY:
        raise HTTPException(status_code=500, detail="STRIPE_SECRET_KEY manquant")
    stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def create_payment_intent(*, amount: int, currency: str) -> Dict[str, Any]:
    """
    Crée un PaymentIntent Stripe.
    - amount: montant en plus petite unité (cents)
    - currency: code ISO en minuscules (ex: "zar")
    Retour: dict incluant "id" et "client_secret".
    """
    require_stripe()
    intent = stripe.PaymentIntent.create(amount=amount, currency=currency)
    return {"id": intent.id, "client_secret": intent.client_secret}
