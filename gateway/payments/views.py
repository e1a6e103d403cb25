import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import PlainTextResponse, RedirectResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from gateway import config
from gateway.dependencies import get_notification_verifier, get_payment_request_builder, get_reconciler
from gateway.errors import GatewayError
from gateway.payments import repository as payments_repo
from gateway.payments import stripe_client
from gateway.payments.builder import PaymentRequestBuilder, SUBSCRIPTION_FIELDS
from gateway.payments.reconciler import OrderReconciler
from gateway.payments.verifier import NotificationVerifier
from gateway.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
api_router = APIRouter(prefix="/api/v1/payfast", tags=["Payments API"])
web_router = APIRouter(tags=["Payments"])


class PaymentUrlRequest(BaseModel):
    amount: str | float
    item_name: str
    order_id: str
    user_id: str
    item_description: Optional[str] = None
    name_first: Optional[str] = None
    name_last: Optional[str] = None
    email_address: Optional[str] = None
    cell_number: Optional[str] = None
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None
    notify_url: Optional[str] = None
    subscription_type: Optional[str | int] = None
    billing_date: Optional[str] = None
    recurring_amount: Optional[str | float] = None
    frequency: Optional[str | int] = None
    cycles: Optional[str | int] = None
    subscription_notify_email: Optional[bool | str] = None
    subscription_notify_webhook: Optional[bool | str] = None
    subscription_notify_buyer: Optional[bool | str] = None


class PaymentIntentRequest(BaseModel):
    amount: int = Field(gt=0)
    currency: str = "zar"


def _is_mobile(request: Request) -> bool:
    return "Mobile" in (request.headers.get("user-agent") or "")


# module gateway.payments.views
@api_router.post("/payment-url", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_payment_url(req: PaymentUrlRequest, builder: PaymentRequestBuilder = Depends(get_payment_request_builder)):
    """
    Construit le formulaire PayFast signé pour une commande existante.
    - URLs return/cancel/notify par défaut: BASE_URL + /payment-return, /payment-cancel, /payfast/webhook
    - Sortie: {"action": <process_url>, "url": <process_url?query>, "fields": {...}}
    - Erreurs: 400 si montant <= 0 (InvalidAmount) ou champ requis manquant (MissingField)
    """
    data = req.model_dump()
    subscription = {k: data.get(k) for k in SUBSCRIPTION_FIELDS}
    try:
        fields = builder.build(
            amount=req.amount,
            item_name=req.item_name,
            order_id=req.order_id,
            user_id=req.user_id,
            item_description=req.item_description,
            name_first=req.name_first,
            name_last=req.name_last,
            email_address=req.email_address,
            cell_number=req.cell_number,
            return_url=req.return_url or f"{config.BASE_URL}/payment-return",
            cancel_url=req.cancel_url or f"{config.BASE_URL}/payment-cancel",
            notify_url=req.notify_url or f"{config.BASE_URL}/payfast/webhook",
            subscription=subscription,
        )
    except GatewayError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    logger.info("payments.payment_url order_id=%s amount=%s", req.order_id, fields.get("amount"))
    return {"action": builder.process_url, "url": builder.redirect_url(fields), "fields": fields}


@web_router.post("/payfast/webhook", include_in_schema=False)
async def payfast_webhook(
    request: Request,
    verifier: NotificationVerifier = Depends(get_notification_verifier),
    reconciler: OrderReconciler = Depends(get_reconciler),
):
    """
    ITN PayFast (form-urlencoded ou JSON).
    - Signature vérifiée avant tout accès au stockage: 400 "Invalid signature"
    - Champs de corrélation manquants: 400 "Missing required data"
    - Commande (id, user_id) introuvable: 500; stockage indisponible: 503 (le processeur rejoue)
    - Succès: 200 "OK", y compris si l'enregistrement payments a échoué (journalisé)
    """
    body = await request.body()
    try:
        notification = verifier.verify_payload(body, request.headers.get("content-type"))
    except GatewayError as e:
        return PlainTextResponse(e.detail, status_code=e.status_code)

    try:
        outcome = await run_in_threadpool(reconciler.reconcile, notification)
    except GatewayError as e:
        return PlainTextResponse(e.detail, status_code=e.status_code)
    except Exception:
        logger.exception("Erreur payfast_webhook order_id=%s", notification.order_id)
        return PlainTextResponse("Error processing webhook", status_code=500)

    logger.info("payments.webhook order_id=%s status=%s", outcome.order_id, outcome.order_status.value)
    return PlainTextResponse("OK", status_code=200)


@web_router.get("/payment-return", include_in_schema=False)
def payment_return(request: Request):
    """
    Retour navigateur après paiement: redirige vers l'app web ou le deep link mobile.
    Aucune écriture: seul l'ITN signé fait foi pour l'état de la commande.
    """
    order_id = request.query_params.get("custom_str1") or request.query_params.get("order_id") or ""
    payment_id = request.query_params.get("pf_payment_id") or ""
    if not order_id:
        return PlainTextResponse("Missing order ID", status_code=400)
    logger.info("payments.return order_id=%s pf_payment_id=%s", order_id, payment_id)
    query = urlencode({"order_id": order_id, "pf_payment_id": payment_id})
    if _is_mobile(request):
        return RedirectResponse(f"{config.MOBILE_APP_SCHEME}://payment-success?{query}")
    return RedirectResponse(f"{config.WEB_APP_URL}/payment-success?{query}")


@web_router.get("/payment-cancel", include_in_schema=False)
def payment_cancel(request: Request):
    """Annulation côté navigateur: redirection uniquement (l'ITN CANCELLED met la commande à jour)."""
    order_id = request.query_params.get("custom_str1") or request.query_params.get("order_id") or ""
    logger.info("payments.cancel order_id=%s", order_id)
    query = urlencode({"order_id": order_id})
    if _is_mobile(request):
        return RedirectResponse(f"{config.MOBILE_APP_SCHEME}://payment-cancelled?{query}")
    return RedirectResponse(f"{config.WEB_APP_URL}/payment-cancelled?{query}")


@web_router.get("/payment-status/{order_id}")
def payment_status(order_id: str):
    """Statut d'une commande pour l'app mobile: {orderId, status, paymentStatus, total}; 404 si inconnue."""
    try:
        order = payments_repo.get_order_status(order_id)
    except GatewayError as e:
        raise HTTPException(status_code=e.status_code, detail="Error checking payment status")
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return {
        "orderId": order.get("id"),
        "status": order.get("status"),
        "paymentStatus": order.get("payment_status"),
        "total": order.get("total"),
    }


@web_router.post("/api/create-payment-intent")
def create_payment_intent(req: PaymentIntentRequest):
    """PaymentIntent Stripe (montant en cents); renvoie {"clientSecret": ...}."""
    try:
        intent = stripe_client.create_payment_intent(amount=req.amount, currency=req.currency.lower())
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Erreur create_payment_intent")
        raise HTTPException(status_code=500, detail=str(e))
    return {"clientSecret": intent.get("client_secret")}
