import logging

import requests
from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from gateway.dependencies import get_subscription_proxy
from gateway.errors import GatewayError
from gateway.subscriptions.proxy import SubscriptionProxy, SUBSCRIPTION_ACTIONS, BODYLESS_METHODS
from gateway.utils.params import parse_payload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])

# module gateway.subscriptions.views
@router.api_route("/{token}/{action}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def subscription_action(
    token: str,
    action: str,
    request: Request,
    proxy: SubscriptionProxy = Depends(get_subscription_proxy),
):
    """
    Relaie fetch|pause|unpause|cancel|update|adhoc vers l'API PayFast.
    - 404 {"error": "unknown action"} si l'action n'est pas supportée
    - Réponse amont renvoyée telle quelle (JSON si possible, sinon texte)
    - 502 {"error": "Bad gateway"} si PayFast est injoignable
    """
    if action not in SUBSCRIPTION_ACTIONS:
        return JSONResponse(status_code=404, content={"error": "unknown action"})

    method = request.method.upper()
    body = {}
    if method not in BODYLESS_METHODS:
        raw = await request.body()
        if raw.strip():
            try:
                body = parse_payload(raw, request.headers.get("content-type"))
            except GatewayError as e:
                return JSONResponse(status_code=e.status_code, content={"error": e.detail})

    try:
        status, content, is_json = await run_in_threadpool(
            proxy.forward,
            method,
            token,
            action,
            body,
            merchant_id=request.headers.get("merchant-id"),
            version=request.headers.get("version"),
            timestamp=request.headers.get("timestamp"),
            content_type=request.headers.get("content-type"),
        )
    except requests.RequestException as e:
        logger.error("subscriptions.proxy failed action=%s error=%s", action, e)
        return JSONResponse(status_code=502, content={"error": "Bad gateway", "details": str(e)})

    if is_json:
        return JSONResponse(status_code=status, content=content)
    return PlainTextResponse(content, status_code=status)
