import logging

from fastapi import APIRouter, Request, Depends, HTTPException

from gateway.dependencies import get_signing_codec
from gateway.errors import GatewayError
from gateway.signature.codec import SignatureCodec
from gateway.utils.params import parse_json
from gateway.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Signature API"])

# module gateway.signature.views
@router.post("/api/payfast-signature", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
async def payfast_signature(request: Request, codec: SignatureCodec = Depends(get_signing_codec)):
    """
    Signe un jeu de paramètres PayFast pour le navigateur (la passphrase reste côté serveur).
    - Entrée JSON: objet plat {"merchant_id": "...", "amount": "100.00", ...}
    - Sortie: {"signature": "<32 hex>"}; la passphrase n'est jamais renvoyée ni journalisée
    - Erreurs: 400 si le corps n'est pas un objet plat à clés texte (MalformedRequest)
    """
    try:
        body = await request.body()
        params = parse_json(body.decode("utf-8"))
        signature = codec.sign(params)
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Malformed request")
    except GatewayError as e:
        logger.info("signature.request rejected reason=%s", e.detail)
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    logger.info("signature.request signed fields=%s", len(params))
    return {"signature": signature}
