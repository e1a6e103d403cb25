"""
Gestionnaires d'exceptions.
- HTTPException: body JSON FastAPI standard {"detail": ...}.
- GatewayError non traduite par une vue: JSON {"detail": ...} avec le code porté par l'erreur.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from gateway.errors import GatewayError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_as_json(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(GatewayError)
    async def gateway_error_as_json(request: Request, exc: GatewayError):
        logger.info("errors.gateway path=%s status=%s type=%s", request.url.path, exc.status_code, type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
