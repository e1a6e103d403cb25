# module gateway.app
"""
Factory de l'application FastAPI.
Ordre d'initialisation:
  1) register_basic_middlewares: CORS, TrustedHost, ProxyHeaders.
  2) register_security_middleware: en-têtes de sécurité.
  3) register_exception_handlers: HTTPException et GatewayError rendues en JSON.
  4) register_routers: signature, paiements, abonnements, health.
"""
import logging

from fastapi import FastAPI

from gateway.config import SERVICE_NAME
from gateway.app_setup.lifespan import lifespan
from gateway.app_setup.middlewares import register_basic_middlewares, register_security_middleware
from gateway.app_setup.exception_handlers import register_exception_handlers
from gateway.app_setup.routers import register_routers

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

def create_app() -> FastAPI:
    app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app

# App globale
app = create_app()
