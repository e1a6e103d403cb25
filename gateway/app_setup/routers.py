"""
Registre central des routers.
- Signature: /api/payfast-signature
- Paiements: /api/v1/payfast/*, /payfast/webhook, /payment-return, /payment-cancel, /payment-status, /api/create-payment-intent
- Abonnements: /subscriptions/{token}/{action}
- Health: /health, /health/supabase
"""
from fastapi import FastAPI
from gateway.signature.views import router as signature_router
from gateway.payments.views import api_router as payments_api_router, web_router as payments_web_router
from gateway.subscriptions.views import router as subscriptions_router
from gateway.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(signature_router)
    app.include_router(payments_api_router)
    app.include_router(payments_web_router)
    app.include_router(subscriptions_router)
    app.include_router(health_router)
