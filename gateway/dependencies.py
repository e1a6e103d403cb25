"""
Fournisseurs de dépendances FastAPI.
Construisent codec, builder, verifier, reconciler et proxy à partir de gateway.config à chaque requête:
les objets métier reçoivent leurs secrets explicitement et restent testables
(app.dependency_overrides ou monkeypatch de gateway.config).
"""
from gateway import config
from gateway.payments import repository as payments_repo
from gateway.payments.builder import PaymentRequestBuilder
from gateway.payments.reconciler import OrderReconciler
from gateway.payments.verifier import NotificationVerifier
from gateway.signature.codec import SignatureCodec
from gateway.subscriptions.proxy import SubscriptionProxy
from gateway.subscriptions.service import provision_chat_subscription


def get_signing_codec() -> SignatureCodec:
    return SignatureCodec(config.PAYFAST_PASSPHRASE, config.PAYFAST_SIGNING_SPACE_ENCODING)


def get_itn_codec() -> SignatureCodec:
    return SignatureCodec(config.PAYFAST_PASSPHRASE, config.PAYFAST_ITN_SPACE_ENCODING)


def get_api_codec() -> SignatureCodec:
    # API REST PayFast: encodage "+" pour les espaces, clés triées à la signature
    return SignatureCodec(config.PAYFAST_PASSPHRASE, "plus")


def get_payment_request_builder() -> PaymentRequestBuilder:
    return PaymentRequestBuilder(
        codec=get_signing_codec(),
        merchant_id=config.PAYFAST_MERCHANT_ID,
        merchant_key=config.PAYFAST_MERCHANT_KEY,
        sandbox=config.PAYFAST_SANDBOX,
    )


def get_notification_verifier() -> NotificationVerifier:
    return NotificationVerifier(get_itn_codec())


def get_reconciler() -> OrderReconciler:
    return OrderReconciler(
        repository=payments_repo,
        currency=config.PAYFAST_CURRENCY,
        provision_subscription=provision_chat_subscription,
    )


def get_subscription_proxy() -> SubscriptionProxy:
    return SubscriptionProxy(
        codec=get_api_codec(),
        merchant_id=config.PAYFAST_MERCHANT_ID,
        api_base=config.PAYFAST_API_BASE,
        api_version=config.PAYFAST_API_VERSION,
        sandbox=config.PAYFAST_SANDBOX,
        timeout=config.PAYFAST_API_TIMEOUT_SECONDS,
    )
