"""
Taxonomie des erreurs du sous-système de paiement.
Chaque erreur porte le code HTTP à renvoyer et un détail court (jamais de secret).
- 400: entrée rejetée définitivement (aucun rejeu n'aidera sans corriger le payload)
- 500: incohérence de données (corrélation commande/utilisateur)
- 503: défaillance transitoire du stockage (le processeur peut rejouer)
"""


class GatewayError(Exception):
    status_code = 400
    default_detail = "Requête invalide"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidParameterValue(GatewayError):
    default_detail = "Valeur de paramètre invalide"


class MalformedRequest(GatewayError):
    default_detail = "Malformed request"


class InvalidSignature(GatewayError):
    default_detail = "Invalid signature"


class MissingCorrelationData(GatewayError):
    default_detail = "Missing required data"


class InvalidAmount(GatewayError):
    default_detail = "Montant invalide"


class MissingField(GatewayError):
    default_detail = "Champ requis manquant"


class OrderNotFound(GatewayError):
    status_code = 500
    default_detail = "Failed to update order"


class StorageError(GatewayError):
    status_code = 500
    default_detail = "Storage error"


class StorageUnavailable(StorageError):
    """Timeout ou erreur réseau vers le stockage: le processeur peut rejouer."""
    status_code = 503
    default_detail = "Storage unavailable"


class PaymentUpsertFailed(GatewayError):
    """Non fatale: journalisée, jamais renvoyée au processeur."""
    status_code = 500
    default_detail = "Failed to create/update payment record"
