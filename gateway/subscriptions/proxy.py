"""
Relais vers l'API REST PayFast des abonnements (/subscriptions/{token}/{action}).
- Signature API: paramètres d'en-tête (merchant-id, version, timestamp) + corps, clés triées,
  espaces encodés en "+", passphrase ajoutée en dernier.
- Le client HTTP est `requests` (timeout borné, pas de retry).
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from gateway.signature.codec import SignatureCodec

logger = logging.getLogger(__name__)

SUBSCRIPTION_ACTIONS = frozenset({"fetch", "pause", "unpause", "cancel", "update", "adhoc"})
BODYLESS_METHODS = ("GET", "HEAD")


class SubscriptionProxy:
    def __init__(
        self,
        codec: SignatureCodec,
        merchant_id: str,
        api_base: str,
        api_version: str = "v1",
        sandbox: bool = True,
        timeout: float = 10,
    ):
        self.codec = codec
        self.merchant_id = merchant_id
        self.api_base = api_base.rstrip("/")
        self.api_version = api_version
        self.sandbox = sandbox
        self.timeout = timeout

    def target_url(self, token: str, action: str) -> str:
        url = f"{self.api_base}/subscriptions/{token}/{action}"
        return f"{url}?testing=true" if self.sandbox else url

    def signed_headers(
        self,
        method: str,
        body: Optional[Mapping[str, Any]] = None,
        *,
        merchant_id: Optional[str] = None,
        version: Optional[str] = None,
        timestamp: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        En-têtes attendus par PayFast; les valeurs fournies par l'appelant priment sur la config.
        Le corps n'entre dans la signature que pour les méthodes qui en portent un.
        """
        headers = {
            "merchant-id": merchant_id or self.merchant_id,
            "version": version or self.api_version,
            "timestamp": timestamp or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        inputs: Dict[str, Any] = dict(headers)
        if method.upper() not in BODYLESS_METHODS and body:
            inputs.update(body)
        headers["signature"] = self.codec.sign(inputs, sort_keys=True)
        headers["Content-Type"] = "application/json" if method.upper() == "GET" else (content_type or "application/json")
        return headers

    def forward(
        self,
        method: str,
        token: str,
        action: str,
        body: Optional[Mapping[str, Any]] = None,
        **header_overrides: Optional[str],
    ) -> Tuple[int, Any, bool]:
        """
        Relaye l'action et retourne (status, contenu, est_json).
        Lève ValueError pour une action inconnue; les erreurs réseau `requests` remontent telles quelles.
        """
        if action not in SUBSCRIPTION_ACTIONS:
            raise ValueError(f"unknown action: {action}")
        method = method.upper()
        headers = self.signed_headers(method, body, **header_overrides)
        kwargs: Dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if method not in BODYLESS_METHODS:
            kwargs["data"] = json.dumps(dict(body or {}))

        logger.info("subscriptions.proxy method=%s action=%s", method, action)
        resp = requests.request(method, self.target_url(token, action), **kwargs)
        try:
            return resp.status_code, resp.json(), True
        except ValueError:
            return resp.status_code, resp.text, False
