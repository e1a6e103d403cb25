# Module-level imports & constants
from locust import HttpUser, task, between
from urllib.parse import urlencode
import os
import csv
import random
import threading

from gateway.signature.codec import SignatureCodec

PASSPHRASE = os.getenv("PAYFAST_PASSPHRASE", "")
ITN_SPACE_ENCODING = os.getenv("PAYFAST_ITN_SPACE_ENCODING", "plus")

_ORDERS: list[tuple[str, str]] = []
_ORDERS_LOCK = threading.Lock()
_ORDER_IDX = 0

def _ensure_orders_loaded():
    """
    Commandes de test (order_id,user_id) existant en base:
    - tests/load/orders.csv (en-têtes order_id,user_id ou lignes brutes)
    - sinon LOCUST_ORDER_ID / LOCUST_USER_ID
    """
    global _ORDERS
    if _ORDERS:
        return
    csv_path = os.path.join(os.path.dirname(__file__), "orders.csv")
    if os.path.exists(csv_path):
        with open(csv_path, newline="", encoding="utf-8") as f:
            rows = [r for r in csv.reader(f) if r]
        if rows and rows[0] and rows[0][0].strip().lower() == "order_id":
            rows = rows[1:]
        for row in rows:
            if len(row) >= 2 and row[0].strip() and row[1].strip():
                _ORDERS.append((row[0].strip(), row[1].strip()))
    if not _ORDERS:
        order_id = os.getenv("LOCUST_ORDER_ID", "").strip()
        user_id = os.getenv("LOCUST_USER_ID", "").strip()
        if order_id and user_id:
            _ORDERS.append((order_id, user_id))
    if not _ORDERS:
        raise RuntimeError("Fournissez des commandes via tests/load/orders.csv (order_id,user_id) "
                           "ou les variables d'environnement LOCUST_ORDER_ID/LOCUST_USER_ID.")

def _next_order() -> tuple[str, str]:
    global _ORDER_IDX
    with _ORDERS_LOCK:
        order = _ORDERS[_ORDER_IDX % len(_ORDERS)]
        _ORDER_IDX += 1
        return order

class PayfastNotifier(HttpUser):
    """Simule le processeur: livraisons ITN signées, rejouées (idempotence sous charge)."""
    wait_time = between(0.2, 1.0)

    def on_start(self):
        _ensure_orders_loaded()
        self.codec = SignatureCodec(PASSPHRASE, ITN_SPACE_ENCODING)

    def _signed_itn(self, order_id: str, user_id: str) -> dict:
        params = {
            "m_payment_id": order_id,
            "pf_payment_id": str(random.randint(1000000, 9999999)),
            "payment_status": "COMPLETE",
            "item_name": "Load test order",
            "amount_gross": "100.00",
            "amount_fee": "-2.30",
            "amount_net": "97.70",
            "custom_str1": order_id,
            "custom_str2": user_id,
        }
        params["signature"] = self.codec.sign(params)
        return params

    @task(5)
    def duplicate_itn_delivery(self):
        order_id, user_id = _next_order()
        body = urlencode(self._signed_itn(order_id, user_id))
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        # Même notification livrée deux fois: les deux doivent répondre 200 "OK"
        for attempt in ("first", "retry"):
            with self.client.post(
                "/payfast/webhook",
                data=body,
                headers=headers,
                name=f"POST /payfast/webhook ({attempt})",
                catch_response=True,
            ) as resp:
                if resp.status_code == 200 and resp.text == "OK":
                    resp.success()
                else:
                    resp.failure(f"ITN {attempt} => {resp.status_code}: {resp.text[:200]}")

    @task(2)
    def tampered_itn_is_rejected(self):
        order_id, user_id = _next_order()
        params = self._signed_itn(order_id, user_id)
        params["amount_gross"] = "1.00"
        with self.client.post(
            "/payfast/webhook",
            data=urlencode(params),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            name="POST /payfast/webhook (tampered)",
            catch_response=True,
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Tampered ITN accepted => {resp.status_code}")

    @task(1)
    def sign_and_health(self):
        self.client.post(
            "/api/payfast-signature",
            json={"merchant_id": "10000100", "amount": "100.00", "item_name": "Load test order"},
            name="POST /api/payfast-signature",
        )
        self.client.get("/health", name="GET /health")
