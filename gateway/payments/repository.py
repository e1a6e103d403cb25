"""
Accès aux données pour la feature 'payments' (tables orders, payments).
Chaque fonction d'écriture est un unique appel PostgREST atomique (jamais lecture puis écriture).
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import httpx
from postgrest.exceptions import APIError

import gateway.infra.supabase_client as supabase_client
from gateway.errors import StorageError, StorageUnavailable

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
PAYMENTS_TABLE = "payments"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _storage_errors(action: str, **context):
    """Traduit les erreurs du client Supabase en erreurs du domaine (503 transitoire, 500 sinon)."""
    try:
        yield
    except (httpx.TimeoutException, httpx.TransportError) as e:
        logger.error("payments.repository.%s unavailable %s error=%s", action, context, type(e).__name__)
        raise StorageUnavailable() from e
    except APIError as e:
        logger.error("payments.repository.%s failed %s code=%s message=%s", action, context, e.code, e.message)
        raise StorageError(f"{action} failed") from e


# module gateway.payments.repository
def update_order_status(order_id: str, user_id: str, status: str) -> int:
    """
    UPDATE orders SET status, updated_at WHERE id = order_id AND user_id = user_id.
    - Le prédicat composé empêche de modifier la commande d'un autre utilisateur.
    - Retourne le nombre de lignes affectées (0 => aucune commande correspondante).
    """
    with _storage_errors("update_order_status", order_id=order_id):
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .update({"status": status, "updated_at": _now_iso()})
            .eq("id", order_id)
            .eq("user_id", user_id)
            .execute()
        )
    return len(res.data or [])


def upsert_payment(row: Dict[str, Any]) -> None:
    """
    INSERT ... ON CONFLICT (order_id) DO UPDATE: une seule ligne payments par commande,
    réécrite à chaque notification (rejouer la même notification ne la duplique pas).
    """
    with _storage_errors("upsert_payment", order_id=row.get("order_id")):
        (
            supabase_client.get_service_supabase()
            .table(PAYMENTS_TABLE)
            .upsert(row, on_conflict="order_id")
            .execute()
        )


def get_order_status(order_id: str) -> Optional[Dict[str, Any]]:
    """
    Lecture pour l'app mobile: {id, status, payment_status, total} ou None.
    """
    with _storage_errors("get_order_status", order_id=order_id):
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("id, status, payment_status, total")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
    rows = res.data or []
    return rows[0] if rows else None
