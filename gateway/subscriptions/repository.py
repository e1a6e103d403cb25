"""
Accès aux données des abonnements (tables subscription_plans, user_subscriptions).
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import gateway.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def find_chat_plan(duration_months: int) -> Optional[Dict[str, Any]]:
    """Premier plan 'chat' (nom contenant 'chat') de la durée donnée, ou None."""
    res = (
        supabase_client.get_service_supabase()
        .table("subscription_plans")
        .select("*")
        .eq("duration_months", duration_months)
        .ilike("name", "%chat%")
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None


def activate_pending_subscription(subscription_id: str, user_id: str) -> bool:
    """
    Passe un abonnement 'pending' de l'utilisateur à 'active' (une seule écriture conditionnée).
    Retourne True si une ligne a été activée.
    """
    now = _now_iso()
    res = (
        supabase_client.get_service_supabase()
        .table("user_subscriptions")
        .update({"status": "active", "start_date": now, "updated_at": now, "payment_method": "payfast"})
        .eq("id", subscription_id)
        .eq("user_id", user_id)
        .eq("status", "pending")
        .execute()
    )
    return bool(res.data)


def has_active_subscription(user_id: str, plan_id: Any) -> bool:
    res = (
        supabase_client.get_service_supabase()
        .table("user_subscriptions")
        .select("id")
        .eq("user_id", user_id)
        .eq("subscription_plan_id", plan_id)
        .eq("status", "active")
        .limit(1)
        .execute()
    )
    return bool(res.data)


def insert_active_subscription(user_id: str, plan_id: Any, end_date: Optional[str]) -> Optional[Dict[str, Any]]:
    now = _now_iso()
    res = (
        supabase_client.get_service_supabase()
        .table("user_subscriptions")
        .insert({
            "user_id": user_id,
            "subscription_plan_id": plan_id,
            "status": "active",
            "start_date": now,
            "end_date": end_date,
            "payment_method": "payfast",
            "created_at": now,
            "updated_at": now,
        })
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None
