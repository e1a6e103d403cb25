"""
Provisioning des abonnements 'chat' après un paiement PayFast COMPLETE.
Appelé par le reconciler, jamais bloquant pour l'accusé de réception ITN.
"""
import calendar
import logging
from datetime import datetime, timezone
from typing import Optional

from gateway.subscriptions import repository

logger = logging.getLogger(__name__)

# subscription_option -> duration_months
OPTION_TO_MONTHS = {
    "one_time": 0,
    "monthly": 1,
    "annual": 12,
}
# Ordre de repli si aucun plan ne correspond à l'option
FALLBACK_DURATIONS = (0, 1)


def add_months(start: datetime, months: int) -> datetime:
    """start + months, jour borné à la fin du mois cible (31 janv. + 1 => 28/29 févr.)."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def _select_plan(option: Optional[str]):
    desired = OPTION_TO_MONTHS.get(option or "")
    if desired is not None:
        plan = repository.find_chat_plan(desired)
        if plan:
            return plan
    for months in FALLBACK_DURATIONS:
        plan = repository.find_chat_plan(months)
        if plan:
            return plan
    return None


def provision_chat_subscription(user_id: str, option: Optional[str], pending_subscription_id: Optional[str] = None) -> bool:
    """
    Active l'abonnement 'pending' référencé s'il existe, sinon crée un abonnement actif
    pour le plan correspondant (sauf si l'utilisateur en a déjà un actif sur ce plan).
    Retourne True si un abonnement a été activé ou créé.
    """
    plan = _select_plan(option)
    if not plan:
        logger.warning("subscriptions.provision no_chat_plan user_id=%s option=%s", user_id, option)
        return False

    if pending_subscription_id and repository.activate_pending_subscription(pending_subscription_id, user_id):
        logger.info("subscriptions.provision activated_pending id=%s user_id=%s", pending_subscription_id, user_id)
        return True

    if repository.has_active_subscription(user_id, plan.get("id")):
        logger.info("subscriptions.provision already_active user_id=%s plan_id=%s", user_id, plan.get("id"))
        return False

    months = int(plan.get("duration_months") or 0)
    end_date = add_months(datetime.now(timezone.utc), months).isoformat() if months > 0 else None
    row = repository.insert_active_subscription(user_id, plan.get("id"), end_date)
    logger.info("subscriptions.provision created user_id=%s plan_id=%s ok=%s", user_id, plan.get("id"), bool(row))
    return bool(row)
