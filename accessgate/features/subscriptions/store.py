"""
accessgate/features/subscriptions/store.py

Reads and writes per-organization subscription snapshots
{plan, status, trial_ends_at}. Everything downstream works on the immutable
SubscriptionSnapshot returned here.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union
import logging

from sqlalchemy import select, insert, update

from accessgate.core.database import get_db_session, subscriptions
from accessgate.features.plans import catalog
from accessgate.models.plan import Plan
from accessgate.models.subscription import SubscriptionSnapshot, SubscriptionStatus


logger = logging.getLogger(__name__)


def get_subscription(organization_id: str) -> Optional[SubscriptionSnapshot]:
    """
    Load the organization's subscription snapshot.

    Returns None when the organization has no subscription row. Rows with a
    plan or status outside the known enumerations are logged and treated as
    missing, which the evaluator turns into an inactive subscription.
    """
    with get_db_session() as session:
        row = session.execute(
            select(subscriptions).where(subscriptions.c.organization_id == organization_id)
        ).first()

    if not row:
        return None

    try:
        return SubscriptionSnapshot(
            plan=Plan(row.plan),
            status=SubscriptionStatus(row.status),
            trial_ends_at=row.trial_ends_at,
        )
    except ValueError:
        logger.warning(
            "[subscriptions] unrecognized subscription row",
            extra={"organization_id": organization_id, "plan": row.plan, "status": row.status},
        )
        return None


def save_subscription(
    organization_id: str,
    plan: Union[Plan, str],
    status: Union[SubscriptionStatus, str],
    trial_ends_at: Optional[datetime] = None,
) -> SubscriptionSnapshot:
    """
    Upsert an organization's subscription.

    Raises:
        ValueError: plan or status is not a known value
    """
    snapshot = SubscriptionSnapshot(
        plan=Plan(plan),
        status=SubscriptionStatus(status),
        trial_ends_at=trial_ends_at,
    )
    now = datetime.now(timezone.utc)
    values = {
        "plan": snapshot.plan.value,
        "status": snapshot.status.value,
        "trial_ends_at": snapshot.trial_ends_at,
        "updated_at": now,
    }

    with get_db_session() as session:
        existing = session.execute(
            select(subscriptions.c.organization_id).where(subscriptions.c.organization_id == organization_id)
        ).first()
        if existing:
            session.execute(
                update(subscriptions)
                .where(subscriptions.c.organization_id == organization_id)
                .values(**values)
            )
        else:
            session.execute(
                insert(subscriptions).values(organization_id=organization_id, **values)
            )

    logger.info(
        "[subscriptions] saved",
        extra={"organization_id": organization_id, "plan": snapshot.plan.value, "status": snapshot.status.value},
    )
    return snapshot


def start_trial(organization_id: str, now: Optional[datetime] = None) -> SubscriptionSnapshot:
    """Put a new organization on the free plan's trial, ending trial_days from now."""
    started = now or datetime.now(timezone.utc)
    return save_subscription(
        organization_id,
        Plan.FREE,
        SubscriptionStatus.TRIAL,
        started + timedelta(days=catalog.trial_days(Plan.FREE)),
    )
