# accessgate/conftest.py
from datetime import datetime, timezone

import pytest

from accessgate.core.config import settings
from accessgate.models.access import AccessContext
from accessgate.models.plan import Plan
from accessgate.models.subscription import SubscriptionSnapshot, SubscriptionStatus


FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps one connection so the schema survives across sessions.
    """
    from accessgate.core.database import init_engine, create_all_tables, dispose_engine

    dispose_engine()
    engine = init_engine("sqlite://")
    create_all_tables()
    yield engine
    dispose_engine()


@pytest.fixture
def lenient_catalog(monkeypatch):
    """Production behaviour: unknown plan features degrade instead of raising."""
    monkeypatch.setattr(settings, "CATALOG_STRICT", False)


@pytest.fixture
def strict_catalog(monkeypatch):
    monkeypatch.setattr(settings, "CATALOG_STRICT", True)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def make_context():
    """Build an AccessContext with sensible defaults (active pro owner)."""

    def _make(
        *,
        plan=Plan.PRO,
        status=SubscriptionStatus.ACTIVE,
        trial_ends_at=None,
        role="owner",
        is_super_admin=False,
        is_impersonating=False,
        overrides=None,
        now=FIXED_NOW,
        subscription=True,
    ):
        snapshot = None
        if subscription:
            snapshot = SubscriptionSnapshot(plan=plan, status=status, trial_ends_at=trial_ends_at)
        return AccessContext(
            is_super_admin=is_super_admin,
            is_impersonating=is_impersonating,
            org_role=role,
            subscription=snapshot,
            now=now,
            permission_overrides=overrides,
        )

    return _make
