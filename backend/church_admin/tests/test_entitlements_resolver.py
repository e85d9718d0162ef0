"""
Tests for entitlements resolution.

Resolution order: own active subscription -> church ADMINGERAL -> empty.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from church_admin.constants.plan_features import (
    AVAILABLE_PLAN_FEATURES,
    FeatureId,
    PlanFeatureRegistry,
)
from church_admin.entitlements import (
    EntitlementResolutionError,
    Entitlements,
    EntitlementsResolver,
    ResolvedFrom,
    UserNotFoundError,
    build_entitlements,
    church_id_for_member,
    resolve_fallback_subscription,
    select_active_subscription,
)


# ============================================================================
# In-memory object graphs for the pure helpers
# ============================================================================

def _plan(features=(), plan_id="p1", name="premium", max_members=None, max_branches=None):
    return SimpleNamespace(
        id=plan_id,
        name=name,
        code=None,
        features=list(features),
        max_members=max_members,
        max_branches=max_branches,
    )


def _subscription(plan, status="active", started_at=None):
    return SimpleNamespace(
        id=f"sub-{plan.id if plan else 'none'}",
        plan=plan,
        status=status,
        started_at=started_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _member(church_id, role="MEMBER", subscriptions=(), member_id="m1"):
    branch = SimpleNamespace(id=f"branch-{church_id}", church_id=church_id)
    user = SimpleNamespace(subscriptions=list(subscriptions))
    return SimpleNamespace(id=member_id, role=role, branch=branch, user=user)


class TestSelectActiveSubscription:
    def test_none_when_no_subscriptions(self):
        assert select_active_subscription([]) is None
        assert select_active_subscription(None) is None

    def test_ignores_non_active(self):
        subs = [
            _subscription(_plan(plan_id="a"), status="canceled"),
            _subscription(_plan(plan_id="b"), status="pending"),
            _subscription(_plan(plan_id="c"), status="past_due"),
        ]
        assert select_active_subscription(subs) is None

    def test_picks_most_recent_active(self):
        older = _subscription(_plan(plan_id="old"), started_at=datetime(2023, 1, 1, tzinfo=timezone.utc))
        newer = _subscription(_plan(plan_id="new"), started_at=datetime(2024, 6, 1, tzinfo=timezone.utc))
        expired = _subscription(
            _plan(plan_id="exp"), status="expired", started_at=datetime(2025, 1, 1, tzinfo=timezone.utc)
        )
        assert select_active_subscription([older, expired, newer]) is newer


class TestChurchIdForMember:
    def test_walks_member_branch(self):
        assert church_id_for_member(_member("c1")) == "c1"

    def test_missing_links(self):
        assert church_id_for_member(None) is None
        assert church_id_for_member(SimpleNamespace(branch=None)) is None


class TestResolveFallbackSubscription:
    def test_returns_admin_active_subscription(self):
        admin_sub = _subscription(_plan(["members"]))
        member = _member("c1")
        admin = _member("c1", role="ADMINGERAL", subscriptions=[admin_sub], member_id="admin")

        assert resolve_fallback_subscription(member, admin) is admin_sub

    def test_admin_of_other_church_is_ignored(self):
        member = _member("c1")
        admin = _member("c2", role="ADMINGERAL", subscriptions=[_subscription(_plan())])

        assert resolve_fallback_subscription(member, admin) is None

    def test_non_admingeral_is_ignored(self):
        member = _member("c1")
        branch_admin = _member("c1", role="ADMINFILIAL", subscriptions=[_subscription(_plan())])

        assert resolve_fallback_subscription(member, branch_admin) is None

    def test_admin_without_active_subscription(self):
        member = _member("c1")
        admin = _member(
            "c1", role="ADMINGERAL", subscriptions=[_subscription(_plan(), status="canceled")]
        )

        assert resolve_fallback_subscription(member, admin) is None

    def test_member_without_church(self):
        admin = _member("c1", role="ADMINGERAL", subscriptions=[_subscription(_plan())])
        assert resolve_fallback_subscription(None, admin) is None
        assert resolve_fallback_subscription(_member("c1"), None) is None


class TestBuildEntitlements:
    def test_filters_features_against_registry(self):
        registry = PlanFeatureRegistry()
        plan = _plan(["finances", "retired_feature", "events"], max_members=50, max_branches=3)

        entitlements = build_entitlements(plan, ResolvedFrom.SELF, registry)

        assert entitlements.features == ("events", "finances")
        assert entitlements.limits.max_members == 50
        assert entitlements.limits.max_branches == 3
        assert entitlements.plan.id == "p1"
        assert entitlements.has_active_subscription is True
        assert entitlements.resolved_from == ResolvedFrom.SELF


class TestEntitlementsModel:
    def test_empty(self):
        empty = Entitlements.empty()
        assert empty.to_dict() == {
            "features": [],
            "limits": {"maxMembers": None, "maxBranches": None},
            "plan": None,
            "hasActiveSubscription": False,
            "resolvedFrom": None,
        }

    def test_has_feature(self):
        entitlements = build_entitlements(_plan(["events"]), ResolvedFrom.SELF, PlanFeatureRegistry())
        assert entitlements.has_feature("events")
        assert not entitlements.has_feature("finances")
        assert entitlements.has_any_feature(["finances", "events"])


# ============================================================================
# Store-backed resolution
# ============================================================================

@pytest.fixture
def resolver(store):
    return EntitlementsResolver(store)


class TestResolverWithStore:
    def test_own_subscription(self, factory, resolver):
        plan = factory.plan(["finances", "events"], max_members=100)
        user = factory.user()
        factory.subscription(user, plan)

        entitlements = resolver.get_entitlements(user.id)

        assert entitlements.features == ("events", "finances")
        assert entitlements.resolved_from == ResolvedFrom.SELF
        assert entitlements.plan.id == plan.id
        assert entitlements.limits.max_members == 100
        assert entitlements.has_active_subscription is True

    def test_own_subscription_wins_over_richer_admin_plan(self, factory, store):
        church = factory.church()
        branch = factory.branch(church)

        admin_user = factory.user()
        factory.member(branch, role="ADMINGERAL", user=admin_user)
        factory.subscription(admin_user, factory.plan([FeatureId.FINANCES, FeatureId.EVENTS]))

        user = factory.user()
        factory.member(branch, user=user)
        factory.subscription(user, factory.plan(["events"]))

        spy = Mock(wraps=store)
        entitlements = EntitlementsResolver(spy).get_entitlements(user.id)

        assert entitlements.resolved_from == ResolvedFrom.SELF
        assert entitlements.features == ("events",)
        spy.find_admin_of_church.assert_not_called()

    def test_inherits_admingeral_plan(self, factory, resolver):
        church = factory.church()
        main_branch = factory.branch(church)
        other_branch = factory.branch(church)

        admin_user = factory.user()
        factory.member(main_branch, role="ADMINGERAL", user=admin_user)
        admin_plan = factory.plan(["members"], max_members=50, max_branches=3)
        factory.subscription(admin_user, admin_plan)

        user = factory.user()
        factory.member(other_branch, user=user)

        entitlements = resolver.get_entitlements(user.id)

        assert "members" in entitlements.features
        assert entitlements.resolved_from == ResolvedFrom.ADMINGERAL
        assert entitlements.plan.id == admin_plan.id
        assert entitlements.limits.max_members == 50
        assert entitlements.limits.max_branches == 3

    def test_inactive_own_subscription_falls_back_to_admin(self, factory, resolver):
        church = factory.church()
        branch = factory.branch(church)
        admin_user = factory.user()
        factory.member(branch, role="ADMINGERAL", user=admin_user)
        factory.subscription(admin_user, factory.plan(["members"]))

        user = factory.user()
        factory.member(branch, user=user)
        factory.subscription(user, factory.plan(["finances"]), status="canceled")

        entitlements = resolver.get_entitlements(user.id)

        assert entitlements.resolved_from == ResolvedFrom.ADMINGERAL
        assert entitlements.features == ("members",)

    def test_admin_of_another_church_is_never_used(self, factory, resolver):
        other_church = factory.church(name="Outra")
        other_branch = factory.branch(other_church)
        admin_user = factory.user()
        factory.member(other_branch, role="ADMINGERAL", user=admin_user)
        factory.subscription(admin_user, factory.plan(["members"]))

        church = factory.church()
        branch = factory.branch(church)
        user = factory.user()
        factory.member(branch, user=user)

        assert resolver.get_entitlements(user.id) == Entitlements.empty()

    def test_no_subscription_anywhere(self, factory, resolver):
        church = factory.church()
        branch = factory.branch(church)
        admin_user = factory.user()
        factory.member(branch, role="ADMINGERAL", user=admin_user)

        user = factory.user()
        factory.member(branch, user=user)

        entitlements = resolver.get_entitlements(user.id)

        assert entitlements.features == ()
        assert entitlements.limits.max_members is None
        assert entitlements.limits.max_branches is None
        assert entitlements.plan is None
        assert entitlements.has_active_subscription is False
        assert entitlements.resolved_from is None

    def test_user_without_member_and_subscription(self, factory, resolver):
        user = factory.user()
        assert resolver.get_entitlements(user.id) == Entitlements.empty()

    def test_admin_without_user_account(self, factory, resolver):
        church = factory.church()
        branch = factory.branch(church)
        factory.member(branch, role="ADMINGERAL")

        user = factory.user()
        factory.member(branch, user=user)

        assert resolver.get_entitlements(user.id) == Entitlements.empty()

    def test_oldest_admingeral_wins(self, factory, resolver):
        church = factory.church()
        branch = factory.branch(church)

        first_admin = factory.user()
        factory.member(branch, role="ADMINGERAL", user=first_admin, created_at=datetime(2020, 1, 1))
        first_plan = factory.plan(["members"])
        factory.subscription(first_admin, first_plan)

        second_admin = factory.user()
        factory.member(branch, role="ADMINGERAL", user=second_admin, created_at=datetime(2022, 1, 1))
        factory.subscription(second_admin, factory.plan(["finances"]))

        user = factory.user()
        factory.member(branch, user=user)

        assert resolver.get_entitlements(user.id).plan.id == first_plan.id

    def test_stored_feature_missing_from_registry_is_excluded(self, factory, store):
        plan = factory.plan(["finances", "events"])
        user = factory.user()
        factory.subscription(user, plan)

        reduced = PlanFeatureRegistry(
            features=[f for f in AVAILABLE_PLAN_FEATURES if f.id != FeatureId.FINANCES]
        )
        entitlements = EntitlementsResolver(store, registry=reduced).get_entitlements(user.id)

        assert entitlements.features == ("events",)
        assert plan.features == ["finances", "events"]

    def test_legacy_invalid_ids_are_dropped(self, factory, resolver):
        user = factory.user()
        factory.subscription(user, factory.plan(["events", "Finances", "legacy"]))

        assert resolver.get_entitlements(user.id).features == ("events",)

    def test_repeated_calls_are_identical(self, factory, resolver):
        user = factory.user()
        factory.subscription(user, factory.plan(["events", "export"]))

        assert resolver.get_entitlements(user.id) == resolver.get_entitlements(user.id)

    def test_plan_change_is_visible_immediately(self, factory, resolver, db_session):
        plan = factory.plan(["events"])
        user = factory.user()
        factory.subscription(user, plan)
        assert not resolver.user_has_feature(user.id, "export")

        plan.features = ["events", "export"]
        db_session.flush()

        assert resolver.user_has_feature(user.id, "export")

    def test_unknown_user(self, resolver):
        with pytest.raises(UserNotFoundError):
            resolver.get_entitlements("missing-user")


class TestResolverFailures:
    def test_store_error_is_wrapped(self):
        store = Mock()
        store.find_user.side_effect = RuntimeError("connection reset")

        with pytest.raises(EntitlementResolutionError) as exc_info:
            EntitlementsResolver(store).get_entitlements("u1")

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.to_dict()["error"] == "ENTITLEMENT_RESOLUTION_FAILED"

    def test_fallback_lookup_error_is_wrapped(self):
        user = SimpleNamespace(subscriptions=[], member=_member("c1"))
        store = Mock()
        store.find_user.return_value = user
        store.find_admin_of_church.side_effect = TimeoutError("slow")

        with pytest.raises(EntitlementResolutionError):
            EntitlementsResolver(store).get_entitlements("u1")

    def test_active_subscription_without_plan_has_no_fallback(self):
        user = SimpleNamespace(subscriptions=[_subscription(None)], member=_member("c1"))
        store = Mock()
        store.find_user.return_value = user

        assert EntitlementsResolver(store).get_entitlements("u1") == Entitlements.empty()
        store.find_admin_of_church.assert_not_called()
