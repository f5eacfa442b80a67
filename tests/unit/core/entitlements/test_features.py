"""Tests for feature and limit parsing."""

from workday.core.entitlements.features import (
    DEFAULT_PLAN_CATALOG,
    Feature,
    LimitKey,
    Plan,
    parse_features,
    parse_limits,
)


class TestParseFeatures:
    """Test parse_features."""

    def test_known_keys(self) -> None:
        """Known keys map onto the enum."""
        parsed = parse_features({"feature.due_dates": True, "feature.view_kanban": False})

        assert parsed == {Feature.DUE_DATES: True, Feature.VIEW_KANBAN: False}

    def test_unknown_keys_dropped(self) -> None:
        """Unknown keys are ignored."""
        parsed = parse_features({"feature.teleport": True, "feature.due_dates": True})

        assert parsed == {Feature.DUE_DATES: True}

    def test_only_true_enables(self) -> None:
        """Truthy values other than True do not enable a feature."""
        parsed = parse_features({"feature.due_dates": "yes", "feature.view_timeline": 1})

        assert parsed == {Feature.DUE_DATES: False, Feature.VIEW_TIMELINE: False}


class TestParseLimits:
    """Test parse_limits."""

    def test_known_keys(self) -> None:
        """Non-negative integers are kept."""
        parsed = parse_limits({"limit.organizations": 2, "limit.org_members": 0})

        assert parsed == {LimitKey.ORGANIZATIONS: 2, LimitKey.ORG_MEMBERS: 0}

    def test_invalid_values_dropped(self) -> None:
        """Negative, boolean and non-integer values are dropped."""
        parsed = parse_limits(
            {
                "limit.organizations": -1,
                "limit.org_members": True,
                "limit.personal_workspaces": "3",
                "limit.org_workspaces_per_org": 2.5,
                "limit.categories_per_workspace": 7,
            }
        )

        assert parsed == {LimitKey.CATEGORIES_PER_WORKSPACE: 7}

    def test_unknown_keys_dropped(self) -> None:
        """Unknown keys are ignored."""
        assert parse_limits({"limit.rockets": 5}) == {}


class TestDefaultCatalog:
    """Test the built-in catalog."""

    def test_every_plan_defines_every_key(self) -> None:
        """Each built-in plan sets every feature and limit explicitly."""
        for plan in Plan:
            _, _, features, limits = DEFAULT_PLAN_CATALOG[plan]
            assert set(features) == set(Feature)
            assert set(limits) == set(LimitKey)

    def test_prices_ascend(self) -> None:
        """Free is cheapest, enterprise most expensive."""
        prices = [DEFAULT_PLAN_CATALOG[plan][1] for plan in (Plan.FREE, Plan.PRO, Plan.ENTERPRISE)]

        assert prices == sorted(prices)
        assert prices[0] == 0
