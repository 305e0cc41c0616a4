"""
Unit tests for the entitlement evaluator.
"""

import pytest

from packages.metering.models.domain.entitlement import UNLIMITED
from packages.metering.services.entitlement_evaluator import evaluate


class TestEvaluate:
    """Tests for evaluate()."""

    def test_below_limit_is_allowed(self):
        decision = evaluate(10, 50)

        assert decision.allowed is True
        assert decision.current_count == 10
        assert decision.limit == 50
        assert decision.remaining == 40

    def test_one_below_limit_is_allowed(self):
        decision = evaluate(49, 50)

        assert decision.allowed is True
        assert decision.remaining == 1

    def test_at_limit_is_denied(self):
        decision = evaluate(50, 50)

        assert decision.allowed is False
        assert decision.remaining == 0

    def test_over_limit_reports_zero_remaining(self):
        """Counters can exceed the limit in advisory mode; remaining never goes negative."""
        decision = evaluate(53, 50)

        assert decision.allowed is False
        assert decision.remaining == 0

    def test_zero_limit_denies_everything(self):
        decision = evaluate(0, 0)

        assert decision.allowed is False
        assert decision.remaining == 0

    @pytest.mark.parametrize("count", [0, 1, 50, 10_000_000])
    def test_unlimited_always_allowed(self, count):
        decision = evaluate(count, UNLIMITED)

        assert decision.allowed is True
        assert decision.limit == UNLIMITED
        assert decision.remaining == UNLIMITED
        assert decision.is_unlimited is True

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            evaluate(-1, 50)

    def test_decision_is_immutable(self):
        decision = evaluate(1, 3)

        with pytest.raises(Exception):
            decision.allowed = False
