"""
Unit tests for usage analytics.
"""

import pytest
import pytest_asyncio
from datetime import date, datetime, timezone

from common.core.config import settings
from packages.metering.exceptions import StoreUnavailableError, UnknownMetricError
from packages.metering.models.domain.enums import Metric
from packages.metering.repositories.automation_usage_repository import (
    AutomationUsageRepository,
)
from packages.metering.repositories.usage_counter_repository import (
    UsageCounterRepository,
)
from packages.metering.services.usage_service import UsageService

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def seeded_counters():
    repo = UsageCounterRepository()
    await repo.upsert_increment("user_1", "DM_SENT", "2026-10-17", by=5)
    await repo.upsert_increment("user_1", "DM_SENT", "2026-10-19", by=7)
    await repo.upsert_increment("user_1", "DM_SENT", "2026-08-01", by=100)
    await repo.upsert_increment("user_1", "COMMENT_REPLIED", "2026-10-18", by=3)
    await repo.upsert_increment("user_1", "AUTOMATION_CREATED", "lifetime", by=2)
    await repo.upsert_increment("user_2", "DM_SENT", "2026-10-19", by=40)
    return repo


@pytest.mark.asyncio
class TestUsageTotals:
    """Tests for get_usage_totals()."""

    async def test_default_window(self, seeded_counters):
        service = UsageService()

        totals = await service.get_usage_totals("user_1", now=NOW)

        assert totals.until == date(2026, 10, 19)
        assert (totals.until - totals.since).days == settings.metering_history_days - 1
        assert totals.totals[Metric.DM_SENT] == 12
        assert totals.totals[Metric.COMMENT_REPLIED] == 3
        assert totals.totals[Metric.AUTOMATION_CREATED] == 2
        assert totals.totals[Metric.SMART_AI_REPLY] == 0

    async def test_explicit_since(self, seeded_counters):
        service = UsageService()

        totals = await service.get_usage_totals(
            "user_1", since=date(2026, 10, 18), now=NOW
        )

        assert totals.totals[Metric.DM_SENT] == 7
        assert totals.totals[Metric.COMMENT_REPLIED] == 3

    async def test_days_window(self, seeded_counters):
        service = UsageService()

        totals = await service.get_usage_totals("user_1", now=NOW, days=1)

        assert totals.since == totals.until == date(2026, 10, 19)
        assert totals.totals[Metric.DM_SENT] == 7


@pytest.mark.asyncio
class TestDailyHistory:
    """Tests for get_daily_history()."""

    async def test_one_entry_per_day(self, seeded_counters):
        service = UsageService()

        history = await service.get_daily_history(
            "user_1", Metric.DM_SENT, since=date(2026, 10, 16), now=NOW
        )

        assert [(entry.day.isoformat(), entry.count) for entry in history] == [
            ("2026-10-16", 0),
            ("2026-10-17", 5),
            ("2026-10-18", 0),
            ("2026-10-19", 7),
        ]

    async def test_lifetime_metric_single_entry(self, seeded_counters):
        service = UsageService()

        history = await service.get_daily_history(
            "user_1", "automation_created", now=NOW
        )

        assert len(history) == 1
        assert history[0].day == date(2026, 10, 19)
        assert history[0].count == 2

    async def test_today_follows_reference_timezone(self, seeded_counters):
        service = UsageService(timezone_name="Asia/Tokyo")
        # 2026-10-20 05:00 in Tokyo
        late = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)

        history = await service.get_daily_history(
            "user_1", Metric.DM_SENT, now=late, days=2
        )

        assert [entry.day for entry in history] == [
            date(2026, 10, 19),
            date(2026, 10, 20),
        ]
        assert [entry.count for entry in history] == [7, 0]


@pytest_asyncio.fixture
async def automation_activity():
    service = UsageService()
    earlier = datetime(2026, 10, 17, tzinfo=timezone.utc)
    for automation_id, metric, now in [
        ("auto_a", Metric.DM_SENT, NOW),
        ("auto_a", Metric.DM_SENT, NOW),
        ("auto_a", Metric.COMMENT_REPLIED, NOW),
        ("auto_b", Metric.DM_SENT, earlier),
    ]:
        await service.record_automation_activity(
            "user_1", automation_id, metric, now=now
        )
    await service.record_automation_activity(
        "user_2", "auto_c", Metric.DM_SENT, now=NOW
    )
    return service


@pytest.mark.asyncio
class TestAutomationActivity:
    """Tests for per-automation attribution and analytics."""

    async def test_record_returns_daily_count(self):
        service = UsageService()

        first = await service.record_automation_activity(
            "user_1", "auto_a", "dm_sent", now=NOW
        )
        second = await service.record_automation_activity(
            "user_1", "auto_a", "dm_sent", now=NOW
        )

        assert (first, second) == (1, 2)

    async def test_record_unknown_metric(self):
        service = UsageService()

        with pytest.raises(UnknownMetricError):
            await service.record_automation_activity(
                "user_1", "auto_a", "VOICE_NOTE", now=NOW
            )

    async def test_record_unreachable_database(self, unreachable_db_session):
        service = UsageService(
            automation_repo=AutomationUsageRepository(unreachable_db_session)
        )

        with pytest.raises(StoreUnavailableError):
            await service.record_automation_activity(
                "user_1", "auto_a", Metric.DM_SENT, now=NOW
            )

    async def test_totals_per_automation(self, automation_activity):
        totals = await automation_activity.get_automation_totals("user_1", now=NOW)

        assert [usage.automation_id for usage in totals] == ["auto_a", "auto_b"]
        assert totals[0].totals == {Metric.DM_SENT: 2, Metric.COMMENT_REPLIED: 1}
        assert totals[0].total == 3
        assert totals[1].totals == {Metric.DM_SENT: 1}

    async def test_totals_respect_window(self, automation_activity):
        totals = await automation_activity.get_automation_totals(
            "user_1", now=NOW, days=1
        )

        assert [usage.automation_id for usage in totals] == ["auto_a"]

    async def test_daily_activity_sums_automations(self, automation_activity):
        await automation_activity.record_automation_activity(
            "user_1", "auto_b", Metric.DM_SENT, now=NOW
        )

        days = await automation_activity.get_automation_daily_activity(
            "user_1", now=NOW
        )

        assert [activity.day for activity in days] == [
            date(2026, 10, 17),
            date(2026, 10, 19),
        ]
        assert days[0].totals == {Metric.DM_SENT: 1}
        assert days[1].totals == {Metric.DM_SENT: 3, Metric.COMMENT_REPLIED: 1}

    async def test_attribution_does_not_touch_quota_counters(
        self, automation_activity
    ):
        totals = await UsageService().get_usage_totals("user_1", now=NOW)

        assert totals.totals[Metric.DM_SENT] == 0
