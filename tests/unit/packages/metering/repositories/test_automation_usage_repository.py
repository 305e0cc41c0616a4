"""
Unit tests for AutomationUsageRepository.
"""

import pytest

from packages.metering.repositories.automation_usage_repository import (
    AutomationUsageRepository,
)


@pytest.fixture
async def seeded_activity(test_db):
    repo = AutomationUsageRepository(test_db)
    for automation_id, metric, period_key in [
        ("auto_a", "DM_SENT", "2026-10-17"),
        ("auto_b", "DM_SENT", "2026-10-19"),
        ("auto_a", "DM_SENT", "2026-10-19"),
        ("auto_a", "COMMENT_REPLIED", "2026-10-19"),
        ("auto_a", "DM_SENT", "2026-10-20"),
    ]:
        await repo.upsert_increment("user_1", automation_id, metric, period_key)
    await repo.upsert_increment("user_2", "auto_c", "DM_SENT", "2026-10-19")
    return repo


@pytest.mark.asyncio
class TestUpsertIncrement:
    """Tests for the automation counter upsert."""

    async def test_first_increment_creates_row(self, test_db):
        repo = AutomationUsageRepository(test_db)

        count = await repo.upsert_increment("user_1", "auto_a", "DM_SENT", "2026-10-19")

        assert count == 1

    async def test_increments_accumulate(self, test_db):
        repo = AutomationUsageRepository(test_db)

        await repo.upsert_increment("user_1", "auto_a", "DM_SENT", "2026-10-19")
        count = await repo.upsert_increment(
            "user_1", "auto_a", "DM_SENT", "2026-10-19", by=4
        )

        assert count == 5

    async def test_automations_count_separately(self, test_db):
        repo = AutomationUsageRepository(test_db)

        await repo.upsert_increment("user_1", "auto_a", "DM_SENT", "2026-10-19")
        count = await repo.upsert_increment("user_1", "auto_b", "DM_SENT", "2026-10-19")

        assert count == 1


@pytest.mark.asyncio
class TestGetCounters:
    """Tests for reading automation counters over a day range."""

    async def test_range_is_inclusive_and_ordered(self, seeded_activity):
        counters = await seeded_activity.get_counters(
            "user_1", "2026-10-17", "2026-10-19"
        )

        assert [(c.period_key, c.automation_id) for c in counters] == [
            ("2026-10-17", "auto_a"),
            ("2026-10-19", "auto_a"),
            ("2026-10-19", "auto_a"),
            ("2026-10-19", "auto_b"),
        ]

    async def test_filter_by_automation(self, seeded_activity):
        counters = await seeded_activity.get_counters(
            "user_1", "2026-10-19", "2026-10-20", automation_id="auto_a"
        )

        assert {(c.period_key, c.metric) for c in counters} == {
            ("2026-10-19", "DM_SENT"),
            ("2026-10-19", "COMMENT_REPLIED"),
            ("2026-10-20", "DM_SENT"),
        }

    async def test_other_subjects_excluded(self, seeded_activity):
        counters = await seeded_activity.get_counters(
            "user_2", "2026-10-01", "2026-10-31"
        )

        assert len(counters) == 1
        assert counters[0].automation_id == "auto_c"
