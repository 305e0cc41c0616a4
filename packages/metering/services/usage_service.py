"""
Service for usage analytics over the stored counters.
"""

from datetime import date, timedelta
from typing import Optional, Union

from common.core.config import settings
from common.core.otel_axiom_exporter import trace_span, get_logger
from common.db.context import readonly
from common.db.errors import is_unavailable_error
from packages.metering.exceptions import StoreUnavailableError
from packages.metering.models.domain.enums import MeteringWindow, Metric
from packages.metering.models.domain.period import LIFETIME_PERIOD_KEY
from packages.metering.models.domain.usage import (
    AutomationDailyActivity,
    AutomationUsage,
    DailyUsage,
    UsageTotals,
)
from packages.metering.repositories.automation_usage_repository import (
    AutomationUsageRepository,
)
from packages.metering.repositories.usage_counter_repository import (
    UsageCounterRepository,
)
from packages.metering.services.period_resolver import (
    Moment,
    period_key_for_day,
    resolve_period,
)
from packages.metering.services.plan_registry import (
    PlanRegistry,
    get_plan_registry,
    parse_metric,
)

logger = get_logger(__name__)


class UsageService:
    """Service for windowed usage totals, daily history and automation activity."""

    def __init__(
        self,
        counter_repo: Optional[UsageCounterRepository] = None,
        registry: Optional[PlanRegistry] = None,
        automation_repo: Optional[AutomationUsageRepository] = None,
        timezone_name: Optional[str] = None,
    ):
        self.counter_repo = counter_repo or UsageCounterRepository()
        self.registry = registry or get_plan_registry()
        self.automation_repo = automation_repo or AutomationUsageRepository()
        self.timezone_name = timezone_name

    def _today(self, now: Moment) -> date:
        return date.fromisoformat(
            resolve_period(now, MeteringWindow.DAILY, self.timezone_name).key
        )

    def date_range(
        self,
        since: Optional[date] = None,
        now: Moment = None,
        days: Optional[int] = None,
    ) -> tuple[date, date]:
        """Resolve the [since, until] window; until is today in the metering timezone."""
        until = self._today(now)
        if since is None:
            days = days or settings.metering_history_days
            since = until - timedelta(days=days - 1)
        return since, until

    @readonly
    @trace_span
    async def get_usage_totals(
        self,
        subject_id: str,
        since: Optional[date] = None,
        now: Moment = None,
        days: Optional[int] = None,
    ) -> UsageTotals:
        """
        Sum each metric over [since, today].

        Defaults to the last `days` days (metering_history_days when unset).
        Lifetime metrics report their all-time count regardless of the range.
        """
        since, until = self.date_range(since, now, days)

        totals: dict[Metric, int] = {}
        for metric in self.registry.metrics():
            policy = self.registry.policy_for(metric)
            if policy.window == MeteringWindow.LIFETIME:
                totals[metric] = await self.counter_repo.read_count(
                    subject_id, metric.value, LIFETIME_PERIOD_KEY
                )
            else:
                totals[metric] = await self.counter_repo.sum_counts(
                    subject_id,
                    metric.value,
                    period_key_for_day(since),
                    period_key_for_day(until),
                )

        logger.debug(
            f"Usage totals for {subject_id} from {since} to {until}",
            extra={"subject_id": subject_id, "since": str(since), "until": str(until)},
        )

        return UsageTotals(
            subject_id=subject_id, since=since, until=until, totals=totals
        )

    @readonly
    @trace_span
    async def get_daily_history(
        self,
        subject_id: str,
        metric: Union[Metric, str],
        since: Optional[date] = None,
        now: Moment = None,
        days: Optional[int] = None,
    ) -> list[DailyUsage]:
        """
        Get one entry per day in [since, today], oldest first.

        Days without a counter row report 0. A lifetime metric has no daily
        breakdown and yields a single entry dated today.

        Raises:
            UnknownMetricError: metric is not in the catalog
        """
        metric = parse_metric(metric)
        since, until = self.date_range(since, now, days)

        if self.registry.policy_for(metric).window == MeteringWindow.LIFETIME:
            count = await self.counter_repo.read_count(
                subject_id, metric.value, LIFETIME_PERIOD_KEY
            )
            return [DailyUsage(day=until, count=count)]

        counters = await self.counter_repo.get_counters(
            subject_id,
            metric.value,
            start_key=period_key_for_day(since),
            end_key=period_key_for_day(until),
        )
        by_key = {counter.period_key: counter.count for counter in counters}

        history = []
        day = since
        while day <= until:
            history.append(
                DailyUsage(day=day, count=by_key.get(period_key_for_day(day), 0))
            )
            day += timedelta(days=1)
        return history

    @trace_span
    async def record_automation_activity(
        self,
        subject_id: str,
        automation_id: str,
        metric: Union[Metric, str],
        now: Moment = None,
    ) -> int:
        """
        Attribute one admitted event to the automation that produced it.

        Returns the automation's count for the day.

        Raises:
            UnknownMetricError: metric is not in the catalog
            StoreUnavailableError: the database could not be reached
        """
        metric = parse_metric(metric)
        day_key = period_key_for_day(self._today(now))
        try:
            return await self.automation_repo.upsert_increment(
                subject_id, automation_id, metric.value, day_key
            )
        except Exception as e:
            if is_unavailable_error(e):
                raise StoreUnavailableError(str(e)) from e
            raise

    @readonly
    @trace_span
    async def get_automation_totals(
        self,
        subject_id: str,
        since: Optional[date] = None,
        now: Moment = None,
        days: Optional[int] = None,
    ) -> list[AutomationUsage]:
        """
        Sum each automation's activity over [since, today].

        Automations without activity in the window are not listed.
        """
        since, until = self.date_range(since, now, days)
        counters = await self.automation_repo.get_counters(
            subject_id, period_key_for_day(since), period_key_for_day(until)
        )

        by_automation: dict[str, dict[Metric, int]] = {}
        for counter in counters:
            totals = by_automation.setdefault(counter.automation_id, {})
            metric = Metric(counter.metric)
            totals[metric] = totals.get(metric, 0) + counter.count

        return [
            AutomationUsage(
                automation_id=automation_id,
                totals=totals,
                total=sum(totals.values()),
            )
            for automation_id, totals in sorted(by_automation.items())
        ]

    @readonly
    @trace_span
    async def get_automation_daily_activity(
        self,
        subject_id: str,
        since: Optional[date] = None,
        now: Moment = None,
        days: Optional[int] = None,
    ) -> list[AutomationDailyActivity]:
        """
        Get automation activity per day in [since, today], oldest first.

        Counts from all of the subject's automations are summed; days with no
        activity are omitted.
        """
        since, until = self.date_range(since, now, days)
        counters = await self.automation_repo.get_counters(
            subject_id, period_key_for_day(since), period_key_for_day(until)
        )

        by_day: dict[str, dict[Metric, int]] = {}
        for counter in counters:
            totals = by_day.setdefault(counter.period_key, {})
            metric = Metric(counter.metric)
            totals[metric] = totals.get(metric, 0) + counter.count

        return [
            AutomationDailyActivity(day=date.fromisoformat(day_key), totals=totals)
            for day_key, totals in sorted(by_day.items())
        ]
