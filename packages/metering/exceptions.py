"""
Metering exceptions.

Only counter store I/O fails with a recoverable error. Registry and evaluator
lookups are total over their domains; unknown tiers and metrics are raised
only by the explicit parse helpers used at configuration boundaries.
"""

from common.core.exceptions import AppException, StorageError, ValidationError


class MeteringError(AppException):
    """Base class for metering errors."""

    pass


class StoreUnavailableError(MeteringError, StorageError):
    """The counter store could not complete a read or increment."""

    pass


class UnknownMetricError(MeteringError, ValidationError):
    """A metric name outside the configured catalog."""

    pass


class UnknownPlanTierError(MeteringError, ValidationError):
    """A plan tier outside the configured catalog."""

    pass


class InvalidPeriodError(MeteringError, ValidationError):
    """A metering period could not be resolved from the given time."""

    pass
