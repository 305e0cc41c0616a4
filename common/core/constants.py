from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class CounterStoreBackend(str, Enum):
    """Counter store backends."""

    SQL = "sql"
    REDIS = "redis"
    MEMORY = "memory"


class EnforcementMode(str, Enum):
    """How the event recorder serializes check and increment."""

    STRICT = "strict"  # store enforces the limit inside the increment
    ADVISORY = "advisory"  # read, evaluate, then increment; racers may overshoot
