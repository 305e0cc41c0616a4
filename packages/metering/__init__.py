"""
Metering package - plan entitlements and per-subject usage counters.

Metered actions call EventRecorder (through QuotaService) before they run.
Counters live in a pluggable counter store:
- memory: single process, tests and local development
- sql: usage_counters table, atomic upsert
- redis: shared counters across API replicas
"""
