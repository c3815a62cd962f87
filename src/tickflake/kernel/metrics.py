"""
Prometheus metrics collection for tickflake.

Counts ids handed out, sequence exhaustion and blocking waits so operators
can see when a partition is running hot.
"""

from prometheus_client import Counter, Histogram

# ============================================================================
# Generation Metrics
# ============================================================================

ids_generated_total = Counter(
    "tickflake_ids_generated_total",
    "Total number of flakes produced by generators",
    ["variant"],  # variant: exclusive, shared
)

sequence_exhausted_total = Counter(
    "tickflake_sequence_exhausted_total",
    "Total number of next_id calls rejected because the millisecond was full",
    ["variant"],
)

generation_errors_total = Counter(
    "tickflake_generation_errors_total",
    "Total number of non-transient generation failures",
    ["variant", "error"],
)

# ============================================================================
# Blocking Wait Metrics
# ============================================================================

wait_attempts_exhausted_total = Counter(
    "tickflake_wait_attempts_exhausted_total",
    "Total number of blocking waits that ran out of attempts",
)

blocking_wait_seconds = Histogram(
    "tickflake_blocking_wait_seconds",
    "Time spent blocked waiting for the next millisecond",
    buckets=(0.000001, 0.00001, 0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005),
)
