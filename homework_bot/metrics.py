from __future__ import annotations

from prometheus_client import Counter, Histogram

FORK_TOTAL = Counter(
    "homework_fork_total",
    "Number of homework forks by outcome",
    labelnames=("result",),
)

FORK_IMPORT_WAIT = Histogram(
    "homework_fork_import_wait_seconds",
    "Time spent waiting for a fork import to finish",
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)

FORK_IMPORT_POLLS = Counter(
    "homework_fork_import_polls_total",
    "Number of import status requests issued while waiting for forks",
)
