"""Scheduler assertions for delayed-job queues.

Test helpers that verify application code scheduled work into a delayed
(timestamp bucketed) queue. The assertions read from a backend that follows
the ``DelayedQueueBackend`` protocol: the in-memory test double or the Redis
adapter for the resque-scheduler layout.
"""
from delayed_assertions.assertions import (
    FOREVER,
    SchedulerAssertions,
    all_jobs_scheduled_before_or_at,
    assert_not_queued,
    assert_not_queued_at,
    assert_not_queued_in,
    assert_queued,
    assert_queued_at,
    assert_queued_in,
    matching_jobs,
)
from delayed_assertions.jobs import InMemoryDelayedQueue, JobDescriptor, create_backend

__version__ = "0.1.0"

__all__: list[str] = [
    "FOREVER",
    "SchedulerAssertions",
    "all_jobs_scheduled_before_or_at",
    "assert_not_queued",
    "assert_not_queued_at",
    "assert_not_queued_in",
    "assert_queued",
    "assert_queued_at",
    "assert_queued_in",
    "matching_jobs",
    "InMemoryDelayedQueue",
    "JobDescriptor",
    "create_backend",
]
