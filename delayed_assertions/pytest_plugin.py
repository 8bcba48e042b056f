"""Pytest fixtures for asserting on scheduled jobs.

Registered through the ``pytest11`` entry point, so installing the package
makes ``delayed_queue`` and ``scheduler_assertions`` available everywhere:

    def test_signup_schedules_reminder(delayed_queue, scheduler_assertions):
        signup(user, queue=delayed_queue)
        scheduler_assertions.assert_queued_in(3600, SendReminder, [user.id])
"""
from __future__ import annotations

import pytest

from delayed_assertions.assertions import SchedulerAssertions
from delayed_assertions.jobs.queue import DelayedQueueBackend, InMemoryDelayedQueue


class BoundSchedulerAssertions(SchedulerAssertions):
    def __init__(self, backend: DelayedQueueBackend) -> None:
        self.queue_backend = backend


@pytest.fixture
def delayed_queue():
    """In-memory delayed queue, purged before and after each test."""
    queue = InMemoryDelayedQueue()
    queue.purge()
    yield queue
    queue.purge()


@pytest.fixture
def scheduler_assertions(delayed_queue) -> BoundSchedulerAssertions:
    return BoundSchedulerAssertions(delayed_queue)
