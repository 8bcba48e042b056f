"""Assertions over scheduled (delayed) jobs.

Use these in unit tests to verify that code schedules work correctly. Every
function reads from a backend following ``DelayedQueueBackend`` and raises
``AssertionError`` when the expectation does not hold; nothing here mutates
queue state.

``args`` semantics are shared by all assertions: ``None`` matches any
argument list, ``[]`` matches only jobs queued without arguments, and any
other sequence must equal the job's arguments exactly (after the same JSON
normalization the queue applies on enqueue).
"""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence, Union

from delayed_assertions.config import ASSERTION_SETTINGS
from delayed_assertions.jobs.job import JobClass, JobDescriptor, class_name, normalize_args
from delayed_assertions.jobs.queue import DelayedQueueBackend
from delayed_assertions.utils import epoch_now, get_logger, to_epoch_seconds

logger = get_logger(__name__)


class Forever(enum.Enum):
    FOREVER = "forever"

    def __repr__(self) -> str:
        return "FOREVER"


FOREVER = Forever.FOREVER

Cutoff = Union[datetime, int, float, Forever]


# ----------------------------- lookups ----------------------------- #
def matching_jobs(
    jobs: Iterable[JobDescriptor], job_class: JobClass, args: Optional[Sequence[Any]] = None
) -> list[JobDescriptor]:
    name = class_name(job_class)
    expected = None if args is None else normalize_args(args)
    return [
        job for job in jobs
        if job.job_class == name and (expected is None or normalize_args(job.args) == expected)
    ]


def all_jobs_scheduled_before_or_at(backend: DelayedQueueBackend, max_cutoff: Cutoff = FOREVER) -> list[JobDescriptor]:
    """Every scheduled descriptor whose bucket key is <= ``max_cutoff``, oldest bucket first."""
    keys = [int(key) for key in backend.peek_bucket_keys(0, backend.bucket_count())]
    if max_cutoff is not FOREVER:
        limit = to_epoch_seconds(max_cutoff)  # type: ignore[arg-type]
        keys = [key for key in keys if key <= limit]
    jobs: list[JobDescriptor] = []
    for key in keys:
        jobs.extend(backend.peek_bucket_contents(key, 0, backend.bucket_size(key)))
    logger.debug("Scheduled jobs gathered", cutoff=max_cutoff, buckets=len(keys), jobs=len(jobs))
    return jobs


def _in_queue(backend: DelayedQueueBackend, queue: Optional[str], job_class: JobClass, args: Optional[Sequence[Any]] = None) -> bool:
    return bool(matching_jobs(backend.queued_jobs(queue), job_class, args))


def _is_queued(backend: DelayedQueueBackend, queue: Optional[str], job_class: JobClass, args: Optional[Sequence[Any]] = None) -> bool:
    # A scheduled job is still queued, just not due yet.
    return _in_queue(backend, queue, job_class, args) or bool(
        matching_jobs(all_jobs_scheduled_before_or_at(backend, FOREVER), job_class, args)
    )


def _in_timestamped_queue(
    backend: DelayedQueueBackend,
    queue: Optional[str],
    max_cutoff: Cutoff,
    job_class: JobClass,
    args: Optional[Sequence[Any]] = None,
) -> bool:
    # The delayed structure is not partitioned by queue, so only class and args filter.
    return bool(matching_jobs(all_jobs_scheduled_before_or_at(backend, max_cutoff), job_class, args))


# ----------------------------- messages ----------------------------- #
def _describe_cutoff(cutoff: Cutoff) -> str:
    if cutoff is FOREVER:
        return "forever"
    try:
        return datetime.fromtimestamp(to_epoch_seconds(cutoff), timezone.utc).isoformat()  # type: ignore[arg-type]
    except (OverflowError, ValueError, OSError):
        # Outside the datetime range (year 1..9999) or infinite.
        return repr(cutoff)


def _describe_jobs(jobs: Sequence[JobDescriptor]) -> str:
    limit = int(ASSERTION_SETTINGS.get("max_reported_jobs", 20))
    shown = ", ".join(str(job) for job in jobs[:limit])
    if len(jobs) > limit:
        shown += f", ... (+{len(jobs) - limit} more)"
    return f"[{shown}]"


def _fail(message: str) -> None:
    logger.debug("Queue assertion failed", reason=message)
    raise AssertionError(message)


# ----------------------------- base assertions ----------------------------- #
def assert_queued(
    backend: DelayedQueueBackend, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None
) -> None:
    """Assert ``job_class`` is in its queue, either ready or scheduled for any time."""
    queue = backend.queue_from_class(job_class)
    if not _is_queued(backend, queue, job_class, args):
        _fail(message if message is not None else f"{class_name(job_class)} should have been queued in {queue}: {_describe_jobs(backend.queued_jobs(queue))}.")


def assert_not_queued(
    backend: DelayedQueueBackend, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None
) -> None:
    queue = backend.queue_from_class(job_class)
    if _is_queued(backend, queue, job_class, args):
        _fail(message if message is not None else f"{class_name(job_class)} should not have been queued in {queue}.")


# ----------------------------- scheduler assertions ----------------------------- #
def assert_queued_at(
    backend: DelayedQueueBackend,
    cutoff: Cutoff,
    job_class: JobClass,
    args: Optional[Sequence[Any]] = None,
    message: Optional[str] = None,
) -> None:
    """Assert ``job_class`` was scheduled at least once with a bucket timestamp <= ``cutoff``.

    A job that was only enqueued for immediate execution does not satisfy this
    assertion.
    """
    queue = backend.queue_from_class(job_class)
    if not _in_timestamped_queue(backend, queue, cutoff, job_class, args):
        _fail(message if message is not None else (
            f"{class_name(job_class)} should have been queued in {queue} before {_describe_cutoff(cutoff)}: "
            f"{_describe_jobs(all_jobs_scheduled_before_or_at(backend, FOREVER))}."
        ))


def assert_queued_in(
    backend: DelayedQueueBackend,
    delta_seconds: float,
    job_class: JobClass,
    args: Optional[Sequence[Any]] = None,
    message: Optional[str] = None,
) -> None:
    """Like assert_queued_at, with the cutoff given as seconds from now."""
    assert_queued_at(backend, epoch_now() + delta_seconds, job_class, args, message)


def assert_not_queued_at(
    backend: DelayedQueueBackend,
    cutoff: Cutoff,
    job_class: JobClass,
    args: Optional[Sequence[Any]] = None,
    message: Optional[str] = None,
) -> None:
    queue = backend.queue_from_class(job_class)
    if _in_timestamped_queue(backend, queue, cutoff, job_class, args):
        _fail(message if message is not None else f"{class_name(job_class)} should not have been queued in {queue} before {_describe_cutoff(cutoff)}.")


def assert_not_queued_in(
    backend: DelayedQueueBackend,
    delta_seconds: float,
    job_class: JobClass,
    args: Optional[Sequence[Any]] = None,
    message: Optional[str] = None,
) -> None:
    assert_not_queued_at(backend, epoch_now() + delta_seconds, job_class, args, message)


class SchedulerAssertions:
    """Mixin exposing the assertions as methods bound to ``self.queue_backend``.

    Works with ``unittest.TestCase`` (AssertionError is its failureException)
    or any plain object that sets ``queue_backend``.
    """

    queue_backend: DelayedQueueBackend

    def assert_queued(self, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None) -> None:
        assert_queued(self.queue_backend, job_class, args, message)

    def assert_not_queued(self, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None) -> None:
        assert_not_queued(self.queue_backend, job_class, args, message)

    def assert_queued_at(self, cutoff: Cutoff, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None) -> None:
        assert_queued_at(self.queue_backend, cutoff, job_class, args, message)

    def assert_queued_in(self, delta_seconds: float, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None) -> None:
        assert_queued_in(self.queue_backend, delta_seconds, job_class, args, message)

    def assert_not_queued_at(self, cutoff: Cutoff, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None) -> None:
        assert_not_queued_at(self.queue_backend, cutoff, job_class, args, message)

    def assert_not_queued_in(self, delta_seconds: float, job_class: JobClass, args: Optional[Sequence[Any]] = None, message: Optional[str] = None) -> None:
        assert_not_queued_in(self.queue_backend, delta_seconds, job_class, args, message)


__all__ = [
    "FOREVER",
    "Cutoff",
    "SchedulerAssertions",
    "matching_jobs",
    "all_jobs_scheduled_before_or_at",
    "assert_queued",
    "assert_not_queued",
    "assert_queued_at",
    "assert_queued_in",
    "assert_not_queued_at",
    "assert_not_queued_in",
]
