"""In-memory immediate + delayed queue (single-process test double).

Features:
- Named immediate queues (FIFO) keyed by the job class's queue.
- Delayed structure grouped into buckets keyed by integer epoch seconds.
- Paged read surface (offset, count) matching the Redis layout.
- Thread-safe with a re-entrant lock.

Two structures:
 1. queues: name -> [JobDescriptor, ...]
 2. scheduled: bucket_key -> [JobDescriptor, ...], plus a sorted list of keys

On enqueue_at:
  - key = int(timestamp); descriptor appended to the bucket, key inserted in order.
On promote_due:
  - Every bucket with key <= now is drained, oldest first, into its queues.
"""
from __future__ import annotations

import bisect
import threading
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from delayed_assertions.jobs.job import JobClass, JobDescriptor, build_descriptor, queue_from_class
from delayed_assertions.utils import epoch_now, get_logger, to_epoch_seconds

logger = get_logger(__name__)


@runtime_checkable
class DelayedQueueBackend(Protocol):
    """Read surface the assertions depend on."""

    def queue_from_class(self, job_class: JobClass) -> Optional[str]: ...
    def queued_jobs(self, queue: Optional[str]) -> list[JobDescriptor]: ...
    def peek_bucket_keys(self, offset: int, count: int) -> list[int]: ...
    def bucket_count(self) -> int: ...
    def peek_bucket_contents(self, key: int, offset: int, count: int) -> list[JobDescriptor]: ...
    def bucket_size(self, key: int) -> int: ...


def check_window(offset: int, count: int) -> None:
    if offset < 0 or count < 0:
        raise ValueError(f"offset and count must be non-negative (offset={offset}, count={count})")


def bucket_key_for(timestamp: datetime | int | float) -> int:
    return int(to_epoch_seconds(timestamp))


class InMemoryDelayedQueue:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._queues: dict[str, list[JobDescriptor]] = {}
        self._scheduled: dict[int, list[JobDescriptor]] = {}
        self._schedule_keys: list[int] = []  # ascending

    # ----------------------------- internal helpers ----------------------------- #
    def _descriptor(self, job_class: JobClass, args: Sequence[Any]) -> JobDescriptor:
        descriptor = build_descriptor(job_class, args)
        if descriptor.queue is None:
            raise ValueError(f"No queue resolved for job class '{descriptor.job_class}'")
        return descriptor

    def _drop_bucket(self, key: int) -> None:
        self._scheduled.pop(key, None)
        idx = bisect.bisect_left(self._schedule_keys, key)
        if idx < len(self._schedule_keys) and self._schedule_keys[idx] == key:
            del self._schedule_keys[idx]

    # ----------------------------- write surface ----------------------------- #
    def enqueue(self, job_class: JobClass, *args: Any) -> JobDescriptor:
        """Push a job onto its immediate queue."""
        descriptor = self._descriptor(job_class, args)
        with self._lock:
            self._queues.setdefault(descriptor.queue, []).append(descriptor)  # type: ignore[arg-type]
        logger.debug("Job enqueued", job_class=descriptor.job_class, queue=descriptor.queue)
        return descriptor

    def enqueue_at(self, timestamp: datetime | int | float, job_class: JobClass, *args: Any) -> JobDescriptor:
        """Schedule a job into the bucket for ``timestamp``."""
        descriptor = self._descriptor(job_class, args)
        key = bucket_key_for(timestamp)
        with self._lock:
            bucket = self._scheduled.get(key)
            if bucket is None:
                bucket = self._scheduled[key] = []
                bisect.insort(self._schedule_keys, key)
            bucket.append(descriptor)
        logger.debug("Job scheduled", job_class=descriptor.job_class, queue=descriptor.queue, bucket=key)
        return descriptor

    def enqueue_in(self, seconds: float, job_class: JobClass, *args: Any) -> JobDescriptor:
        return self.enqueue_at(epoch_now() + seconds, job_class, *args)

    def remove_delayed(self, job_class: JobClass, *args: Any) -> int:
        """Remove every scheduled copy of a job; returns how many were removed."""
        target = build_descriptor(job_class, args)
        removed = 0
        with self._lock:
            for key in list(self._schedule_keys):
                bucket = self._scheduled[key]
                kept = [d for d in bucket if (d.job_class, d.args) != (target.job_class, target.args)]
                removed += len(bucket) - len(kept)
                if kept:
                    self._scheduled[key] = kept
                else:
                    self._drop_bucket(key)
        return removed

    def promote_due(self, now: datetime | int | float | None = None) -> int:
        """Move buckets due at ``now`` into their immediate queues. Nothing is executed."""
        now_ts = epoch_now() if now is None else to_epoch_seconds(now)
        promoted = 0
        with self._lock:
            while self._schedule_keys and self._schedule_keys[0] <= now_ts:
                key = self._schedule_keys[0]
                for descriptor in self._scheduled[key]:
                    self._queues.setdefault(descriptor.queue, []).append(descriptor)  # type: ignore[arg-type]
                    promoted += 1
                self._drop_bucket(key)
        if promoted:
            logger.debug("Promoted scheduled jobs to ready queues", count=promoted)
        return promoted

    # ----------------------------- read surface ----------------------------- #
    def queue_from_class(self, job_class: JobClass) -> Optional[str]:
        return queue_from_class(job_class)

    def queued_jobs(self, queue: Optional[str]) -> list[JobDescriptor]:
        if queue is None:
            return []
        with self._lock:
            return list(self._queues.get(queue, ()))

    def peek_bucket_keys(self, offset: int, count: int) -> list[int]:
        check_window(offset, count)
        with self._lock:
            return self._schedule_keys[offset:offset + count]

    def bucket_count(self) -> int:
        with self._lock:
            return len(self._schedule_keys)

    def peek_bucket_contents(self, key: int, offset: int, count: int) -> list[JobDescriptor]:
        check_window(offset, count)
        with self._lock:
            return list(self._scheduled.get(int(key), ())[offset:offset + count])

    def bucket_size(self, key: int) -> int:
        with self._lock:
            return len(self._scheduled.get(int(key), ()))

    # ----------------------------- test utilities ----------------------------- #
    def purge(self) -> None:
        """Remove all queued (immediate + scheduled) jobs.

        Intended for test isolation between cases.
        """
        with self._lock:
            self._queues.clear()
            self._scheduled.clear()
            self._schedule_keys.clear()

    # ----------------------------- inspection ----------------------------- #
    def depth(self) -> int:
        with self._lock:
            ready = sum(len(q) for q in self._queues.values())
            return ready + sum(len(b) for b in self._scheduled.values())

    def __len__(self) -> int:  # pragma: no cover
        return self.depth()

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "depth": self.depth(),
                "ready": {name: len(jobs) for name, jobs in self._queues.items() if jobs},
                "scheduled": sum(len(b) for b in self._scheduled.values()),
                "buckets": len(self._schedule_keys),
            }


__all__ = ["DelayedQueueBackend", "InMemoryDelayedQueue", "bucket_key_for", "check_window"]
