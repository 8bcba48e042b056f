"""Redis-backed delayed queue adapter (resque-scheduler layout).

Reads (and, for fixture setup, writes) the keys resque and resque-scheduler
maintain, so assertions can inspect jobs scheduled by a real worker stack.

Data structures in Redis (``ns`` defaults to ``resque``):
 1. Sorted Set: ns:delayed_queue_schedule - member = score = bucket timestamp
 2. List: ns:delayed:<timestamp> - JSON {"class", "args", "queue"} per job
 3. List: ns:queue:<name> - JSON {"class", "args"} per ready job

Redis errors are logged and re-raised; callers decide what a missing
server means. create_backend() is the only place that falls back to the
in-memory queue.
"""
from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Optional, Sequence, Union

import redis

from delayed_assertions.config import QUEUE_SETTINGS
from delayed_assertions.jobs.job import JobClass, JobDescriptor, build_descriptor, queue_from_class
from delayed_assertions.jobs.queue import InMemoryDelayedQueue, bucket_key_for, check_window
from delayed_assertions.utils import epoch_now, get_logger

logger = get_logger(__name__)


class RedisDelayedQueue:
    def __init__(self, client: Optional[redis.Redis] = None, *, namespace: Optional[str] = None) -> None:
        self._redis_url: str = str(QUEUE_SETTINGS.get("redis_url", "redis://localhost:6379/0"))
        self._namespace: str = namespace or str(QUEUE_SETTINGS.get("namespace") or "resque")
        self._health_check_timeout = float(QUEUE_SETTINGS.get("redis_health_check_timeout", 2.0))  # type: ignore[arg-type]
        self._schedule_key = f"{self._namespace}:delayed_queue_schedule"
        self._lock = threading.RLock()
        self._is_redis_active = False
        self._redis_client: Optional[redis.Redis] = client
        if self._redis_client is None:
            self._init_redis_client()

    def _init_redis_client(self) -> None:
        """Create the client; connection is verified lazily by health_check()."""
        self._redis_client = redis.from_url(
            self._redis_url,
            socket_connect_timeout=self._health_check_timeout,
        )
        logger.debug("Redis client created", url=self._redis_url, namespace=self._namespace)

    @property
    def client(self) -> redis.Redis:
        if self._redis_client is None:  # pragma: no cover
            raise RuntimeError("Redis client not initialized")
        return self._redis_client

    def health_check(self) -> bool:
        """Check if Redis answers PING and update status accordingly."""
        with self._lock:
            try:
                self.client.ping()
                if not self._is_redis_active:
                    logger.info("Connected to Redis", url=self._redis_url)
                self._is_redis_active = True
            except (redis.RedisError, ConnectionError) as e:
                if self._is_redis_active:
                    logger.warning("Redis connection lost", url=self._redis_url, error=str(e))
                self._is_redis_active = False
            return self._is_redis_active

    # ----------------------------- key helpers ----------------------------- #
    def _delayed_key(self, key: int) -> str:
        return f"{self._namespace}:delayed:{int(key)}"

    def _queue_key(self, queue: str) -> str:
        return f"{self._namespace}:queue:{queue}"

    def _safe_int_conversion(self, value: Any) -> int:
        """Convert a Redis reply (int, bytes, str, float score) to int."""
        if value is None:
            return 0
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return int(float(value))

    def _call(self, operation: str, func, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except redis.RedisError as e:
            logger.error("Redis error", operation=operation, error=str(e))
            self._is_redis_active = False
            raise

    # ----------------------------- read surface ----------------------------- #
    def queue_from_class(self, job_class: JobClass) -> Optional[str]:
        return queue_from_class(job_class)

    def queued_jobs(self, queue: Optional[str]) -> list[JobDescriptor]:
        if queue is None:
            return []
        raw = self._call("lrange", self.client.lrange, self._queue_key(queue), 0, -1)
        return [JobDescriptor.decode(item) for item in raw or []]

    def peek_bucket_keys(self, offset: int, count: int) -> list[int]:
        check_window(offset, count)
        if count == 0:
            return []
        raw = self._call("zrange", self.client.zrange, self._schedule_key, offset, offset + count - 1)
        return [self._safe_int_conversion(member) for member in raw or []]

    def bucket_count(self) -> int:
        return self._safe_int_conversion(self._call("zcard", self.client.zcard, self._schedule_key))

    def peek_bucket_contents(self, key: int, offset: int, count: int) -> list[JobDescriptor]:
        check_window(offset, count)
        if count == 0:
            return []
        raw = self._call("lrange", self.client.lrange, self._delayed_key(key), offset, offset + count - 1)
        return [JobDescriptor.decode(item) for item in raw or []]

    def bucket_size(self, key: int) -> int:
        return self._safe_int_conversion(self._call("llen", self.client.llen, self._delayed_key(key)))

    # ----------------------------- write surface ----------------------------- #
    def _descriptor(self, job_class: JobClass, args: Sequence[Any]) -> JobDescriptor:
        descriptor = build_descriptor(job_class, args)
        if descriptor.queue is None:
            raise ValueError(f"No queue resolved for job class '{descriptor.job_class}'")
        return descriptor

    def enqueue(self, job_class: JobClass, *args: Any) -> JobDescriptor:
        descriptor = self._descriptor(job_class, args)
        self._call("rpush", self.client.rpush, self._queue_key(descriptor.queue), descriptor.encode(include_queue=False))  # type: ignore[arg-type]
        return descriptor

    def enqueue_at(self, timestamp: datetime | int | float, job_class: JobClass, *args: Any) -> JobDescriptor:
        descriptor = self._descriptor(job_class, args)
        key = bucket_key_for(timestamp)
        with self._lock, self.client.pipeline() as pipe:
            # Bucket list and schedule entry are written in one MULTI/EXEC.
            pipe.rpush(self._delayed_key(key), descriptor.encode())
            pipe.zadd(self._schedule_key, {str(key): key})
            self._call("enqueue_at", pipe.execute)
        logger.debug("Job scheduled", job_class=descriptor.job_class, queue=descriptor.queue, bucket=key)
        return descriptor

    def enqueue_in(self, seconds: float, job_class: JobClass, *args: Any) -> JobDescriptor:
        return self.enqueue_at(epoch_now() + seconds, job_class, *args)

    def purge(self) -> None:
        """Delete every delayed bucket and queue under the namespace (for testing)."""
        with self._lock:
            keys = [self._schedule_key]
            for pattern in (f"{self._namespace}:delayed:*", f"{self._namespace}:queue:*"):
                keys.extend(self._call("scan_iter", lambda: list(self.client.scan_iter(match=pattern))))
            self._call("delete", self.client.delete, *keys)
            logger.info("Redis delayed queue purged", namespace=self._namespace, keys=len(keys))

    def snapshot(self) -> dict:
        buckets = self.bucket_count()
        scheduled = sum(self.bucket_size(k) for k in self.peek_bucket_keys(0, buckets))
        return {
            "buckets": buckets,
            "scheduled": scheduled,
            "redis_active": self._is_redis_active,
            "namespace": self._namespace,
        }


def create_backend() -> Union[InMemoryDelayedQueue, RedisDelayedQueue]:
    """Create the backend selected by configuration.

    Redis is used only when enabled and reachable; anything else yields the
    in-memory test double.
    """
    if QUEUE_SETTINGS.get("use_redis"):
        try:
            backend = RedisDelayedQueue()
            if backend.health_check():
                logger.info("Using Redis-backed delayed queue")
                return backend
            logger.warning("Redis not reachable, using in-memory delayed queue", url=QUEUE_SETTINGS.get("redis_url"))
        except (redis.RedisError, ValueError) as e:
            logger.warning("Error initializing Redis delayed queue, using in-memory delayed queue", error=str(e))
    logger.debug("Using in-memory delayed queue")
    return InMemoryDelayedQueue()


__all__ = ["RedisDelayedQueue", "create_backend"]
