"""Job descriptors and the queue backends the assertions read from."""
from .job import JobDescriptor, build_descriptor, class_name, normalize_args, queue_from_class
from .queue import DelayedQueueBackend, InMemoryDelayedQueue
from .redis_queue import RedisDelayedQueue, create_backend

__all__ = [
    "JobDescriptor",
    "build_descriptor",
    "class_name",
    "normalize_args",
    "queue_from_class",
    "DelayedQueueBackend",
    "InMemoryDelayedQueue",
    "RedisDelayedQueue",
    "create_backend",
]
