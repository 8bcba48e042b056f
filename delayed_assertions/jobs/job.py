"""Job descriptor payload structure and class/queue resolution."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from delayed_assertions.config import QUEUE_SETTINGS

JobClass = Any  # a class object or its dotted name


@dataclass(frozen=True, slots=True)
class JobDescriptor:
    job_class: str
    args: tuple = ()
    queue: Optional[str] = None

    def to_payload(self, *, include_queue: bool = True) -> dict:
        payload: dict[str, Any] = {"class": self.job_class, "args": list(self.args)}
        if include_queue and self.queue is not None:
            payload["queue"] = self.queue
        return payload

    def encode(self, *, include_queue: bool = True) -> str:
        return json.dumps(self.to_payload(include_queue=include_queue))

    @classmethod
    def decode(cls, raw: str | bytes) -> "JobDescriptor":
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
        return cls(
            job_class=str(data["class"]),
            args=tuple(data.get("args") or ()),
            queue=data.get("queue"),
        )

    def __str__(self) -> str:
        return f"{self.job_class}{list(self.args)!r}"


def class_name(job_class: JobClass) -> str:
    """Identity used to match descriptors: dotted import path, or the string as given."""
    if isinstance(job_class, str):
        return job_class
    module = getattr(job_class, "__module__", None)
    qualname = getattr(job_class, "__qualname__", None) or getattr(job_class, "__name__", None)
    if qualname is None:
        raise TypeError(f"Cannot derive a job class name from {job_class!r}")
    if module and module != "builtins":
        return f"{module}.{qualname}"
    return qualname


def queue_from_class(job_class: JobClass) -> Optional[str]:
    """Queue declared by the job class (``queue`` attribute), else the configured default."""
    queue = None if isinstance(job_class, str) else getattr(job_class, "queue", None)
    if queue is None:
        default = QUEUE_SETTINGS.get("default_queue")
        return str(default) if default else None
    return str(queue)


def normalize_args(args: Sequence[Any]) -> list:
    """JSON round trip so stored and expected args compare the way the queue stores them.

    Raises TypeError for values the queue could not serialize.
    """
    if isinstance(args, (str, bytes)):
        raise TypeError("Job args must be a sequence of values, not a string")
    return json.loads(json.dumps(list(args)))


def build_descriptor(job_class: JobClass, args: Sequence[Any], queue: Optional[str] = None) -> JobDescriptor:
    return JobDescriptor(
        job_class=class_name(job_class),
        args=tuple(normalize_args(args)),
        queue=queue if queue is not None else queue_from_class(job_class),
    )


__all__ = [
    "JobDescriptor",
    "JobClass",
    "class_name",
    "queue_from_class",
    "normalize_args",
    "build_descriptor",
]
