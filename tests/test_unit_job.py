import pytest

from delayed_assertions.config import QUEUE_SETTINGS
from delayed_assertions.jobs.job import (
    JobDescriptor,
    build_descriptor,
    class_name,
    normalize_args,
    queue_from_class,
)


class SendReminder:
    queue = "mailers"


class NoQueueJob:
    pass


def test_class_name_uses_dotted_path_for_classes():
    assert class_name(SendReminder) == f"{__name__}.SendReminder"


def test_class_name_keeps_strings_verbatim():
    assert class_name("billing.ChargeCard") == "billing.ChargeCard"


def test_queue_from_class_reads_queue_attribute():
    assert queue_from_class(SendReminder) == "mailers"


def test_queue_from_class_falls_back_to_default_queue():
    assert queue_from_class(NoQueueJob) is None
    QUEUE_SETTINGS["default_queue"] = "default"
    assert queue_from_class(NoQueueJob) == "default"
    assert queue_from_class("billing.ChargeCard") == "default"


def test_normalize_args_matches_json_storage():
    assert normalize_args((1, ("a", "b"), {2: "x"})) == [1, ["a", "b"], {"2": "x"}]
    assert normalize_args([]) == []


def test_normalize_args_rejects_unserializable_and_strings():
    with pytest.raises(TypeError):
        normalize_args([object()])
    with pytest.raises(TypeError):
        normalize_args("abc")


def test_descriptor_encode_decode():
    descriptor = build_descriptor(SendReminder, (42, "welcome"))
    assert descriptor.queue == "mailers"
    decoded = JobDescriptor.decode(descriptor.encode().encode("utf-8"))
    assert decoded == descriptor
    # Immediate queue payloads omit the queue name
    assert "queue" not in descriptor.to_payload(include_queue=False)
    assert str(descriptor) == f"{__name__}.SendReminder[42, 'welcome']"
