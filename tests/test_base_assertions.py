import pytest

from delayed_assertions import assert_not_queued, assert_queued, assert_queued_at
from delayed_assertions.jobs import InMemoryDelayedQueue, class_name


class SendReminder:
    queue = "mailers"


class ChargeCard:
    queue = "billing"


@pytest.fixture
def queue():
    return InMemoryDelayedQueue()


def test_immediate_job_is_queued(queue):
    queue.enqueue(ChargeCard, 10)
    assert_queued(queue, ChargeCard)
    assert_queued(queue, ChargeCard, [10])
    assert_not_queued(queue, ChargeCard, [11])
    assert_not_queued(queue, SendReminder)


def test_scheduled_job_counts_as_queued(queue):
    queue.enqueue_at(2_000_000_000, SendReminder, "x")
    assert_queued(queue, SendReminder, ["x"])
    with pytest.raises(AssertionError):
        assert_not_queued(queue, SendReminder)


def test_promoted_job_is_queued_but_no_longer_scheduled(queue):
    queue.enqueue_at(100, SendReminder, "x")
    queue.promote_due(now=100)
    assert_queued(queue, SendReminder, ["x"])
    with pytest.raises(AssertionError):
        assert_queued_at(queue, 100, SendReminder)


def test_empty_queue_messages(queue):
    name = class_name(ChargeCard)
    with pytest.raises(AssertionError) as exc:
        assert_queued(queue, ChargeCard)
    assert str(exc.value) == f"{name} should have been queued in billing: []."
    queue.enqueue(ChargeCard)
    with pytest.raises(AssertionError) as exc:
        assert_not_queued(queue, ChargeCard)
    assert str(exc.value) == f"{name} should not have been queued in billing."


def test_unresolved_queue_still_checks_schedule(queue):
    # Strings have no queue attribute; the delayed structure is still searched.
    queue.enqueue_at(100, SendReminder)
    assert_queued(queue, class_name(SendReminder))
    assert_not_queued(queue, "billing.Refund")


def test_empty_custom_message_is_kept(queue):
    with pytest.raises(AssertionError) as exc:
        assert_queued(queue, ChargeCard, message="")
    assert str(exc.value) == ""
    queue.enqueue(ChargeCard)
    with pytest.raises(AssertionError) as exc:
        assert_not_queued(queue, ChargeCard, message="")
    assert str(exc.value) == ""
