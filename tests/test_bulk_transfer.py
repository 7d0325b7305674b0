import pytest

from token_dapp.bulk_transfer import BulkTransferExecutor, SUCCESS_MESSAGE
from token_dapp.models import (
    ValidationError, STATUS_PENDING, STATUS_SUCCESS, STATUS_FAILED, TYPE_TRANSFER
)
from token_dapp.result_aggregator import count_outcomes, summary_message

from .conftest import ADDR_A, ADDR_B, ADDR_C, SOURCE, FakeTransferService


class RecordingSleep:
    def __init__(self, events=None):
        self.calls = []
        self.events = events if events is not None else []

    def __call__(self, seconds):
        self.calls.append(seconds)
        self.events.append(("sleep", seconds))


def make_executor(service, history=None, events=None, **kwargs):
    sleep = RecordingSleep(events)
    executor = BulkTransferExecutor(service, history=history, sleep=sleep, **kwargs)
    return executor, sleep


def test_end_to_end_partial_failure(manager, history):
    manager.add(ADDR_A, "100")
    manager.add(ADDR_B, "200")
    service = FakeTransferService(fail_for={ADDR_B})
    executor, _ = make_executor(service, history)

    result = executor.execute_batch(SOURCE, manager)

    assert [(o.address, o.status) for o in result.outcomes] == [
        (ADDR_A, STATUS_SUCCESS),
        (ADDR_B, STATUS_FAILED),
    ]
    assert result.success_count == 1
    assert result.failure_count == 1
    assert result.outcomes[1].message == "insufficient balance"

    entries = history.entries
    assert len(entries) == 1
    assert entries[0].type == TYPE_TRANSFER
    assert entries[0].from_address == SOURCE
    assert entries[0].to_address == ADDR_A
    assert entries[0].amount == "100"
    assert entries[0].status == STATUS_SUCCESS
    assert entries[0].hash == "0xhash1"


def test_statuses_are_updated_in_place(manager, history):
    manager.add(ADDR_A, "1")
    manager.add(ADDR_B, "2")
    executor, _ = make_executor(FakeTransferService(fail_for={ADDR_A}), history)

    executor.execute_batch(SOURCE, manager)

    assert [r.status for r in manager.recipients] == [STATUS_FAILED, STATUS_SUCCESS]
    assert [o.status for o in manager.batch_results] == [STATUS_FAILED, STATUS_SUCCESS]


def test_one_outcome_per_recipient_in_order(manager):
    addresses = [ADDR_A, ADDR_B, ADDR_C, ADDR_A]
    for i, address in enumerate(addresses):
        manager.add(address, str(i + 1))
    service = FakeTransferService(fail_for={ADDR_C})
    executor, _ = make_executor(service)

    result = executor.execute_batch(SOURCE, manager)

    assert [o.address for o in result.outcomes] == addresses
    assert [o.amount for o in result.outcomes] == ["1", "2", "3", "4"]
    assert [call[1] for call in service.calls] == addresses
    assert all(call[0] == SOURCE for call in service.calls)
    assert result.success_count + result.failure_count == len(result.outcomes)


def test_transfers_never_overlap_and_are_paced(manager):
    for address in (ADDR_A, ADDR_B, ADDR_C):
        manager.add(address, "10")
    events = []
    service = FakeTransferService(events=events)
    executor, sleep = make_executor(service, events=events, delay_seconds=1.0)

    executor.execute_batch(SOURCE, manager)

    assert service.max_in_flight == 1
    assert sleep.calls == [1.0, 1.0]
    assert [kind for kind, _ in events] == ["transfer", "sleep", "transfer", "sleep", "transfer"]


def test_single_recipient_does_not_sleep(manager):
    manager.add(ADDR_A, "10")
    executor, sleep = make_executor(FakeTransferService())

    executor.execute_batch(SOURCE, manager)

    assert sleep.calls == []


def test_all_failures_do_not_abort(manager, history):
    manager.add(ADDR_A, "10")
    manager.add(ADDR_B, "20")
    service = FakeTransferService(fail_for={ADDR_A, ADDR_B})
    executor, _ = make_executor(service, history)

    result = executor.execute_batch(SOURCE, manager)

    assert len(service.calls) == 2
    assert result.failure_count == 2
    assert result.success_count == 0
    assert len(history) == 0


def test_failures_recorded_when_enabled(manager, history):
    manager.add(ADDR_A, "10")
    manager.add(ADDR_B, "20")
    executor, _ = make_executor(FakeTransferService(fail_for={ADDR_B}), history, record_failures=True)

    executor.execute_batch(SOURCE, manager)

    entries = history.entries
    assert [(e.to_address, e.status) for e in entries] == [(ADDR_B, STATUS_FAILED), (ADDR_A, STATUS_SUCCESS)]
    assert entries[0].hash.startswith("bulk_failed_")


def test_unexpected_exception_is_a_failed_outcome(manager):
    class Exploding:
        def transfer(self, from_address, to_address, amount):
            raise RuntimeError()

    manager.add(ADDR_A, "10")
    executor, _ = make_executor(Exploding())

    result = executor.execute_batch(SOURCE, manager)

    assert result.outcomes[0].status == STATUS_FAILED
    assert result.outcomes[0].message == "Transfer failed"


def test_missing_transaction_hash_gets_local_token(manager, history, clock):
    class NoHash:
        def transfer(self, from_address, to_address, amount):
            return {}

    manager.add(ADDR_A, "10")
    executor, _ = make_executor(NoHash(), history, clock=clock)

    result = executor.execute_batch(SOURCE, manager)

    assert result.outcomes[0].message == SUCCESS_MESSAGE
    assert result.outcomes[0].tx_hash == f"bulk_{int(clock() * 1000)}_0"
    assert history.entries[0].hash == result.outcomes[0].tx_hash


def test_empty_batch_is_rejected(manager):
    service = FakeTransferService()
    executor, _ = make_executor(service)

    with pytest.raises(ValidationError):
        executor.execute_batch(SOURCE, manager)
    assert service.calls == []


@pytest.mark.parametrize("source", ["", None, "0x1234"])
def test_bad_source_is_rejected_before_any_call(manager, source):
    manager.add(ADDR_A, "10")
    service = FakeTransferService()
    executor, _ = make_executor(service)

    with pytest.raises(ValidationError):
        executor.execute_batch(source, manager)
    assert service.calls == []
    assert manager.recipients[0].status == STATUS_PENDING


def test_second_batch_resets_results(manager):
    manager.add(ADDR_A, "10")
    service = FakeTransferService(fail_for={ADDR_A})
    executor, _ = make_executor(service)
    executor.execute_batch(SOURCE, manager)

    service.fail_for.clear()
    result = executor.execute_batch(SOURCE, manager)

    assert len(manager.batch_results) == 1
    assert manager.batch_results[0].status == STATUS_SUCCESS
    assert result.success_count == 1


def test_summary_helpers(manager):
    manager.add(ADDR_A, "10")
    manager.add(ADDR_B, "10")
    executor, _ = make_executor(FakeTransferService(fail_for={ADDR_B}))

    result = executor.execute_batch(SOURCE, manager)

    assert count_outcomes(result.outcomes) == (1, 1)
    assert summary_message(result) == "Bulk transfer completed: 1 success, 1 failed"
