import pytest

from token_dapp.models import (
    RecipientInUseError, ValidationError, TransferOutcome,
    STATUS_PENDING, STATUS_PROCESSING, STATUS_SUCCESS
)

from .conftest import ADDR_A, ADDR_B, ADDR_C


def test_add_appends_pending_recipient(manager):
    recipient = manager.add(ADDR_A, "100")

    assert len(manager) == 1
    assert recipient.status == STATUS_PENDING
    assert manager.recipients[0].address == ADDR_A
    assert manager.recipients[0].amount == "100"


def test_add_assigns_unique_increasing_ids(manager):
    ids = [manager.add(ADDR_A, str(i)).id for i in range(1, 6)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 5


@pytest.mark.parametrize("address,amount", [
    ("0x1234", "100"),
    ("not-an-address", "100"),
    ("", "100"),
    (ADDR_A, ""),
    (None, "100"),
    (ADDR_A, "abc"),
])
def test_add_rejects_bad_input_without_mutation(manager, address, amount):
    manager.add(ADDR_B, "1")
    with pytest.raises(ValidationError):
        manager.add(address, amount)
    assert len(manager) == 1


def test_remove(manager):
    first = manager.add(ADDR_A, "100")
    second = manager.add(ADDR_B, "200")

    assert manager.remove(first.id) is True
    assert [r.id for r in manager.recipients] == [second.id]
    assert manager.remove(first.id) is False
    assert manager.get(first.id) is None
    assert manager.get(second.id).address == ADDR_B


def test_remove_rejects_processing_recipient(manager):
    recipient = manager.add(ADDR_A, "100")
    manager.update_status(recipient.id, STATUS_PROCESSING)

    with pytest.raises(RecipientInUseError):
        manager.remove(recipient.id)
    assert len(manager) == 1


def test_clear_empties_list_and_results(manager):
    recipient = manager.add(ADDR_A, "100")
    manager.store_results([TransferOutcome(recipient=recipient, status=STATUS_SUCCESS, message="ok")])

    manager.clear()

    assert len(manager) == 0
    assert manager.batch_results == []


def test_update_status_unknown_values(manager):
    recipient = manager.add(ADDR_A, "100")
    assert manager.update_status(9999, STATUS_SUCCESS) is False
    with pytest.raises(ValueError):
        manager.update_status(recipient.id, "done")


def test_recipients_are_snapshots(manager):
    manager.add(ADDR_A, "100")
    snapshot = manager.recipients[0]
    snapshot.status = STATUS_SUCCESS
    assert manager.recipients[0].status == STATUS_PENDING


def test_parse_bulk_text_drops_malformed_lines(manager):
    text = f"{ADDR_A} 100\n invalid 50\n{ADDR_B} 200"

    accepted = manager.parse_bulk_text(text)

    assert accepted == 2
    assert [(r.address, r.amount) for r in manager.recipients] == [(ADDR_A, "100"), (ADDR_B, "200")]


def test_parse_bulk_text_separators_and_blank_lines(manager):
    manager.add(ADDR_C, "5")
    text = "\n".join([
        "",
        f"  {ADDR_A},250  ",
        f"{ADDR_B}, 300",
        "   ",
        f"{ADDR_C}\t42 extra tokens",
        f"{ADDR_A}",
        f"{ADDR_A} lots",
        "0x123 100",
    ])

    accepted = manager.parse_bulk_text(text)

    assert accepted == 3
    assert [r.amount for r in manager.recipients] == ["5", "250", "300", "42"]
    assert all(r.status == STATUS_PENDING for r in manager.recipients)


def test_parse_bulk_text_with_nothing_valid(manager):
    assert manager.parse_bulk_text("garbage\n\n") == 0
    assert manager.parse_bulk_text("") == 0
    assert len(manager) == 0


def test_load_csv(manager, tmp_path):
    csv_path = tmp_path / "recipients.csv"
    csv_path.write_text(
        "address,amount\n"
        f"{ADDR_A},100\n"
        "bogus,20\n"
        f"{ADDR_B},\n"
        f"{ADDR_C},7.5\n"
    )

    assert manager.load_csv(str(csv_path)) == 2
    assert [(r.address, r.amount) for r in manager.recipients] == [(ADDR_A, "100"), (ADDR_C, "7.5")]


def test_load_csv_requires_columns(manager, tmp_path):
    csv_path = tmp_path / "recipients.csv"
    csv_path.write_text(f"wallet\n{ADDR_A}\n")
    with pytest.raises(ValidationError):
        manager.load_csv(str(csv_path))


def test_load_csv_missing_file(manager, tmp_path):
    with pytest.raises(FileNotFoundError):
        manager.load_csv(str(tmp_path / "missing.csv"))


def test_load_csv_empty_file_is_a_validation_error(manager, tmp_path):
    csv_path = tmp_path / "recipients.csv"
    csv_path.write_text("")
    with pytest.raises(ValidationError):
        manager.load_csv(str(csv_path))
    assert len(manager) == 0
