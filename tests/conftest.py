import pytest

from token_dapp.models import TokenServiceError
from token_dapp.recipient_manager import RecipientManager
from token_dapp.transaction_history import InMemoryHistoryStore, TransactionHistory

ADDR_A = "0x" + "a" * 40
ADDR_B = "0x" + "B" * 40
ADDR_C = "0x" + "1234567890" * 4
SOURCE = "0x" + "5" * 40


class FakeTransferService:
    """Records calls in order and fails for chosen recipients."""

    def __init__(self, fail_for=(), message="insufficient balance", events=None):
        self.fail_for = set(fail_for)
        self.message = message
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.events = events if events is not None else []

    def transfer(self, from_address, to_address, amount):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.calls.append((from_address, to_address, amount))
            self.events.append(("transfer", to_address))
            if to_address in self.fail_for:
                raise TokenServiceError(self.message, status_code=500)
            return {"transactionHash": f"0xhash{len(self.calls)}"}
        finally:
            self.in_flight -= 1


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def manager():
    return RecipientManager()


@pytest.fixture
def history():
    return TransactionHistory(InMemoryHistoryStore())


@pytest.fixture
def clock():
    return FakeClock()
