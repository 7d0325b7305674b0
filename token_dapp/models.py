from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Any

# Recipient / outcome statuses
STATUS_PENDING = 'pending'
STATUS_PROCESSING = 'processing'
STATUS_SUCCESS = 'success'
STATUS_FAILED = 'failed'
RECIPIENT_STATUSES = (STATUS_PENDING, STATUS_PROCESSING, STATUS_SUCCESS, STATUS_FAILED)

# History entry types
TYPE_TRANSFER = 'transfer'
TYPE_APPROVAL = 'approval'
TYPE_DEPLOYMENT = 'deployment'
TYPE_REVOKE = 'revoke'
HISTORY_TYPES = (TYPE_TRANSFER, TYPE_APPROVAL, TYPE_DEPLOYMENT, TYPE_REVOKE)

FILTER_ALL = 'all'

TOKEN_DECIMALS = 18
TOKEN_SYMBOL = 'STK'


class TokenDappError(Exception):
    """Base exception for token dapp errors"""
    pass


class ValidationError(TokenDappError, ValueError):
    """Raised when user input is rejected before any external call"""
    pass


class RecipientInUseError(TokenDappError):
    """Raised when a recipient is changed while its transfer is in flight"""
    pass


class ConfigurationError(TokenDappError, ValueError):
    """Raised when configuration loading or validation fails"""
    pass


class TokenServiceError(TokenDappError):
    """Raised when the token service rejects a request or cannot be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class Recipient:
    """One (address, amount) pair queued for a token transfer"""
    id: int
    address: str
    amount: str
    status: str = STATUS_PENDING

    def snapshot(self) -> 'Recipient':
        return Recipient(id=self.id, address=self.address, amount=self.amount, status=self.status)


@dataclass(frozen=True)
class TransferOutcome:
    """Terminal result of one recipient's transfer attempt"""
    recipient: Recipient
    status: str
    message: str
    tx_hash: Optional[str] = None

    @property
    def address(self) -> str:
        return self.recipient.address

    @property
    def amount(self) -> str:
        return self.recipient.amount


@dataclass
class BatchResult:
    """Ordered outcomes of one batch plus the aggregate tally"""
    source_address: str
    outcomes: List[TransferOutcome] = field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0

    @property
    def total(self) -> int:
        return len(self.outcomes)


@dataclass
class HistoryEntry:
    """A completed token operation in the durable history log"""
    type: str
    from_address: Optional[str]
    to_address: Optional[str]
    amount: Optional[str]
    status: str
    hash: Optional[str]
    id: Optional[int] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the persisted field names (from/to)"""
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'type': self.type,
            'from': self.from_address,
            'to': self.to_address,
            'amount': self.amount,
            'status': self.status,
            'hash': self.hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        """Build an entry from persisted data; text fields are coerced to str"""
        return cls(
            id=data.get('id'),
            timestamp=_optional_str(data.get('timestamp')),
            type=_optional_str(data.get('type')) or '',
            from_address=_optional_str(data.get('from')),
            to_address=_optional_str(data.get('to')),
            amount=_optional_str(data.get('amount')),
            status=_optional_str(data.get('status')) or '',
            hash=_optional_str(data.get('hash')),
        )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class AllowanceCheck:
    """Result of an allowance lookup, in token units"""
    owner: str
    spender: str
    allowance: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
