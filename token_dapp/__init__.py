"""
Token Dapp - Bulk token transfers, approvals and transaction history for an ERC-20 token service
"""

__version__ = "0.1.0"

from .models import (
    Recipient, TransferOutcome, BatchResult, HistoryEntry, AllowanceCheck,
    TokenDappError, ValidationError, RecipientInUseError, TokenServiceError,
    ConfigurationError
)
from .validate_address import is_valid_address, is_valid_amount
from .recipient_manager import RecipientManager
from .bulk_transfer import BulkTransferExecutor
from .transaction_history import (
    TransactionHistory, HistoryStore, JsonFileHistoryStore, InMemoryHistoryStore
)
from .token_service import TokenServiceClient
from .token_operations import TokenOperations

__all__ = [
    "Recipient",
    "TransferOutcome",
    "BatchResult",
    "HistoryEntry",
    "AllowanceCheck",
    "TokenDappError",
    "ValidationError",
    "RecipientInUseError",
    "TokenServiceError",
    "ConfigurationError",
    "is_valid_address",
    "is_valid_amount",
    "RecipientManager",
    "BulkTransferExecutor",
    "TransactionHistory",
    "HistoryStore",
    "JsonFileHistoryStore",
    "InMemoryHistoryStore",
    "TokenServiceClient",
    "TokenOperations",
]
