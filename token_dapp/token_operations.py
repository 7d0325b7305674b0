import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from .models import (
    AllowanceCheck, HistoryEntry, TokenServiceError, ValidationError,
    STATUS_SUCCESS, TYPE_TRANSFER, TYPE_APPROVAL, TYPE_REVOKE, TYPE_DEPLOYMENT,
    TOKEN_DECIMALS
)
from .token_service import TokenServiceClient
from .transaction_history import TransactionHistory, utc_timestamp
from .validate_address import is_valid_address, is_valid_amount

MAX_ALLOWANCE_CHECKS = 10


def from_smallest_unit(raw: str, decimals: int = TOKEN_DECIMALS) -> Decimal:
    """Convert a raw on-chain integer amount into token units."""
    try:
        return Decimal(str(raw)) / (Decimal(10) ** decimals)
    except InvalidOperation:
        raise TokenServiceError(f"Token service returned a non-numeric amount: {raw!r}")


class TokenOperations:
    """Single token operations, each recorded to the history log on success"""

    def __init__(self, service: TokenServiceClient,
                 history: Optional[TransactionHistory] = None,
                 clock: Callable[[], float] = time.time):
        self.service = service
        self.history = history
        self.clock = clock
        self.allowance_checks: List[AllowanceCheck] = []
        self.logger = logging.getLogger(__name__)

    def _require_address(self, address: str, label: str) -> None:
        if not address:
            raise ValidationError(f"Please enter {label} address")
        if not is_valid_address(address):
            raise ValidationError(f"Invalid Ethereum address format for {label}: {address}")

    def _require_amount(self, amount) -> str:
        if not is_valid_amount(amount):
            raise ValidationError(f"Invalid amount: {amount}")
        return str(amount).strip()

    def _local_hash(self, prefix: str) -> str:
        return f"{prefix}_{int(self.clock() * 1000)}"

    def _record(self, type: str, from_address: Optional[str], to_address: Optional[str],
                amount: str, tx_hash: str) -> Optional[HistoryEntry]:
        if self.history is None:
            return None
        return self.history.record(
            type=type,
            from_address=from_address,
            to_address=to_address,
            amount=amount,
            status=STATUS_SUCCESS,
            hash=tx_hash,
        )

    def get_balance(self, address: str) -> Decimal:
        self._require_address(address, 'account')
        balance = from_smallest_unit(self.service.get_balance(address))
        self.logger.info(f"Balance of {address}: {balance}")
        return balance

    def transfer(self, from_address: str, to_address: str, amount) -> str:
        """Send one transfer and return its transaction hash."""
        self._require_address(from_address, 'source')
        self._require_address(to_address, 'recipient')
        amount = self._require_amount(amount)
        try:
            response = self.service.transfer(from_address, to_address, amount)
        except TokenServiceError as e:
            self.logger.error(f"Transfer of {amount} to {to_address} failed: {e}")
            raise
        tx_hash = response.get('transactionHash') or self._local_hash('transfer')
        self.logger.info(f"Transferred {amount} from {from_address} to {to_address}: {tx_hash}")
        self._record(TYPE_TRANSFER, from_address, to_address, amount, tx_hash)
        return tx_hash

    def approve(self, owner: str, spender: str, amount) -> str:
        """Approve spender to move up to amount of owner's tokens."""
        self._require_address(owner, 'owner')
        self._require_address(spender, 'spender')
        amount = self._require_amount(amount)
        try:
            response = self.service.approve(owner, spender, amount)
        except TokenServiceError as e:
            self.logger.error(f"Approval for {spender} failed: {e}")
            raise
        tx_hash = response.get('transactionHash') or self._local_hash('approve')
        self.logger.info(f"Approved {spender} to spend {amount} of {owner}: {tx_hash}")
        self._record(TYPE_APPROVAL, owner, spender, amount, tx_hash)
        return tx_hash

    def revoke(self, owner: str, spender: str) -> str:
        """Set the allowance of spender back to zero."""
        self._require_address(owner, 'owner')
        self._require_address(spender, 'spender')
        try:
            response = self.service.approve(owner, spender, '0')
        except TokenServiceError as e:
            self.logger.error(f"Revoke for {spender} failed: {e}")
            raise
        tx_hash = response.get('transactionHash') or self._local_hash('revoke')

        now = utc_timestamp()
        for check in self.allowance_checks:
            if check.owner == owner and check.spender == spender:
                check.allowance = '0'
                check.timestamp = now

        self.logger.info(f"Revoked approval of {spender} for {owner}: {tx_hash}")
        self._record(TYPE_REVOKE, owner, spender, '0', tx_hash)
        return tx_hash

    def check_allowance(self, owner: str, spender: str) -> AllowanceCheck:
        self._require_address(owner, 'owner')
        self._require_address(spender, 'spender')
        allowance = from_smallest_unit(self.service.get_allowance(owner, spender))
        check = AllowanceCheck(
            owner=owner,
            spender=spender,
            allowance=format(allowance.normalize(), 'f'),
            timestamp=utc_timestamp(),
        )
        self.allowance_checks = [check] + self.allowance_checks[:MAX_ALLOWANCE_CHECKS - 1]
        self.logger.info(f"Allowance of {spender} for {owner}: {check.allowance}")
        return check

    def deploy_contract(self) -> dict:
        """Deploy the token contract and record the deployment."""
        try:
            info = self.service.deploy_contract()
        except TokenServiceError as e:
            self.logger.error(f"Contract deployment failed: {e}")
            raise
        address = info.get('address')
        if not address:
            raise TokenServiceError("Deployment response did not include a contract address")
        tx_hash = info.get('transactionHash') or self._local_hash('deploy')
        self.logger.info(f"Contract deployed at {address}")
        self._record(TYPE_DEPLOYMENT, None, address, '0', tx_hash)
        return info

    def get_token_info(self) -> dict:
        return self.service.get_token_info()
