import logging
import time
from dataclasses import replace
from typing import Callable, Optional, TYPE_CHECKING

from .models import (
    BatchResult, TransferOutcome, ValidationError,
    STATUS_PROCESSING, STATUS_SUCCESS, STATUS_FAILED, TYPE_TRANSFER
)
from .recipient_manager import RecipientManager
from .result_aggregator import aggregate, summary_message
from .transaction_history import TransactionHistory
from .validate_address import is_valid_address

if TYPE_CHECKING:
    from .token_service import TokenServiceClient
    from .ui.base_ui import BaseUI

SUCCESS_MESSAGE = "Transfer successful"
FAILURE_MESSAGE = "Transfer failed"


class BulkTransferExecutor:
    """Sends one token transfer per recipient, strictly one at a time.

    A fixed pause separates consecutive submissions so a single sender's
    nonce sequence is never raced. A failed item is recorded and the batch
    moves on; nothing is retried.
    """

    def __init__(self, transfer_service: 'TokenServiceClient',
                 history: Optional[TransactionHistory] = None,
                 delay_seconds: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep,
                 record_failures: bool = False,
                 clock: Callable[[], float] = time.time,
                 ui: Optional['BaseUI'] = None):
        self.transfer_service = transfer_service
        self.history = history
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.record_failures = record_failures
        self.clock = clock
        self.ui = ui
        self.logger = logging.getLogger(__name__)

    def _local_hash(self, index: int, prefix: str = 'bulk') -> str:
        return f"{prefix}_{int(self.clock() * 1000)}_{index}"

    def _record(self, source_address: str, outcome: TransferOutcome) -> None:
        if self.history is None:
            return
        self.history.record(
            type=TYPE_TRANSFER,
            from_address=source_address,
            to_address=outcome.address,
            amount=outcome.amount,
            status=outcome.status,
            hash=outcome.tx_hash,
        )

    def execute_batch(self, source_address: str, recipients: RecipientManager) -> BatchResult:
        """Transfer to every recipient in list order.

        Args:
            source_address: Sending account.
            recipients: The manager owning the batch; statuses are updated in
                place and the outcomes are stored back on it.

        Returns:
            BatchResult with one outcome per recipient, in list order.

        Raises:
            ValidationError: if there are no recipients or the source address
                is missing or malformed. No recipient is touched.
        """
        batch = recipients.recipients
        if not batch:
            raise ValidationError("No recipients to transfer to")
        if not source_address:
            raise ValidationError("Please enter source address")
        if not is_valid_address(source_address):
            raise ValidationError(f"Invalid source address: {source_address}")

        recipients.reset_results()
        total = len(batch)
        self.logger.info(f"Starting bulk transfer from {source_address} to {total} recipients")

        outcomes = []
        for index, recipient in enumerate(batch):
            recipients.update_status(recipient.id, STATUS_PROCESSING)
            if self.ui:
                self.ui.display_transfer_progress(index + 1, total, recipient)

            try:
                response = self.transfer_service.transfer(
                    source_address, recipient.address, recipient.amount
                )
            except Exception as e:
                recipients.update_status(recipient.id, STATUS_FAILED)
                outcome = TransferOutcome(
                    recipient=replace(recipient, status=STATUS_FAILED),
                    status=STATUS_FAILED,
                    message=str(e) or FAILURE_MESSAGE,
                    tx_hash=self._local_hash(index, prefix='bulk_failed'),
                )
                self.logger.error(f"[{index + 1}/{total}] Transfer to {recipient.address} failed: {outcome.message}")
                if self.record_failures:
                    self._record(source_address, outcome)
            else:
                tx_hash = response.get('transactionHash') if isinstance(response, dict) else None
                recipients.update_status(recipient.id, STATUS_SUCCESS)
                outcome = TransferOutcome(
                    recipient=replace(recipient, status=STATUS_SUCCESS),
                    status=STATUS_SUCCESS,
                    message=SUCCESS_MESSAGE,
                    tx_hash=tx_hash or self._local_hash(index),
                )
                self.logger.info(f"[{index + 1}/{total}] Sent {recipient.amount} to {recipient.address}: {outcome.tx_hash}")
                self._record(source_address, outcome)

            outcomes.append(outcome)
            if self.ui:
                self.ui.display_transfer_outcome(index + 1, total, outcome)

            if index < total - 1:
                self.sleep(self.delay_seconds)

        result = aggregate(source_address, outcomes)
        recipients.store_results(result.outcomes)
        self.logger.info(summary_message(result))
        return result
