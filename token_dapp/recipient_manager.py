import itertools
import logging
import re
import threading
from collections import OrderedDict
from typing import List, Optional

import pandas as pd

from .models import (
    Recipient, TransferOutcome, ValidationError, RecipientInUseError,
    STATUS_PROCESSING, RECIPIENT_STATUSES
)
from .validate_address import is_valid_address, is_valid_amount

logger = logging.getLogger(__name__)

BULK_LINE_SPLIT = re.compile(r'[\s,]+')


class RecipientManager:
    """Ordered collection of pending transfer targets for one batch.

    Recipients are keyed by id in insertion order. All mutations and reads
    go through one lock so status updates from a running batch never
    interleave with a concurrent listing.
    """

    def __init__(self):
        self._recipients: 'OrderedDict[int, Recipient]' = OrderedDict()
        self._ids = itertools.count(1)
        self._lock = threading.RLock()
        self.batch_results: List[TransferOutcome] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._recipients)

    @property
    def recipients(self) -> List[Recipient]:
        """Snapshot copies of the recipients, in list order."""
        with self._lock:
            return [r.snapshot() for r in self._recipients.values()]

    def get(self, recipient_id: int) -> Optional[Recipient]:
        with self._lock:
            recipient = self._recipients.get(recipient_id)
            return recipient.snapshot() if recipient else None

    def _append(self, address: str, amount: str) -> Recipient:
        recipient = Recipient(id=next(self._ids), address=address, amount=amount)
        self._recipients[recipient.id] = recipient
        return recipient

    def add(self, address: str, amount) -> Recipient:
        """Append one recipient with status pending.

        Raises:
            ValidationError: if either field is empty, the address is
                malformed or the amount is not numeric. The list is unchanged.
        """
        address = (address or '').strip() if isinstance(address, str) else address
        amount = str(amount).strip() if amount is not None else ''
        if not address or not amount:
            logger.warning("Rejected recipient: address and amount are both required")
            raise ValidationError("Please enter both address and amount")
        if not is_valid_address(address):
            logger.warning(f"Rejected recipient with invalid address: {address}")
            raise ValidationError(f"Invalid Ethereum address format: {address}")
        if not is_valid_amount(amount):
            logger.warning(f"Rejected recipient with invalid amount: {amount}")
            raise ValidationError(f"Invalid amount: {amount}")

        with self._lock:
            recipient = self._append(address, amount)
        logger.debug(f"Added recipient {recipient.id}: {address} {amount}")
        return recipient.snapshot()

    def remove(self, recipient_id: int) -> bool:
        """Remove a recipient. Returns False if no such id exists.

        Raises:
            RecipientInUseError: if the recipient's transfer is in flight.
        """
        with self._lock:
            recipient = self._recipients.get(recipient_id)
            if recipient is None:
                return False
            if recipient.status == STATUS_PROCESSING:
                raise RecipientInUseError(
                    f"Recipient {recipient_id} is being processed and cannot be removed"
                )
            del self._recipients[recipient_id]
        logger.debug(f"Removed recipient {recipient_id}")
        return True

    def clear(self) -> None:
        """Empty the list and any stored batch results."""
        with self._lock:
            self._recipients.clear()
            self.batch_results = []
        logger.debug("Cleared all recipients")

    def update_status(self, recipient_id: int, status: str) -> bool:
        """Set a recipient's status in place. Returns False if the id is gone."""
        if status not in RECIPIENT_STATUSES:
            raise ValueError(f"Unknown recipient status: {status}")
        with self._lock:
            recipient = self._recipients.get(recipient_id)
            if recipient is None:
                return False
            recipient.status = status
            return True

    def reset_results(self) -> None:
        with self._lock:
            self.batch_results = []

    def store_results(self, outcomes: List[TransferOutcome]) -> None:
        with self._lock:
            self.batch_results = list(outcomes)

    def parse_bulk_text(self, text: str) -> int:
        """Append recipients parsed from "address amount" lines.

        Tokens may be separated by whitespace or commas. Lines whose address
        or amount fail validation are dropped without diagnostics.

        Returns:
            Number of recipients accepted.
        """
        parsed = []
        for line in (text or '').splitlines():
            line = line.strip()
            if not line:
                continue
            parts = [p for p in BULK_LINE_SPLIT.split(line) if p]
            if len(parts) < 2:
                continue
            address, amount = parts[0], parts[1]
            if is_valid_address(address) and is_valid_amount(amount):
                parsed.append((address, amount))

        with self._lock:
            for address, amount in parsed:
                self._append(address, amount)

        if parsed:
            logger.info(f"Added {len(parsed)} recipients from bulk text")
        else:
            logger.warning("No valid recipients found in bulk text")
        return len(parsed)

    def load_csv(self, file_path: str) -> int:
        """Append recipients from a CSV file with address and amount columns."""
        logger.info(f"Loading recipients from CSV: {file_path}")
        try:
            df = pd.read_csv(file_path, dtype=str)
        except FileNotFoundError:
            logger.error(f"CSV file not found: {file_path}")
            raise
        except (OSError, UnicodeDecodeError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            logger.error(f"Error reading CSV file {file_path}: {e}")
            raise ValidationError(f"Cannot read recipients from {file_path}: {e}") from e

        df.columns = [str(c).strip().lower() for c in df.columns]
        if 'address' not in df.columns or 'amount' not in df.columns:
            raise ValidationError("CSV file must contain 'address' and 'amount' columns.")

        parsed = [
            (row['address'].strip(), row['amount'].strip())
            for _, row in df.iterrows()
            if pd.notna(row['address']) and pd.notna(row['amount'])
            and is_valid_address(row['address'].strip())
            and is_valid_amount(row['amount'])
        ]
        with self._lock:
            for address, amount in parsed:
                self._append(address, amount)

        skipped = len(df) - len(parsed)
        if skipped:
            logger.warning(f"Skipped {skipped} invalid rows in {file_path}")
        logger.info(f"Loaded {len(parsed)} recipients from {file_path}")
        return len(parsed)
