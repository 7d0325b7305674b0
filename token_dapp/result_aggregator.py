from typing import Iterable, Tuple

from .models import TransferOutcome, BatchResult, STATUS_SUCCESS, STATUS_FAILED


def count_outcomes(outcomes: Iterable[TransferOutcome]) -> Tuple[int, int]:
    """Return (success_count, failure_count) for a list of outcomes."""
    success_count = 0
    failure_count = 0
    for outcome in outcomes:
        if outcome.status == STATUS_SUCCESS:
            success_count += 1
        elif outcome.status == STATUS_FAILED:
            failure_count += 1
    return success_count, failure_count


def aggregate(source_address: str, outcomes: Iterable[TransferOutcome]) -> BatchResult:
    outcomes = list(outcomes)
    success_count, failure_count = count_outcomes(outcomes)
    return BatchResult(
        source_address=source_address,
        outcomes=outcomes,
        success_count=success_count,
        failure_count=failure_count,
    )


def summary_message(result: BatchResult) -> str:
    return (
        f"Bulk transfer completed: {result.success_count} success, "
        f"{result.failure_count} failed"
    )
