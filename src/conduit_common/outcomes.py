"""
Per-record outcome and batch result DTOs.

A batch either completes, with exactly one outcome per input record in input
order, or is rejected outright with a single top-level error and no outcomes.
Callers can therefore always tell "batch rejected" apart from "batch accepted,
N of M records failed".
"""
from enum import Enum
from typing import List, Optional

from pydantic import Field, model_validator

from .models import BaseDTO


class OutcomeStatus(str, Enum):
    """Classification of one record's processing result."""
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class BatchStatus(str, Enum):
    """Final state of a batch."""
    COMPLETE = "complete"
    REJECTED = "rejected"


class RecordOutcome(BaseDTO):
    """Result for one record, positionally matching the input batch."""
    index: int = Field(..., ge=0, description="Position of the record in the batch")
    record_id: Optional[str] = Field(default=None, description="ID of the record")
    record_type: str = Field(..., description="Declared type tag of the record")
    status: OutcomeStatus
    reason: Optional[str] = Field(default=None, description="Why the record was skipped")
    error: Optional[str] = Field(default=None, description="Why the record failed")

    @classmethod
    def processed(cls, index: int, record_id: Optional[str], record_type: str) -> "RecordOutcome":
        return cls(index=index, record_id=record_id, record_type=record_type, status=OutcomeStatus.PROCESSED)

    @classmethod
    def skipped(cls, index: int, record_id: Optional[str], record_type: str, reason: str) -> "RecordOutcome":
        return cls(
            index=index,
            record_id=record_id,
            record_type=record_type,
            status=OutcomeStatus.SKIPPED,
            reason=reason,
        )

    @classmethod
    def failed(cls, index: int, record_id: Optional[str], record_type: str, error: str) -> "RecordOutcome":
        return cls(
            index=index,
            record_id=record_id,
            record_type=record_type,
            status=OutcomeStatus.FAILED,
            error=error,
        )


class BatchError(BaseDTO):
    """Single top-level error for a rejected batch."""
    code: str = Field(..., description="Error code, e.g. 'MissingRequiredSetting'")
    message: str = Field(..., description="Error message, e.g. 'MissingRequiredSetting: serviceToken'")
    details: List[str] = Field(default_factory=list, description="Every issue behind the rejection")


class BatchResult(BaseDTO):
    """
    Outcome of one batch.

    Invariants:
        - rejected: exactly one error, zero outcomes
        - complete: no error, one outcome per input record
    """
    request_id: str
    status: BatchStatus
    outcomes: List[RecordOutcome] = Field(default_factory=list)
    error: Optional[BatchError] = None
    warnings: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_status_consistency(self) -> "BatchResult":
        if self.status == BatchStatus.REJECTED:
            if self.error is None:
                raise ValueError("A rejected batch must carry an error")
            if self.outcomes:
                raise ValueError("A rejected batch must not carry per-record outcomes")
        elif self.error is not None:
            raise ValueError("A complete batch must not carry a top-level error")
        return self

    @classmethod
    def rejected(cls, request_id: str, error: BatchError) -> "BatchResult":
        return cls(request_id=request_id, status=BatchStatus.REJECTED, error=error)

    @property
    def is_rejected(self) -> bool:
        return self.status == BatchStatus.REJECTED

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def processed_count(self) -> int:
        return self._count(OutcomeStatus.PROCESSED)

    @property
    def skipped_count(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(OutcomeStatus.FAILED)


class EventProcessingResponse(BatchResult):
    """Result of an event processing batch."""
