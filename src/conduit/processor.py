"""
Batch processing.

A batch moves through these states:

    received -> validating -> rejected
                           -> setup -> rejected
                                    -> dispatching -> assembling -> complete

Configuration and setup failures reject the whole batch with a single error
and no per-record outcomes. Per-record failures are captured as outcomes and
processing carries on with the next record.
"""
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from conduit_common import (
    BatchError,
    BatchStatus,
    EventProcessingRequest,
    EventProcessingResponse,
    Manifest,
    RecordOutcome,
)

from .context import BatchContext
from .dispatcher import HandlerRegistry, RecordDispatcher
from .errors import SetupError
from .permissions import apply_permissions
from .settings import redact_configuration, validate_settings

logger = logging.getLogger(__name__)

# Type aliases
SetupHook = Callable[[BatchContext], Awaitable[None]]


class BatchState(str, Enum):
    """Lifecycle states of one batch."""
    RECEIVED = "received"
    VALIDATING = "validating"
    REJECTED = "rejected"
    SETUP = "setup"
    DISPATCHING = "dispatching"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"


class BatchProcessor:
    """
    Orchestrates one event processing batch end to end.

    The processor holds only the immutable manifest and the handler registry,
    so one instance can serve many batches, including concurrently.

    Usage:
        processor = BatchProcessor(manifest, handlers, setup=ensure_user)
        response = await processor.process(batch)
    """

    def __init__(
        self,
        manifest: Manifest,
        handlers: HandlerRegistry,
        setup: Optional[SetupHook] = None,
        distinct_skip_reasons: bool = True,
    ):
        """
        Args:
            manifest: Published manifest the batches must conform to
            handlers: Record handlers keyed by type tag
            setup: Optional hook run once per batch before any record
            distinct_skip_reasons: See RecordDispatcher
        """
        self.manifest = manifest
        self.setup = setup
        self.dispatcher = RecordDispatcher(
            handlers,
            supported_event_types=manifest.supported_event_types,
            supported_environments=manifest.supported_environments,
            distinct_skip_reasons=distinct_skip_reasons,
        )

    def _transition(self, batch: EventProcessingRequest, state: BatchState) -> None:
        logger.debug(f"Batch {batch.id}: {state.value}")

    def _reject(self, batch: EventProcessingRequest, error: BatchError) -> EventProcessingResponse:
        self._transition(batch, BatchState.REJECTED)
        logger.info(f"Rejected batch {batch.id}: {error.message}")
        return EventProcessingResponse.rejected(batch.id, error)

    async def _run_setup(self, context: BatchContext) -> None:
        if self.setup is None:
            return
        try:
            await self.setup(context)
        except Exception as e:
            raise SetupError(f"{type(e).__name__}: {e}") from e

    async def process(self, batch: EventProcessingRequest) -> EventProcessingResponse:
        """
        Process a batch.

        Args:
            batch: Inbound event processing request

        Returns:
            EventProcessingResponse, either complete with one outcome per record
            in input order, or rejected with a single error
        """
        self._transition(batch, BatchState.RECEIVED)

        # Validating
        self._transition(batch, BatchState.VALIDATING)
        settings = self.manifest.account_settings
        logger.debug(f"Batch {batch.id} configuration: {redact_configuration(batch.configuration, settings)}")
        validation = validate_settings(batch.configuration, settings)
        if not validation.ok:
            return self._reject(batch, validation.to_batch_error())

        # Setup
        self._transition(batch, BatchState.SETUP)
        context = BatchContext(
            request=apply_permissions(batch, self.manifest.permissions),
            manifest=self.manifest,
        )
        try:
            await self._run_setup(context)
        except SetupError as e:
            return self._reject(batch, BatchError(code=SetupError.code, message=f"{SetupError.code}: {e}"))

        # Dispatching
        self._transition(batch, BatchState.DISPATCHING)
        outcomes: List[RecordOutcome] = []
        for index, record in enumerate(context.request.records):
            outcomes.append(await self.dispatcher.dispatch(record, context, index=index))

        # Assembling
        self._transition(batch, BatchState.ASSEMBLING)
        response = EventProcessingResponse(
            request_id=batch.id,
            status=BatchStatus.COMPLETE,
            outcomes=outcomes,
            warnings=[issue.message for issue in validation.warnings],
        )
        self._transition(batch, BatchState.COMPLETE)
        logger.info(
            f"Processed batch {batch.id}: {response.processed_count} processed, "
            f"{response.skipped_count} skipped, {response.failed_count} failed"
        )
        return response
