"""
Record dispatch.

Routes each record of a batch to the handler registered for its type tag and
turns whatever happens into a `RecordOutcome`. A handler's exception is caught
here and never unwinds past the record it belongs to, so one faulty record
cannot lose the outcomes of records already processed or stop the ones that
follow.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, Optional

from conduit_common import EventType, InvalidRecord, RecordOutcome, RuntimeEnvironment
from conduit_common.events import tag_value

from .context import BatchContext
from .errors import HandlerError, SkipRecord, UnsupportedRecordError

logger = logging.getLogger(__name__)

# Type aliases
RecordHandler = Callable[[Any, BatchContext], Awaitable[None]]

UNSUPPORTED_TYPE = "unsupported type"
UNSUPPORTED_ENVIRONMENT = "unsupported environment"
UNSUPPORTED = "unsupported"


class HandlerRegistry:
    """
    Mapping from record type tag to handler.

    Tags may be given as `EventType` members or plain strings; both refer to
    the same entry.

    Usage:
        registry = HandlerRegistry()

        @registry.register(EventType.CUSTOM_EVENT)
        async def forward(event, context):
            ...
    """

    def __init__(self, handlers: Optional[Dict[Any, RecordHandler]] = None):
        self._handlers: Dict[str, RecordHandler] = {}
        for tag, handler in (handlers or {}).items():
            self.add(tag, handler)

    def add(self, tag: Any, handler: RecordHandler) -> None:
        key = tag_value(tag)
        if key in self._handlers:
            raise ValueError(f"A handler is already registered for '{key}'")
        self._handlers[key] = handler
        logger.debug(f"Registered handler for {key}")

    def register(self, tag: Any) -> Callable[[RecordHandler], RecordHandler]:
        """Decorator form of `add`."""
        def decorator(func: RecordHandler) -> RecordHandler:
            self.add(tag, func)
            return func
        return decorator

    def get(self, tag: Any) -> Optional[RecordHandler]:
        return self._handlers.get(tag_value(tag))

    def __contains__(self, tag: Any) -> bool:
        return tag_value(tag) in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


async def invoke_handler(
    handler: RecordHandler,
    item: Any,
    context: Any,
    *,
    index: int,
    record_id: Optional[str],
    record_type: str,
) -> RecordOutcome:
    """
    Run one handler and classify the result.

    `SkipRecord` becomes a skipped outcome; any other exception becomes a
    failed outcome carrying the cause. Cancellation is not intercepted.
    """
    try:
        await handler(item, context)
    except SkipRecord as e:
        return RecordOutcome.skipped(index, record_id, record_type, e.reason)
    except Exception as e:
        error = HandlerError(e)
        logger.warning(f"Handler for {record_type} failed on record {index} ({record_id}): {error}", exc_info=True)
        return RecordOutcome.failed(index, record_id, record_type, str(error))
    return RecordOutcome.processed(index, record_id, record_type)


class RecordDispatcher:
    """
    Dispatches records to handlers while enforcing the declared manifest.

    Args:
        handlers: Registry of record handlers
        supported_event_types: Event types declared in the manifest
        supported_environments: Runtime environments declared in the manifest
        distinct_skip_reasons: Report unsupported types and environments with
            distinct reasons (default) or merge both into "unsupported"
    """

    def __init__(
        self,
        handlers: HandlerRegistry,
        supported_event_types: Iterable[EventType],
        supported_environments: Iterable[RuntimeEnvironment],
        distinct_skip_reasons: bool = True,
    ):
        self.handlers = handlers
        self.supported_event_types = frozenset(tag_value(t) for t in supported_event_types)
        self.supported_environments = frozenset(tag_value(e) for e in supported_environments)
        self.distinct_skip_reasons = distinct_skip_reasons

    def _reason(self, reason: str) -> str:
        return reason if self.distinct_skip_reasons else UNSUPPORTED

    def check_supported(self, record: Any, environment: RuntimeEnvironment) -> None:
        """
        Raise UnsupportedRecordError if the record falls outside the manifest.

        The environment is checked first, before any handler is looked up.
        """
        effective = record.environment or environment
        if tag_value(effective) not in self.supported_environments:
            raise UnsupportedRecordError(self._reason(UNSUPPORTED_ENVIRONMENT))
        record_type = tag_value(record.type)
        if record_type not in self.supported_event_types or record_type not in self.handlers:
            raise UnsupportedRecordError(self._reason(UNSUPPORTED_TYPE))

    async def dispatch(self, record: Any, context: BatchContext, *, index: int = 0) -> RecordOutcome:
        """
        Dispatch one record and return its outcome. Never raises for record faults.

        Args:
            record: The record to process
            context: Context of the batch the record belongs to
            index: Position of the record in its batch
        """
        record_type = tag_value(record.type)
        record_id = getattr(record, "id", None)
        if isinstance(record, InvalidRecord):
            logger.warning(f"Record {index} ({record_type}) is malformed: {record.error}")
            return RecordOutcome.failed(index, record_id, record_type, record.error)

        try:
            self.check_supported(record, context.environment)
        except UnsupportedRecordError as e:
            logger.debug(f"Skipping record {index} ({record_type}): {e.reason}")
            return RecordOutcome.skipped(index, record_id, record_type, e.reason)

        handler = self.handlers.get(record_type)
        return await invoke_handler(
            handler,
            record,
            context,
            index=index,
            record_id=record_id,
            record_type=record_type,
        )
