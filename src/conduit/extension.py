"""
Extension - the object an integration builds to plug into the host.

An extension has two responsibilities:
1. Describe its capabilities and settings to the host (the manifest)
2. Process batches of data sent by the host, typically to translate them and
   send them somewhere else

Handlers are registered with decorators instead of overriding one method per
record type:

    from conduit import Extension
    from conduit_common import EventType

    extension = Extension(build_manifest)

    @extension.on_setup
    async def ensure_user(context):
        context.state["user"] = await api.upsert_user(context.request.mpid)

    @extension.on_event(EventType.CUSTOM_EVENT)
    async def forward(event, context):
        await api.track(context.state["user"], event.name, event.attributes)

Record types without a handler are reported as skipped.
"""
import copy
import logging
from typing import Any, Callable, Iterable, List, Optional

from conduit_common import (
    AudienceMembershipChangeRequest,
    AudienceMembershipChangeResponse,
    AudienceSubscriptionRequest,
    AudienceSubscriptionResponse,
    EventProcessingRequest,
    EventProcessingResponse,
    IdentityType,
    Manifest,
    RegistrationRequest,
)
from conduit_common.events import tag_value

from .audience import AudienceProcessor, MembershipHandler, SubscriptionHandler
from .context import BatchContext
from .dispatcher import HandlerRegistry, RecordHandler
from .errors import ManifestError
from .processor import BatchProcessor, SetupHook
from .registration import ManifestFactory, RegistrationService

logger = logging.getLogger(__name__)


class Extension:
    """
    Manifest plus handlers, with the host-facing entry points.

    Attributes:
        manifest: The manifest published at construction time
        handlers: Record handlers keyed by event type
        registration: Service producing the manifest on demand
    """

    def __init__(self, build_manifest: ManifestFactory, distinct_skip_reasons: bool = True):
        """
        Initialize the extension.

        Args:
            build_manifest: Deterministic factory for the manifest
            distinct_skip_reasons: Report unsupported types and unsupported
                environments with distinct skip reasons (default) or merge them
        """
        self.registration = RegistrationService(build_manifest)
        self.manifest: Manifest = self.registration.register()
        self.handlers = HandlerRegistry()
        self.distinct_skip_reasons = distinct_skip_reasons

        self._setup_hooks: List[SetupHook] = []
        self._membership_handler: Optional[MembershipHandler] = None
        self._subscription_handler: Optional[SubscriptionHandler] = None

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> str:
        return self.manifest.version

    def with_options(self, *, distinct_skip_reasons: bool) -> "Extension":
        """
        Return a copy with different dispatch options.

        The copy shares the manifest and every registered handler; the
        original extension is left untouched.
        """
        clone = copy.copy(self)
        clone.distinct_skip_reasons = distinct_skip_reasons
        return clone

    # =========================================================================
    # Decorators for registering handlers
    # =========================================================================

    def on_setup(self, func: SetupHook) -> SetupHook:
        """
        Decorator to register a setup hook.

        Setup hooks run once per batch, after configuration validation and
        before the first record is dispatched. They typically establish state
        every handler of the batch reuses (a session, a resolved user). A
        failing hook rejects the batch.
        """
        self._setup_hooks.append(func)
        return func

    def on_event(
        self,
        event_type: Any,
        *,
        identities: Optional[Iterable[IdentityType]] = None,
    ) -> Callable[[RecordHandler], RecordHandler]:
        """
        Decorator to register a record handler.

        Args:
            event_type: The event type to handle; must be declared in the manifest
            identities: User identity types the handler reads; each must be
                permitted by the manifest

        Raises:
            ManifestError: If the type is undeclared or an identity is not permitted
        """
        declared = {tag_value(t) for t in self.manifest.supported_event_types}
        if tag_value(event_type) not in declared:
            raise ManifestError(f"Event type '{tag_value(event_type)}' is not declared in the manifest")

        for identity_type in identities or ():
            if self.manifest.permissions.user_identity_permission(identity_type) is None:
                raise ManifestError(
                    f"Handler for '{tag_value(event_type)}' reads identity "
                    f"'{tag_value(identity_type)}' which the manifest does not permit"
                )

        def decorator(func: RecordHandler) -> RecordHandler:
            self.handlers.add(event_type, func)
            return func
        return decorator

    def on_audience_membership_change(self, func: MembershipHandler) -> MembershipHandler:
        """Decorator to register the per-profile audience membership handler."""
        if self.manifest.audience_processing is None:
            raise ManifestError("Manifest does not declare audience processing")
        self._membership_handler = func
        return func

    def on_audience_subscription(self, func: SubscriptionHandler) -> SubscriptionHandler:
        """Decorator to register the audience subscription handler."""
        if self.manifest.audience_processing is None:
            raise ManifestError("Manifest does not declare audience processing")
        self._subscription_handler = func
        return func

    # =========================================================================
    # Host entry points
    # =========================================================================

    async def _run_setup(self, context: BatchContext) -> None:
        for hook in self._setup_hooks:
            await hook(context)

    def batch_processor(self) -> BatchProcessor:
        return BatchProcessor(
            self.manifest,
            self.handlers,
            setup=self._run_setup if self._setup_hooks else None,
            distinct_skip_reasons=self.distinct_skip_reasons,
        )

    def audience_processor(self) -> AudienceProcessor:
        return AudienceProcessor(
            self.manifest,
            membership_handler=self._membership_handler,
            subscription_handler=self._subscription_handler,
        )

    def process_registration_request(self, request: Optional[RegistrationRequest] = None) -> Manifest:
        """Answer a registration handshake with the manifest."""
        return self.registration.register(request)

    async def process_event_processing_request(self, request: EventProcessingRequest) -> EventProcessingResponse:
        """Process one event batch."""
        return await self.batch_processor().process(request)

    async def process_audience_membership_change_request(
        self,
        request: AudienceMembershipChangeRequest,
    ) -> AudienceMembershipChangeResponse:
        """Process one audience membership change batch."""
        return await self.audience_processor().process_membership_change(request)

    async def process_audience_subscription_request(
        self,
        request: AudienceSubscriptionRequest,
    ) -> AudienceSubscriptionResponse:
        """Process one audience subscription change."""
        return await self.audience_processor().process_subscription(request)
