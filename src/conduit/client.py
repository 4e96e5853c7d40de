"""
Client library the host side uses to talk to an extension service.
"""
from typing import Optional

import httpx

from conduit_common import (
    AudienceMembershipChangeRequest,
    AudienceMembershipChangeResponse,
    AudienceSubscriptionRequest,
    AudienceSubscriptionResponse,
    EventProcessingRequest,
    EventProcessingResponse,
    Manifest,
    RegistrationRequest,
)


class ExtensionClient:
    """
    Client for an extension's HTTP API.

    Rejected batches come back as parsed responses with a rejected status;
    any other HTTP error is raised.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the extension client.

        Args:
            base_url: Base URL of the extension service (e.g., "http://localhost:8090")
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (e.g. ASGITransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    @staticmethod
    def _raise_unless_rejected(response: httpx.Response) -> None:
        # 400 carries a rejected batch document
        if response.status_code != 400:
            response.raise_for_status()

    async def register(self, request: Optional[RegistrationRequest] = None) -> Manifest:
        """
        Perform the registration handshake.

        Returns:
            The extension's manifest
        """
        request = request or RegistrationRequest()
        response = await self._client.post(
            f"{self.base_url}/v1/registration",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        response.raise_for_status()
        return Manifest.model_validate(response.json())

    async def process_events(self, batch: EventProcessingRequest) -> EventProcessingResponse:
        """Send an event batch and return its result."""
        response = await self._client.post(
            f"{self.base_url}/v1/events",
            json=batch.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        self._raise_unless_rejected(response)
        return EventProcessingResponse.model_validate(response.json())

    async def process_audience_membership_change(
        self,
        request: AudienceMembershipChangeRequest,
    ) -> AudienceMembershipChangeResponse:
        """Send an audience membership change batch."""
        response = await self._client.post(
            f"{self.base_url}/v1/audience/membership",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        self._raise_unless_rejected(response)
        return AudienceMembershipChangeResponse.model_validate(response.json())

    async def process_audience_subscription(
        self,
        request: AudienceSubscriptionRequest,
    ) -> AudienceSubscriptionResponse:
        """Send an audience subscription change."""
        response = await self._client.post(
            f"{self.base_url}/v1/audience/subscription",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        self._raise_unless_rejected(response)
        return AudienceSubscriptionResponse.model_validate(response.json())
