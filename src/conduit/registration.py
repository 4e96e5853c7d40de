"""
Registration service: publishes an extension's manifest to the host.
"""
import logging
from typing import Any, Callable, Dict, Optional

from conduit_common import Manifest, RegistrationRequest

logger = logging.getLogger(__name__)

ManifestFactory = Callable[[], Manifest]


class RegistrationService:
    """
    Thin facade over a manifest factory.

    `register()` may be called any number of times; a deterministic factory
    yields an equal manifest on every call.
    """

    def __init__(self, build_manifest: ManifestFactory):
        self._build_manifest = build_manifest

    def register(self, request: Optional[RegistrationRequest] = None) -> Manifest:
        """
        Build the manifest for a registration handshake.

        Args:
            request: Host handshake request; nothing in it affects the manifest

        Returns:
            The immutable manifest
        """
        manifest = self._build_manifest()
        logger.info(f"Registered {manifest.name} v{manifest.version}")
        return manifest

    @staticmethod
    def document(manifest: Manifest) -> Dict[str, Any]:
        """Serialize a manifest to the JSON registration response document."""
        return manifest.model_dump(mode="json", by_alias=True)
