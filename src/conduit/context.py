"""
Per-batch context handed to setup hooks and record handlers.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from conduit_common import EventProcessingRequest, Manifest, RuntimeEnvironment


@dataclass
class BatchContext:
    """
    Everything a handler may need while one batch is processed.

    A context lives for exactly one batch. Records of a batch are dispatched
    one at a time, so `state` can be filled by the setup hook and read by
    every handler without synchronization.

    Attributes:
        request: The permission-filtered batch
        manifest: The published manifest (read-only)
        state: Scratch space shared by the setup hook and handlers
    """
    request: EventProcessingRequest
    manifest: Manifest
    state: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._configuration = MappingProxyType(dict(self.request.configuration))

    @property
    def request_id(self) -> str:
        return self.request.id

    @property
    def environment(self) -> RuntimeEnvironment:
        return self.request.environment

    @property
    def configuration(self) -> Mapping[str, str]:
        """Account configuration; read-only."""
        return self._configuration

    def setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Look up a setting value, falling back to the declared default.

        Args:
            key: Setting key
            default: Returned when neither a value nor a declared default exists
        """
        value = self._configuration.get(key)
        if value:
            return value
        for setting in self.manifest.account_settings:
            if setting.key == key and setting.default_value is not None:
                return setting.default_value
        return default
