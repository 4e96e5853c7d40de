"""
Conduit SDK - build extensions that declare what they consume and process
the batches a host platform sends them.
"""

__version__ = "0.1.0"

from .audience import AudienceProcessor
from .client import ExtensionClient
from .context import BatchContext
from .dispatcher import HandlerRegistry, RecordDispatcher
from .errors import (
    ConduitError,
    ConfigurationError,
    HandlerError,
    InvalidSettingValueError,
    ManifestError,
    MissingRequiredSettingError,
    SetupError,
    SkipRecord,
    UnsupportedRecordError,
)
from .extension import Extension
from .loader import load_extension
from .processor import BatchProcessor, BatchState
from .registration import RegistrationService
from .settings import ValidationResult, redact_configuration, validate_settings

__all__ = [
    "AudienceProcessor",
    "BatchContext",
    "BatchProcessor",
    "BatchState",
    "ConduitError",
    "ConfigurationError",
    "Extension",
    "ExtensionClient",
    "HandlerError",
    "HandlerRegistry",
    "InvalidSettingValueError",
    "ManifestError",
    "MissingRequiredSettingError",
    "RecordDispatcher",
    "RegistrationService",
    "SetupError",
    "SkipRecord",
    "UnsupportedRecordError",
    "ValidationResult",
    "load_extension",
    "redact_configuration",
    "validate_settings",
]
