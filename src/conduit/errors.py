"""
Exceptions raised by the Conduit SDK.

Batch-fatal errors (configuration, setup) reject a whole batch with a single
top-level error. Per-record errors (unsupported record, handler failure) are
converted into record outcomes and never escape batch processing.
"""
from typing import Iterable, List


class ConduitError(Exception):
    """Base exception for SDK errors."""
    code = "ConduitError"


class ManifestError(ConduitError, ValueError):
    """Raised when handlers or a manifest contradict the declared contract."""
    code = "ManifestError"


class ConfigurationError(ConduitError):
    """A batch's configuration does not satisfy the declared settings."""
    code = "ConfigurationError"

    def __init__(self, keys: Iterable[str]):
        self.keys: List[str] = list(keys)
        super().__init__(f"{self.code}: {', '.join(self.keys)}")


class MissingRequiredSettingError(ConfigurationError):
    """A required setting is absent or empty."""
    code = "MissingRequiredSetting"


class InvalidSettingValueError(ConfigurationError):
    """A setting's value does not parse as its declared kind."""
    code = "InvalidSettingValue"


class SetupError(ConduitError):
    """The pre-dispatch setup hook failed."""
    code = "SetupFailed"


class UnsupportedRecordError(ConduitError):
    """A record's type or environment is not declared in the manifest."""
    code = "UnsupportedRecord"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class HandlerError(ConduitError):
    """A record handler failed; wraps the underlying exception."""
    code = "HandlerFailed"

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}")


class SkipRecord(ConduitError):
    """
    Raised by a handler to decline a record deliberately.

    The record is reported as skipped with the given reason instead of failed.
    """
    code = "Skipped"

    def __init__(self, reason: str = "skipped by handler"):
        self.reason = reason
        super().__init__(reason)
