"""
Settings validation.

Checks a configuration instance (setting key -> string value) against the
settings a manifest declares. Missing required settings and values that do
not parse as their declared kind are errors; keys the manifest does not
declare are only warnings, so a host that knows about newer settings does not
break an older extension.

Confidential values are never copied into issues, exceptions or log lines.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from conduit_common import BatchError, Setting, SettingKind

from .errors import ConfigurationError, InvalidSettingValueError, MissingRequiredSettingError

logger = logging.getLogger(__name__)

MISSING_REQUIRED = MissingRequiredSettingError.code
INVALID_VALUE = InvalidSettingValueError.code
UNKNOWN_SETTING = "UnknownSetting"

REDACTED = "********"

# In order of precedence
_ERROR_TYPES = {
    MISSING_REQUIRED: MissingRequiredSettingError,
    INVALID_VALUE: InvalidSettingValueError,
}

_BOOLEAN_VALUES = {"true", "false"}


@dataclass(frozen=True)
class SettingIssue:
    """One problem found in a configuration. Never carries a value."""
    key: str
    code: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationResult:
    """Errors and warnings found while validating a configuration."""
    errors: List[SettingIssue] = field(default_factory=list)
    warnings: List[SettingIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error_keys(self, code: str) -> List[str]:
        return [issue.key for issue in self.errors if issue.code == code]

    def to_exception(self) -> Optional[ConfigurationError]:
        """
        Build the exception for the most severe error code, naming every key with
        that code. Missing settings take precedence over invalid values.
        """
        if self.ok:
            return None
        for code, error_type in _ERROR_TYPES.items():
            keys = self.error_keys(code)
            if keys:
                return error_type(keys)
        return None

    def raise_for_errors(self) -> None:
        error = self.to_exception()
        if error is not None:
            raise error

    def to_batch_error(self) -> Optional[BatchError]:
        error = self.to_exception()
        if error is None:
            return None
        return BatchError(
            code=error.code,
            message=str(error),
            details=[issue.message for issue in self.errors],
        )


def _is_empty(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _matches_kind(value: str, kind: SettingKind) -> bool:
    text = str(value).strip()
    if kind == SettingKind.BOOLEAN:
        return text.lower() in _BOOLEAN_VALUES
    if kind == SettingKind.INTEGER:
        try:
            int(text)
        except ValueError:
            return False
        return True
    if kind == SettingKind.FLOAT:
        try:
            float(text)
        except ValueError:
            return False
        return True
    return True


def validate_settings(configuration: Mapping[str, str], settings: Sequence[Setting]) -> ValidationResult:
    """
    Validate a configuration against a settings list.

    Args:
        configuration: Setting key -> value, as sent by the host
        settings: Settings declared by the manifest

    Returns:
        ValidationResult with errors (batch-fatal) and warnings (tolerated)
    """
    result = ValidationResult()
    declared = {setting.key: setting for setting in settings}

    for setting in settings:
        value = configuration.get(setting.key)
        if _is_empty(value):
            if setting.required:
                result.errors.append(SettingIssue(
                    key=setting.key,
                    code=MISSING_REQUIRED,
                    message=f"{MISSING_REQUIRED}: {setting.key}",
                ))
            continue
        # Confidential settings are checked for presence only
        if setting.confidential:
            continue
        if not _matches_kind(value, setting.kind):
            result.errors.append(SettingIssue(
                key=setting.key,
                code=INVALID_VALUE,
                message=f"{INVALID_VALUE}: {setting.key} must be {setting.kind.value}",
            ))

    for key in configuration:
        if key not in declared:
            result.warnings.append(SettingIssue(
                key=key,
                code=UNKNOWN_SETTING,
                message=f"{UNKNOWN_SETTING}: {key}",
            ))

    if result.warnings:
        logger.debug(f"Ignoring undeclared settings: {[issue.key for issue in result.warnings]}")
    return result


def redact_configuration(configuration: Mapping[str, str], settings: Sequence[Setting]) -> Dict[str, str]:
    """
    Return a copy of the configuration that is safe to log.

    Confidential values are masked. Undeclared keys are masked too, since
    nothing is known about them.
    """
    declared = {setting.key: setting for setting in settings}
    redacted = {}
    for key, value in configuration.items():
        setting = declared.get(key)
        if setting is None or setting.confidential:
            redacted[key] = REDACTED
        else:
            redacted[key] = value
    return redacted
