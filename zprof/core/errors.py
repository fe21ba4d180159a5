from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ZprofError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


# ---- Snapshot / integrity ----
class ManifestMissingError(ZprofError):
    def __init__(self, user_message: str = "Snapshot manifest not found.", **ctx: Any):
        super().__init__("manifest_missing", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class ManifestUnreadableError(ZprofError):
    def __init__(self, user_message: str = "Snapshot manifest could not be read.", **ctx: Any):
        super().__init__("manifest_unreadable", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class FileMissingError(ZprofError):
    def __init__(self, user_message: str = "File is missing.", **ctx: Any):
        super().__init__("file_missing", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class ChecksumMismatchError(ZprofError):
    def __init__(self, user_message: str = "Checksum mismatch.", **ctx: Any):
        super().__init__("checksum_mismatch", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


# ---- Filesystem ----
class PermissionDeniedError(ZprofError):
    def __init__(self, user_message: str = "Permission denied.", **ctx: Any):
        super().__init__("permission_denied", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class IoFailureError(ZprofError):
    def __init__(self, user_message: str = "File operation failed.", **ctx: Any):
        super().__init__("io_failure", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


# ---- Restore / rollback ----
class RollbackFailureError(ZprofError):
    def __init__(self, failures: List[str], **ctx: Any):
        self.failures = list(failures)
        msg = f"Rollback encountered {len(self.failures)} error(s):\n  - " + "\n  - ".join(self.failures)
        super().__init__("rollback_failure", msg, severity=Severity.CRITICAL, recoverable=False, context={"failures": list(self.failures), **ctx})


class RestorationFailedError(ZprofError):
    def __init__(self, user_message: str, *, rolled_back: bool, cause: Optional[BaseException] = None, **ctx: Any):
        self.rolled_back = bool(rolled_back)
        self.cause = cause
        super().__init__(
            "restoration_failed",
            user_message,
            severity=Severity.ERROR if rolled_back else Severity.CRITICAL,
            recoverable=bool(rolled_back),
            context={"rolled_back": bool(rolled_back), "cause": str(cause) if cause is not None else None, **ctx},
        )


# ---- Uninstall flow ----
class PreconditionError(ZprofError):
    def __init__(self, issues: List[str], **ctx: Any):
        self.issues = list(issues)
        msg = (
            "Cannot proceed with uninstall due to validation failures:\n  - "
            + "\n  - ".join(self.issues)
            + "\n\nPlease resolve these issues before attempting to uninstall."
        )
        super().__init__("precondition_failed", msg, severity=Severity.ERROR, recoverable=False, context={"issues": list(self.issues), **ctx})


class OptionUnavailableError(ZprofError):
    def __init__(self, user_message: str = "Restoration option is not available.", **ctx: Any):
        super().__init__("option_unavailable", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class ProfileNotFoundError(ZprofError):
    def __init__(self, user_message: str = "Profile not found.", **ctx: Any):
        super().__init__("profile_not_found", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class ConfigError(ZprofError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


def normalize_os_error(exc: OSError, *, path: str, action: str) -> ZprofError:
    """
    Map a raw OSError from a copy/remove/rename into the structured kinds.
    """
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(f"Permission denied while trying to {action} {path}: {exc}", path=path, action=action)
    return IoFailureError(f"Failed to {action} {path}: {exc}", path=path, action=action)
