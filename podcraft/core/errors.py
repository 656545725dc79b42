"""Error types raised by the transcript preparation core.

Every error carries a ``retryable`` flag. None of these are retried inside the
core; the flag is for the calling pipeline.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class PodcraftError(Exception):
    """Base class for all Podcraft errors."""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "timestamp": self.timestamp,
            "retryable": self.retryable,
        }


class ConfigurationError(PodcraftError):
    """A required capability is missing or an input exceeds a hard ceiling."""

    def __init__(self, message: str, capability: Optional[str] = None):
        super().__init__(message)
        self.capability = capability

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["capability"] = self.capability
        return data


class ProcessingError(PodcraftError):
    """An external tool exited non-zero or produced no usable output."""

    def __init__(self, tool: str, message: str, returncode: Optional[int] = None, stderr_tail: str = ""):
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.returncode = returncode
        self.stderr_tail = stderr_tail

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "tool": self.tool,
            "returncode": self.returncode,
            "stderr_tail": self.stderr_tail,
        })
        return data


class ValidationError(PodcraftError):
    """Input or response data failed validation. Never retryable."""

    def __init__(self, field: str, reason: str, value: Any = None):
        super().__init__(f"Validation failed for '{field}': {reason}")
        self.field = field
        self.reason = reason
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "field": self.field,
            "reason": self.reason,
            # Only simple values, the rest may be large or sensitive
            "value": self.value if isinstance(self.value, (str, int, float)) else None,
        })
        return data
