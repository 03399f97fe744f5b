"""
SessionPulse exceptions.

Per-review problems (MalformedRecordError) are recoverable: the review is
skipped and the run continues. ConfigurationError is fatal at startup.
"""

from typing import Any, Dict, Optional


class SessionPulseError(Exception):
    """Base class for all SessionPulse errors."""


class ConfigurationError(SessionPulseError, ValueError):
    """Lexicon or scoring configuration is missing, empty or invalid."""


class MalformedRecordError(SessionPulseError, ValueError):
    """An input review cannot be analysed (missing session_id or review_text)."""

    def __init__(self, message: str, record: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.record = record or {}

    @property
    def review_id(self) -> Optional[str]:
        return self.record.get("review_id") if isinstance(self.record, dict) else None
