"""
SessionPulse API Services
=========================

Read access to the latest analysis file for the API layer.
"""

import logging
import os
import threading
from typing import Any, Dict, List, Optional

from ..orchestrator.reports import format_session_title, latest_review_date, load_analysis

logger = logging.getLogger(__name__)


class AnalysisUnavailableError(Exception):
    """No usable analysis file (not written yet, or unreadable)."""


class AnalysisStore:
    """
    Serves session records from sessions_analysis.json.

    The file is re-read only when its modification time changes, so a new
    pipeline run is picked up without restarting the API.
    """

    def __init__(self, path: str):
        self.path = path
        self._sessions: Optional[List[Dict[str, Any]]] = None
        self._mtime: Optional[float] = None
        self._lock = threading.Lock()

    def get_sessions(self) -> List[Dict[str, Any]]:
        """
        Current session records.

        Raises:
            AnalysisUnavailableError: file missing or invalid
        """
        try:
            mtime = os.path.getmtime(self.path)
        except OSError as e:
            raise AnalysisUnavailableError(f"Analysis file not found: {self.path}") from e

        with self._lock:
            if self._sessions is None or mtime != self._mtime:
                try:
                    self._sessions = load_analysis(self.path)
                except (OSError, ValueError) as e:
                    logger.error(f"Cannot load analysis {self.path}: {e}")
                    raise AnalysisUnavailableError(str(e)) from e
                self._mtime = mtime
                logger.info(f"Loaded {len(self._sessions)} sessions from {self.path}")
            return self._sessions

    def is_available(self) -> bool:
        try:
            self.get_sessions()
            return True
        except AnalysisUnavailableError:
            return False


def session_summary(session: Dict[str, Any]) -> Dict[str, Any]:
    """Session record without reviews, plus display title and latest review date."""
    summary = {k: v for k, v in session.items() if k != "reviews"}
    summary["display_title"] = format_session_title(session.get("session_id"), session.get("session_title"))
    latest = latest_review_date(session.get("reviews") or [])
    summary["last_review_date"] = latest.isoformat() if latest else None
    return summary


def session_detail(session: Dict[str, Any]) -> Dict[str, Any]:
    detail = session_summary(session)
    detail["reviews"] = session.get("reviews") or []
    return detail
