"""Activity log for lobby operations."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class ActivityLog(Protocol):
    """Fire-and-forget sink for named operations performed by an identity."""

    def record(self, operation: str, identity: str, session_code: str | None = None) -> None:
        """Record one operation."""


class LoggingActivityLog:
    """Activity log that writes structured ``key=value`` lines.

    Stands in for the account store's log collection, which lives outside
    this service.
    """

    def __init__(self, enabled: bool = True) -> None:
        """Initialize the log.

        Args:
            enabled: When False every record is discarded

        """
        self.enabled = enabled

    def record(self, operation: str, identity: str, session_code: str | None = None) -> None:
        """Record one operation.

        Args:
            operation: Operation name, e.g. ``create_session``
            identity: Identity that performed it
            session_code: Session the operation touched, if any

        """
        if not self.enabled or not identity:
            return

        data = {"operation": operation, "identity": identity}
        if session_code:
            data["session"] = session_code
        logger.info(" | ".join(f"{k}={v}" for k, v in data.items()))
