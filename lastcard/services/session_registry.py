"""In-memory lobby directory.

Every operation returns a LobbyResult instead of raising, so callers can
turn failures into a targeted negative acknowledgement.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lastcard.config import Settings, settings
from lastcard.constants import CARD_GAME_TYPE
from lastcard.models.enums import LobbyError, SessionStatus
from lastcard.models.session import Session
from lastcard.services.activity_log import ActivityLog, LoggingActivityLog
from lastcard.services.identity import normalize_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LobbyResult:
    """Outcome of a lobby operation.

    Attributes:
        ok: Whether the operation succeeded
        code: Session code the operation targeted (None when unknown)
        error: Failure reason when not ok
        session: The session after the operation
        destroyed: Whether the operation destroyed the session

    """

    ok: bool
    code: str | None = None
    error: LobbyError | None = None
    session: Session | None = None
    destroyed: bool = False

    @classmethod
    def success(
        cls, code: str, session: Session | None = None, destroyed: bool = False
    ) -> "LobbyResult":
        """Build a successful result."""
        return cls(ok=True, code=code, session=session, destroyed=destroyed)

    @classmethod
    def failure(cls, error: LobbyError, code: str | None = None) -> "LobbyResult":
        """Build a failed result."""
        return cls(ok=False, code=code, error=error)


class SessionRegistry:
    """Directory of lobby sessions keyed by code.

    Handles:
    - Capacity derived from the game type
    - Owner-only activation and deletion
    - Destroying sessions when the owner or the last participant leaves
    """

    def __init__(
        self,
        activity_log: ActivityLog | None = None,
        config: Settings | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            activity_log: Sink for successful operations
            config: Settings override (capacities, code length)

        """
        self.config = config or settings
        self.activity_log: ActivityLog = activity_log or LoggingActivityLog(
            enabled=self.config.activity_log_enabled
        )
        self.sessions: dict[str, Session] = {}
        self._destroy_hooks: list[Callable[[str], None]] = []

    def on_destroy(self, hook: Callable[[str], None]) -> None:
        """Register a callback invoked with the code of every destroyed session."""
        self._destroy_hooks.append(hook)

    def get(self, code: str) -> Session | None:
        """Get a session by code."""
        return self.sessions.get(code)

    def capacity_for(self, game_type: str | None) -> int:
        """Seats for a game type: the card game seats four, anything else two."""
        if (game_type or CARD_GAME_TYPE) == CARD_GAME_TYPE:
            return self.config.card_game_capacity
        return self.config.default_capacity

    def create(self, owner: str, game_type: str | None = None) -> LobbyResult:
        """Create a pending session owned (and joined) by ``owner``."""
        identity = normalize_identity(owner)
        if not identity:
            logger.info("Create rejected: blank identity")
            return LobbyResult.failure(LobbyError.INVALID_IDENTITY)

        game_type = game_type or CARD_GAME_TYPE
        session = Session(
            code=self._new_code(),
            owner=identity,
            game_type=game_type,
            capacity=self.capacity_for(game_type),
            participants=[identity],
        )
        self.sessions[session.code] = session

        logger.info("Session %s (%s) created by %s", session.code, game_type, identity)
        self._record("create_session", identity, session.code)
        return LobbyResult.success(session.code, session)

    def join(self, identity: str, code: str) -> LobbyResult:
        """Add ``identity`` to a session that has a free seat."""
        identity = normalize_identity(identity)
        if not identity:
            return LobbyResult.failure(LobbyError.INVALID_IDENTITY, code)

        session = self.sessions.get(code)
        if not session:
            logger.info("Join rejected: session %s not found", code)
            return LobbyResult.failure(LobbyError.NOT_FOUND, code)
        if session.is_full():
            logger.info("Join rejected: session %s is full (%d)", code, session.capacity)
            return LobbyResult.failure(LobbyError.CAPACITY, code)
        if session.has_participant(identity):
            logger.info("Join rejected: %s already in session %s", identity, code)
            return LobbyResult.failure(LobbyError.CONFLICT, code)

        session.participants.append(identity)
        logger.info("%s joined session %s", identity, code)
        self._record("join_session", identity, code)
        return LobbyResult.success(code, session)

    def activate(self, identity: str, code: str) -> LobbyResult:
        """Move a session from pending to active. Owner only."""
        identity = normalize_identity(identity)
        session = self.sessions.get(code)
        if not session:
            logger.info("Activate rejected: session %s not found", code)
            return LobbyResult.failure(LobbyError.NOT_FOUND, code)
        if not session.is_owner(identity):
            logger.info("Activate rejected: %s does not own session %s", identity, code)
            return LobbyResult.failure(LobbyError.UNAUTHORIZED, code)

        session.status = SessionStatus.ACTIVE
        if not session.has_participant(identity):
            session.participants.insert(0, identity)

        logger.info("Session %s activated", code)
        self._record("activate_session", identity, code)
        return LobbyResult.success(code, session)

    def leave(self, identity: str, code: str) -> LobbyResult:
        """Remove ``identity`` from a session.

        The owner leaving destroys the session, as does the last participant
        leaving. Ownership never transfers.
        """
        identity = normalize_identity(identity)
        session = self.sessions.get(code)
        if not session:
            logger.info("Leave rejected: session %s not found", code)
            return LobbyResult.failure(LobbyError.NOT_FOUND, code)

        if session.is_owner(identity):
            self._destroy(code)
            self._record("leave_session", identity, code)
            return LobbyResult.success(code, destroyed=True)

        if not session.has_participant(identity):
            logger.info("Leave rejected: %s is not in session %s", identity, code)
            return LobbyResult.failure(LobbyError.NOT_PARTICIPANT, code)

        session.participants.remove(identity)
        logger.info("%s left session %s", identity, code)
        self._record("leave_session", identity, code)

        if not session.participants:
            self._destroy(code)
            return LobbyResult.success(code, destroyed=True)
        return LobbyResult.success(code, session)

    def delete(self, identity: str, code: str) -> LobbyResult:
        """Destroy a session. Owner only."""
        identity = normalize_identity(identity)
        session = self.sessions.get(code)
        if not session:
            logger.info("Delete rejected: session %s not found", code)
            return LobbyResult.failure(LobbyError.NOT_FOUND, code)
        if not session.is_owner(identity):
            logger.info("Delete rejected: %s does not own session %s", identity, code)
            return LobbyResult.failure(LobbyError.UNAUTHORIZED, code)

        self._destroy(code)
        self._record("delete_session", identity, code)
        return LobbyResult.success(code, destroyed=True)

    def list(self, game_type: str | None = None) -> list[Session]:
        """Pending sessions, optionally only those of ``game_type``.

        Sessions without a tag count as the card game.
        """
        return [
            session
            for session in self.sessions.values()
            if session.status == SessionStatus.PENDING
            and (not game_type or (session.game_type or CARD_GAME_TYPE) == game_type)
        ]

    def sessions_of(self, identity: str) -> list[dict[str, Any]]:
        """Sessions ``identity`` owns or participates in, flagged with ``is_owner``."""
        identity = normalize_identity(identity)
        if not identity:
            return []
        return [
            {**session.summary(), "is_owner": session.is_owner(identity)}
            for session in self.sessions.values()
            if session.is_owner(identity) or session.has_participant(identity)
        ]

    def _destroy(self, code: str) -> None:
        self.sessions.pop(code, None)
        logger.info("Session %s destroyed", code)
        for hook in self._destroy_hooks:
            hook(code)

    def _new_code(self) -> str:
        length = self.config.session_code_length
        while True:
            code = uuid.uuid4().hex[:length].upper()
            if code not in self.sessions:
                return code

    def _record(self, operation: str, identity: str, code: str) -> None:
        try:
            self.activity_log.record(operation, identity, code)
        except Exception:
            logger.exception("Activity log failed for %s", operation)

    def __len__(self) -> int:
        return len(self.sessions)
