"""Lobby session model."""

from dataclasses import dataclass, field
from typing import Any

from lastcard.constants import CARD_GAME_TYPE
from lastcard.models.enums import SessionStatus


@dataclass
class Session:
    """A joinable room.

    Attributes:
        code: Unique session code
        owner: Identity of the creator; never changes
        game_type: Game tag, the card game when the creator gave none
        capacity: Maximum participants, derived from the game type
        participants: Identities in join order, owner first
        status: PENDING until the owner activates it

    """

    code: str
    owner: str
    game_type: str = CARD_GAME_TYPE
    capacity: int = 4
    participants: list[str] = field(default_factory=list)
    status: SessionStatus = SessionStatus.PENDING

    def is_full(self) -> bool:
        """Check if session is at capacity."""
        return len(self.participants) >= self.capacity

    def has_participant(self, identity: str) -> bool:
        """Check if identity already holds a seat."""
        return identity in self.participants

    def is_owner(self, identity: str) -> bool:
        """Check if identity created the session."""
        return self.owner == identity

    def is_card_game(self) -> bool:
        """Check if the session plays the card game."""
        return (self.game_type or CARD_GAME_TYPE) == CARD_GAME_TYPE

    def player_index(self, identity: str) -> int:
        """Return the seat of ``identity`` (case-insensitive) or -1."""
        wanted = identity.strip().lower()
        for index, participant in enumerate(self.participants):
            if participant.lower() == wanted:
                return index
        return -1

    def summary(self) -> dict[str, Any]:
        """Summary used in session lists."""
        return {
            "code": self.code,
            "owner": self.owner,
            "game_type": self.game_type,
            "status": self.status.value,
            "participant_count": len(self.participants),
            "capacity": self.capacity,
        }

    def __str__(self) -> str:
        """Return string representation."""
        return (
            f"Session {self.code}: {len(self.participants)}/{self.capacity} players, "
            f"owner {self.owner}, state {self.status.value}"
        )
