"""Enums for cards, game lifecycle and WebSocket commands."""

from enum import Enum, StrEnum


class Color(str, Enum):
    """Card colors. Colorless cards carry ``WILD`` until played."""

    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    WILD = "wild"

    @classmethod
    def suits(cls) -> tuple["Color", ...]:
        """Return the four real colors (everything but ``WILD``)."""
        return (cls.RED, cls.GREEN, cls.BLUE, cls.YELLOW)


class Rank(str, Enum):
    """Card ranks."""

    ZERO = "0"
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    SKIP = "skip"
    DRAW_TWO = "+2"
    REVERSE = "reverse"
    WILD = "wild"
    WILD_DRAW_FOUR = "+4"

    def is_number(self) -> bool:
        """Check if rank is a plain number (0-9)."""
        return self.value.isdigit()


class GameStatus(str, Enum):
    """Card game states during the lifecycle."""

    ACTIVE = "active"
    FINISHED = "finished"


class SessionStatus(str, Enum):
    """Lobby session states."""

    PENDING = "pending"
    ACTIVE = "active"


class ActionKind(str, Enum):
    """Game actions a seated player can take."""

    PLAY = "PLAY"
    DRAW = "DRAW"
    DECLARE = "DECLARE"


class RejectReason(StrEnum):
    """Why the engine refused an action."""

    GAME_FINISHED = "game_finished"
    UNKNOWN_PLAYER = "unknown_player"
    NOT_YOUR_TURN = "not_your_turn"
    CARD_NOT_IN_HAND = "card_not_in_hand"
    ILLEGAL_CARD = "illegal_card"
    COLOR_REQUIRED = "color_required"
    NOT_ONE_CARD = "not_one_card"


class LobbyError(StrEnum):
    """Failure reasons for lobby operations."""

    NOT_FOUND = "error.sessionNotFound"
    UNAUTHORIZED = "error.notSessionOwner"
    CAPACITY = "error.sessionFull"
    CONFLICT = "error.alreadyParticipant"
    NOT_PARTICIPANT = "error.notParticipant"
    INVALID_IDENTITY = "error.invalidIdentity"


class Command(str, Enum):
    """WebSocket commands."""

    # Commands sent to clients
    CONNECTED = "CONNECTED"
    SESSION_LIST = "SESSION_LIST"
    SESSION_CREATED = "SESSION_CREATED"
    SESSION_JOINED = "SESSION_JOINED"
    SESSION_ACTIVATED = "SESSION_ACTIVATED"
    SESSION_LEFT = "SESSION_LEFT"
    SESSION_DELETED = "SESSION_DELETED"
    PARTICIPANT_LEFT = "PARTICIPANT_LEFT"
    GAME_STATE = "GAME_STATE"

    # Commands from clients
    LIST_SESSIONS = "LIST_SESSIONS"
    CREATE_SESSION = "CREATE_SESSION"
    JOIN_SESSION = "JOIN_SESSION"
    ACTIVATE_SESSION = "ACTIVATE_SESSION"
    LEAVE_SESSION = "LEAVE_SESSION"
    DELETE_SESSION = "DELETE_SESSION"
    SUBSCRIBE_GAME = "SUBSCRIBE_GAME"
    GAME_ACTION = "GAME_ACTION"
