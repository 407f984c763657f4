"""Inbound message validation and outbound message envelope."""

from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from lastcard.models.actions import DeclareLowCard, DrawCard, GameAction, PlayCard
from lastcard.models.enums import Color, Command

__all__ = [
    "LOBBY_REPLIES",
    "ActivateSessionMessage",
    "ClientMessage",
    "CreateSessionMessage",
    "DeclareAction",
    "DeleteSessionMessage",
    "DrawAction",
    "GameActionMessage",
    "JoinSessionMessage",
    "LeaveSessionMessage",
    "ListSessionsMessage",
    "PlayAction",
    "ServerMessage",
    "SubscribeGameMessage",
    "parse_client_message",
]

SessionCode = Annotated[str, Field(min_length=1, max_length=64)]


# ---- Game actions ----


class PlayAction(BaseModel):
    """Play a card from the hand."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["PLAY"]
    card_id: str = Field(..., min_length=1)
    chosen_color: Color | None = None

    @field_validator("chosen_color")
    @classmethod
    def _real_color(cls, value: Color | None) -> Color | None:
        if value == Color.WILD:
            raise ValueError("chosen_color must be red, green, blue or yellow")
        return value

    def to_action(self, player_index: int) -> GameAction:
        """Convert to the engine action for ``player_index``."""
        return PlayCard(
            player_index=player_index, card_id=self.card_id, chosen_color=self.chosen_color
        )


class DrawAction(BaseModel):
    """Draw one card."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["DRAW"]

    def to_action(self, player_index: int) -> GameAction:
        """Convert to the engine action for ``player_index``."""
        return DrawCard(player_index=player_index)


class DeclareAction(BaseModel):
    """Declare holding a single card."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["DECLARE"]

    def to_action(self, player_index: int) -> GameAction:
        """Convert to the engine action for ``player_index``."""
        return DeclareLowCard(player_index=player_index)


ActionPayload = Annotated[PlayAction | DrawAction | DeclareAction, Field(discriminator="kind")]


# ---- Client messages ----


class BaseClientMessage(BaseModel):
    """Fields shared by every client message.

    ``token`` is the per-connection token issued on connect. ``identity`` is
    optional; when given it must match the identity bound to the token.
    Any ``player_index`` a client sends is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    token: str | None = None
    identity: str | None = None


class ListSessionsMessage(BaseClientMessage):
    """Request the pending session list."""

    command: Literal["LIST_SESSIONS"]
    game_type: str | None = None


class CreateSessionMessage(BaseClientMessage):
    """Create a session."""

    command: Literal["CREATE_SESSION"]
    game_type: str | None = Field(default=None, max_length=32)


class JoinSessionMessage(BaseClientMessage):
    """Join a session."""

    command: Literal["JOIN_SESSION"]
    code: SessionCode


class ActivateSessionMessage(BaseClientMessage):
    """Start a pending session."""

    command: Literal["ACTIVATE_SESSION"]
    code: SessionCode


class LeaveSessionMessage(BaseClientMessage):
    """Leave a session."""

    command: Literal["LEAVE_SESSION"]
    code: SessionCode


class DeleteSessionMessage(BaseClientMessage):
    """Delete an owned session."""

    command: Literal["DELETE_SESSION"]
    code: SessionCode


class SubscribeGameMessage(BaseClientMessage):
    """Subscribe to a session's card game."""

    command: Literal["SUBSCRIBE_GAME"]
    code: SessionCode


class GameActionMessage(BaseClientMessage):
    """Act in a session's card game."""

    command: Literal["GAME_ACTION"]
    code: SessionCode
    action: ActionPayload


ClientMessage = Annotated[
    ListSessionsMessage
    | CreateSessionMessage
    | JoinSessionMessage
    | ActivateSessionMessage
    | LeaveSessionMessage
    | DeleteSessionMessage
    | SubscribeGameMessage
    | GameActionMessage,
    Field(discriminator="command"),
]

_client_message_adapter: TypeAdapter[Any] = TypeAdapter(ClientMessage)


def parse_client_message(data: Any) -> BaseClientMessage:
    """Validate a decoded JSON frame.

    Raises:
        pydantic.ValidationError: If the frame is not a known, well-formed message

    """
    return _client_message_adapter.validate_python(data)


# Reply command a lobby request is acknowledged with (success or failure)
LOBBY_REPLIES: dict[str, Command] = {
    Command.CREATE_SESSION.value: Command.SESSION_CREATED,
    Command.JOIN_SESSION.value: Command.SESSION_JOINED,
    Command.ACTIVATE_SESSION.value: Command.SESSION_ACTIVATED,
    Command.LEAVE_SESSION.value: Command.SESSION_LEFT,
    Command.DELETE_SESSION.value: Command.SESSION_DELETED,
}


# ---- Server messages ----


@dataclass
class ServerMessage:
    """Message sent from server to clients via WebSocket.

    Attributes:
        command: Command type
        content: Message payload (varies by command)

    """

    command: Command
    content: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "command": self.command.value,
            "content": self.content,
        }
