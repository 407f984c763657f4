"""Game and lobby domain models."""

from lastcard.models.actions import DeclareLowCard, DrawCard, GameAction, PlayCard
from lastcard.models.card import Card, build_deck, can_play
from lastcard.models.enums import (
    ActionKind,
    Color,
    Command,
    GameStatus,
    LobbyError,
    Rank,
    RejectReason,
    SessionStatus,
)
from lastcard.models.game_state import GameState, LastAction, PlayerState
from lastcard.models.session import Session

__all__ = [
    "ActionKind",
    "Card",
    "Color",
    "Command",
    "DeclareLowCard",
    "DrawCard",
    "GameAction",
    "GameState",
    "GameStatus",
    "LastAction",
    "LobbyError",
    "PlayCard",
    "PlayerState",
    "Rank",
    "RejectReason",
    "Session",
    "SessionStatus",
    "build_deck",
    "can_play",
]
