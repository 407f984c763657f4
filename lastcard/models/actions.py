"""Game actions accepted by the engine.

The union is closed: the engine raises ``TypeError`` for anything else.
"""

from dataclasses import dataclass

from lastcard.models.enums import ActionKind, Color


@dataclass(frozen=True)
class PlayCard:
    """Play ``card_id`` from the hand; wilds need ``chosen_color``."""

    player_index: int
    card_id: str
    chosen_color: Color | None = None

    kind = ActionKind.PLAY


@dataclass(frozen=True)
class DrawCard:
    """Take the head of the draw pile. Does not end the turn."""

    player_index: int

    kind = ActionKind.DRAW


@dataclass(frozen=True)
class DeclareLowCard:
    """Announce holding a single card."""

    player_index: int

    kind = ActionKind.DECLARE


GameAction = PlayCard | DrawCard | DeclareLowCard
