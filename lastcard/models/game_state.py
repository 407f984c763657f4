"""Immutable snapshot of one card game."""

from dataclasses import dataclass, field, replace
from typing import Any

from lastcard.models.card import Card
from lastcard.models.enums import ActionKind, GameStatus


@dataclass(frozen=True)
class PlayerState:
    """A seated player.

    Attributes:
        name: Display name (the participant's identity when seeded by the gateway)
        hand: Cards held; order is presentation-only
        low_card_declared: Whether the player announced holding a single card

    """

    name: str
    hand: tuple[Card, ...] = ()
    low_card_declared: bool = False

    def find_card(self, card_id: str) -> int:
        """Return the hand position of ``card_id`` or -1."""
        for position, card in enumerate(self.hand):
            if card.id == card_id:
                return position
        return -1

    def without_card(self, position: int) -> "PlayerState":
        """Return a copy with the card at ``position`` removed."""
        return replace(self, hand=self.hand[:position] + self.hand[position + 1 :])

    def with_cards(self, cards: tuple[Card, ...]) -> "PlayerState":
        """Return a copy with ``cards`` appended to the hand."""
        return replace(self, hand=self.hand + cards)


@dataclass(frozen=True)
class LastAction:
    """The most recently applied action.

    ``card`` is the discarded card as recorded (wilds carry the chosen color),
    the drawn card, or None for a declaration or a draw from an empty pile.
    """

    kind: ActionKind
    player_index: int
    card: Card | None = None


@dataclass(frozen=True)
class GameState:
    """Authoritative state of one game.

    Attributes:
        players: Seats in fixed order
        draw_pile: Face-down cards, head first
        discard_pile: Played cards, last one is the active top card
        current_player_index: Seat whose turn it is
        direction: +1 clockwise, -1 after an odd number of reverses
        status: ACTIVE until a hand empties
        winner_index: Seat of the winner once finished
        last_action: Most recent accepted action

    """

    players: tuple[PlayerState, ...]
    draw_pile: tuple[Card, ...]
    discard_pile: tuple[Card, ...]
    current_player_index: int = 0
    direction: int = 1
    status: GameStatus = GameStatus.ACTIVE
    winner_index: int | None = None
    last_action: LastAction | None = field(default=None)

    @property
    def top_card(self) -> Card | None:
        """The active card on the discard pile."""
        return self.discard_pile[-1] if self.discard_pile else None

    @property
    def is_finished(self) -> bool:
        """Check if someone has emptied their hand."""
        return self.status == GameStatus.FINISHED

    def card_count(self) -> int:
        """Total cards across hands and both piles."""
        return (
            sum(len(player.hand) for player in self.players)
            + len(self.draw_pile)
            + len(self.discard_pile)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for broadcasting.

        The draw pile is reduced to a count so clients cannot see upcoming cards.
        """
        last_action: dict[str, Any] | None = None
        if self.last_action:
            last_action = {
                "kind": self.last_action.kind.value,
                "player_index": self.last_action.player_index,
                "card": self.last_action.card.to_dict() if self.last_action.card else None,
            }
        return {
            "players": [
                {
                    "index": index,
                    "name": player.name,
                    "hand": [card.to_dict() for card in player.hand],
                    "hand_size": len(player.hand),
                    "low_card_declared": player.low_card_declared,
                }
                for index, player in enumerate(self.players)
            ],
            "draw_pile_count": len(self.draw_pile),
            "discard_pile": [card.to_dict() for card in self.discard_pile],
            "top_card": self.top_card.to_dict() if self.top_card else None,
            "current_player_index": self.current_player_index,
            "direction": self.direction,
            "status": self.status.value,
            "winner_index": self.winner_index,
            "last_action": last_action,
        }
