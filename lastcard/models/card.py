"""Card model, deck composition and the legality rule."""

from dataclasses import dataclass, replace

from lastcard.models.enums import Color, Rank

_NUMBER_RANKS = tuple(rank for rank in Rank if rank.is_number())
_COLORED_ACTION_RANKS = (Rank.SKIP, Rank.DRAW_TWO, Rank.REVERSE)
_COLORLESS_RANKS = (Rank.WILD, Rank.WILD_DRAW_FOUR)
_COLORLESS_COPIES = 4


@dataclass(frozen=True)
class Card:
    """A single card instance.

    Attributes:
        id: Identifier unique within one deck
        color: Card color (``WILD`` for colorless cards still in play)
        rank: Card rank

    """

    id: str
    color: Color
    rank: Rank

    def is_wild(self) -> bool:
        """Check if card is colorless (wild or +4) and may be played on anything."""
        return self.color == Color.WILD

    def with_color(self, color: Color) -> "Card":
        """Return a copy recolored, used when a wild lands on the discard pile."""
        return replace(self, color=color)

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "color": self.color.value, "rank": self.rank.value}

    def __str__(self) -> str:
        """Return string representation of card."""
        if self.is_wild():
            return self.rank.value.title()
        return f"{self.color.value.title()} {self.rank.value}"


def _make_copies(color: Color, rank: Rank, count: int) -> list[Card]:
    return [Card(f"{color.value}-{rank.value}-{copy}", color, rank) for copy in range(count)]


def build_deck() -> list[Card]:
    """Build the full, unshuffled 108-card deck.

    Per color: one 0, two each of 1-9, and two each of skip, +2 and reverse
    (25 cards). Plus four colorless wilds and four colorless +4s.
    """
    cards: list[Card] = []
    for color in Color.suits():
        for rank in _NUMBER_RANKS:
            cards.extend(_make_copies(color, rank, 1 if rank == Rank.ZERO else 2))
        for rank in _COLORED_ACTION_RANKS:
            cards.extend(_make_copies(color, rank, 2))
    for rank in _COLORLESS_RANKS:
        cards.extend(_make_copies(Color.WILD, rank, _COLORLESS_COPIES))
    return cards


def can_play(card: Card, top_card: Card | None) -> bool:
    """Check if ``card`` may be played on ``top_card``.

    Colorless cards are always playable; anything else must match the top
    card's color or rank.
    """
    if top_card is None:
        return False
    if card.is_wild():
        return True
    return card.color == top_card.color or card.rank == top_card.rank
