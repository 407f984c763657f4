"""Card game state machine.

Every transition takes a GameState and an action and returns an
ActionResult pairing the next state with whether the action was accepted.
States are frozen, so the input is never mutated and a rejected action
hands back the very same object.
"""

import random
from dataclasses import dataclass, replace
from typing import Any

from lastcard.constants import (
    DECK_SIZE,
    DRAW_TWO_PENALTY,
    HAND_SIZE,
    MAX_STARTING_CARD_RETRIES,
    MIN_PLAYERS,
    WILD_DRAW_FOUR_PENALTY,
)
from lastcard.models.actions import DeclareLowCard, DrawCard, GameAction, PlayCard
from lastcard.models.card import Card, build_deck, can_play
from lastcard.models.enums import ActionKind, Color, GameStatus, Rank, RejectReason
from lastcard.models.game_state import GameState, LastAction, PlayerState

__all__ = [
    "ActionResult",
    "GameSetupError",
    "apply_action",
    "can_play",
    "card_count",
    "create_initial_state",
    "next_player_index",
    "playable_cards",
    "top_card",
    "turn_info",
]

_PENALTIES = {
    Rank.DRAW_TWO: DRAW_TWO_PENALTY,
    Rank.WILD_DRAW_FOUR: WILD_DRAW_FOUR_PENALTY,
}


class GameSetupError(ValueError):
    """Raised when a game cannot be dealt for the requested table."""


@dataclass(frozen=True)
class ActionResult:
    """Outcome of applying one action.

    Attributes:
        state: Next state (the input state itself when rejected)
        accepted: Whether the action changed the game
        reason: Why it was rejected, None when accepted

    """

    state: GameState
    accepted: bool
    reason: RejectReason | None = None


def _accept(state: GameState) -> ActionResult:
    return ActionResult(state=state, accepted=True)


def _reject(state: GameState, reason: RejectReason) -> ActionResult:
    return ActionResult(state=state, accepted=False, reason=reason)


def create_initial_state(
    num_players: int,
    names: list[str] | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """Shuffle a full deck and deal a new game.

    Each player receives seven contiguous cards in shuffle order; the rest
    becomes the draw pile. While the head of the draw pile is a wild it is
    cycled to the bottom (a bounded number of times), then the head becomes
    the starting discard.

    Args:
        num_players: Seats at the table (at least two)
        names: Display names by seat; missing ones default to "Player N"
        rng: Random source, mainly for reproducible tests

    Raises:
        GameSetupError: If the table is too small or too large to deal

    """
    if num_players < MIN_PLAYERS:
        raise GameSetupError(f"A game needs at least {MIN_PLAYERS} players, got {num_players}")
    if num_players * HAND_SIZE >= DECK_SIZE:
        raise GameSetupError(f"Cannot deal {HAND_SIZE} cards to {num_players} players")

    names = list(names or [])
    deck = build_deck()
    (rng or random.Random()).shuffle(deck)

    players = tuple(
        PlayerState(
            name=names[seat] if seat < len(names) else f"Player {seat + 1}",
            hand=tuple(deck[seat * HAND_SIZE : (seat + 1) * HAND_SIZE]),
        )
        for seat in range(num_players)
    )

    draw_pile = deck[num_players * HAND_SIZE :]
    first_card = draw_pile.pop(0)
    retries = 0
    while first_card.is_wild() and draw_pile and retries < MAX_STARTING_CARD_RETRIES:
        draw_pile.append(first_card)
        first_card = draw_pile.pop(0)
        retries += 1

    return GameState(
        players=players,
        draw_pile=tuple(draw_pile),
        discard_pile=(first_card,),
    )


def top_card(state: GameState) -> Card | None:
    """Return the active card on the discard pile."""
    return state.top_card


def card_count(state: GameState) -> int:
    """Return the total number of cards in play, constant for a whole game."""
    return state.card_count()


def next_player_index(state: GameState, from_index: int | None = None, steps: int = 1) -> int:
    """Return the seat ``steps`` places away in the current direction."""
    start = state.current_player_index if from_index is None else from_index
    return _step(start, state.direction, steps, len(state.players))


def _step(index: int, direction: int, steps: int, num_players: int) -> int:
    return (index + direction * steps) % num_players


def apply_action(state: GameState, action: GameAction) -> ActionResult:
    """Apply a game action.

    Finished games are terminal: every action is rejected with the state
    returned unchanged.

    Raises:
        TypeError: If ``action`` is not a PlayCard, DrawCard or DeclareLowCard

    """
    if isinstance(action, PlayCard):
        handler = _play_card
    elif isinstance(action, DrawCard):
        handler = _draw_card
    elif isinstance(action, DeclareLowCard):
        handler = _declare_low_card
    else:
        raise TypeError(f"Unknown game action: {action!r}")

    if state.is_finished:
        return _reject(state, RejectReason.GAME_FINISHED)
    if not 0 <= action.player_index < len(state.players):
        return _reject(state, RejectReason.UNKNOWN_PLAYER)

    return handler(state, action)


def _play_card(state: GameState, action: PlayCard) -> ActionResult:
    seat = action.player_index
    if seat != state.current_player_index:
        return _reject(state, RejectReason.NOT_YOUR_TURN)

    player = state.players[seat]
    position = player.find_card(action.card_id)
    if position == -1:
        return _reject(state, RejectReason.CARD_NOT_IN_HAND)

    card = player.hand[position]
    if not can_play(card, state.top_card):
        return _reject(state, RejectReason.ILLEGAL_CARD)

    discarded = card
    if card.is_wild():
        if action.chosen_color is None or action.chosen_color == Color.WILD:
            return _reject(state, RejectReason.COLOR_REQUIRED)
        discarded = card.with_color(action.chosen_color)

    player = player.without_card(position)
    if len(player.hand) != 1:
        player = replace(player, low_card_declared=False)

    players = list(state.players)
    players[seat] = player
    discard_pile = state.discard_pile + (discarded,)
    last_action = LastAction(kind=ActionKind.PLAY, player_index=seat, card=discarded)

    if not player.hand:
        return _accept(
            replace(
                state,
                players=tuple(players),
                discard_pile=discard_pile,
                status=GameStatus.FINISHED,
                winner_index=seat,
                last_action=last_action,
            )
        )

    num_players = len(players)
    direction = state.direction
    draw_pile = state.draw_pile

    if card.rank in _PENALTIES:
        victim = _step(seat, direction, 1, num_players)
        penalty = _PENALTIES[card.rank]
        drawn, draw_pile = draw_pile[:penalty], draw_pile[penalty:]
        players[victim] = players[victim].with_cards(drawn)
        next_index = _step(victim, direction, 1, num_players)
    elif card.rank == Rank.SKIP:
        next_index = _step(seat, direction, 2, num_players)
    elif card.rank == Rank.REVERSE:
        direction = -direction
        next_index = _step(seat, direction, 1, num_players)
    else:
        next_index = _step(seat, direction, 1, num_players)

    return _accept(
        replace(
            state,
            players=tuple(players),
            draw_pile=draw_pile,
            discard_pile=discard_pile,
            current_player_index=next_index,
            direction=direction,
            last_action=last_action,
        )
    )


def _draw_card(state: GameState, action: DrawCard) -> ActionResult:
    seat = action.player_index
    if seat != state.current_player_index:
        return _reject(state, RejectReason.NOT_YOUR_TURN)

    # An empty draw pile is not reshuffled; the draw is recorded with no card.
    if not state.draw_pile:
        return _accept(
            replace(state, last_action=LastAction(kind=ActionKind.DRAW, player_index=seat))
        )

    card = state.draw_pile[0]
    players = list(state.players)
    players[seat] = players[seat].with_cards((card,))
    return _accept(
        replace(
            state,
            players=tuple(players),
            draw_pile=state.draw_pile[1:],
            last_action=LastAction(kind=ActionKind.DRAW, player_index=seat, card=card),
        )
    )


def _declare_low_card(state: GameState, action: DeclareLowCard) -> ActionResult:
    seat = action.player_index
    player = state.players[seat]
    if len(player.hand) != 1:
        return _reject(state, RejectReason.NOT_ONE_CARD)

    players = list(state.players)
    players[seat] = replace(player, low_card_declared=True)
    return _accept(
        replace(
            state,
            players=tuple(players),
            last_action=LastAction(kind=ActionKind.DECLARE, player_index=seat),
        )
    )


def playable_cards(state: GameState, player_index: int) -> list[Card]:
    """Return the cards ``player_index`` could legally play right now."""
    if state.is_finished or player_index != state.current_player_index:
        return []
    top = state.top_card
    return [card for card in state.players[player_index].hand if can_play(card, top)]


def turn_info(state: GameState) -> dict[str, Any]:
    """Summarize the current turn for clients and bots."""
    seat = state.current_player_index
    player = state.players[seat]
    return {
        "player_index": seat,
        "player_name": player.name,
        "playable_card_ids": [card.id for card in playable_cards(state, seat)],
        "can_draw": bool(state.draw_pile) and not state.is_finished,
        "must_declare_low_card": len(player.hand) == 1 and not player.low_card_declared,
    }
