"""In-memory store of running card games, keyed by session code."""

from lastcard.models.game_state import GameState


class EngineRegistry:
    """Maps session codes to their current GameState.

    Starts empty and is never persisted; entries are discarded when their
    session is destroyed or reset.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._states: dict[str, GameState] = {}

    def get(self, code: str) -> GameState | None:
        """Get the game for a session code."""
        return self._states.get(code)

    def put(self, code: str, state: GameState) -> None:
        """Store the latest state for a session code."""
        self._states[code] = state

    def discard(self, code: str) -> bool:
        """Drop the game for a session code. Returns True if one existed."""
        return self._states.pop(code, None) is not None

    def clear(self) -> None:
        """Drop every game."""
        self._states.clear()

    def __contains__(self, code: object) -> bool:
        return code in self._states

    def __len__(self) -> int:
        return len(self._states)
