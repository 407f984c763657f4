"""Real-time gateway binding connections to sessions and games."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from random import Random
from typing import Any, Protocol

from pydantic import ValidationError

from lastcard.api.messages import (
    LOBBY_REPLIES,
    ActivateSessionMessage,
    BaseClientMessage,
    CreateSessionMessage,
    DeleteSessionMessage,
    GameActionMessage,
    JoinSessionMessage,
    LeaveSessionMessage,
    ListSessionsMessage,
    ServerMessage,
    SubscribeGameMessage,
    parse_client_message,
)
from lastcard.constants import MIN_PLAYERS, NACK_CODE
from lastcard.engine import GameSetupError, apply_action, create_initial_state
from lastcard.models.enums import Command, LobbyError
from lastcard.models.game_state import GameState
from lastcard.services.engine_registry import EngineRegistry
from lastcard.services.identity import (
    IdentityProvider,
    TrustedHeaderIdentityProvider,
    issue_token,
    normalize_identity,
)
from lastcard.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

_SEND_ERRORS = (RuntimeError, ConnectionError, OSError)


class Connection(Protocol):
    """A client connection able to receive JSON messages."""

    connection_id: str

    async def send_json(self, data: dict[str, Any]) -> None:
        """Send one JSON message."""


@dataclass
class ConnectionContext:
    """Server-side view of a connection.

    Attributes:
        connection: Transport connection
        identity: Verified, normalized identity bound at connect time
        token: Token the client must send with every privileged message
        groups: Session codes whose broadcasts this connection receives

    """

    connection: Connection
    identity: str
    token: str
    groups: set[str] = field(default_factory=set)

    @property
    def connection_id(self) -> str:
        """Id of the underlying transport connection."""
        return self.connection.connection_id


class RealtimeGateway:
    """Dispatches client messages to the lobby and the card engine.

    Handles:
    - Identity binding and per-connection tokens
    - Broadcast groups, one per session code
    - Lobby operations with targeted acknowledgements
    - One GameState per card game session, created on first subscribe

    Messages for one session code are handled one at a time (engine
    transition and broadcast included), so every subscriber sees states in
    the order they were applied.
    """

    def __init__(
        self,
        registry: SessionRegistry | None = None,
        engines: EngineRegistry | None = None,
        identity_provider: IdentityProvider | None = None,
        rng: Random | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            registry: Lobby directory
            engines: Store of running games
            identity_provider: Verifies identities on connect and on every message
            rng: Random source for dealing, mainly for tests

        """
        self.registry = registry or SessionRegistry()
        self.engines = engines or EngineRegistry()
        self.identity_provider: IdentityProvider = (
            identity_provider or TrustedHeaderIdentityProvider()
        )
        self.rng = rng
        # connection_id -> context
        self.connections: dict[str, ConnectionContext] = {}
        # session code -> connection ids
        self.groups: dict[str, set[str]] = {}
        self._lobby_lock = asyncio.Lock()
        # session code -> lock, only for sessions that exist
        self._session_locks: dict[str, asyncio.Lock] = {}
        self._handlers: dict[str, Callable[[ConnectionContext, str, Any], Awaitable[None]]] = {
            Command.CREATE_SESSION.value: self._handle_create,
            Command.JOIN_SESSION.value: self._handle_join,
            Command.ACTIVATE_SESSION.value: self._handle_activate,
            Command.LEAVE_SESSION.value: self._handle_leave,
            Command.DELETE_SESSION.value: self._handle_delete,
            Command.SUBSCRIBE_GAME.value: self._handle_subscribe,
            Command.GAME_ACTION.value: self._handle_action,
        }

        self.registry.on_destroy(self._on_session_destroyed)

    # ---- Connection lifecycle ----

    async def connect(self, connection: Connection, identity: str | None) -> str | None:
        """Bind a connection to a verified identity.

        Sends CONNECTED with the issued token, then the pending session list.

        Returns:
            The token, or None if the identity was not verified

        """
        verified = self.identity_provider.verify(identity or "")
        if not verified:
            logger.warning("Connection %s refused: unverified identity", connection.connection_id)
            return None

        context = ConnectionContext(connection=connection, identity=verified, token=issue_token())
        self.connections[connection.connection_id] = context
        logger.info("Connection %s bound to %s", connection.connection_id, verified)

        await self._send(
            context, ServerMessage(Command.CONNECTED, {"identity": verified, "token": context.token})
        )
        await self._send(context, self._session_list_message())
        return context.token

    def disconnect(self, connection: Connection) -> None:
        """Forget a connection, its token and its broadcast group memberships."""
        context = self.connections.pop(connection.connection_id, None)
        if not context:
            return
        for code in context.groups:
            self._remove_from_group(code, context.connection_id)
        logger.info("Connection %s (%s) disconnected", context.connection_id, context.identity)

    # ---- Dispatch ----

    async def handle_message(self, connection: Connection, data: Any) -> None:
        """Validate and dispatch one decoded client message."""
        context = self.connections.get(connection.connection_id)
        if not context:
            logger.warning("Message from unbound connection %s ignored", connection.connection_id)
            return

        command = data.get("command") if isinstance(data, dict) else None
        try:
            message = parse_client_message(data)
        except ValidationError as e:
            logger.warning(
                "Invalid %s message from %s (%d errors)", command, context.identity, e.error_count()
            )
            if command in LOBBY_REPLIES:
                await self._nack(context, LOBBY_REPLIES[command], None)
            return

        if isinstance(message, ListSessionsMessage):
            await self._send(context, self._session_list_message(message.game_type))
            return

        identity = self._authenticate(context, message)
        if identity is None:
            logger.warning("Unauthenticated %s from connection %s", command, context.connection_id)
            if command in LOBBY_REPLIES:
                await self._nack(context, LOBBY_REPLIES[command], LobbyError.INVALID_IDENTITY)
            return

        await self._handlers[command](context, identity, message)

    def _authenticate(self, context: ConnectionContext, message: BaseClientMessage) -> str | None:
        if not message.token:
            return None
        if not secrets.compare_digest(message.token.encode(), context.token.encode()):
            return None
        verified = self.identity_provider.verify(context.identity)
        if verified is None:
            return None
        if message.identity and normalize_identity(message.identity) != verified:
            return None
        return verified

    # ---- Lobby operations ----

    async def _handle_create(
        self, context: ConnectionContext, identity: str, message: CreateSessionMessage
    ) -> None:
        async with self._lobby_lock:
            result = self.registry.create(identity, message.game_type)
            if not result.ok or not result.session:
                await self._nack(context, Command.SESSION_CREATED, result.error)
                return

            self._add_to_group(result.session.code, context)
            await self._send(
                context,
                ServerMessage(
                    Command.SESSION_CREATED,
                    {"code": result.session.code, "game_type": result.session.game_type},
                ),
            )
            await self._broadcast_session_list()

    async def _handle_join(
        self, context: ConnectionContext, identity: str, message: JoinSessionMessage
    ) -> None:
        async with self._lobby_lock, self._session_lock(message.code):
            result = self.registry.join(identity, message.code)
            if not result.ok:
                await self._nack(context, Command.SESSION_JOINED, result.error)
                return

            self._add_to_group(message.code, context)
            await self._send(context, ServerMessage(Command.SESSION_JOINED, {"code": message.code}))
            await self._broadcast_session_list()

    async def _handle_activate(
        self, context: ConnectionContext, identity: str, message: ActivateSessionMessage
    ) -> None:
        async with self._lobby_lock, self._session_lock(message.code):
            result = self.registry.activate(identity, message.code)
            if not result.ok or not result.session:
                await self._nack(context, Command.SESSION_ACTIVATED, result.error)
                return

            self._add_to_group(message.code, context)
            await self._broadcast_to_group(
                message.code,
                ServerMessage(
                    Command.SESSION_ACTIVATED,
                    {"code": message.code, "game_type": result.session.game_type},
                ),
            )
            await self._broadcast_session_list()

    async def _handle_leave(
        self, context: ConnectionContext, identity: str, message: LeaveSessionMessage
    ) -> None:
        code = message.code
        async with self._lobby_lock, self._session_lock(code):
            result = self.registry.leave(identity, code)
            if not result.ok:
                await self._nack(context, Command.SESSION_LEFT, result.error)
                return

            # The game is reset; the next subscribe deals for the remaining participants.
            self._discard_game(code)
            self._remove_identity_from_group(code, identity)

            await self._send(context, ServerMessage(Command.SESSION_LEFT, {"code": code}))
            await self._broadcast_to_group(
                code, ServerMessage(Command.PARTICIPANT_LEFT, {"code": code, "identity": identity})
            )
            if result.destroyed:
                self._drop_group(code)
            await self._broadcast_session_list()

    async def _handle_delete(
        self, context: ConnectionContext, identity: str, message: DeleteSessionMessage
    ) -> None:
        code = message.code
        async with self._lobby_lock, self._session_lock(code):
            result = self.registry.delete(identity, code)
            if not result.ok:
                await self._nack(context, Command.SESSION_DELETED, result.error)
                return

            self._drop_group(code)
            await self._send(context, ServerMessage(Command.SESSION_DELETED, {"code": code}))
            await self._broadcast_session_list()

    # ---- Card game ----

    async def _handle_subscribe(
        self, context: ConnectionContext, identity: str, message: SubscribeGameMessage
    ) -> None:
        code = message.code
        async with self._session_lock(code):
            session = self.registry.get(code)
            if not session:
                logger.warning("Subscribe from %s: session %s not found", identity, code)
                return
            if not session.is_card_game():
                logger.warning("Subscribe from %s: session %s plays %s", identity, code, session.game_type)
                return

            state = self.engines.get(code)
            if state is None:
                if len(session.participants) < MIN_PLAYERS:
                    logger.info("Subscribe to %s deferred: not enough participants", code)
                    return
                try:
                    state = create_initial_state(
                        len(session.participants), list(session.participants), rng=self.rng
                    )
                except GameSetupError as e:
                    logger.warning("Cannot deal game for session %s: %s", code, e)
                    return
                self.engines.put(code, state)
                logger.info("Game created for session %s (%d players)", code, len(state.players))

            self._add_to_group(code, context)
            await self._broadcast_game_state(code, state)

    async def _handle_action(
        self, context: ConnectionContext, identity: str, message: GameActionMessage
    ) -> None:
        code = message.code
        async with self._session_lock(code):
            session = self.registry.get(code)
            state = self.engines.get(code)
            if not session or state is None:
                logger.warning("Action from %s: no game for session %s", identity, code)
                return

            player_index = session.player_index(identity)
            if player_index == -1:
                logger.warning("Action from %s: not a participant of %s", identity, code)
                return

            action = message.action.to_action(player_index)
            result = apply_action(state, action)
            if not result.accepted:
                logger.debug(
                    "Action %s by seat %d in %s rejected: %s",
                    action.kind.value,
                    player_index,
                    code,
                    result.reason,
                )
                return

            self.engines.put(code, result.state)
            logger.info("Seat %d played %s in %s", player_index, action.kind.value, code)
            await self._broadcast_game_state(code, result.state)

    def get_game(self, code: str) -> GameState | None:
        """Get the running game for a session code."""
        return self.engines.get(code)

    def _session_lock(self, code: str) -> contextlib.AbstractAsyncContextManager[Any]:
        """Lock serializing work on one session; unknown codes get no lock.

        Handlers re-check the session under the lock, so a code that is
        unknown here is rejected without touching the lock map.
        """
        if self.registry.get(code) is None:
            return contextlib.nullcontext()
        return self._session_locks.setdefault(code, asyncio.Lock())

    def _on_session_destroyed(self, code: str) -> None:
        self._discard_game(code)
        self._session_locks.pop(code, None)

    def _discard_game(self, code: str) -> None:
        if self.engines.discard(code):
            logger.info("Game for session %s discarded", code)

    # ---- Broadcast groups ----

    def _add_to_group(self, code: str, context: ConnectionContext) -> None:
        self.groups.setdefault(code, set()).add(context.connection_id)
        context.groups.add(code)

    def _remove_from_group(self, code: str, connection_id: str) -> None:
        members = self.groups.get(code)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.groups[code]

    def _remove_identity_from_group(self, code: str, identity: str) -> None:
        for connection_id in list(self.groups.get(code, ())):
            context = self.connections.get(connection_id)
            if context and context.identity == identity:
                context.groups.discard(code)
                self._remove_from_group(code, connection_id)

    def _drop_group(self, code: str) -> None:
        for connection_id in self.groups.pop(code, set()):
            context = self.connections.get(connection_id)
            if context:
                context.groups.discard(code)

    def group_members(self, code: str) -> set[str]:
        """Connection ids subscribed to a session code."""
        return set(self.groups.get(code, ()))

    # ---- Sending ----

    def _session_list_message(self, game_type: str | None = None) -> ServerMessage:
        sessions = [session.summary() for session in self.registry.list(game_type)]
        return ServerMessage(Command.SESSION_LIST, {"sessions": sessions})

    async def _nack(
        self, context: ConnectionContext, command: Command, error: LobbyError | None
    ) -> None:
        content: dict[str, Any] = {"code": NACK_CODE}
        if error:
            content["error"] = error.value
        await self._send(context, ServerMessage(command, content))

    async def _broadcast_game_state(self, code: str, state: GameState) -> None:
        await self._broadcast_to_group(
            code, ServerMessage(Command.GAME_STATE, {"code": code, "state": state.to_dict()})
        )

    async def _broadcast_session_list(self) -> None:
        await self._broadcast(list(self.connections), self._session_list_message())

    async def _broadcast_to_group(self, code: str, message: ServerMessage) -> None:
        await self._broadcast(list(self.groups.get(code, ())), message)

    async def _broadcast(self, connection_ids: list[str], message: ServerMessage) -> None:
        payload = message.to_dict()
        dead: list[ConnectionContext] = []
        for connection_id in connection_ids:
            context = self.connections.get(connection_id)
            if not context:
                continue
            try:
                await context.connection.send_json(payload)
            except _SEND_ERRORS:
                logger.warning("Connection lost to %s", context.identity)
                dead.append(context)

        for context in dead:
            self.disconnect(context.connection)

    async def _send(self, context: ConnectionContext, message: ServerMessage) -> None:
        try:
            await context.connection.send_json(message.to_dict())
        except _SEND_ERRORS:
            logger.warning("Connection lost to %s", context.identity)
            self.disconnect(context.connection)
