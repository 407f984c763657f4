"""Tests for the lobby session registry."""

from unittest.mock import MagicMock

import pytest

from lastcard.config import Settings
from lastcard.models.enums import LobbyError, SessionStatus
from lastcard.services.activity_log import LoggingActivityLog
from lastcard.services.session_registry import SessionRegistry


@pytest.fixture
def activity_log():
    """Create a mock activity log."""
    return MagicMock()


@pytest.fixture
def registry(activity_log):
    """Create a registry with default capacities."""
    return SessionRegistry(activity_log=activity_log, config=Settings())


class TestCreate:
    """Tests for creating sessions."""

    def test_create_card_game(self, registry):
        """The creator owns and joins a pending four-seat session."""
        result = registry.create("Alice")

        assert result.ok
        session = result.session
        assert session.code == result.code
        assert session.owner == "alice"
        assert session.participants == ["alice"]
        assert session.capacity == 4
        assert session.game_type == "lastcard"
        assert session.status == SessionStatus.PENDING
        assert registry.get(session.code) is session

    def test_create_other_game_type(self, registry):
        """Other game types seat two."""
        result = registry.create("alice", "chess")

        assert result.session.capacity == 2
        assert result.session.game_type == "chess"

    def test_codes_are_unique(self, registry):
        """Every session gets its own uppercase hex code."""
        codes = {registry.create(f"user{i}").code for i in range(50)}

        assert len(codes) == 50
        for code in codes:
            assert len(code) == 6
            assert code == code.upper()
            int(code, 16)

    def test_code_length_from_settings(self, activity_log):
        """Code length is configurable."""
        registry = SessionRegistry(activity_log=activity_log, config=Settings(session_code_length=8))
        assert len(registry.create("alice").code) == 8

    def test_blank_identity(self, registry, activity_log):
        """Blank identities cannot create sessions."""
        result = registry.create("   ")

        assert not result.ok
        assert result.error == LobbyError.INVALID_IDENTITY
        assert len(registry) == 0
        activity_log.record.assert_not_called()

    def test_activity_logged(self, registry, activity_log):
        """Successful creation is recorded."""
        result = registry.create("alice")
        activity_log.record.assert_called_once_with("create_session", "alice", result.code)


class TestJoin:
    """Tests for joining sessions."""

    def test_join(self, registry, activity_log):
        """A free seat can be taken."""
        code = registry.create("alice").code

        result = registry.join("Bob ", code)

        assert result.ok
        assert registry.get(code).participants == ["alice", "bob"]
        activity_log.record.assert_called_with("join_session", "bob", code)

    def test_join_unknown(self, registry):
        """Joining an unknown code fails."""
        result = registry.join("bob", "NOPE")
        assert result.error == LobbyError.NOT_FOUND

    def test_join_full(self, registry):
        """Capacity is never exceeded."""
        code = registry.create("alice").code
        for name in ("bob", "carol", "dave"):
            assert registry.join(name, code).ok

        result = registry.join("erin", code)

        assert result.error == LobbyError.CAPACITY
        assert len(registry.get(code).participants) == 4

    def test_join_full_two_seats(self, registry):
        """Two-seat sessions reject a third participant."""
        code = registry.create("alice", "chess").code
        assert registry.join("bob", code).ok
        assert registry.join("carol", code).error == LobbyError.CAPACITY

    def test_join_twice(self, registry):
        """An identity holds at most one seat."""
        code = registry.create("alice").code

        result = registry.join("ALICE", code)

        assert result.error == LobbyError.CONFLICT
        assert registry.get(code).participants == ["alice"]

    def test_failures_not_logged(self, registry, activity_log):
        """Only successful operations reach the activity log."""
        registry.join("bob", "NOPE")
        activity_log.record.assert_not_called()


class TestActivate:
    """Tests for starting sessions."""

    def test_owner_activates(self, registry):
        """The owner moves the session to active."""
        code = registry.create("alice").code

        result = registry.activate("alice", code)

        assert result.ok
        assert registry.get(code).status == SessionStatus.ACTIVE

    def test_non_owner_cannot_activate(self, registry):
        """Only the owner may activate."""
        code = registry.create("alice").code
        registry.join("bob", code)

        result = registry.activate("bob", code)

        assert result.error == LobbyError.UNAUTHORIZED
        assert registry.get(code).status == SessionStatus.PENDING

    def test_activate_unknown(self, registry):
        """Activating an unknown code fails."""
        assert registry.activate("alice", "NOPE").error == LobbyError.NOT_FOUND

    def test_activate_twice(self, registry):
        """Activating an active session succeeds again."""
        code = registry.create("alice").code
        registry.activate("alice", code)
        assert registry.activate("alice", code).ok

    def test_active_sessions_not_listed(self, registry):
        """Active sessions leave the pending list."""
        code = registry.create("alice").code
        other = registry.create("bob").code
        registry.activate("alice", code)

        assert [s.code for s in registry.list()] == [other]


class TestLeave:
    """Tests for leaving sessions."""

    def test_participant_leaves(self, registry, activity_log):
        """A participant frees their seat."""
        code = registry.create("alice").code
        registry.join("bob", code)

        result = registry.leave("bob", code)

        assert result.ok
        assert not result.destroyed
        assert registry.get(code).participants == ["alice"]
        activity_log.record.assert_called_with("leave_session", "bob", code)

    def test_owner_leaving_destroys(self, registry):
        """The owner leaving destroys the session for everyone."""
        code = registry.create("alice").code
        registry.join("bob", code)

        result = registry.leave("alice", code)

        assert result.ok
        assert result.destroyed
        assert registry.get(code) is None

    def test_non_participant(self, registry):
        """Leaving a session one is not in fails."""
        code = registry.create("alice").code
        assert registry.leave("bob", code).error == LobbyError.NOT_PARTICIPANT

    def test_leave_unknown(self, registry):
        """Leaving an unknown code fails."""
        assert registry.leave("bob", "NOPE").error == LobbyError.NOT_FOUND

    def test_destroy_hook(self, registry):
        """Destroy hooks receive the code."""
        hook = MagicMock()
        registry.on_destroy(hook)
        code = registry.create("alice").code

        registry.leave("alice", code)

        hook.assert_called_once_with(code)


class TestDelete:
    """Tests for deleting sessions."""

    def test_owner_deletes(self, registry, activity_log):
        """The owner may delete."""
        hook = MagicMock()
        registry.on_destroy(hook)
        code = registry.create("alice").code

        result = registry.delete("alice", code)

        assert result.ok
        assert result.destroyed
        assert registry.get(code) is None
        hook.assert_called_once_with(code)
        activity_log.record.assert_called_with("delete_session", "alice", code)

    def test_non_owner_cannot_delete(self, registry):
        """Participants cannot delete."""
        code = registry.create("alice").code
        registry.join("bob", code)

        assert registry.delete("bob", code).error == LobbyError.UNAUTHORIZED
        assert registry.get(code) is not None

    def test_delete_unknown(self, registry):
        """Deleting an unknown code fails."""
        assert registry.delete("alice", "NOPE").error == LobbyError.NOT_FOUND


class TestQueries:
    """Tests for listing sessions."""

    def test_list_filter(self, registry):
        """Lists filter by game type."""
        card = registry.create("alice").code
        chess = registry.create("bob", "chess").code

        assert {s.code for s in registry.list()} == {card, chess}
        assert [s.code for s in registry.list("lastcard")] == [card]
        assert [s.code for s in registry.list("chess")] == [chess]
        assert registry.list("go") == []

    def test_summary(self, registry):
        """Summaries carry the public session fields."""
        code = registry.create("alice").code

        assert registry.list()[0].summary() == {
            "code": code,
            "owner": "alice",
            "game_type": "lastcard",
            "status": "pending",
            "participant_count": 1,
            "capacity": 4,
        }

    def test_sessions_of(self, registry):
        """An identity sees owned and joined sessions."""
        own = registry.create("alice").code
        joined = registry.create("bob").code
        registry.join("alice", joined)
        registry.create("carol")

        sessions = {s["code"]: s for s in registry.sessions_of("Alice")}

        assert set(sessions) == {own, joined}
        assert sessions[own]["is_owner"]
        assert not sessions[joined]["is_owner"]
        assert registry.sessions_of("") == []


class TestActivityLog:
    """Tests for the logging activity log."""

    def test_failing_log_does_not_break_operation(self):
        """Activity log errors never fail the operation."""
        activity_log = MagicMock()
        activity_log.record.side_effect = RuntimeError("store down")
        registry = SessionRegistry(activity_log=activity_log, config=Settings())

        assert registry.create("alice").ok

    def test_logging_activity_log(self, caplog):
        """Records are written as key=value lines."""
        log = LoggingActivityLog()
        with caplog.at_level("INFO", logger="lastcard.services.activity_log"):
            log.record("create_session", "alice", "ABC123")

        assert "operation=create_session | identity=alice | session=ABC123" in caplog.text

    def test_disabled_activity_log(self, caplog):
        """A disabled log writes nothing."""
        log = LoggingActivityLog(enabled=False)
        with caplog.at_level("INFO", logger="lastcard.services.activity_log"):
            log.record("create_session", "alice", "ABC123")

        assert caplog.text == ""
