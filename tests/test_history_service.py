from datetime import datetime, timedelta, timezone

import pytest

from order_assistant.models.order_models import (
    Cart,
    ChatMessage,
    ConversationContext,
    ConversationStep,
    MessageRole,
)
from order_assistant.services.history_service import ConversationHistoryStore, round_half_up


def _context(session_id, step=ConversationStep.GREETING, user_id=None):
    return ConversationContext(session_id=session_id, user_id=user_id, current_step=step,
                               cart=Cart(session_id=session_id))


def _message(session_id, content, role=MessageRole.USER, clock=None):
    if clock is None:
        return ChatMessage(role, content, session_id)
    return ChatMessage(role, content, session_id, timestamp=clock())


@pytest.fixture
def store(clock):
    return ConversationHistoryStore(max_messages_per_session=100, clock=clock)


def test_first_message_creates_history(store, clock):
    store.add_message("s1", _message("s1", "Hola", clock=clock), _context("s1", user_id="u1"))

    history = store.get("s1")
    assert history.user_id == "u1"
    assert history.created_at == clock()
    assert history.metadata.total_messages == 1
    assert store.has_session("s1")
    assert store.get("missing") is None


def test_context_is_copied_not_shared(store):
    ctx = _context("s1")
    store.add_message("s1", _message("s1", "Hola"), ctx)
    ctx.current_step = ConversationStep.COMPLETED
    assert store.get("s1").context.current_step == ConversationStep.GREETING


def test_cap_drops_oldest_messages_first(clock):
    store = ConversationHistoryStore(max_messages_per_session=100, clock=clock)
    ctx = _context("s1")
    for i in range(101):
        store.add_message("s1", _message("s1", f"m{i}"), ctx)

    history = store.get("s1")
    assert len(history.messages) == 100
    assert history.metadata.total_messages == 100
    assert history.messages[0].content == "m1"
    assert history.messages[-1].content == "m100"


def test_cap_of_one(clock):
    store = ConversationHistoryStore(max_messages_per_session=1, clock=clock)
    store.add_message("s1", _message("s1", "a"), _context("s1"))
    store.add_message("s1", _message("s1", "b"), _context("s1"))
    assert [m.content for m in store.get("s1").messages] == ["b"]


def test_cap_must_be_positive():
    with pytest.raises(ValueError):
        ConversationHistoryStore(max_messages_per_session=0)


def test_recent_messages(store):
    for i in range(5):
        store.add_message("s1", _message("s1", f"m{i}"), _context("s1"))
    assert [m.content for m in store.recent("s1", 2)] == ["m3", "m4"]
    assert store.recent("s1", 0) == []
    assert store.recent("nope") == []


def test_summary_truncates_last_user_message(store):
    assert store.summary("s1") is None

    long_text = "x" * 150
    store.add_message("s1", _message("s1", long_text), _context("s1"))
    store.add_message("s1", _message("s1", "respuesta", role=MessageRole.ASSISTANT), _context("s1"))

    summary = store.summary("s1")
    assert summary.startswith("Conversación activa con 2 mensajes.")
    assert ("x" * 100 + "...") in summary
    assert "x" * 101 not in summary


def test_stats(store, clock):
    store.add_message("s1", _message("s1", "Hola"), _context("s1"))
    store.add_message("s1", _message("s1", "abcd", role=MessageRole.ASSISTANT), _context("s1"))
    clock.advance(minutes=10)
    store.add_message("s1", _message("s1", "Quiero pollo"), _context("s1"))
    store.add_message("s1", _message("s1", "abcdefgh", role=MessageRole.ASSISTANT), _context("s1"))

    assert store.stats("s1") == {
        "message_count": 4,
        "duration_minutes": 10,
        "user_messages": 2,
        "assistant_messages": 2,
        "average_response_length": 6,
    }
    assert store.stats("missing") is None


class TestSearch:
    @pytest.fixture
    def populated(self, store, clock):
        store.add_message("a", _message("a", "Hola"), _context("a", user_id="u1"))
        clock.advance(hours=1)
        store.add_message("b", _message("b", "Hola"), _context("b", ConversationStep.ORDERING, user_id="u2"))
        store.add_message("b", _message("b", "Quiero pollo"), _context("b", ConversationStep.ORDERING, user_id="u2"))
        clock.advance(hours=1)
        store.add_message("c", _message("c", "menú"), _context("c", ConversationStep.ORDERING, user_id="u1"))
        return store

    def test_no_filters_returns_all_most_recent_first(self, populated):
        assert [s.session_id for s in populated.search()] == ["c", "b", "a"]

    def test_filters_are_combined(self, populated):
        results = populated.search(user_id="u1", current_step="ordering")
        assert [s.session_id for s in results] == ["c"]

    def test_min_messages(self, populated):
        results = populated.search(min_messages=2)
        assert [s.session_id for s in results] == ["b"]
        assert results[0].message_count == 2
        assert results[0].last_message == "Quiero pollo"

    def test_date_range_uses_creation_time(self, populated, clock):
        start = clock() - timedelta(hours=2)
        results = populated.search(date_from=start + timedelta(minutes=30), date_to=start + timedelta(hours=1))
        assert [s.session_id for s in results] == ["b"]

    @pytest.mark.parametrize("criteria", [
        {"user_id": "u1"},
        {"min_messages": 2},
        {"current_step": "ordering"},
        {"date_from": datetime(2024, 5, 10, 13, 30)},
        {"date_to": datetime(2024, 5, 10, 13, 30)},
    ])
    def test_each_filter_narrows_the_unfiltered_set(self, populated, criteria):
        everything = {s.session_id for s in populated.search()}
        narrowed = {s.session_id for s in populated.search(**criteria)}
        assert narrowed
        assert narrowed < everything

    def test_timezone_aware_bounds(self, populated):
        past = datetime(2020, 1, 1, tzinfo=timezone.utc)
        future = datetime(2030, 1, 1, tzinfo=timezone(timedelta(hours=-4)))
        assert len(populated.search(date_from=past)) == 3
        assert len(populated.search(date_to=future)) == 3
        assert populated.search(date_from=future) == []
        assert populated.search(date_to=past) == []

    def test_step_accepts_enum(self, populated):
        assert [s.session_id for s in populated.search(current_step=ConversationStep.GREETING)] == ["a"]


def test_export_session(store, clock):
    assert store.export_session("s1") is None

    ctx = _context("s1", ConversationStep.CONFIRMING)
    store.add_message("s1", _message("s1", "Hola", clock=clock), ctx)
    clock.advance(minutes=3)
    store.add_message("s1", _message("s1", "Hola!", role=MessageRole.ASSISTANT, clock=clock), ctx)

    exported = store.export_session("s1")
    assert exported["conversation"] is store.get("s1")
    export = exported["export"]
    assert export["duration"] == "3 minutos"
    assert export["messageCount"] == 2
    assert [m["role"] for m in export["messages"]] == ["user", "assistant"]
    assert export["finalContext"] == {"step": "confirming", "cartItems": 0, "totalAmount": 0.0}


def test_delete_session(store):
    store.add_message("s1", _message("s1", "Hola"), _context("s1"))
    assert store.delete_session("s1")
    assert not store.delete_session("s1")
    assert store.get("s1") is None


def test_sweep_removes_only_stale(store, clock):
    store.add_message("old", _message("old", "Hola"), _context("old"))
    clock.advance(hours=25)
    store.add_message("new", _message("new", "Hola"), _context("new"))

    assert store.sweep_stale(24) == 1
    assert not store.has_session("old")
    assert store.has_session("new")
    assert store.sweep_stale(24) == 0


def test_global_stats(store, clock):
    assert store.global_stats() == {
        "total_conversations": 0,
        "active_conversations": 0,
        "total_messages": 0,
        "average_messages_per_conversation": 0,
        "top_steps": [],
    }

    for sid in ("a", "b"):
        store.add_message(sid, _message(sid, "Hola"), _context(sid))
        store.add_message(sid, _message(sid, "Hola!", role=MessageRole.ASSISTANT), _context(sid))
    store.add_message("c", _message("c", "Quiero pollo"), _context("c", ConversationStep.ORDERING))

    stats = store.global_stats()
    assert stats["total_conversations"] == 3
    assert stats["active_conversations"] == 3
    assert stats["total_messages"] == 5
    assert stats["average_messages_per_conversation"] == 2
    assert stats["top_steps"][0] == {"step": "greeting", "count": 2}
    assert stats["top_steps"][1] == {"step": "ordering", "count": 1}

    clock.advance(hours=25)
    assert store.global_stats()["active_conversations"] == 0
    assert store.active_session_ids() == []


def test_three_single_message_sessions(store):
    store.add_message("a", _message("a", "Hola"), _context("a"))
    store.add_message("b", _message("b", "Hola"), _context("b"))
    store.add_message("c", _message("c", "Quiero pollo"), _context("c", ConversationStep.ORDERING))

    stats = store.global_stats()
    assert stats["total_conversations"] == 3
    assert stats["total_messages"] == 3
    assert stats["average_messages_per_conversation"] == 1
    assert stats["top_steps"][0] == {"step": "greeting", "count": 2}


def test_average_rounds_halves_up(store):
    for i in range(2):
        store.add_message("a", _message("a", f"a{i}"), _context("a"))
    for i in range(3):
        store.add_message("b", _message("b", f"b{i}"), _context("b"))

    assert store.global_stats()["average_messages_per_conversation"] == 3


def test_stats_round_halves_up(store, clock):
    store.add_message("s1", _message("s1", "ab", role=MessageRole.ASSISTANT), _context("s1"))
    clock.advance(seconds=150)
    store.add_message("s1", _message("s1", "abc", role=MessageRole.ASSISTANT), _context("s1"))

    stats = store.stats("s1")
    assert stats["duration_minutes"] == 3
    assert stats["average_response_length"] == 3
    assert store.export_session("s1")["export"]["duration"] == "3 minutos"


@pytest.mark.parametrize("value,expected", [(0.4, 0), (0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
