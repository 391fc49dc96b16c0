from __future__ import annotations

import pytest

from quipchat.clock import Clock
from quipchat.schemas import ImageMessage, ReplyPayload, TextMessage
from quipchat.session import Session, TurnState


def reply(text="Humor mode: hi", **kw) -> ReplyPayload:
    return ReplyPayload(response=text, timestamp="2024-05-06T07:08:09Z", **kw)


@pytest.fixture
def session(clock) -> Session:
    return Session(clock=clock)


@pytest.fixture
def events(session):
    seen = []
    session.subscribe(lambda e: seen.append(e))
    return seen


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_submit_changes_nothing(session, events, text):
    session.set_input("draft")
    events.clear()
    assert session.submit(text) is None
    assert session.messages == []
    assert session.input_text == "draft"
    assert session.state is TurnState.IDLE
    assert events == []


def test_submit_appends_user_message_and_waits(session, events):
    session.set_input("hello")
    session.flag_error("old problem")
    msg = session.submit()
    assert isinstance(msg, TextMessage)
    assert (msg.text, msg.sender, msg.kind) == ("hello", "user", "text")
    assert msg.rendered_at == "07:08:09"
    assert session.messages == [msg]
    assert session.input_text == ""
    assert session.loading
    assert session.error is None
    assert events[-1].name == "submitted"
    assert events[-1].messages_changed


def test_submit_while_awaiting_reply_is_noop(session):
    session.submit("first")
    assert session.submit("second") is None
    assert [m.text for m in session.messages] == ["first"]
    session.on_reply_success(reply())
    assert session.submit("second") is not None


def test_reply_success_appends_assistant_and_goes_idle(session):
    session.submit("hello")
    msg = session.on_reply_success(reply("Humor mode: Oh, hello!"))
    assert msg.sender == "assistant"
    assert msg.text == "Humor mode: Oh, hello!"
    assert session.state is TurnState.IDLE
    assert len(session.messages) == 2


def test_reply_payload_kind_selects_message_variant(session):
    session.submit("draw a cat")
    msg = session.on_reply_success(
        reply("here", type="image", urls=["http://img/1.png"], imageOptions={"count": 1, "size": "512x512", "quality": "hd"})
    )
    assert isinstance(msg, ImageMessage)
    assert msg.urls == ["http://img/1.png"]
    assert msg.image_options.quality == "hd"


def test_reply_failure_sets_error_and_clears_loading(session, events):
    session.submit("hello")
    msg = session.on_reply_failure("boom")
    assert msg.text == "Error: boom"
    assert msg.sender == "assistant"
    assert session.error == "boom"
    assert not session.loading
    assert events[-1].name == "failed"


def test_ids_unique_even_within_one_millisecond():
    class StuckClock(Clock):
        def now_ms(self):
            return 42

    session = Session(clock=StuckClock())
    for text in ["a", "b", "c"]:
        session.submit(text)
        session.on_reply_success(reply())
    ids = [m.id for m in session.messages]
    assert len(ids) == 6
    assert len(set(ids)) == 6
    assert ids == sorted(ids)


def test_delete_message_removes_only_match(session):
    for text in ["one", "two", "three"]:
        session.submit(text)
        session.on_reply_success(reply(f"re {text}"))
    before = session.messages
    target = before[2]
    assert session.delete_message(target.id)
    assert session.messages == [m for m in before if m.id != target.id]


def test_delete_unknown_id_has_no_effect(session, events):
    session.submit("one")
    events.clear()
    assert not session.delete_message(123)
    assert len(session.messages) == 1
    assert events == []


def test_restart_clears_messages_input_and_error(session):
    session.submit("one")
    session.on_reply_failure("boom")
    session.set_input("half typed")
    session.restart()
    assert session.messages == []
    assert session.input_text == ""
    assert session.error is None


def test_toggle_mode_twice_restores_mode_and_keeps_messages(session):
    session.submit("one")
    session.on_reply_success(reply())
    before = session.messages
    assert session.toggle_mode() == "formal"
    assert session.toggle_mode() == "casual"
    assert session.messages == before


def test_select_alternative(session):
    session.submit("one")
    msg = session.on_reply_success(reply("a", alternatives=["a", "b"]))
    updated = session.select_alternative(msg.id, 1)
    assert updated.display_text == "b"
    assert session.messages[-1].selected_alternative == 1
    with pytest.raises(ValueError):
        session.select_alternative(msg.id, 2)
    with pytest.raises(KeyError):
        session.select_alternative(999, 0)


def test_snapshot_is_immutable_view(session):
    session.submit("one")
    state = session.snapshot()
    session.on_reply_success(reply())
    assert len(state.messages) == 1
    assert state.loading
