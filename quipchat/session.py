"""Live conversation state: messages, input buffer, loading and error flags."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .clock import Clock
from .schemas import Message, Mode, ReplyPayload, TextMessage, message_from_reply


class TurnState(str, Enum):
    IDLE = "idle"
    AWAITING_REPLY = "awaitingReply"


# events after which the message list has changed
MESSAGE_EVENTS = frozenset({"submitted", "replied", "failed", "deleted", "resumed", "alternative"})


@dataclass(frozen=True)
class SessionState:
    messages: Tuple[Message, ...]
    input_text: str
    state: TurnState
    error: Optional[str]
    mode: Mode

    @property
    def loading(self) -> bool:
        return self.state is TurnState.AWAITING_REPLY


@dataclass(frozen=True)
class SessionEvent:
    name: str
    state: SessionState

    @property
    def messages_changed(self) -> bool:
        return self.name in MESSAGE_EVENTS


Listener = Callable[[SessionEvent], None]


class Session:
    """Single-writer owner of the live conversation.

    Every transition goes through one of the methods below and is announced
    to subscribers as a :class:`SessionEvent`. ``awaitingReply`` is the only
    gate against concurrent turns.
    """

    def __init__(self, mode: Mode = "casual", clock: Optional[Clock] = None) -> None:
        self.clock = clock or Clock()
        self.mode: Mode = mode
        self.input_text = ""
        self.state = TurnState.IDLE
        self.error: Optional[str] = None
        self._messages: List[Message] = []
        self._listeners: List[Listener] = []

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def loading(self) -> bool:
        return self.state is TurnState.AWAITING_REPLY

    def snapshot(self) -> SessionState:
        return SessionState(
            messages=tuple(self._messages),
            input_text=self.input_text,
            state=self.state,
            error=self.error,
            mode=self.mode,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _emit(self, name: str) -> None:
        event = SessionEvent(name, self.snapshot())
        for listener in list(self._listeners):
            listener(event)

    def set_input(self, text: str) -> None:
        self.input_text = text
        self._emit("input")

    def submit(self, text: Optional[str] = None) -> Optional[Message]:
        """Append a user message and start waiting for the reply.

        Returns ``None`` without touching state for blank input or while a
        turn is outstanding.
        """
        if text is None:
            text = self.input_text
        if not text.strip() or self.loading:
            return None
        message = TextMessage(
            id=self.clock.next_id(),
            text=text,
            sender="user",
            rendered_at=self.clock.time_string(),
        )
        self._messages.append(message)
        self.input_text = ""
        self.state = TurnState.AWAITING_REPLY
        self.error = None
        self._emit("submitted")
        return message

    def on_reply_success(self, payload: ReplyPayload) -> Message:
        message = message_from_reply(payload, self.clock.next_id(), self.clock.time_string())
        self._messages.append(message)
        self.state = TurnState.IDLE
        self._emit("replied")
        return message

    def on_reply_failure(self, error_message: str) -> Message:
        message = TextMessage(
            id=self.clock.next_id(),
            text=f"Error: {error_message}",
            sender="assistant",
            rendered_at=self.clock.time_string(),
        )
        self._messages.append(message)
        self.error = error_message
        self.state = TurnState.IDLE
        self._emit("failed")
        return message

    def delete_message(self, message_id: int) -> bool:
        for i, m in enumerate(self._messages):
            if m.id == message_id:
                del self._messages[i]
                self._emit("deleted")
                return True
        return False

    def select_alternative(self, message_id: int, index: int) -> Message:
        for i, m in enumerate(self._messages):
            if m.id != message_id:
                continue
            alts = m.alternatives or []
            if not 0 <= index < len(alts):
                raise ValueError(f"Message {message_id} has no alternative {index}")
            self._messages[i] = m.model_copy(update={"selected_alternative": index})
            self._emit("alternative")
            return self._messages[i]
        raise KeyError(message_id)

    def restart(self) -> None:
        self._messages = []
        self.input_text = ""
        self.error = None
        self._emit("restarted")

    def toggle_mode(self) -> Mode:
        self.mode = "formal" if self.mode == "casual" else "casual"
        self._emit("mode")
        return self.mode

    def replace_messages(self, messages: Sequence[Message]) -> None:
        self._messages = list(messages)
        self._emit("resumed")

    def flag_error(self, message: str) -> None:
        self.error = message
        self._emit("error")

    def dismiss_error(self) -> None:
        self.error = None
        self._emit("error")
