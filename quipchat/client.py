from __future__ import annotations

import logging
from typing import Iterator, Optional, Tuple

from .clock import Clock, Ticker
from .errors import ChatError, NotFoundFailure, PersistenceFailure
from .history import HistoryIndex, HistoryManager
from .schemas import HistorySnapshot, Message, Mode
from .session import Session, SessionEvent
from .turn import TurnProtocolHandler


logger = logging.getLogger(__name__)


class ChatClient:
    """Wires the live session to the endpoint, the history log and the clock ticker."""

    def __init__(
        self,
        handler: TurnProtocolHandler,
        history: HistoryManager,
        session: Optional[Session] = None,
        clock: Optional[Clock] = None,
        mode: Mode = "casual",
    ) -> None:
        self.clock = clock or Clock()
        self.handler = handler
        self.history = history
        self.session = session or Session(mode=mode, clock=self.clock)
        self.ticker = Ticker(self.clock)
        self.last_saved_key: Optional[str] = None
        self._unsubscribe = self.session.subscribe(self._on_event)

    def open(self) -> HistoryIndex:
        self.ticker.start()
        try:
            return self.history.load_index()
        except PersistenceFailure as e:
            self._report(e)
            return {}

    def close(self) -> None:
        self.ticker.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            self.handler.close()

    def __enter__(self) -> "ChatClient":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def current_time(self) -> str:
        return self.ticker.current_time

    def submit(self, text: Optional[str] = None) -> Optional[Message]:
        """Run one full turn; returns the appended reply, or None if skipped."""
        user_message = self.session.submit(text)
        if user_message is None:
            return None
        result = self.handler.send_turn(user_message.text, self.session.mode, self.clock.datetime_string())
        if result.ok:
            return self.session.on_reply_success(result.payload)
        return self.session.on_reply_failure(str(result.error))

    def delete_message(self, message_id: int) -> bool:
        return self.session.delete_message(message_id)

    def select_alternative(self, message_id: int, index: int) -> Message:
        return self.session.select_alternative(message_id, index)

    def restart(self) -> None:
        self.session.restart()

    def toggle_mode(self) -> Mode:
        return self.session.toggle_mode()

    def resume(self, key: str) -> bool:
        try:
            messages = self.history.resume(key)
        except NotFoundFailure as e:
            self._report(e)
            return False
        self.session.replace_messages(messages)
        return True

    def history_entries(self) -> Iterator[Tuple[str, HistorySnapshot]]:
        return self.history.entries()

    def _on_event(self, event: SessionEvent) -> None:
        if not event.messages_changed or not event.state.messages:
            return
        try:
            self.last_saved_key, _ = self.history.save_snapshot(event.state.messages)
        except PersistenceFailure as e:
            self._report(e)

    def _report(self, error: ChatError) -> None:
        logger.warning("%s", error)
        self.session.flag_error(str(error))
