"""Terminal client for a QuipChat endpoint."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Iterable, List, Optional

from .client import ChatClient
from .config import get_settings
from .history import HistoryManager
from .schemas import Message
from .store import HistoryStore, JsonDirectoryStore
from .turn import TurnProtocolHandler

Output = Callable[[str], None]

HELP_TEXT = (
    "/mode               toggle casual/formal\n"
    "/restart            start an empty conversation\n"
    "/delete <id>        remove a message\n"
    "/alt <id> <index>   show another phrasing of a reply\n"
    "/history            list saved snapshots\n"
    "/resume <key>       load a saved snapshot\n"
    "/quit               exit"
)


def format_message(m: Message) -> str:
    line = f"[{m.id}] {m.rendered_at or ''} {m.sender}: {m.display_text}"
    urls = getattr(m, "urls", None)
    if urls:
        line += "\n" + "\n".join(f"    {u}" for u in urls)
    return line


def cmd_history(client: ChatClient, out: Output) -> None:
    entries = list(client.history_entries())
    if not entries:
        out("No saved conversations.")
    for key, snap in entries:
        out(f"{key}  {snap.saved_at}  ({len(snap.messages)} messages)")


def handle_line(client: ChatClient, line: str, out: Output) -> bool:
    """Apply one input line; returns False when the user asked to quit."""
    parts = line.strip().split()
    command = parts[0] if parts else ""
    if not command.startswith("/"):
        reply = client.submit(line)
        if reply is not None:
            out(format_message(reply))
    elif command == "/quit":
        return False
    elif command == "/mode":
        out(f"Mode: {client.toggle_mode()}")
    elif command == "/restart":
        client.restart()
        out("Conversation cleared.")
    elif command == "/history":
        cmd_history(client, out)
    elif command == "/resume" and len(parts) == 2:
        if client.resume(parts[1]):
            for m in client.session.messages:
                out(format_message(m))
    elif command == "/delete" and len(parts) == 2 and parts[1].isdigit():
        if not client.delete_message(int(parts[1])):
            out(f"No message {parts[1]}.")
    elif command == "/alt" and len(parts) == 3 and parts[1].isdigit() and parts[2].isdigit():
        try:
            out(format_message(client.select_alternative(int(parts[1]), int(parts[2]))))
        except (KeyError, ValueError) as e:
            out(f"Cannot select alternative: {e}")
    else:
        out(HELP_TEXT)

    if client.session.error:
        out(f"! {client.session.error}")
        client.session.dismiss_error()
    return True


def run(client: ChatClient, lines: Iterable[str], out: Output) -> None:
    for line in lines:
        if not handle_line(client, line, out):
            break


def _prompt_lines(client: ChatClient) -> Iterable[str]:
    while True:
        try:
            yield input(f"({client.current_time} {client.session.mode})> ")
        except EOFError:
            return


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="quipchat", description="Chat with a QuipChat endpoint")
    parser.add_argument("--url", default=settings.endpoint_url, help="turn endpoint URL")
    parser.add_argument("--history-dir", default=settings.history_dir, help="where snapshots are stored")
    parser.add_argument("--mode", choices=["casual", "formal"], default="casual")
    parser.add_argument("--timeout", type=float, default=settings.turn_timeout, help="request timeout in seconds")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_settings().log_level, format="[%(asctime)s] %(levelname)s - %(message)s")

    handler = TurnProtocolHandler(args.url, timeout=args.timeout)
    history = HistoryManager(HistoryStore(JsonDirectoryStore(args.history_dir)))
    client = ChatClient(handler, history, mode=args.mode)
    with client:
        if client.session.error:
            print(f"! {client.session.error}")
            client.session.dismiss_error()
        print("Type /help for commands.")
        run(client, _prompt_lines(client), print)
    return 0


if __name__ == "__main__":
    sys.exit(main())
