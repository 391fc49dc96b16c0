from __future__ import annotations

import logging
from typing import Optional

import google.generativeai as genai

from .config import get_settings
from .local_llm import local_generate_reply
from .prompts import REPLY_PREFIX, build_instructions


logger = logging.getLogger(__name__)

GREETINGS = ["hello", "hi", "hey", "howdy", "good morning", "good evening", "greetings"]
TIME_KEYWORDS = ["what time", "the time", "time is it", "current time"]
HELP_KEYWORDS = ["help", "what can you do", "how does this work"]


class ReplyBackendError(RuntimeError):
    pass


def _is_greeting(low: str) -> bool:
    return any(low == g or low.startswith(g + " ") for g in GREETINGS)


def demo_casual(message: str, current_time: Optional[str]) -> str:
    text = message.strip().rstrip("!?.")
    low = text.lower()
    if _is_greeting(low):
        return f"Oh, {text}! Fancy meeting you here. What mischief are we getting into today?"
    if current_time and any(k in low for k in TIME_KEYWORDS):
        return f"Your clock says {current_time}. Time flies when you're chatting with me!"
    if any(k in low for k in HELP_KEYWORDS):
        return (
            "I'm a professional small-talker with a minor in puns. "
            "Ask me anything, or flip me to formal mode if I get too silly."
        )
    return f"\"{text}\"? Bold opening. Tell me more and I'll pretend to be an expert."


def demo_formal(message: str, current_time: Optional[str]) -> str:
    text = message.strip()
    low = text.lower().rstrip("!?.")
    if _is_greeting(low):
        return "Good day. How may I assist you?"
    if current_time and any(k in low for k in TIME_KEYWORDS):
        return f"The current time on your device is {current_time}."
    if any(k in low for k in HELP_KEYWORDS):
        return (
            "I can answer questions and discuss topics of your choosing. "
            "Switch to casual mode at any time for a lighter tone."
        )
    return f"Thank you for your message: \"{text}\". Please let me know how I may assist you further."


def demo_generate_reply(message: str, mode: str, current_time: Optional[str] = None) -> str:
    body = demo_formal(message, current_time) if mode == "formal" else demo_casual(message, current_time)
    return REPLY_PREFIX.get(mode, REPLY_PREFIX["casual"]) + body


def get_gemini_model(system_instruction: str = None):
    settings = get_settings()
    if not settings.gemini_api_key:
        raise ReplyBackendError("Missing GEMINI_API_KEY. Set environment variable GEMINI_API_KEY.")
    genai.configure(api_key=settings.gemini_api_key)
    return genai.GenerativeModel(settings.gemini_model, system_instruction=system_instruction)


def gemini_generate_reply(message: str, mode: str, current_time: Optional[str] = None) -> str:
    model = get_gemini_model(system_instruction=build_instructions(mode, current_time))
    response = model.generate_content(message)
    return response.text


def ollama_generate_reply(message: str, mode: str, current_time: Optional[str] = None) -> str:
    return local_generate_reply(mode, build_instructions(mode, current_time), message)


BACKENDS = {
    "demo": demo_generate_reply,
    "gemini": gemini_generate_reply,
    "ollama": ollama_generate_reply,
}


def generate_reply(message: str, mode: str, current_time: Optional[str] = None) -> str:
    """Produce reply text for one message; raises on any backend fault."""
    backend = get_settings().reply_backend
    fn = BACKENDS.get(backend)
    if fn is None:
        raise ReplyBackendError(f"Unknown REPLY_BACKEND {backend!r}")
    return fn(message, mode, current_time)
