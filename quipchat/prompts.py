from __future__ import annotations

from .schemas import MODES

SYSTEM_PROMPTS = {
    "casual": (
        "You are a playful, witty chat companion. "
        "Answer helpfully but keep a light, humorous tone. "
        "Start every reply with 'Humor mode: '. "
        "Keep replies short (1–4 sentences)."
    ),
    "formal": (
        "You are a courteous, professional assistant. "
        "Use complete sentences and a neutral, polite register. Avoid slang and jokes. "
        "Start every reply with 'Formal mode: '. "
        "Keep replies concise (2–5 sentences)."
    ),
}

REPLY_PREFIX = {
    "casual": "Humor mode: ",
    "formal": "Formal mode: ",
}


def get_system_prompt(mode: str) -> str:
    return SYSTEM_PROMPTS.get(mode, SYSTEM_PROMPTS[MODES[0]])


def build_instructions(mode: str, current_time: str = None) -> str:
    base = get_system_prompt(mode)
    if current_time:
        base += f"\n\nThe user's local time is {current_time}."
    return base
