import subprocess

from .config import get_settings


def ollama_generate(prompt: str) -> str:
    settings = get_settings()
    r = subprocess.run(
        [settings.ollama_path, "run", settings.ollama_model, prompt],
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="ignore",
    )
    if r.returncode != 0:
        raise RuntimeError(r.stderr.strip() or "ollama failed")
    return r.stdout.strip()


def build_prompt(mode: str, instructions: str, user_message: str) -> str:
    return (
        f"{instructions}\n\n"
        f"MODE: {mode}\n\n"
        f"USER: {user_message}\n"
        f"ASSISTANT:"
    )


def local_generate_reply(mode: str, instructions: str, user_message: str) -> str:
    return ollama_generate(build_prompt(mode, instructions, user_message))
