from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from .clock import iso_timestamp
from .config import get_settings
from .replies import generate_reply
from .schemas import MODES, ErrorPayload, ReplyPayload, TurnRequest


settings = get_settings()
logging.basicConfig(level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("quipchat")

STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title="QuipChat", version="0.1.0")

if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def error_response(status_code: int, detail: str) -> JSONResponse:
    payload = ErrorPayload(error=detail, timestamp=iso_timestamp())
    return JSONResponse(status_code=status_code, content=payload.to_json())


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    logger.info("Rejected malformed turn request: %s", exc.errors())
    return error_response(400, "Invalid request body.")


@app.get("/")
def root():
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@app.get("/health")
def health():
    return {"ok": True, "backend": get_settings().reply_backend}


@app.get("/api/modes")
def modes():
    return {"modes": MODES}


@app.post("/", response_model=None)
@app.post("/api/chat", response_model=None)
def chat(payload: TurnRequest) -> JSONResponse:
    if not payload.message.strip():
        return error_response(400, "Empty input.")

    logger.info("Turn: mode=%s message_len=%s", payload.mode, len(payload.message))
    try:
        text = generate_reply(payload.message, payload.mode, payload.current_time)
    except Exception as e:
        logger.exception("Reply generation failed: %s", e)
        return error_response(500, "Failed to generate a reply.")

    reply = ReplyPayload(response=text, type="text", timestamp=iso_timestamp())
    return JSONResponse(content=reply.to_json())
