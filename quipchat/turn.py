from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx
from pydantic import ValidationError

from .errors import ChatError, EndpointFailure, NetworkFailure
from .schemas import Mode, ReplyPayload, TurnRequest


logger = logging.getLogger(__name__)

NETWORK_FAILURE_DETAIL = "Failed to reach the chat endpoint"


@dataclass(frozen=True)
class TurnResult:
    payload: Optional[ReplyPayload] = None
    error: Optional[ChatError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TurnProtocolHandler:
    """Sends one turn to the endpoint and interprets the single response."""

    def __init__(
        self,
        url: str = "http://127.0.0.1:8000/",
        client: Optional[httpx.Client] = None,
        timeout: Union[float, None] = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout)

    def build_request(self, message: str, mode: Mode, client_time: str) -> dict:
        body = TurnRequest(message=message, mode=mode, current_time=client_time, regenerate=False)
        return body.model_dump(by_alias=True)

    def send_turn(self, message: str, mode: Mode, client_time: str) -> TurnResult:
        body = self.build_request(message, mode, client_time)
        try:
            response = self.client.post(self.url, json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Turn request failed: %s", e)
            return TurnResult(error=NetworkFailure(NETWORK_FAILURE_DETAIL))

        if not response.is_success:
            return TurnResult(error=EndpointFailure(self._error_detail(response), response.status_code))

        try:
            payload = ReplyPayload.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Unreadable reply body: %s", e)
            return TurnResult(error=EndpointFailure("Invalid response from the chat endpoint", response.status_code))
        return TurnResult(payload=payload)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        # the endpoint reports failures under "error"; only "message" is read here
        try:
            data = response.json()
        except ValueError:
            data = None
        detail = data.get("message") if isinstance(data, dict) else None
        if isinstance(detail, str) and detail:
            return detail
        return f"HTTP error {response.status_code}"

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
