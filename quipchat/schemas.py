from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


Mode = Literal["casual", "formal"]
Sender = Literal["user", "assistant"]
MessageKind = Literal["text", "image", "slides", "spreadsheet"]

MODES: List[str] = ["casual", "formal"]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ImageOptions(_Model):
    count: int = Field(default=1, ge=1)
    size: str = "1024x1024"
    quality: Literal["standard", "hd"] = "standard"


class _MessageBase(_Model):
    id: int
    text: str
    sender: Sender
    alternatives: Optional[List[str]] = None
    selected_alternative: Optional[int] = Field(default=None, alias="selectedAlternative")
    rendered_at: Optional[str] = Field(default=None, alias="renderedAt")

    @model_validator(mode="after")
    def _check_alternative(self):
        if self.selected_alternative is not None:
            alts = self.alternatives or []
            if not 0 <= self.selected_alternative < len(alts):
                raise ValueError(
                    f"selectedAlternative {self.selected_alternative} out of range for {len(alts)} alternatives"
                )
        return self

    @property
    def display_text(self) -> str:
        if self.selected_alternative is not None and self.alternatives:
            return self.alternatives[self.selected_alternative]
        return self.text


class TextMessage(_MessageBase):
    kind: Literal["text"] = "text"


class ImageMessage(_MessageBase):
    kind: Literal["image"] = "image"
    urls: List[str] = Field(default_factory=list)
    image_options: ImageOptions = Field(default_factory=ImageOptions, alias="imageOptions")


class SlidesMessage(_MessageBase):
    kind: Literal["slides"] = "slides"
    urls: List[str] = Field(default_factory=list)


class SpreadsheetMessage(_MessageBase):
    kind: Literal["spreadsheet"] = "spreadsheet"
    urls: List[str] = Field(default_factory=list)


Message = Annotated[
    Union[TextMessage, ImageMessage, SlidesMessage, SpreadsheetMessage],
    Field(discriminator="kind"),
]

_messages_adapter = TypeAdapter(List[Message])


def parse_messages(raw: Any) -> List[Message]:
    """Validate stored message dicts; entries without ``kind`` are text."""
    if not isinstance(raw, list):
        raise ValueError("messages must be a list")
    items = [dict(m, kind=m.get("kind", "text")) if isinstance(m, dict) else m for m in raw]
    return _messages_adapter.validate_python(items)


def dump_messages(messages: List[Message]) -> List[Dict[str, Any]]:
    return [m.to_json() for m in messages]


class TurnRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    # reserved for reply regeneration, always false
    regenerate: bool = False
    current_time: Optional[str] = Field(default=None, alias="currentTime")
    mode: Mode = "casual"


class ReplyPayload(_Model):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    response: str
    type: MessageKind = "text"
    timestamp: str
    urls: Optional[List[str]] = None
    image_options: Optional[ImageOptions] = Field(default=None, alias="imageOptions")
    alternatives: Optional[List[str]] = None


class ErrorPayload(_Model):
    error: str
    type: MessageKind = "text"
    timestamp: str


class HistorySnapshot(_Model):
    messages: List[Message]
    saved_at: str = Field(alias="savedAt")

    @classmethod
    def from_json(cls, raw: Any) -> "HistorySnapshot":
        if not isinstance(raw, dict):
            raise ValueError("snapshot must be an object")
        return cls(messages=parse_messages(raw.get("messages", [])), saved_at=raw.get("savedAt", ""))

    def to_json(self) -> Dict[str, Any]:
        return {"messages": dump_messages(self.messages), "savedAt": self.saved_at}


def message_from_reply(payload: ReplyPayload, message_id: int, rendered_at: str) -> Message:
    common: Dict[str, Any] = {
        "id": message_id,
        "text": payload.response,
        "sender": "assistant",
        "rendered_at": rendered_at,
        "alternatives": payload.alternatives or None,
    }
    if payload.type == "image":
        return ImageMessage(
            urls=payload.urls or [],
            image_options=payload.image_options or ImageOptions(),
            **common,
        )
    if payload.type == "slides":
        return SlidesMessage(urls=payload.urls or [], **common)
    if payload.type == "spreadsheet":
        return SpreadsheetMessage(urls=payload.urls or [], **common)
    return TextMessage(**common)
