"""
Pydantic models for frames received from the MiniParse event stream.
"""

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

CHAT_MESSAGE_TYPE = "Chat"


class DecodeError(ValueError):
    """Raised when a frame is not a well-formed message envelope."""


class StreamEnvelope(BaseModel):
    """Envelope fields shared by every frame."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = Field(..., alias="msgtype", description="Message discriminant")


class ChatMessage(StreamEnvelope):
    """A chat frame; its payload is one pipe-delimited log line."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "msgtype": "Chat",
                "msg": "00|2024-01-01T20:15:03.0000000-04:00|2239|"
                "|Player NameJoins the party.|0c3d7a1b2e4f5a6b",
            }
        },
    )

    type: Literal["Chat"] = Field(CHAT_MESSAGE_TYPE, alias="msgtype")
    data: str = Field(..., alias="msg", description="Raw log line")


class OtherMessage(StreamEnvelope):
    """Any other frame (CombatData, LogLine, ...); the payload is kept opaque."""

    data: Any = Field(None, alias="msg")


Envelope = Union[ChatMessage, OtherMessage]


def decode_message(raw: Union[bytes, str]) -> Envelope:
    """
    Decode one frame into its envelope variant.

    Args:
        raw: Frame payload as received from the socket

    Returns:
        ChatMessage when msgtype is "Chat", otherwise OtherMessage

    Raises:
        DecodeError: If the frame is not a JSON object with a string msgtype,
            or is a chat frame whose msg is not a string
    """
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"invalid JSON frame: {e}") from e

    if not isinstance(document, dict):
        raise DecodeError(f"expected a JSON object, got {type(document).__name__}")

    try:
        if document.get("msgtype") == CHAT_MESSAGE_TYPE:
            return ChatMessage.model_validate(document)
        return OtherMessage.model_validate(document)
    except ValidationError as e:
        raise DecodeError(str(e)) from e
