"""Socket Event Schemas — Pydantic models for inbound chat and ledger frames.

Invariants:
    - Every inbound frame is {"type": <kind>, "payload": {...}}
    - Frames that fail to parse raise TransportFaultError (dropped, socket kept)
    - auth.username may be blank here: the service answers it with an error event

Design Decisions:
    - Discriminated union on `type`: Pydantic picks the model, no manual dispatch on strings
    - Literal type tags over str enum: Pydantic handles validation natively
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from relaypay.core.errors import TransportFaultError


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AuthPayload(_Payload):
    username: str = Field("", max_length=64)
    user_id: str | None = Field(None, alias="userId", max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        return v.strip()


class MessagePayload(_Payload):
    to: str = Field(min_length=1, max_length=128)
    content: str = Field(max_length=10_000)
    kind: str | None = Field(None, alias="type", max_length=32)


class TypingPayload(_Payload):
    to: str = Field(min_length=1, max_length=128)
    typing: bool


class ReadPayload(_Payload):
    sender: str = Field(alias="from", min_length=1, max_length=128)
    message_ids: list[str] = Field(alias="messageIds", max_length=1000)


class JoinPayload(_Payload):
    id: str = Field(min_length=1, max_length=128)


class EmptyPayload(_Payload):
    pass


class AuthEvent(BaseModel):
    type: Literal["auth"]
    payload: AuthPayload


class MessageEvent(BaseModel):
    type: Literal["message"]
    payload: MessagePayload


class TypingEvent(BaseModel):
    type: Literal["typing"]
    payload: TypingPayload


class ReadEvent(BaseModel):
    type: Literal["read"]
    payload: ReadPayload


class JoinEvent(BaseModel):
    type: Literal["join"]
    payload: JoinPayload


class PongEvent(BaseModel):
    type: Literal["pong"]
    payload: EmptyPayload = Field(default_factory=EmptyPayload)


ChatInbound = Annotated[
    Union[AuthEvent, MessageEvent, TypingEvent, ReadEvent, PongEvent],
    Field(discriminator="type"),
]
LedgerInbound = Annotated[
    Union[JoinEvent, PongEvent],
    Field(discriminator="type"),
]

_chat_adapter: TypeAdapter = TypeAdapter(ChatInbound)
_ledger_adapter: TypeAdapter = TypeAdapter(LedgerInbound)


def _parse(adapter: TypeAdapter, raw: str | bytes):
    try:
        return adapter.validate_json(raw)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        where = ".".join(str(loc) for loc in first.get("loc", ()))
        raise TransportFaultError(f"{where or 'frame'}: {first.get('msg', 'invalid')}")


def parse_chat_event(raw: str | bytes) -> AuthEvent | MessageEvent | TypingEvent | ReadEvent | PongEvent:
    return _parse(_chat_adapter, raw)


def parse_ledger_event(raw: str | bytes) -> JoinEvent | PongEvent:
    return _parse(_ledger_adapter, raw)
