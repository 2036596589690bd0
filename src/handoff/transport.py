from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import msgspec
from msgspec import UNSET, UnsetType

from .errors import DeserializeError
from .model import (
    AllowedMentions,
    Attachment,
    Choice,
    Component,
    Embed,
    InteractionResponse,
    Message,
)

__all__ = [
    "FollowupFields",
    "InteractionClient",
    "MessageResponse",
    "UpdateFields",
]


class FollowupFields(msgspec.Struct, forbid_unknown_fields=False):
    allowed_mentions: AllowedMentions | None | UnsetType = UNSET
    attachments: list[Attachment] | None | UnsetType = UNSET
    components: list[Component] | None | UnsetType = UNSET
    content: str | None | UnsetType = UNSET
    embeds: list[Embed] | None | UnsetType = UNSET
    flags: int | None | UnsetType = UNSET
    tts: bool | None | UnsetType = UNSET
    # interaction-response-only fields, rejected by clients
    choices: list[Choice] | None | UnsetType = UNSET
    custom_id: str | None | UnsetType = UNSET
    title: str | None | UnsetType = UNSET


class UpdateFields(msgspec.Struct, forbid_unknown_fields=False):
    allowed_mentions: AllowedMentions | None | UnsetType = UNSET
    attachments: list[Attachment] | None | UnsetType = UNSET
    components: list[Component] | None | UnsetType = UNSET
    content: str | None | UnsetType = UNSET
    embeds: list[Embed] | None | UnsetType = UNSET


@dataclass(frozen=True, slots=True)
class MessageResponse:
    """A message-bearing response whose body hasn't been deserialized yet."""

    status: int
    body: bytes
    method: str | None = None

    def model(self) -> Message:
        try:
            return msgspec.json.decode(self.body, type=Message, strict=False)
        except (msgspec.DecodeError, msgspec.ValidationError) as exc:
            raise DeserializeError(
                f"failed to deserialize {self.method or 'response'} body: {exc}",
                body=self.body,
            ) from exc


@runtime_checkable
class InteractionClient(Protocol):
    async def create_response(
        self,
        interaction_id: int,
        token: str,
        response: InteractionResponse,
    ) -> None: ...

    async def create_followup(
        self, token: str, fields: FollowupFields
    ) -> MessageResponse: ...

    async def update_followup(
        self, token: str, message_id: int, fields: UpdateFields
    ) -> MessageResponse: ...

    async def update_response(
        self, token: str, fields: UpdateFields
    ) -> MessageResponse: ...
