"""Wire types for interaction responses and the messages they create.

Fields defaulting to ``msgspec.UNSET`` are absent: they are omitted when
encoded and are never forwarded. ``None`` is an explicit value that clears
the field.
"""

from __future__ import annotations

import enum
from typing import Any, TypeAlias

import msgspec
from msgspec import UNSET, UnsetType

__all__ = [
    "Attachment",
    "Interaction",
    "InteractionResponse",
    "InteractionType",
    "Message",
    "MessageFlags",
    "ResponseData",
    "ResponseKind",
    "UNSET",
    "UnsetType",
]

Component: TypeAlias = dict[str, Any]
Embed: TypeAlias = dict[str, Any]
Choice: TypeAlias = dict[str, Any]
AllowedMentions: TypeAlias = dict[str, Any]


class ResponseKind(enum.IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7
    APPLICATION_COMMAND_AUTOCOMPLETE_RESULT = 8
    MODAL = 9


class InteractionType(enum.IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class MessageFlags(enum.IntFlag):
    SUPPRESS_EMBEDS = 1 << 2
    EPHEMERAL = 1 << 6
    SUPPRESS_NOTIFICATIONS = 1 << 12


class Attachment(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    filename: str | UnsetType = UNSET
    description: str | UnsetType = UNSET


class ResponseData(msgspec.Struct, forbid_unknown_fields=False):
    allowed_mentions: AllowedMentions | None | UnsetType = UNSET
    attachments: list[Attachment] | None | UnsetType = UNSET
    choices: list[Choice] | None | UnsetType = UNSET
    components: list[Component] | None | UnsetType = UNSET
    content: str | None | UnsetType = UNSET
    custom_id: str | None | UnsetType = UNSET
    embeds: list[Embed] | None | UnsetType = UNSET
    flags: int | None | UnsetType = UNSET
    title: str | None | UnsetType = UNSET
    tts: bool | None | UnsetType = UNSET


class InteractionResponse(
    msgspec.Struct, forbid_unknown_fields=False, omit_defaults=True
):
    type: ResponseKind
    data: ResponseData | None = None

    @property
    def kind(self) -> ResponseKind:
        return self.type


class Message(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    channel_id: int | None = None
    content: str = ""
    flags: int = 0
    tts: bool = False
    embeds: list[Embed] = msgspec.field(default_factory=list)
    components: list[Component] = msgspec.field(default_factory=list)
    attachments: list[dict[str, Any]] = msgspec.field(default_factory=list)
    webhook_id: int | None = None


class Interaction(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    application_id: int
    type: InteractionType
    token: str
    data: dict[str, Any] | None = None
    guild_id: int | None = None
    channel_id: int | None = None


def decode_interaction(raw: bytes | str) -> Interaction:
    # snowflakes arrive as strings
    return msgspec.json.decode(raw, type=Interaction, strict=False)
