"""Builders for ``InteractionResponse``."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from .model import (
    Choice,
    Component,
    InteractionResponse,
    MessageFlags,
    ResponseData,
    ResponseKind,
)

__all__ = [
    "DeferResponseBuilder",
    "ModalResponseBuilder",
    "ResponseBuilder",
]

TEXT_INPUT = 4
ACTION_ROW = 1


@dataclass(frozen=True, slots=True)
class DeferResponseBuilder:
    kind: ResponseKind
    is_ephemeral: bool = False
    is_suppressing_embeds: bool = False

    def ephemeral(self) -> DeferResponseBuilder:
        """Only show the response to the user that created the interaction."""
        return replace(self, is_ephemeral=True)

    def suppress_embeds(self) -> DeferResponseBuilder:
        return replace(self, is_suppressing_embeds=True)

    def build(self) -> InteractionResponse:
        flags = MessageFlags(0)
        if self.is_ephemeral:
            flags |= MessageFlags.EPHEMERAL
        if self.is_suppressing_embeds:
            flags |= MessageFlags.SUPPRESS_EMBEDS
        if not flags:
            return InteractionResponse(type=self.kind, data=ResponseData())
        return InteractionResponse(type=self.kind, data=ResponseData(flags=int(flags)))


@dataclass(frozen=True, slots=True)
class ModalResponseBuilder:
    title: str
    custom_id: str
    action_rows: tuple[Component, ...] = field(default_factory=tuple)

    def text_input(self, text_input: Component) -> ModalResponseBuilder:
        """Add a text input in its own action row."""
        row = {"type": ACTION_ROW, "components": [text_input]}
        return replace(self, action_rows=(*self.action_rows, row))

    def build(self) -> InteractionResponse:
        return InteractionResponse(
            type=ResponseKind.MODAL,
            data=ResponseData(
                components=list(self.action_rows),
                custom_id=self.custom_id,
                title=self.title,
            ),
        )


def text_input(
    custom_id: str,
    label: str,
    *,
    style: int = 1,
    required: bool = True,
    value: str | None = None,
    placeholder: str | None = None,
    min_length: int | None = None,
    max_length: int | None = None,
) -> Component:
    component: Component = {
        "type": TEXT_INPUT,
        "custom_id": custom_id,
        "label": label,
        "style": style,
        "required": required,
    }
    if value is not None:
        component["value"] = value
    if placeholder is not None:
        component["placeholder"] = placeholder
    if min_length is not None:
        component["min_length"] = min_length
    if max_length is not None:
        component["max_length"] = max_length
    return component


class ResponseBuilder:
    @staticmethod
    def pong() -> InteractionResponse:
        return InteractionResponse(type=ResponseKind.PONG)

    @staticmethod
    def send_message(data: ResponseData) -> InteractionResponse:
        return InteractionResponse(
            type=ResponseKind.CHANNEL_MESSAGE_WITH_SOURCE, data=data
        )

    @staticmethod
    def update_message(data: ResponseData) -> InteractionResponse:
        """Edit the message the component interaction came from."""
        return InteractionResponse(type=ResponseKind.UPDATE_MESSAGE, data=data)

    @staticmethod
    def defer_send_message() -> DeferResponseBuilder:
        """Acknowledge now and send the message later as a followup.

        Use when the message can't be ready within the 3 second deadline of
        the initial response.
        """
        return DeferResponseBuilder(ResponseKind.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE)

    @staticmethod
    def defer_update_message() -> DeferResponseBuilder:
        """Acknowledge a component or modal interaction without a loading message."""
        return DeferResponseBuilder(ResponseKind.DEFERRED_UPDATE_MESSAGE)

    @staticmethod
    def show_modal(title: str, custom_id: str) -> ModalResponseBuilder:
        return ModalResponseBuilder(title=title, custom_id=custom_id)

    @staticmethod
    def autocomplete(choices: Iterable[Choice]) -> InteractionResponse:
        return InteractionResponse(
            type=ResponseKind.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT,
            data=ResponseData(choices=list(choices)),
        )
