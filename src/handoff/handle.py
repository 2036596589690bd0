"""Responding to interactions concisely.

``InteractionHandle.respond`` centralizes creating the initial response and
creating followups by remembering whether the interaction was responded to::

    handle = InteractionHandle(
        client, interaction.id, interaction.token, track_last_message=True
    )

    await handle.respond(ResponseBuilder.defer_send_message().build())
    # the initial response is created here

    await handle.respond(ResponseBuilder.send_message(ResponseData(content="hi")))
    # a followup message is created here

    await handle.update_last(
        ResponseBuilder.send_message(ResponseData(content="edited"))
    )
    # the followup message is edited here

Clones made with ``InteractionHandle.clone`` share their state, so one task
can answer the interaction while another streams followups.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

import anyio

from .builder import ResponseBuilder
from .errors import LastMessageNotTracked
from .logging import get_logger
from .model import UNSET, Interaction, InteractionResponse, Message, ResponseData
from .transport import FollowupFields, InteractionClient, MessageResponse, UpdateFields

logger = get_logger(__name__)

__all__ = [
    "ERROR_REPLY",
    "FollowupResponse",
    "InteractionHandle",
]

ERROR_REPLY = (
    "Something went wrong, I reported the error to the devs. Hopefully they'll "
    "look into it soon! Sorry for the inconvenience."
)

_FOLLOWUP_FIELDS = (
    "allowed_mentions",
    "attachments",
    "components",
    "content",
    "embeds",
    "flags",
    "tts",
    "choices",
    "custom_id",
    "title",
)
# flags and tts can't be changed once the message exists
_UPDATE_FIELDS = (
    "allowed_mentions",
    "attachments",
    "components",
    "content",
    "embeds",
)


def _present_fields(
    data: ResponseData | None, names: tuple[str, ...]
) -> dict[str, Any]:
    if data is None:
        return {}
    present: dict[str, Any] = {}
    for name in names:
        value = getattr(data, name)
        if value is not UNSET:
            present[name] = value
    return present


def followup_fields(response: InteractionResponse) -> FollowupFields:
    return FollowupFields(**_present_fields(response.data, _FOLLOWUP_FIELDS))


def update_fields(response: InteractionResponse) -> UpdateFields:
    return UpdateFields(**_present_fields(response.data, _UPDATE_FIELDS))


@dataclass(frozen=True, slots=True)
class FollowupResponse:
    """Result of ``InteractionHandle.respond``.

    Holds nothing for the initial response, the deserialized message for a
    followup sent by a tracking handle, and the raw response otherwise.
    """

    message: Message | None = None
    raw: MessageResponse | None = None

    @property
    def is_initial(self) -> bool:
        return self.message is None and self.raw is None

    @property
    def is_deserialized(self) -> bool:
        return self.message is not None

    def model(self) -> Message | None:
        """Return the response's message, deserializing it if needed.

        Returns ``None`` for the initial response.

        Raises ``DeserializeError`` if the raw response can't be deserialized.
        """
        if self.message is not None:
            return self.message
        if self.raw is not None:
            return self.raw.model()
        return None


class _InitialClaim:
    """Marks a clone that is creating the initial response."""

    __slots__ = ("thread_id", "done")

    def __init__(self) -> None:
        self.thread_id = threading.get_ident()
        self.done = anyio.Event()


class _ResponseState:
    __slots__ = ("_guard", "_responded", "_last_message_id", "_initial_claim")

    def __init__(self) -> None:
        # held only for a single load or store, never across an await
        self._guard = threading.Lock()
        self._responded = False
        self._last_message_id: int | None = None
        self._initial_claim: _InitialClaim | None = None

    def is_responded(self) -> bool:
        with self._guard:
            return self._responded

    def claim_initial(self, claim: _InitialClaim) -> _InitialClaim | None:
        """Install ``claim`` unless another one is pending.

        Returns the pending claim, which is ``claim`` if it was installed, or
        ``None`` once the interaction was responded to.
        """
        with self._guard:
            if self._responded:
                return None
            if self._initial_claim is None:
                self._initial_claim = claim
            return self._initial_claim

    def release_initial(
        self, claim: _InitialClaim | None, *, responded: bool
    ) -> None:
        with self._guard:
            if responded:
                self._responded = True
            if claim is not None and self._initial_claim is claim:
                self._initial_claim = None
        if claim is not None:
            claim.done.set()

    def last_message_id(self) -> int | None:
        with self._guard:
            return self._last_message_id

    def set_last_message_id(self, message_id: int) -> None:
        with self._guard:
            self._last_message_id = message_id


class InteractionHandle:
    """Holds the state needed to create valid responses to one interaction.

    Create only one handle per interaction and share it with ``clone``;
    independently constructed handles don't know about each other's
    responses.

    With ``track_last_message`` every followup is deserialized so that its id
    can be used by ``update_last`` and ``last_message_id``. It can only be
    set at construction, otherwise followups sent before enabling it would be
    missed.
    """

    __slots__ = (
        "_client",
        "_interaction_id",
        "_token",
        "_state",
        "_track_last_message",
    )

    def __init__(
        self,
        client: InteractionClient,
        interaction_id: int,
        token: str,
        *,
        track_last_message: bool = False,
    ) -> None:
        self._client = client
        self._interaction_id = interaction_id
        self._token = token
        self._state = _ResponseState()
        self._track_last_message = track_last_message

    @classmethod
    def from_interaction(
        cls,
        client: InteractionClient,
        interaction: Interaction,
        *,
        track_last_message: bool = False,
    ) -> InteractionHandle:
        return cls(
            client,
            interaction.id,
            interaction.token,
            track_last_message=track_last_message,
        )

    def clone(self) -> InteractionHandle:
        clone = object.__new__(type(self))
        clone._client = self._client
        clone._interaction_id = self._interaction_id
        clone._token = self._token
        clone._state = self._state
        clone._track_last_message = self._track_last_message
        return clone

    __copy__ = clone

    def __repr__(self) -> str:
        return (
            f"InteractionHandle(interaction_id={self._interaction_id}, "
            f"responded={self.is_responded}, "
            f"track_last_message={self._track_last_message})"
        )

    @property
    def interaction_id(self) -> int:
        return self._interaction_id

    @property
    def token(self) -> str:
        return self._token

    @property
    def is_responded(self) -> bool:
        return self._state.is_responded()

    @property
    def is_tracking_last_message(self) -> bool:
        return self._track_last_message

    async def respond(self, response: InteractionResponse) -> FollowupResponse:
        """Respond to the interaction with the given response.

        The first response creates the interaction response, every later one
        creates a followup message.

        Concurrent first calls from clones on the same thread are serialized:
        one creates the interaction response and the others wait for it, then
        send followups, or retry the interaction response if it failed. A
        first call made while a clone on another thread is creating the
        interaction response doesn't wait, it sends its own interaction
        response and the transport rejects whichever one comes second with
        ``InteractionAlreadyAcknowledged``.

        Raises ``PayloadValidationError`` if the response isn't a valid
        followup, ``DeserializeError`` if the followup couldn't be
        deserialized while tracking, and ``TransportError`` if a request
        failed.
        """
        if not self._state.is_responded():
            claim = _InitialClaim()
            while (pending := self._state.claim_initial(claim)) is not None:
                if pending is claim:
                    return await self._create_initial(response, claim)
                if pending.thread_id != threading.get_ident():
                    # the pending claim's event can't be awaited from this loop
                    return await self._create_initial(response, None)
                await pending.done.wait()

        return await self._create_followup(response)

    async def _create_initial(
        self, response: InteractionResponse, claim: _InitialClaim | None
    ) -> FollowupResponse:
        responded = False
        try:
            await self._client.create_response(
                self._interaction_id, self._token, response
            )
            responded = True
        finally:
            self._state.release_initial(claim, responded=responded)
        logger.debug(
            "interaction.respond.initial",
            interaction_id=self._interaction_id,
            kind=int(response.type),
        )
        return FollowupResponse()

    async def _create_followup(self, response: InteractionResponse) -> FollowupResponse:
        followup = await self._client.create_followup(
            self._token, followup_fields(response)
        )
        if not self._track_last_message:
            logger.debug(
                "interaction.respond.followup",
                interaction_id=self._interaction_id,
            )
            return FollowupResponse(raw=followup)

        message = followup.model()
        self._state.set_last_message_id(message.id)
        logger.debug(
            "interaction.respond.followup",
            interaction_id=self._interaction_id,
            message_id=message.id,
        )
        return FollowupResponse(message=message)

    async def update_last(self, response: InteractionResponse) -> MessageResponse:
        """Edit the last followup, or the initial response if there's none.

        Only attachments, components, content, embeds and allowed mentions
        are forwarded.

        Raises ``LastMessageNotTracked`` if the handle doesn't track the last
        message, ``PayloadValidationError`` if the response isn't a valid
        edit, and ``TransportError`` if the request failed.
        """
        last_message_id = self.last_message_id()
        fields = update_fields(response)

        if last_message_id is not None:
            logger.debug(
                "interaction.update.followup",
                interaction_id=self._interaction_id,
                message_id=last_message_id,
            )
            return await self._client.update_followup(
                self._token, last_message_id, fields
            )

        logger.debug(
            "interaction.update.initial", interaction_id=self._interaction_id
        )
        return await self._client.update_response(self._token, fields)

    def last_message_id(self) -> int | None:
        """Return the id of the last followup sent to the interaction.

        Returns ``None`` if no followup has been sent yet.
        """
        if not self._track_last_message:
            raise LastMessageNotTracked()
        return self._state.last_message_id()

    async def report_error(self) -> FollowupResponse:
        """Tell the user that handling the interaction failed."""
        return await self.respond(
            ResponseBuilder.send_message(ResponseData(content=ERROR_REPLY))
        )
