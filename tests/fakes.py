from __future__ import annotations

import itertools
import threading

import anyio
import msgspec

from handoff.errors import InteractionAlreadyAcknowledged, TransportError
from handoff.model import UNSET, InteractionResponse
from handoff.transport import FollowupFields, MessageResponse, UpdateFields


def message_body(message_id: int, content: str = "") -> bytes:
    return msgspec.json.encode(
        {"id": str(message_id), "channel_id": "5", "content": content}
    )


class FakeInteractionClient:
    def __init__(
        self,
        *,
        response_delay: float = 0.0,
        followup_delay: float = 0.0,
        first_message_id: int = 100,
    ) -> None:
        self.calls: list[str] = []
        self.responses: list[tuple[int, str, InteractionResponse]] = []
        self.followups: list[tuple[str, FollowupFields]] = []
        self.updates: list[tuple[str, int | None, UpdateFields]] = []
        self.response_delay = response_delay
        self.followup_delay = followup_delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_with: TransportError | None = None
        self.followup_body: bytes | None = None
        self._acknowledged = False
        # clones may call in from several threads
        self._lock = threading.Lock()
        self._ids = itertools.count(first_message_id)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    async def create_response(
        self, interaction_id: int, token: str, response: InteractionResponse
    ) -> None:
        self.calls.append("create_response")
        if self.response_delay:
            await anyio.sleep(self.response_delay)
        self._maybe_fail()
        with self._lock:
            acknowledged, self._acknowledged = self._acknowledged, True
        if acknowledged:
            raise InteractionAlreadyAcknowledged(
                "create_response failed with status 400: Interaction has already "
                "been acknowledged.",
                method="create_response",
                status=400,
                code=40060,
            )
        self.responses.append((interaction_id, token, response))

    async def create_followup(
        self, token: str, fields: FollowupFields
    ) -> MessageResponse:
        self.calls.append("create_followup")
        if self.followup_delay:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
            try:
                await anyio.sleep(self.followup_delay)
            finally:
                self.in_flight -= 1
        self._maybe_fail()
        self.followups.append((token, fields))
        content = fields.content if isinstance(fields.content, str) else ""
        body = self.followup_body or message_body(next(self._ids), content)
        return MessageResponse(200, body, "create_followup")

    async def update_followup(
        self, token: str, message_id: int, fields: UpdateFields
    ) -> MessageResponse:
        self.calls.append("update_followup")
        self._maybe_fail()
        self.updates.append((token, message_id, fields))
        content = fields.content if fields.content is not UNSET else ""
        return MessageResponse(200, message_body(message_id, content or ""))

    async def update_response(
        self, token: str, fields: UpdateFields
    ) -> MessageResponse:
        self.calls.append("update_response")
        self._maybe_fail()
        self.updates.append((token, None, fields))
        content = fields.content if fields.content is not UNSET else ""
        return MessageResponse(200, message_body(1, content or ""))
