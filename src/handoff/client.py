from __future__ import annotations

from typing import Any, NoReturn

import httpx
import msgspec
from msgspec import UNSET

from .config import DEFAULT_API_BASE, DEFAULT_TIMEOUT_S, ClientSettings
from .errors import (
    INTERACTION_ALREADY_ACKNOWLEDGED,
    INVALID_FORM_BODY,
    UNKNOWN_INTERACTION,
    InteractionAlreadyAcknowledged,
    PayloadValidationError,
    RateLimited,
    TransportError,
    UnknownInteraction,
)
from .logging import get_logger
from .model import InteractionResponse, MessageFlags, ResponseKind
from .transport import FollowupFields, MessageResponse, UpdateFields

logger = get_logger(__name__)

__all__ = [
    "HttpInteractionClient",
    "validate_followup",
    "validate_response",
    "validate_update",
]

CONTENT_LENGTH_MAX = 2000
EMBED_COUNT_MAX = 10
COMPONENT_ROWS_MAX = 5
ATTACHMENT_COUNT_MAX = 10
CHOICE_COUNT_MAX = 25
MODAL_TITLE_LENGTH_MAX = 45
CUSTOM_ID_LENGTH_MAX = 100

FOLLOWUP_FLAGS = int(
    MessageFlags.SUPPRESS_EMBEDS
    | MessageFlags.EPHEMERAL
    | MessageFlags.SUPPRESS_NOTIFICATIONS
)


def _is_set(value: Any) -> bool:
    return value is not UNSET and value is not None


def _validate_message_fields(fields: Any) -> None:
    if _is_set(fields.content) and len(fields.content) > CONTENT_LENGTH_MAX:
        raise PayloadValidationError(
            "content", f"must be at most {CONTENT_LENGTH_MAX} characters"
        )
    if _is_set(fields.embeds) and len(fields.embeds) > EMBED_COUNT_MAX:
        raise PayloadValidationError(
            "embeds", f"must contain at most {EMBED_COUNT_MAX} embeds"
        )
    if _is_set(fields.components) and len(fields.components) > COMPONENT_ROWS_MAX:
        raise PayloadValidationError(
            "components", f"must contain at most {COMPONENT_ROWS_MAX} rows"
        )
    if _is_set(fields.attachments) and len(fields.attachments) > ATTACHMENT_COUNT_MAX:
        raise PayloadValidationError(
            "attachments", f"must contain at most {ATTACHMENT_COUNT_MAX} attachments"
        )


def validate_followup(fields: FollowupFields) -> None:
    _validate_message_fields(fields)
    for name in ("choices", "custom_id", "title"):
        if getattr(fields, name) is not UNSET:
            raise PayloadValidationError(
                name, "only allowed in interaction responses, not followups"
            )
    if _is_set(fields.flags) and fields.flags & ~FOLLOWUP_FLAGS:
        raise PayloadValidationError(
            "flags",
            "only SUPPRESS_EMBEDS, EPHEMERAL and SUPPRESS_NOTIFICATIONS "
            "can be set on followups",
        )


def validate_update(fields: UpdateFields) -> None:
    _validate_message_fields(fields)


def validate_response(response: InteractionResponse) -> None:
    data = response.data
    if data is None:
        if response.type == ResponseKind.MODAL:
            raise PayloadValidationError("title", "modals need a title and a custom id")
        return
    _validate_message_fields(data)
    if response.type == ResponseKind.MODAL:
        if not _is_set(data.title) or not _is_set(data.custom_id):
            raise PayloadValidationError("title", "modals need a title and a custom id")
        if len(data.title) > MODAL_TITLE_LENGTH_MAX:
            raise PayloadValidationError(
                "title", f"must be at most {MODAL_TITLE_LENGTH_MAX} characters"
            )
        if len(data.custom_id) > CUSTOM_ID_LENGTH_MAX:
            raise PayloadValidationError(
                "custom_id", f"must be at most {CUSTOM_ID_LENGTH_MAX} characters"
            )
    if _is_set(data.choices):
        if response.type != ResponseKind.APPLICATION_COMMAND_AUTOCOMPLETE_RESULT:
            raise PayloadValidationError(
                "choices", "only allowed in autocomplete results"
            )
        if len(data.choices) > CHOICE_COUNT_MAX:
            raise PayloadValidationError(
                "choices", f"must contain at most {CHOICE_COUNT_MAX} choices"
            )


def _json_or_none(resp: httpx.Response) -> Any | None:
    try:
        return resp.json()
    except ValueError:
        return None


def _retry_after_from_response(resp: httpx.Response) -> float | None:
    payload = _json_or_none(resp)
    if isinstance(payload, dict):
        retry_after = payload.get("retry_after")
        if isinstance(retry_after, (int, float)) and not isinstance(retry_after, bool):
            return float(retry_after)
    header = resp.headers.get("retry-after")
    if header is None:
        return None
    try:
        return float(header)
    except ValueError:
        return None


def _raise_for_status(method: str, resp: httpx.Response) -> NoReturn:
    payload = _json_or_none(resp)
    code = payload.get("code") if isinstance(payload, dict) else None
    message = payload.get("message") if isinstance(payload, dict) else None
    if not isinstance(code, int):
        code = None
    if not isinstance(message, str):
        message = resp.text or resp.reason_phrase

    if resp.status_code == 429:
        retry_after = _retry_after_from_response(resp) or 0.0
        is_global = isinstance(payload, dict) and bool(payload.get("global"))
        logger.info(
            "discord.rate_limited",
            method=method,
            url=str(resp.request.url),
            retry_after=retry_after,
            is_global=is_global,
        )
        raise RateLimited(retry_after, method=method, is_global=is_global)

    logger.error(
        "discord.http_error",
        method=method,
        status=resp.status_code,
        url=str(resp.request.url),
        code=code,
        error=message,
    )
    if code == INVALID_FORM_BODY:
        errors = payload.get("errors") if isinstance(payload, dict) else None
        field = next(iter(errors), None) if isinstance(errors, dict) else None
        raise PayloadValidationError(field, message)
    error_cls = TransportError
    if code == INTERACTION_ALREADY_ACKNOWLEDGED:
        error_cls = InteractionAlreadyAcknowledged
    elif code == UNKNOWN_INTERACTION:
        error_cls = UnknownInteraction
    raise error_cls(
        f"{method} failed with status {resp.status_code}: {message}",
        method=method,
        status=resp.status_code,
        code=code,
    )


class HttpInteractionClient:
    """Responds to interactions over the Discord REST API."""

    def __init__(
        self,
        token: str,
        application_id: int,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Bot token is empty")
        self._application_id = application_id
        self._base = api_base.rstrip("/")
        self._headers = {
            "Authorization": f"Bot {token}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None

    @classmethod
    def from_settings(
        cls, settings: ClientSettings, *, client: httpx.AsyncClient | None = None
    ) -> HttpInteractionClient:
        return cls(
            settings.bot_token,
            settings.application_id,
            api_base=settings.api_base,
            timeout_s=settings.timeout_s,
            client=client,
        )

    @property
    def application_id(self) -> int:
        return self._application_id

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        verb: str,
        path: str,
        payload: Any,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        url = f"{self._base}{path}"
        logger.debug("discord.request", method=method, url=url)
        try:
            resp = await self._client.request(
                verb,
                url,
                content=msgspec.json.encode(payload),
                params=params,
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            logger.error(
                "discord.network_error",
                method=method,
                url=url,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            raise TransportError(f"{method} failed: {e}", method=method) from e

        if resp.is_error:
            _raise_for_status(method, resp)

        logger.debug("discord.response", method=method, status=resp.status_code)
        return resp

    def _webhook_path(self, token: str, suffix: str = "") -> str:
        return f"/webhooks/{self._application_id}/{token}{suffix}"

    async def create_response(
        self,
        interaction_id: int,
        token: str,
        response: InteractionResponse,
    ) -> None:
        validate_response(response)
        await self._request(
            "create_response",
            "POST",
            f"/interactions/{interaction_id}/{token}/callback",
            response,
        )

    async def create_followup(
        self, token: str, fields: FollowupFields
    ) -> MessageResponse:
        validate_followup(fields)
        resp = await self._request(
            "create_followup",
            "POST",
            self._webhook_path(token),
            fields,
            params={"wait": "true"},
        )
        return MessageResponse(resp.status_code, resp.content, "create_followup")

    async def update_followup(
        self, token: str, message_id: int, fields: UpdateFields
    ) -> MessageResponse:
        validate_update(fields)
        resp = await self._request(
            "update_followup",
            "PATCH",
            self._webhook_path(token, f"/messages/{message_id}"),
            fields,
        )
        return MessageResponse(resp.status_code, resp.content, "update_followup")

    async def update_response(
        self, token: str, fields: UpdateFields
    ) -> MessageResponse:
        validate_update(fields)
        resp = await self._request(
            "update_response",
            "PATCH",
            self._webhook_path(token, "/messages/@original"),
            fields,
        )
        return MessageResponse(resp.status_code, resp.content, "update_response")
