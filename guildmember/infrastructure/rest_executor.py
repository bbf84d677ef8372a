"""HTTP Command Executor — submits member mutations to the platform REST API.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection): max `max_retries` retries with exponential backoff
    - Client errors (4xx except 429) and timeouts: immediate failure, no retry
    - All failures mapped to MutationFailedError (core/errors.py), including
      undecodable or incomplete response bodies
    - A member body returned by an edit goes to snapshot_sink; the executor
      never writes member fields itself

Design Decisions:
    - Explicit dict from MutationKind to handler: every route visible in one place
    - ±25% jitter on backoff
"""

import asyncio
import logging
import random
from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from guildmember.config import Settings
from guildmember.core.domain_types import MutationKind
from guildmember.core.errors import (
    ErrorContext,
    InvalidMemberArgumentError,
    MutationFailedError,
)
from guildmember.core.member_snapshot import parse_member_snapshot
from guildmember.schemas.member import MemberSnapshot
from guildmember.schemas.mutation import (
    DeleteDirectMessageRequest,
    MemberEditRequest,
    MutationRequest,
    RemoveMemberRequest,
)

if TYPE_CHECKING:
    from guildmember.core.guild_member import GuildMember

logger = logging.getLogger(__name__)

SnapshotSink = Callable[["GuildMember", MemberSnapshot], "GuildMember"]


class HttpCommandExecutor:
    """CommandExecutor over httpx with retry, backoff, and error mapping."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 30_000,
        snapshot_sink: SnapshotSink | None = None,
    ):
        self.client = client
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.snapshot_sink = snapshot_sink

        # Adding a mutation kind requires editing this dict
        self._routes = {
            MutationKind.SET_VOICE_STATE: self._edit_member,
            MutationKind.SET_NICKNAME: self._edit_member,
            MutationKind.SET_ROLES: self._edit_member,
            MutationKind.EDIT_MEMBER: self._edit_member,
            MutationKind.REMOVE_MEMBER: self._remove_member,
            MutationKind.DELETE_DM_CHANNEL: self._delete_dm_channel,
        }

    @classmethod
    def from_settings(
        cls, settings: Settings, snapshot_sink: SnapshotSink | None = None,
    ) -> "HttpCommandExecutor":
        client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            headers={"Authorization": f"Bot {settings.api_token}"},
            timeout=settings.api_timeout_seconds,
        )
        return cls(
            client,
            max_retries=settings.api_max_retries,
            base_delay_ms=settings.api_base_delay_ms,
            max_delay_ms=settings.api_max_delay_ms,
            snapshot_sink=snapshot_sink,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def submit(
        self, member: "GuildMember", request: MutationRequest,
    ) -> "GuildMember":
        """Route the request by kind. Raises MutationFailedError on failure."""
        handler = self._routes[request.kind]
        return await handler(member, request)

    # ─── Routes ──────────────────────────────────────────────────

    async def _edit_member(
        self, member: "GuildMember", request: MemberEditRequest,
    ) -> "GuildMember":
        context = _context(member, request)
        response = await self._request(
            "PATCH", _member_path(member, context), context,
            json=request.to_payload(),
        )
        if response.status_code == 204 or not response.content:
            return member
        snapshot = parse_member_snapshot(_json_body(response, context), context)
        if self.snapshot_sink is None:
            return member
        return self.snapshot_sink(member, snapshot)

    async def _remove_member(
        self, member: "GuildMember", request: RemoveMemberRequest,
    ) -> "GuildMember":
        context = _context(member, request)
        if request.ban:
            await self._request(
                "PUT", _ban_path(member, context), context,
                json={"delete_message_days": request.delete_message_days},
            )
        else:
            await self._request("DELETE", _member_path(member, context), context)
        return member

    async def _delete_dm_channel(
        self, member: "GuildMember", request: DeleteDirectMessageRequest,
    ) -> "GuildMember":
        context = _context(member, request)
        opened = await self._request(
            "POST", "/users/@me/channels", context,
            json={"recipient_id": request.recipient_id},
        )
        body = _json_body(opened, context)
        channel_id = body.get("id") if isinstance(body, dict) else None
        if not isinstance(channel_id, str) or not channel_id:
            raise MutationFailedError(
                "DM channel response carries no channel id", "invalid_response",
                status_code=opened.status_code, context=context,
            )
        await self._request("DELETE", f"/channels/{channel_id}", context)
        return member

    # ─── Transport ───────────────────────────────────────────────

    async def _request(
        self, method: str, path: str, context: ErrorContext, **kwargs,
    ) -> httpx.Response:
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(method, path, **kwargs)
            except httpx.TimeoutException as e:
                raise MutationFailedError(
                    f"{method} {path} timed out", "timeout", context=context,
                ) from e
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, context,
                )
                continue
            if response.status_code >= 400:
                raise MutationFailedError(
                    _describe(response), "client_error",
                    status_code=response.status_code, context=context,
                )
            self._log_success(method, path, response, attempt)
            return response
        raise MutationFailedError(
            f"{method} {path} exhausted retries", "connection_error",
            context=context,
        )

    def _log_success(
        self, method: str, path: str, response: httpx.Response, attempt: int,
    ) -> None:
        logger.info(
            "Member mutation accepted",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "attempt": attempt + 1,
            },
        )

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        """Sleep out the rate limit, or raise when retries are exhausted."""
        retry_after_ms = _extract_retry_after(response)
        if attempt >= self.max_retries:
            raise MutationFailedError(
                "Rate limit exceeded after retries", "rate_limit",
                status_code=429, retry_after_ms=retry_after_ms, context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext,
    ) -> None:
        if attempt >= self.max_retries:
            raise MutationFailedError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error", context=context,
            ) from (e if isinstance(e, BaseException) else None)
        delay = self._backoff(attempt)
        logger.warning(f"Transient error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


def _context(member: "GuildMember", request: MutationRequest) -> ErrorContext:
    return ErrorContext(
        guild_id=member.guild.id, member_id=member.id,
        mutation=request.kind.value,
    )


def _user_id(member: "GuildMember", context: ErrorContext) -> str:
    if member.id is None:
        raise InvalidMemberArgumentError(
            "Member has no user; cannot address it on the API", "user", context,
        )
    return member.id


def _member_path(member: "GuildMember", context: ErrorContext) -> str:
    return f"/guilds/{member.guild.id}/members/{_user_id(member, context)}"


def _ban_path(member: "GuildMember", context: ErrorContext) -> str:
    return f"/guilds/{member.guild.id}/bans/{_user_id(member, context)}"


def _json_body(response: httpx.Response, context: ErrorContext) -> object:
    """Decoded JSON body; undecodable bodies map to MutationFailedError."""
    try:
        return response.json()
    except ValueError as e:
        raise MutationFailedError(
            f"Response body is not JSON: {e}", "invalid_response",
            status_code=response.status_code, context=context,
        ) from e


def _extract_retry_after(response: httpx.Response) -> int | None:
    """Retry-After header in milliseconds (the header carries seconds)."""
    val = response.headers.get("retry-after")
    if not val:
        return None
    try:
        return int(float(val) * 1000)
    except ValueError:
        return None


def _describe(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"
