"""HTTP Command Executor — routing, retry and error mapping over httpx.

Tests cover:
    - Each MutationKind maps to the right method, path and body
    - Member bodies from an edit reach the snapshot sink
    - 429 retried with Retry-After, 5xx retried with backoff
    - 4xx fails immediately with MutationFailedError
    - Retries exhausted and timeouts mapped to MutationFailedError
"""

import json

import httpx
import pytest

from guildmember.config import Settings
from guildmember.core.errors import InvalidMemberArgumentError, MutationFailedError
from guildmember.core.guild_member import GuildMember
from guildmember.infrastructure import rest_executor
from guildmember.infrastructure.rest_executor import HttpCommandExecutor
from guildmember.services.member_roster import MemberRoster

BASE = "https://api.test"


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Skip real backoff delays; record requested sleeps instead."""
    slept = []

    async def _sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr(rest_executor.asyncio, "sleep", _sleep)
    return slept


def _executor(handler, **kwargs):
    client = httpx.AsyncClient(
        base_url=BASE, transport=httpx.MockTransport(handler),
    )
    return HttpCommandExecutor(client, base_delay_ms=10, **kwargs)


def _recorder(responses):
    """Handler returning queued responses (last one repeats) and logging each request."""
    log = []

    def handler(request: httpx.Request) -> httpx.Response:
        log.append(request)
        template = responses.pop(0) if len(responses) > 1 else responses[0]
        return httpx.Response(
            template.status_code, headers=template.headers, content=template.content,
        )

    return handler, log


@pytest.fixture
def roster(snapshot):
    roster = MemberRoster("G", executor=None)
    roster.apply_member_snapshot(snapshot)
    return roster


def _bind(roster, executor) -> GuildMember:
    roster.executor = executor
    return roster.get_member("U1")


# ─── Routing ─────────────────────────────────────────────────────

async def test_edit_patches_member(roster):
    handler, log = _recorder([httpx.Response(204)])
    member = _bind(roster, _executor(handler))
    result = await member.set_roles(["R3"])
    assert result is member
    assert log[0].method == "PATCH"
    assert log[0].url.path == "/guilds/G/members/U1"
    assert json.loads(log[0].content) == {"roles": ["R3"]}


async def test_edit_body_flows_to_snapshot_sink(roster, snapshot):
    body = {**snapshot, "roles": ["R3"], "nick": "New"}
    handler, _ = _recorder([httpx.Response(200, json=body)])
    member = _bind(roster, _executor(
        handler, snapshot_sink=roster.accept_mutation_result,
    ))
    result = await member.set_nickname("New")
    assert result is member
    assert member.nickname == "New"
    assert member.role_ids == ("R3",)


async def test_edit_body_ignored_without_sink(roster, snapshot):
    handler, _ = _recorder([httpx.Response(200, json={**snapshot, "nick": "New"})])
    member = _bind(roster, _executor(handler))
    await member.set_nickname("New")
    assert member.nickname == "Al"


async def test_kick_deletes_member(roster):
    handler, log = _recorder([httpx.Response(204)])
    member = _bind(roster, _executor(handler))
    await member.kick()
    assert log[0].method == "DELETE"
    assert log[0].url.path == "/guilds/G/members/U1"


async def test_ban_puts_ban_with_days(roster):
    handler, log = _recorder([httpx.Response(204)])
    member = _bind(roster, _executor(handler))
    await member.ban(7)
    assert log[0].method == "PUT"
    assert log[0].url.path == "/guilds/G/bans/U1"
    assert json.loads(log[0].content) == {"delete_message_days": 7}


async def test_delete_dm_opens_then_deletes(roster):
    handler, log = _recorder([
        httpx.Response(200, json={"id": "DM1"}),
        httpx.Response(200, json={"id": "DM1"}),
    ])
    member = _bind(roster, _executor(handler))
    await member.delete_dm()
    assert [(r.method, r.url.path) for r in log] == [
        ("POST", "/users/@me/channels"),
        ("DELETE", "/channels/DM1"),
    ]
    assert json.loads(log[0].content) == {"recipient_id": "U1"}


async def test_delete_dm_without_channel_id_fails_typed(roster):
    handler, log = _recorder([httpx.Response(200, json={})])
    member = _bind(roster, _executor(handler))
    with pytest.raises(MutationFailedError) as exc:
        await member.delete_dm()
    assert exc.value.api_error_type == "invalid_response"
    assert exc.value.status_code == 200
    assert [r.method for r in log] == ["POST"]


async def test_delete_dm_non_json_body_fails_typed(roster):
    handler, log = _recorder([httpx.Response(200, content=b"<html>")])
    member = _bind(roster, _executor(handler))
    with pytest.raises(MutationFailedError) as exc:
        await member.delete_dm()
    assert exc.value.api_error_type == "invalid_response"
    assert isinstance(exc.value.__cause__, ValueError)
    assert len(log) == 1


async def test_edit_non_json_body_fails_typed(roster):
    handler, _ = _recorder([httpx.Response(200, content=b"not json")])
    member = _bind(roster, _executor(
        handler, snapshot_sink=roster.accept_mutation_result,
    ))
    with pytest.raises(MutationFailedError) as exc:
        await member.set_nickname("New")
    assert exc.value.api_error_type == "invalid_response"
    assert member.nickname == "Al"


@pytest.mark.parametrize("action", ["kick", "ban"])
async def test_member_without_user_cannot_be_addressed(action):
    roster = MemberRoster("G", executor=None)
    handler, log = _recorder([httpx.Response(204)])
    member = GuildMember(roster, executor=_executor(handler))
    with pytest.raises(InvalidMemberArgumentError):
        await getattr(member, action)()
    assert log == []


# ─── Retry & errors ──────────────────────────────────────────────

async def test_rate_limit_respects_retry_after(roster, no_sleep):
    handler, log = _recorder([
        httpx.Response(429, headers={"Retry-After": "1.5"}),
        httpx.Response(204),
    ])
    member = _bind(roster, _executor(handler))
    await member.kick()
    assert len(log) == 2
    assert no_sleep == [1.5]


async def test_server_error_retried(roster, no_sleep):
    handler, log = _recorder([httpx.Response(502), httpx.Response(204)])
    member = _bind(roster, _executor(handler))
    await member.kick()
    assert len(log) == 2
    assert len(no_sleep) == 1


async def test_client_error_not_retried(roster):
    handler, log = _recorder([
        httpx.Response(403, json={"message": "Missing Permissions", "code": 50013}),
    ])
    member = _bind(roster, _executor(handler))
    with pytest.raises(MutationFailedError) as exc:
        await member.set_roles(["R3"])
    assert len(log) == 1
    assert exc.value.status_code == 403
    assert "Missing Permissions" in exc.value.message
    assert exc.value.context.mutation == "set_roles"
    assert member.role_ids == ("R1", "R2")


async def test_rate_limit_exhausted(roster):
    handler, log = _recorder([httpx.Response(429)])
    member = _bind(roster, _executor(handler, max_retries=2))
    with pytest.raises(MutationFailedError) as exc:
        await member.kick()
    assert len(log) == 3
    assert exc.value.api_error_type == "rate_limit"


async def test_transport_errors_exhausted(roster):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    member = _bind(roster, _executor(handler, max_retries=1))
    with pytest.raises(MutationFailedError) as exc:
        await member.kick()
    assert len(calls) == 2
    assert exc.value.api_error_type == "connection_error"
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


async def test_timeout_not_retried(roster):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("slow", request=request)

    member = _bind(roster, _executor(handler))
    with pytest.raises(MutationFailedError) as exc:
        await member.kick()
    assert len(calls) == 1
    assert exc.value.api_error_type == "timeout"
    assert isinstance(exc.value.__cause__, httpx.ReadTimeout)


def test_backoff_is_bounded():
    executor = HttpCommandExecutor(
        httpx.AsyncClient(), base_delay_ms=100, max_delay_ms=1000,
    )
    for attempt in range(10):
        assert 75 <= executor._backoff(attempt) <= 1250


async def test_from_settings_configures_client():
    settings = Settings(
        api_base_url="https://api.test/v10/", api_token="abc", api_max_retries=5,
    )
    executor = HttpCommandExecutor.from_settings(settings)
    assert executor.max_retries == 5
    assert str(executor.client.base_url).rstrip("/") == "https://api.test/v10"
    assert executor.client.headers["Authorization"] == "Bot abc"
    await executor.aclose()
