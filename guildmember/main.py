"""Host Entry Point — wires settings, logging, executor and roster for one guild.

Invariants:
    - setup_logging runs before any roster or executor is built
    - The executor's snapshot sink is the roster it serves
    - The HTTP client is closed on exit, including exit by exception
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from guildmember.config import Settings, get_settings
from guildmember.core.domain_types import GuildId
from guildmember.infrastructure.observability import setup_logging
from guildmember.infrastructure.rest_executor import HttpCommandExecutor
from guildmember.services.member_roster import MemberRoster

logger = logging.getLogger(__name__)


@asynccontextmanager
async def guild_session(
    guild_id: GuildId, settings: Settings | None = None,
) -> AsyncIterator[MemberRoster]:
    """Yield a MemberRoster backed by the platform REST API."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    roster = MemberRoster(guild_id, executor=None)
    executor = HttpCommandExecutor.from_settings(
        settings, snapshot_sink=roster.accept_mutation_result,
    )
    roster.executor = executor
    logger.info("Guild session opened", extra={"guild_id": guild_id})
    try:
        yield roster
    finally:
        await executor.aclose()
        logger.info("Guild session closed", extra={"guild_id": guild_id})
