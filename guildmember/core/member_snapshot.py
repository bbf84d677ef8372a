"""Member Snapshot — parsing, serialization and voice-state merging for member payloads.

Invariants:
    - validate_payload either returns a complete model or raises
      MalformedSnapshotError; it never returns a partially valid payload
    - member_to_snapshot is the inverse of GuildMember.refresh for owned fields
      (speaking is not part of a snapshot)
    - merge_voice_state replaces voice fields only; roles, nick, user and joined_at carry over
"""

from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from guildmember.core.errors import ErrorContext, MalformedSnapshotError
from guildmember.schemas.member import MemberSnapshot, VoiceStateSnapshot

if TYPE_CHECKING:
    from guildmember.core.guild_member import GuildMember

_M = TypeVar("_M", bound=BaseModel)


def validate_payload(
    model: type[_M], data: Any, context: ErrorContext | None = None,
) -> _M:
    """Validate a raw payload into `model`; instances pass through untouched."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedSnapshotError(_error_details(e), context) from e


def parse_member_snapshot(
    data: Any, context: ErrorContext | None = None,
) -> MemberSnapshot:
    return validate_payload(MemberSnapshot, data, context)


def member_to_snapshot(member: "GuildMember") -> MemberSnapshot | None:
    """Serialize owned fields back into a snapshot. None if never populated."""
    if member.join_date is None:
        return None
    return MemberSnapshot(
        user=member.user,
        roles=list(member.role_ids),
        nick=member.nickname,
        joined_at=member.join_date,
        deaf=member.server_deaf,
        mute=member.server_mute,
        self_mute=member.self_mute,
        self_deaf=member.self_deaf,
        session_id=member.voice_session_id,
        channel_id=member.voice_channel_id,
    )


def merge_voice_state(
    snapshot: MemberSnapshot, voice: VoiceStateSnapshot,
) -> MemberSnapshot:
    """Full snapshot with the voice fields of `voice` applied.

    A voice state without a channel clears the session ID as well.
    """
    return snapshot.model_copy(update={
        "deaf": voice.deaf,
        "mute": voice.mute,
        "self_mute": voice.self_mute,
        "self_deaf": voice.self_deaf,
        "session_id": voice.session_id if voice.channel_id else None,
        "channel_id": voice.channel_id,
    })


def _error_details(exc: ValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
