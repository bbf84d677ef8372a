"""Mutation Schemas — request shapes submitted to a Command Executor.

Invariants:
    - MemberEditRequest carries at least one field; only set fields reach the payload
    - RemoveMemberRequest.delete_message_days is within [0, 7]
    - Every request exposes `kind` (MutationKind) for routing and logging

Design Decisions:
    - Edit kind derived from the set fields: single-field edits keep their
      specific kind, multi-field edits report EDIT_MEMBER
"""

from typing import ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from guildmember.core.domain_types import (
    MAX_DELETE_MESSAGE_DAYS,
    MAX_NICKNAME_LENGTH,
    MIN_DELETE_MESSAGE_DAYS,
    ChannelId,
    MutationKind,
    RoleId,
    UserId,
)

_VOICE_FIELDS = frozenset({"mute", "deaf", "channel_id"})


class MemberEditRequest(BaseModel):
    """Partial member edit; voice state, nickname and roles share one endpoint."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    nick: str | None = Field(None, max_length=MAX_NICKNAME_LENGTH)
    roles: tuple[RoleId, ...] | None = None
    mute: bool | None = None
    deaf: bool | None = None
    channel_id: ChannelId | None = None

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("member edit requires at least one field")
        return self

    @property
    def kind(self) -> MutationKind:
        fields = self.model_fields_set
        if fields == {"roles"}:
            return MutationKind.SET_ROLES
        if fields == {"nick"}:
            return MutationKind.SET_NICKNAME
        if fields <= _VOICE_FIELDS:
            return MutationKind.SET_VOICE_STATE
        return MutationKind.EDIT_MEMBER

    def to_payload(self) -> dict:
        """JSON body for the edit; unset fields are omitted, nick None becomes ""."""
        payload = self.model_dump(mode="json", exclude_unset=True)
        if "nick" in payload and payload["nick"] is None:
            payload["nick"] = ""
        return payload


class RemoveMemberRequest(BaseModel):
    """Kick (ban=False) or ban the member from the guild."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ClassVar[MutationKind] = MutationKind.REMOVE_MEMBER

    ban: bool = False
    delete_message_days: int = Field(
        MIN_DELETE_MESSAGE_DAYS,
        ge=MIN_DELETE_MESSAGE_DAYS, le=MAX_DELETE_MESSAGE_DAYS,
    )


class DeleteDirectMessageRequest(BaseModel):
    """Close the direct-message channel with the member's user."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: ClassVar[MutationKind] = MutationKind.DELETE_DM_CHANNEL

    recipient_id: UserId


MutationRequest = Union[
    MemberEditRequest, RemoveMemberRequest, DeleteDirectMessageRequest,
]
