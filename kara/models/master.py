"""Master arbitration models."""

from kara.models.song import CamelModel
from pydantic import Field
from typing import Literal


class MasterState(CamelModel):
    """Who may control playback."""

    token: str | None = None
    label: str | None = None
    locked: bool = False
    last_seen: int = 0


class ClientInfo(CamelModel):
    """A connected device. Observational only."""

    id: str
    socket_id: str
    user_agent: str | None = None
    ip: str | None = None
    connected_at: int
    last_seen: int


class MasterStatus(CamelModel):
    """Read-only master snapshot for a given caller."""

    master_token: str | None = None
    master_label: str | None = None
    locked: bool = False
    last_seen: int = 0
    connections: list[ClientInfo] = Field(default_factory=list)
    you_are_master: bool = False


class MasterResult(CamelModel):
    """Outcome of claim / release / lock / unlock.

    ``locked`` is True on a refusal caused by the lock, so callers can tell
    "locked" apart from "not master".
    """

    success: bool
    token: str | None = None
    locked: bool = False


class AuthorizeResult(CamelModel):
    """Outcome of a permission check for a master-only action."""

    allowed: bool
    locked: bool = False
    new_token: str | None = None
    master_token: str | None = None


class MasterRequest(CamelModel):
    """Request body for POST /api/master."""

    action: Literal["claim", "release", "lock", "unlock"] | None = None
    label: str | None = None
    lock: bool = False
    auto_recommend: bool | None = None
