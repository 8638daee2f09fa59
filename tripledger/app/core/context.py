"""
Explicit session context passed to every ledger operation.

Replaces client-side cached trip/participant state: each request resolves its
identity, trip and acting participant once and hands them down.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Identity supplied by the identity provider."""
    identity_id: str
    is_admin: bool = False


@dataclass(frozen=True)
class SessionContext:
    """
    Acting identity within one trip.

    Attributes:
        trip_id: Trip every query is scoped to
        identity: Authenticated identity
        participant_id: Participant claimed by the identity in this trip (None for outsiders)
        is_treasurer: Treasurer flag of that participant
    """
    trip_id: str
    identity: Identity
    participant_id: Optional[str] = None
    is_treasurer: bool = False

    @property
    def is_admin(self) -> bool:
        return self.identity.is_admin

    @property
    def is_member(self) -> bool:
        return self.participant_id is not None

    @property
    def actor_id(self) -> Optional[str]:
        return self.participant_id
