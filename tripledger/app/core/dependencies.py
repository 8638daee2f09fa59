"""
Authentication and session-context dependencies for FastAPI.

The identity provider is external: it hands out signed bearer tokens whose
``sub`` is a stable identity id. This module maps that identity onto the
participant it claimed inside the requested trip.
"""

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from tripledger.app.core.context import Identity, SessionContext
from tripledger.app.core.exceptions import NotFoundError
from tripledger.app.core.jwt import decode_access_token
from tripledger.app.db.session import get_db
from tripledger.app.models.participant import Participant
from tripledger.app.models.trip import Trip

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Identity:
    """
    FastAPI dependency for JWT authentication.

    Args:
        credentials: HTTP Bearer token from request header

    Returns:
        Identity with the stable identity id and admin capability

    Raises:
        HTTPException: 401 if the token is invalid or carries no subject
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity_id = payload.get("sub")
    if not identity_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Identity(identity_id=str(identity_id), is_admin=bool(payload.get("is_admin", False)))


async def load_session_context(db: AsyncSession, trip_id: str, identity: Identity) -> SessionContext:
    """
    Resolve the trip and the participant claimed by ``identity`` in it.

    Raises:
        NotFoundError if the trip does not exist
    """
    trip = await db.get(Trip, trip_id)
    if not trip:
        raise NotFoundError("trip", trip_id)

    result = await db.execute(
        select(Participant).where(
            Participant.trip_id == trip_id,
            Participant.identity_id == identity.identity_id
        )
    )
    participant = result.scalar_one_or_none()

    return SessionContext(
        trip_id=trip_id,
        identity=identity,
        participant_id=participant.id if participant else None,
        is_treasurer=bool(participant and participant.is_treasurer),
    )


async def get_session_context(
    trip_id: str = Path(..., description="Trip ID"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """FastAPI dependency for trip-scoped routes."""
    return await load_session_context(db, trip_id, identity)
