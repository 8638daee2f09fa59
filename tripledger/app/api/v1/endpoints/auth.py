"""
Identity endpoints.

The identity provider is external. ``/auth/token`` stands in for it while
``debug`` is enabled and is hidden otherwise. Administrator tokens are only
minted when ``debug_admin_tokens`` is also enabled.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from tripledger.app.core.config import settings
from tripledger.app.core.context import Identity
from tripledger.app.core.dependencies import get_current_identity
from tripledger.app.core.exceptions import AuthorizationError
from tripledger.app.core.jwt import create_access_token
from tripledger.app.schemas.trip import TokenRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/token", response_model=TokenResponse)
async def issue_debug_token(request: TokenRequest):
    """
    Issue a bearer token for an identity (debug only).

    A missing ``identity_id`` mints a fresh anonymous identity.
    """
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if request.is_admin and not settings.debug_admin_tokens:
        raise AuthorizationError("administrator tokens are not issued by the debug provider", entity="identity")

    identity_id = request.identity_id or str(uuid.uuid4())
    token = create_access_token(data={"sub": identity_id, "is_admin": request.is_admin})
    return TokenResponse(access_token=token, identity_id=identity_id, is_admin=request.is_admin)


@router.get("/me")
async def get_me(identity: Identity = Depends(get_current_identity)):
    """Return the identity carried by the bearer token."""
    return {"identity_id": identity.identity_id, "is_admin": identity.is_admin}
