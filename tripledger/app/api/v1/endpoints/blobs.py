"""
Blob download endpoint for signed receipt URLs.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from tripledger.app.core.exceptions import AuthorizationError
from tripledger.app.services.blob_store import LocalBlobStore, get_blob_store

router = APIRouter(prefix="/blobs", tags=["Blobs"])

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "heic": "image/heic",
}


@router.get("/{path:path}")
async def download_blob(
    path: str,
    token: str = Query(..., description="Signed access token"),
    store: LocalBlobStore = Depends(get_blob_store)
):
    if not store.verify_token(path, token):
        raise AuthorizationError("blob access token is invalid or expired", entity="blob", entity_id=path)

    data = await store.read(path)
    extension = path.rsplit(".", 1)[-1].lower()
    return Response(content=data, media_type=CONTENT_TYPES.get(extension, "application/octet-stream"))
