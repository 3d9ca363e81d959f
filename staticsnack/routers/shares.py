# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from fastapi import APIRouter, Depends
from ..deps import get_share_admin, get_share_service, get_store
from ..models import CreateShareRequest, GuestUploadRequest, OkResponse
from ..security import get_current_user
from ..services.access import require_member
from ..services.shares import ShareService
from ..store import Store

router = APIRouter(prefix="/api", tags=["shares"])

@router.post("/sites/{site_id}/shares")
def create_share(
    site_id: str,
    body: CreateShareRequest,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    shares: ShareService = Depends(get_share_admin),
):
    require_member(store, site_id, user)
    share = shares.create_share(
        site_id,
        body.asset_path,
        user,
        expires_in_hours=body.expires_in_hours,
        max_uploads=body.max_uploads,
        allowed_extensions=body.allowed_extensions,
        description=body.description,
    )
    return OkResponse(result=share.model_dump())

# Anonymous: the share token is the credential.
@router.post("/shares/upload")
def guest_upload(body: GuestUploadRequest, shares: ShareService = Depends(get_share_service)):
    result = shares.guest_upload(body.token, body.file_name, body.file_content)
    return OkResponse(result=result.model_dump(exclude={"warnings"}), warnings=result.warnings)
