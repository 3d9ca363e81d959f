# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ..deps import get_activity, get_asset_writer, get_staging, get_store
from ..models import AssetDeleteRequest, AssetUploadRequest, OkResponse, StageAssetRequest
from ..security import get_current_user
from ..services.access import require_member
from ..services.activity import ActivityRecorder
from ..services.asset_writer import AssetWriter
from ..services.staging import StagingService
from ..store import Store

router = APIRouter(prefix="/api", tags=["assets"])

def _version_view(v) -> dict:
    # pending content stays server-side
    return v.model_dump(exclude={"content"})

@router.put("/sites/{site_id}/assets")
def upload_asset(
    site_id: str,
    body: AssetUploadRequest,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    writer: AssetWriter = Depends(get_asset_writer),
):
    site, _ = require_member(store, site_id, user)
    result = writer.write(
        site,
        body.file_path,
        body.content,
        message=body.message,
        branch=body.branch,
        sha=body.sha,
        user_id=user,
    )
    return OkResponse(result=result.model_dump(exclude={"warnings"}), warnings=result.warnings)

@router.delete("/sites/{site_id}/assets")
def delete_asset(
    site_id: str,
    body: AssetDeleteRequest,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    writer: AssetWriter = Depends(get_asset_writer),
):
    site, _ = require_member(store, site_id, user)
    result = writer.delete(
        site,
        body.file_path,
        sha=body.sha,
        message=body.message,
        branch=body.branch,
        user_id=user,
    )
    return OkResponse(result=result.model_dump(exclude={"warnings"}), warnings=result.warnings)

@router.post("/sites/{site_id}/staged")
def stage_asset(
    site_id: str,
    body: StageAssetRequest,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    staging: StagingService = Depends(get_staging),
):
    require_member(store, site_id, user)
    version = staging.stage(site_id, body.file_path, body.content, user_id=user)
    return OkResponse(result=_version_view(version))

@router.get("/sites/{site_id}/staged")
def list_staged(
    site_id: str,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    staging: StagingService = Depends(get_staging),
):
    require_member(store, site_id, user, write=False)
    return OkResponse(result=[_version_view(v) for v in staging.pending(site_id)])

@router.delete("/sites/{site_id}/staged")
def discard_staged(
    site_id: str,
    path: Optional[str] = None,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    staging: StagingService = Depends(get_staging),
):
    require_member(store, site_id, user)
    removed = staging.discard(site_id, path)
    return OkResponse(result={"removed": removed})

@router.get("/sites/{site_id}/activity")
def recent_activity(
    site_id: str,
    limit: int = Query(50),
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    activity: ActivityRecorder = Depends(get_activity),
):
    require_member(store, site_id, user, write=False)
    entries = activity.recent(site_id, limit)
    return OkResponse(result=[e.model_dump() for e in entries])
