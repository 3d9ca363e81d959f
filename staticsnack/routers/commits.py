# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends
from ..deps import get_batch_builder, get_staging, get_store
from ..models import BatchCommitRequest, OkResponse
from ..security import get_current_user
from ..services.access import require_member
from ..services.batch_commit import BatchCommitBuilder
from ..services.staging import StagingService
from ..store import Store

router = APIRouter(prefix="/api", tags=["commits"])

@router.post("/sites/{site_id}/commits")
def commit_batch(
    site_id: str,
    body: BatchCommitRequest,
    user: str = Depends(get_current_user),
    store: Store = Depends(get_store),
    staging: StagingService = Depends(get_staging),
    builder: BatchCommitBuilder = Depends(get_batch_builder),
):
    site, _ = require_member(store, site_id, user)
    changes = body.asset_changes
    if changes is None:
        changes = staging.pending_changes(site_id)
    result = builder.commit(
        site,
        body.commit_message,
        changes,
        user_id=user,
        branch=body.branch,
        batch_id=str(uuid.uuid4()),
    )
    return OkResponse(result=result.model_dump(exclude={"warnings"}), warnings=result.warnings)
