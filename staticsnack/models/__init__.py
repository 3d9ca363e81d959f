# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

# Re-export commonly used models for convenience
from .site import Site, SiteMember
from .change import AssetWriteResult, CommitResult, PendingChange
from .share import AssetShare
from .activity import ActivityLogEntry, AssetVersion
from .responses import ApiError, ErrorResponse, OkResponse
from .payloads import (
    AssetDeleteRequest,
    AssetUploadRequest,
    BatchCommitRequest,
    CreateShareRequest,
    GuestUploadRequest,
    StageAssetRequest,
)

__all__ = [
    "Site",
    "SiteMember",
    "PendingChange",
    "CommitResult",
    "AssetWriteResult",
    "AssetShare",
    "ActivityLogEntry",
    "AssetVersion",
    "ApiError",
    "ErrorResponse",
    "OkResponse",
    "BatchCommitRequest",
    "AssetUploadRequest",
    "AssetDeleteRequest",
    "StageAssetRequest",
    "CreateShareRequest",
    "GuestUploadRequest",
]
