# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

VersionStatus = Literal["pending", "committed"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class ActivityLogEntry(BaseModel):
    """
    Append-only audit row. ``user_id`` is None for guest and system actions.
    """
    id: str = Field(default_factory=_uuid)
    site_id: str
    user_id: Optional[str] = None
    action: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)


class AssetVersion(BaseModel):
    """
    Per-file tracking row: checksum, size and status, linked to the batch
    that published it.
    """
    id: str = Field(default_factory=_uuid)
    site_id: str
    repo_path: str
    status: VersionStatus = "pending"
    checksum: str = Field(description="SHA-256 of the decoded bytes")
    file_size_bytes: int = Field(ge=0)
    content: Optional[str] = Field(default=None, description="base64 while pending")
    batch_id: Optional[str] = None
    commit_sha: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
