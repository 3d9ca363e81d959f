# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


class AssetShare(BaseModel):
    """
    Anonymous upload capability for one directory of a site.

    Bounded by ``expires_at`` and, when set, ``max_uploads``.
    """
    id: str
    site_id: str
    asset_path: str
    token: str
    created_by: Optional[str] = None
    expires_at: datetime
    max_uploads: Optional[int] = Field(default=None, ge=1)
    upload_count: int = Field(default=0, ge=0)
    allowed_extensions: Optional[List[str]] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at < now

    def has_capacity(self) -> bool:
        return self.max_uploads is None or self.upload_count < self.max_uploads
