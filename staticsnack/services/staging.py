# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import hashlib
from typing import List, Optional

import structlog

from ..models import AssetVersion, PendingChange
from ..store import Store
from ..utils.sanitize import MAX_FILE_SIZE_BYTES, decode_content, sanitize_path

log = structlog.get_logger("staticsnack.services.staging")


class StagingService:
    """
    Server-side holding area for pending changes, one per (site, path).

    Staging the same path again replaces the earlier content. Rows leave the
    pending set when a batch commit publishes their path or when discarded.
    """

    def __init__(self, store: Store, *, max_file_size: int = MAX_FILE_SIZE_BYTES):
        self.store = store
        self.max_file_size = max_file_size

    def stage(self, site_id: str, path: str, content: str, user_id: Optional[str] = None) -> AssetVersion:
        clean_path = sanitize_path(path)
        data = decode_content(content, self.max_file_size)
        version = self.store.upsert_pending_version(
            AssetVersion(
                site_id=site_id,
                repo_path=clean_path,
                status="pending",
                checksum=hashlib.sha256(data).hexdigest(),
                file_size_bytes=len(data),
                content=content,
                created_by=user_id,
            )
        )
        log.info("staging.staged", site_id=site_id, path=clean_path, size=len(data))
        return version

    def pending(self, site_id: str) -> List[AssetVersion]:
        return self.store.list_pending_versions(site_id)

    def pending_changes(self, site_id: str) -> List[PendingChange]:
        return [
            PendingChange(repo_path=v.repo_path, content=v.content or "")
            for v in self.pending(site_id)
        ]

    def discard(self, site_id: str, path: Optional[str] = None) -> int:
        removed = self.store.discard_pending(site_id, sanitize_path(path) if path else None)
        log.info("staging.discarded", site_id=site_id, path=path, removed=removed)
        return removed
