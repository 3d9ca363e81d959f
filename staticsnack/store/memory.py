# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import ActivityLogEntry, AssetShare, AssetVersion, Site, SiteMember
from .base import Store


class MemoryStore(Store):
    """Process-local store for tests and single-process development."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sites: Dict[str, Site] = {}
        self._members: Dict[Tuple[str, str], str] = {}
        self._activity: List[ActivityLogEntry] = []
        self._shares: Dict[str, AssetShare] = {}
        self._share_tokens: Dict[str, str] = {}
        self._pending: Dict[Tuple[str, str], AssetVersion] = {}
        self._versions: List[AssetVersion] = []

    # ---- sites & membership ----
    def get_site(self, site_id: str) -> Optional[Site]:
        return self._sites.get(site_id)

    def put_site(self, site: Site) -> None:
        self._sites[site.id] = site

    def get_member_role(self, site_id: str, user_id: str) -> Optional[str]:
        return self._members.get((site_id, user_id))

    def add_member(self, member: SiteMember) -> None:
        self._members[(member.site_id, member.user_id)] = member.role

    # ---- activity ----
    def append_activity(self, entry: ActivityLogEntry) -> None:
        with self._lock:
            self._activity.append(entry.model_copy(deep=True))

    def list_activity(self, site_id: str, limit: int = 50) -> List[ActivityLogEntry]:
        rows = [e for e in reversed(self._activity) if e.site_id == site_id]
        return [e.model_copy(deep=True) for e in rows[:limit]]

    # ---- shares ----
    def create_share(self, share: AssetShare) -> None:
        with self._lock:
            self._shares[share.id] = share.model_copy(deep=True)
            self._share_tokens[share.token] = share.id

    def get_share_by_token(self, token: str) -> Optional[AssetShare]:
        share_id = self._share_tokens.get(token)
        share = self._shares.get(share_id) if share_id else None
        return share.model_copy(deep=True) if share else None

    def claim_upload(self, share_id: str) -> bool:
        with self._lock:
            share = self._shares.get(share_id)
            if share is None or not share.has_capacity():
                return False
            share.upload_count += 1
            return True

    def release_upload(self, share_id: str) -> None:
        with self._lock:
            share = self._shares.get(share_id)
            if share is not None and share.upload_count > 0:
                share.upload_count -= 1

    # ---- versions ----
    def upsert_pending_version(self, version: AssetVersion) -> AssetVersion:
        key = (version.site_id, version.repo_path)
        with self._lock:
            existing = self._pending.get(key)
            stored = version.model_copy(deep=True)
            if existing is not None:
                stored.id = existing.id
                stored.created_at = existing.created_at
                stored.updated_at = datetime.now(timezone.utc)
            self._pending[key] = stored
        return stored.model_copy(deep=True)

    def list_pending_versions(self, site_id: str) -> List[AssetVersion]:
        rows = [v for (sid, _), v in self._pending.items() if sid == site_id]
        return [v.model_copy(deep=True) for v in sorted(rows, key=lambda v: v.repo_path)]

    def discard_pending(self, site_id: str, path: Optional[str] = None) -> int:
        with self._lock:
            keys = [k for k in self._pending if k[0] == site_id and (path is None or k[1] == path)]
            for k in keys:
                del self._pending[k]
        return len(keys)

    def commit_versions(self, site_id: str, versions: Iterable[AssetVersion]) -> None:
        with self._lock:
            for v in versions:
                self._pending.pop((site_id, v.repo_path), None)
                self._versions.append(v.model_copy(deep=True))

    def list_versions(self, site_id: str, repo_path: Optional[str] = None) -> List[AssetVersion]:
        rows = [
            v for v in reversed(self._versions)
            if v.site_id == site_id and (repo_path is None or v.repo_path == repo_path)
        ]
        return [v.model_copy(deep=True) for v in rows]
