# SPDX-License-Identifier: Apache-2.0
"""
Persistence contract for the pipeline's own records.

Sites and memberships are owned by the surrounding application; the pipeline
only reads them. Activity rows are append-only. Share upload counters change
only through ``claim_upload``/``release_upload`` so the limit check and the
increment are one step.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..models import ActivityLogEntry, AssetShare, AssetVersion, Site, SiteMember


class Store(ABC):
    # ---- sites & membership (read by the pipeline) ----
    @abstractmethod
    def get_site(self, site_id: str) -> Optional[Site]: ...

    @abstractmethod
    def put_site(self, site: Site) -> None: ...

    @abstractmethod
    def get_member_role(self, site_id: str, user_id: str) -> Optional[str]: ...

    @abstractmethod
    def add_member(self, member: SiteMember) -> None: ...

    # ---- activity log ----
    @abstractmethod
    def append_activity(self, entry: ActivityLogEntry) -> None: ...

    @abstractmethod
    def list_activity(self, site_id: str, limit: int = 50) -> List[ActivityLogEntry]:
        """Newest first."""

    # ---- asset shares ----
    @abstractmethod
    def create_share(self, share: AssetShare) -> None: ...

    @abstractmethod
    def get_share_by_token(self, token: str) -> Optional[AssetShare]: ...

    @abstractmethod
    def claim_upload(self, share_id: str) -> bool:
        """Atomically increment ``upload_count`` if it is below ``max_uploads``."""

    @abstractmethod
    def release_upload(self, share_id: str) -> None:
        """Give back a slot taken by ``claim_upload`` (never below zero)."""

    # ---- asset versions ----
    @abstractmethod
    def upsert_pending_version(self, version: AssetVersion) -> AssetVersion:
        """Store a pending version, replacing any pending one for the same path."""

    @abstractmethod
    def list_pending_versions(self, site_id: str) -> List[AssetVersion]: ...

    @abstractmethod
    def discard_pending(self, site_id: str, path: Optional[str] = None) -> int: ...

    @abstractmethod
    def commit_versions(self, site_id: str, versions: Iterable[AssetVersion]) -> None:
        """Record committed versions and drop pending rows for the same paths."""

    @abstractmethod
    def list_versions(self, site_id: str, repo_path: Optional[str] = None) -> List[AssetVersion]:
        """Committed versions, newest first."""
