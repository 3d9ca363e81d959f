# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from ..errors import AssetNotFoundError
from ..metrics import record_commit
from ..models import AssetVersion, AssetWriteResult, Site
from ..store import Store
from ..utils.sanitize import (
    MAX_FILE_SIZE_BYTES,
    decode_content,
    encode_content,
    sanitize_branch,
    sanitize_path,
    split_parent,
)
from .activity import ActivityRecorder
from .manifest import ManifestSynchronizer
from .side_effects import BestEffort

log = structlog.get_logger("staticsnack.services.asset_writer")


class AssetWriter:
    """
    Create, update or delete one file through the Contents API.

    The primary write is the only step that can fail the call; manifest sync,
    the activity entry and the version row are recorded best-effort after it.
    """

    def __init__(
        self,
        resolver,
        store: Store,
        *,
        activity: Optional[ActivityRecorder] = None,
        manifests: Optional[ManifestSynchronizer] = None,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
    ) -> None:
        self.resolver = resolver
        self.store = store
        self.activity = activity or ActivityRecorder(store)
        self.manifests = manifests or ManifestSynchronizer()
        self.max_file_size = max_file_size

    def write(
        self,
        site: Site,
        path: str,
        content: str,
        *,
        message: Optional[str] = None,
        branch: Optional[str] = None,
        sha: Optional[str] = None,
        user_id: Optional[str] = None,
        action: str = "upload_asset",
        kind: str = "asset",
        extra_metadata: Optional[Dict[str, Any]] = None,
    ) -> AssetWriteResult:
        clean_path = sanitize_path(path)
        data = decode_content(content, self.max_file_size)
        target = sanitize_branch(branch or site.default_branch)

        client = self.resolver.client_for(site)

        file_sha = sha
        if not file_sha:
            existing = client.get_contents(clean_path, ref=target)
            file_sha = existing.get("sha") if isinstance(existing, dict) else None
            log.debug("asset.lookup", path=clean_path, exists=bool(file_sha))

        response = client.put_contents(
            clean_path,
            encode_content(data),
            message or f"Update {clean_path}",
            target,
            sha=file_sha,
        )
        commit_sha = response["commit"]["sha"]
        record_commit(kind, "ok")
        file_url = (response.get("content") or {}).get("html_url")
        log.info("asset.written", site_id=site.id, path=clean_path, branch=target, commit_sha=commit_sha)

        effects = BestEffort()
        directory, name = split_parent(clean_path)
        synced = None
        if directory:
            synced = effects.run(
                f"manifest {directory}", self.manifests.sync, client, directory, [name], target
            )

        metadata: Dict[str, Any] = {"file_path": clean_path, "branch": target, "commit_sha": commit_sha}
        metadata.update(extra_metadata or {})
        self.activity.record(site.id, user_id, action, metadata, effects=effects)

        version = AssetVersion(
            site_id=site.id,
            repo_path=clean_path,
            status="committed",
            checksum=hashlib.sha256(data).hexdigest(),
            file_size_bytes=len(data),
            commit_sha=commit_sha,
            created_by=user_id,
            updated_at=datetime.now(timezone.utc),
        )
        effects.attempt("asset version", self.store.commit_versions, site.id, [version])

        return AssetWriteResult(
            commit_sha=commit_sha,
            file_url=file_url,
            file_path=clean_path,
            branch=target,
            manifest_updated=bool(synced and synced.updated),
            warnings=effects.warnings,
        )

    def delete(
        self,
        site: Site,
        path: str,
        *,
        sha: Optional[str] = None,
        message: Optional[str] = None,
        branch: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AssetWriteResult:
        """Remove one file. The activity entry is best-effort, as for writes."""
        clean_path = sanitize_path(path)
        target = sanitize_branch(branch or site.default_branch)

        client = self.resolver.client_for(site)

        file_sha = sha
        if not file_sha:
            existing = client.get_contents(clean_path, ref=target)
            if not isinstance(existing, dict) or not existing.get("sha"):
                raise AssetNotFoundError("File not found", details={"file_path": clean_path})
            file_sha = existing["sha"]

        response = client.delete_contents(clean_path, message or f"Delete {clean_path}", target, file_sha)
        commit_sha = response["commit"]["sha"]
        record_commit("delete", "ok")
        log.info("asset.deleted", site_id=site.id, path=clean_path, branch=target, commit_sha=commit_sha)

        effects = BestEffort()
        self.activity.record(
            site.id,
            user_id,
            "delete_asset",
            {"file_path": clean_path, "branch": target, "commit_sha": commit_sha},
            effects=effects,
        )
        return AssetWriteResult(
            commit_sha=commit_sha,
            file_path=clean_path,
            branch=target,
            warnings=effects.warnings,
        )
