# SPDX-License-Identifier: Apache-2.0
"""
Batch commit builder.

Publishes N pending changes (plus any manifest updates they imply) as one
commit through the Git Data API:

    head -> base tree -> blobs -> tree(base_tree + entries) -> commit -> ref

Nothing is visible on the branch until the final fast-forward ref update.
If the branch moved in the meantime the ref update is rejected; the builder
then re-reads the head and rebuilds tree and commit on top of it, reusing the
already-created blobs, for a bounded number of attempts.
"""
from __future__ import annotations

import hashlib
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

import structlog

from ..errors import BranchConflictError, CommitFailedError, GitHubAPIError, ValidationFailedError
from ..metrics import record_commit
from ..models import AssetVersion, CommitResult, PendingChange, Site
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

log = structlog.get_logger("staticsnack.services.batch_commit")

BLOB_MODE = "100644"


def prepare_changes(changes: Iterable[PendingChange], max_bytes: int = MAX_FILE_SIZE_BYTES) -> "OrderedDict[str, bytes]":
    """
    Sanitize and decode every change. A path repeated in the batch keeps its
    last content (and its last position).
    """
    prepared: "OrderedDict[str, bytes]" = OrderedDict()
    for change in changes:
        path = sanitize_path(change.repo_path)
        data = decode_content(change.content, max_bytes)
        prepared.pop(path, None)
        prepared[path] = data
    return prepared


def group_by_directory(paths: Iterable[str]) -> Dict[str, Set[str]]:
    groups: Dict[str, Set[str]] = {}
    for path in paths:
        directory, name = split_parent(path)
        if directory:
            groups.setdefault(directory, set()).add(name)
    return groups


class BatchCommitBuilder:
    def __init__(
        self,
        resolver,
        store: Store,
        *,
        activity: Optional[ActivityRecorder] = None,
        manifests: Optional[ManifestSynchronizer] = None,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        max_attempts: int = 3,
    ) -> None:
        self.resolver = resolver
        self.store = store
        self.activity = activity or ActivityRecorder(store)
        self.manifests = manifests or ManifestSynchronizer()
        self.max_file_size = max_file_size
        self.max_attempts = max(1, int(max_attempts))

    def commit(
        self,
        site: Site,
        message: str,
        changes: List[PendingChange],
        *,
        user_id: Optional[str] = None,
        branch: Optional[str] = None,
        batch_id: Optional[str] = None,
    ) -> CommitResult:
        if not (message or "").strip():
            raise ValidationFailedError("commit_message is required")
        if not changes:
            raise ValidationFailedError("At least one asset change is required")
        prepared = prepare_changes(changes, self.max_file_size)
        target = sanitize_branch(branch or site.default_branch)
        batch_id = batch_id or str(uuid.uuid4())

        client = self.resolver.client_for(site)
        log.info("batch.start", site_id=site.id, branch=target, files=len(prepared), batch_id=batch_id)

        try:
            result = self._publish(client, message, target, prepared)
        except BranchConflictError:
            record_commit("batch", "conflict")
            raise
        except GitHubAPIError as e:
            record_commit("batch", "failed")
            raise CommitFailedError(f"Failed to commit batch changes: {e.message}", details={"status": e.status}) from e

        record_commit("batch", "ok")
        effects = BestEffort()
        effects.warnings.extend(result.warnings)
        files = list(prepared)
        self.activity.record(
            site.id,
            user_id,
            "batch_commit",
            {
                "commit_sha": result.commit_sha,
                "commit_message": message,
                "files_count": len(files),
                "files": files,
                "batch_id": batch_id,
            },
            effects=effects,
        )
        now = datetime.now(timezone.utc)
        versions = [
            AssetVersion(
                site_id=site.id,
                repo_path=path,
                status="committed",
                checksum=hashlib.sha256(data).hexdigest(),
                file_size_bytes=len(data),
                batch_id=batch_id,
                commit_sha=result.commit_sha,
                created_by=user_id,
                updated_at=now,
            )
            for path, data in prepared.items()
        ]
        effects.attempt("asset versions", self.store.commit_versions, site.id, versions)

        result.warnings = effects.warnings
        return result

    def _publish(self, client, message: str, branch: str, prepared: "OrderedDict[str, bytes]") -> CommitResult:
        blobs: Dict[str, str] = {}
        by_dir = group_by_directory(prepared)
        conflict: Optional[BranchConflictError] = None

        for attempt in range(1, self.max_attempts + 1):
            head = client.get_ref(branch)
            base_tree = client.get_commit_tree(head)

            # Blobs are content-addressed, so a retry reuses them as-is.
            for path, data in prepared.items():
                if path not in blobs:
                    blobs[path] = client.create_blob(encode_content(data))
                    log.debug("batch.blob", path=path, sha=blobs[path])

            effects = BestEffort()
            updates = self.manifests.plan_entries(client, by_dir, head, staged=prepared, effects=effects)
            entries: Dict[str, str] = dict(blobs)
            for path, data in updates:
                entries[path] = client.create_blob(encode_content(data))

            tree_sha = client.create_tree(
                base_tree,
                [{"path": p, "mode": BLOB_MODE, "type": "blob", "sha": s} for p, s in entries.items()],
            )
            commit = client.create_commit(message, tree_sha, [head])
            commit_sha = commit["sha"]

            try:
                client.update_ref(branch, commit_sha)
            except BranchConflictError as e:
                conflict = e
                log.info("batch.conflict", branch=branch, attempt=attempt)
                continue

            log.info("batch.committed", branch=branch, commit_sha=commit_sha, attempt=attempt)
            return CommitResult(
                commit_sha=commit_sha,
                commit_url=commit.get("html_url") or client.commit_url(commit_sha),
                files_committed=len(prepared),
                files=list(prepared),
                manifests_updated=[p for p, _ in updates],
                attempts=attempt,
                warnings=effects.warnings,
            )
        else:
            log.warning("batch.conflict.giving_up", branch=branch, attempts=self.max_attempts)
            raise conflict
