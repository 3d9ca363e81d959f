# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

import redis

from ..models import ActivityLogEntry, AssetShare, AssetVersion, Site, SiteMember
from .base import Store

# Bound the per-site feed; older rows are trimmed on append.
ACTIVITY_MAX_ROWS = 5000


class RedisStore(Store):
    """
    Redis-backed store.

    Key layout (``{prefix}`` defaults to ``snack``)::

        {prefix}:site:{id}                 JSON Site
        {prefix}:members:{site}            hash user_id -> role
        {prefix}:activity:{site}           list of JSON entries, newest first
        {prefix}:share:{id}                JSON AssetShare (upload_count ignored)
        {prefix}:share:{id}:uploads        upload counter
        {prefix}:share_token:{token}       share id
        {prefix}:pending:{site}            hash repo_path -> JSON AssetVersion
        {prefix}:versions:{site}           list of JSON AssetVersion, newest first
    """

    def __init__(self, client: redis.Redis, prefix: str = "snack") -> None:
        self.r = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "snack") -> "RedisStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), prefix=prefix)

    def _k(self, *parts: str) -> str:
        return ":".join((self.prefix, *parts))

    # ---- sites & membership ----
    def get_site(self, site_id: str) -> Optional[Site]:
        raw = self.r.get(self._k("site", site_id))
        return Site.model_validate_json(raw) if raw else None

    def put_site(self, site: Site) -> None:
        self.r.set(self._k("site", site.id), site.model_dump_json())

    def get_member_role(self, site_id: str, user_id: str) -> Optional[str]:
        return self.r.hget(self._k("members", site_id), user_id)

    def add_member(self, member: SiteMember) -> None:
        self.r.hset(self._k("members", member.site_id), member.user_id, member.role)

    # ---- activity ----
    def append_activity(self, entry: ActivityLogEntry) -> None:
        key = self._k("activity", entry.site_id)
        pipe = self.r.pipeline()
        pipe.lpush(key, entry.model_dump_json())
        pipe.ltrim(key, 0, ACTIVITY_MAX_ROWS - 1)
        pipe.execute()

    def list_activity(self, site_id: str, limit: int = 50) -> List[ActivityLogEntry]:
        rows = self.r.lrange(self._k("activity", site_id), 0, max(0, limit - 1))
        return [ActivityLogEntry.model_validate_json(row) for row in rows]

    # ---- shares ----
    def create_share(self, share: AssetShare) -> None:
        pipe = self.r.pipeline()
        pipe.set(self._k("share", share.id), share.model_dump_json())
        pipe.set(self._k("share", share.id, "uploads"), share.upload_count)
        pipe.set(self._k("share_token", share.token), share.id)
        pipe.execute()

    def _load_share(self, share_id: str) -> Optional[AssetShare]:
        raw = self.r.get(self._k("share", share_id))
        if not raw:
            return None
        share = AssetShare.model_validate_json(raw)
        share.upload_count = int(self.r.get(self._k("share", share_id, "uploads")) or 0)
        return share

    def get_share_by_token(self, token: str) -> Optional[AssetShare]:
        share_id = self.r.get(self._k("share_token", token))
        return self._load_share(share_id) if share_id else None

    def claim_upload(self, share_id: str) -> bool:
        share = self._load_share(share_id)
        if share is None:
            return False
        counter = self._k("share", share_id, "uploads")

        def _claim(pipe) -> bool:
            current = int(pipe.get(counter) or 0)
            if share.max_uploads is not None and current >= share.max_uploads:
                return False
            pipe.multi()
            pipe.incr(counter)
            return True

        # WATCH/MULTI: a concurrent increment aborts EXEC and _claim re-runs.
        return self.r.transaction(_claim, counter, value_from_callable=True)

    def release_upload(self, share_id: str) -> None:
        counter = self._k("share", share_id, "uploads")

        def _release(pipe) -> None:
            current = int(pipe.get(counter) or 0)
            pipe.multi()
            if current > 0:
                pipe.decr(counter)

        self.r.transaction(_release, counter)

    # ---- versions ----
    def upsert_pending_version(self, version: AssetVersion) -> AssetVersion:
        key = self._k("pending", version.site_id)
        stored = version.model_copy(deep=True)
        existing = self.r.hget(key, version.repo_path)
        if existing:
            prev = AssetVersion.model_validate_json(existing)
            stored.id = prev.id
            stored.created_at = prev.created_at
            stored.updated_at = datetime.now(timezone.utc)
        self.r.hset(key, version.repo_path, stored.model_dump_json())
        return stored

    def list_pending_versions(self, site_id: str) -> List[AssetVersion]:
        rows = self.r.hgetall(self._k("pending", site_id))
        return [AssetVersion.model_validate_json(rows[p]) for p in sorted(rows)]

    def discard_pending(self, site_id: str, path: Optional[str] = None) -> int:
        key = self._k("pending", site_id)
        if path is None:
            count = self.r.hlen(key)
            self.r.delete(key)
            return int(count)
        return int(self.r.hdel(key, path))

    def commit_versions(self, site_id: str, versions: Iterable[AssetVersion]) -> None:
        pipe = self.r.pipeline()
        for v in versions:
            pipe.hdel(self._k("pending", site_id), v.repo_path)
            pipe.lpush(self._k("versions", site_id), v.model_dump_json())
        pipe.execute()

    def list_versions(self, site_id: str, repo_path: Optional[str] = None) -> List[AssetVersion]:
        rows = [AssetVersion.model_validate_json(r) for r in self.r.lrange(self._k("versions", site_id), 0, -1)]
        return [v for v in rows if repo_path is None or v.repo_path == repo_path]
