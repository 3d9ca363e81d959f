# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from ..models import ActivityLogEntry
from ..store import Store
from .side_effects import BestEffort

log = structlog.get_logger("staticsnack.services.activity")


class ActivityRecorder:
    """Append-only audit trail feeding the UI's activity feed."""

    def __init__(self, store: Store):
        self.store = store

    def record(
        self,
        site_id: str,
        user_id: Optional[str],
        action: str,
        metadata: Optional[Dict[str, Any]] = None,
        *,
        effects: Optional[BestEffort] = None,
    ) -> Optional[ActivityLogEntry]:
        """Insert one entry. Storage failures become warnings on ``effects``."""
        effects = effects or BestEffort()
        entry = ActivityLogEntry(site_id=site_id, user_id=user_id, action=action, metadata=dict(metadata or {}))
        if not effects.attempt("activity log", self.store.append_activity, entry):
            return None
        log.info("activity.recorded", site_id=site_id, action=action)
        return entry

    def recent(self, site_id: str, limit: int = 50) -> List[ActivityLogEntry]:
        return self.store.list_activity(site_id, limit=max(1, min(limit, 200)))
