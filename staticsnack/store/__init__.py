# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from .base import Store
from .memory import MemoryStore
from .redis_store import RedisStore

__all__ = ["Store", "MemoryStore", "RedisStore"]
