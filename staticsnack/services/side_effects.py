# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any, Callable, List, Optional, Tuple, TypeVar

import structlog

log = structlog.get_logger("staticsnack.services.side_effects")

T = TypeVar("T")


class BestEffort:
    """
    Runs derived side effects (manifest sync, activity log, version rows)
    whose failure must not fail the primary write. Failures are logged and
    kept as warnings for the caller's result.
    """

    __slots__ = ("warnings",)

    def __init__(self) -> None:
        self.warnings: List[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def run(self, label: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        ok, value = self._call(label, fn, *args, **kwargs)
        return value if ok else None

    def attempt(self, label: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """Like ``run`` but reports success, for callables that return None."""
        return self._call(label, fn, *args, **kwargs)[0]

    def _call(self, label: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Tuple[bool, Optional[T]]:
        try:
            return True, fn(*args, **kwargs)
        except Exception as e:
            log.warning("side_effect.failed", label=label, error=str(e), exc_info=True)
            self.warnings.append(f"{label}: {e}")
            return False, None
