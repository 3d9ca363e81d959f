# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__all__ = [
    "access",
    "activity",
    "asset_writer",
    "batch_commit",
    "credentials",
    "github",
    "manifest",
    "shares",
    "side_effects",
    "staging",
]
