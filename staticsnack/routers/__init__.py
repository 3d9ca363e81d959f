# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from . import assets, commits, health, shares

__all__ = ["assets", "commits", "health", "shares"]
