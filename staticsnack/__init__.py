# SPDX-License-Identifier: Apache-2.0
"""
staticsnack

Commit pipeline for StaticSnack: publishes in-browser edits to GitHub-hosted
static sites as single atomic commits.
Exposes nothing at import-time beyond package markers to keep startup fast.
"""
from __future__ import annotations

__version__ = "0.4.0"

__all__ = ["__version__"]
