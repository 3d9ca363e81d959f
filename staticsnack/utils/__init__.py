# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from .sanitize import decode_content, sanitize_branch, sanitize_path, split_parent, validate_filename

__all__ = [
    "decode_content",
    "sanitize_branch",
    "sanitize_path",
    "split_parent",
    "validate_filename",
]
