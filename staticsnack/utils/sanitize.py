# SPDX-License-Identifier: Apache-2.0
"""
Path, filename and payload guards.

Everything a caller supplies passes through here before it reaches GitHub or
the store: repository paths, guest filenames, share allowlists and base64
payloads.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Iterable, List, Optional, Tuple

from ..errors import (
    ExtensionNotAllowedError,
    FileTooLargeError,
    InvalidBranchError,
    InvalidEncodingError,
    InvalidFilenameError,
    InvalidPathError,
    ValidationFailedError,
)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
MAX_FILENAME_LENGTH = 255
MAX_ALLOWED_EXTENSIONS = 50
MAX_BRANCH_LENGTH = 255

_B64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_BAD_FILENAME_RE = re.compile(r'[<>:"|?*\\/\x00-\x1f\x7f]')
_DRIVE_RE = re.compile(r"^[A-Za-z]:")
_EXT_RE = re.compile(r"^[A-Za-z0-9]+$")
_BAD_REF_RE = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]")


# ------------------------------- Paths -------------------------------


def sanitize_path(path: str) -> str:
    """
    Normalize a repository-relative path.

    Leading slashes, empty and ``.`` segments are dropped; any ``..`` segment
    is refused outright rather than silently removed.
    """
    raw = (path or "").strip().replace("\\", "/")
    if _CONTROL_RE.search(raw):
        raise InvalidPathError("Invalid path: control characters are not allowed")
    segments = raw.split("/")
    if any(seg.strip() == ".." for seg in segments):
        raise InvalidPathError("Invalid path: path traversal detected", details={"path": path})
    cleaned = "/".join(seg for seg in segments if seg not in ("", "."))
    if not cleaned:
        raise InvalidPathError("Invalid path: path is empty")
    if cleaned.startswith("/") or _DRIVE_RE.match(cleaned):
        raise InvalidPathError("Invalid path: absolute paths are not allowed", details={"path": path})
    return cleaned


def sanitize_branch(name: str) -> str:
    """
    Check a branch name against git's ref-name rules.

    The name is placed in API URL paths, so anything git itself would refuse
    is refused here before credentials are resolved.
    """
    branch = (name or "").strip()
    if not branch or len(branch) > MAX_BRANCH_LENGTH:
        raise InvalidBranchError("Invalid branch: name is empty or too long")
    if (
        _BAD_REF_RE.search(branch)
        or ".." in branch
        or "@{" in branch
        or "//" in branch
        or branch == "@"
        or branch.startswith("/")
        or branch.endswith(("/", ".", ".lock"))
        or any(part.startswith(".") for part in branch.split("/"))
    ):
        raise InvalidBranchError("Invalid branch name", details={"branch": name})
    return branch


def split_parent(path: str) -> Tuple[str, str]:
    """Return (directory, name); directory is '' for root-level files."""
    if "/" not in path:
        return "", path
    directory, name = path.rsplit("/", 1)
    return directory, name


def join_path(directory: str, name: str) -> str:
    return re.sub(r"/+", "/", f"{directory}/{name}").strip("/")


# ------------------------------ Payloads -----------------------------


def _decoded_length(b64: str) -> int:
    return (len(b64) // 4) * 3 - b64[-2:].count("=") if b64 else 0


def decode_content(content: str, max_bytes: int = MAX_FILE_SIZE_BYTES) -> bytes:
    """
    Decode a base64 payload, enforcing the size ceiling.

    The ceiling is checked on the computed decoded length first so oversized
    payloads are refused without materializing them.
    """
    if not isinstance(content, str):
        raise InvalidEncodingError("Content must be a base64 string")
    compact = re.sub(r"\s+", "", content)
    if len(compact) % 4 != 0 or not _B64_RE.match(compact):
        raise InvalidEncodingError("Invalid base64 encoding")
    size = _decoded_length(compact)
    if size > max_bytes:
        raise FileTooLargeError(
            f"File too large: {size / 1024 / 1024:.2f}MB. Maximum {max_bytes / 1024 / 1024:g}MB",
            details={"size_bytes": size, "max_bytes": max_bytes},
        )
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"Failed to decode base64 content: {e}") from e


def encode_content(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# ------------------------------ Filenames ----------------------------


def validate_filename(name: str, *, guest: bool = False, max_length: int = MAX_FILENAME_LENGTH) -> str:
    if not name:
        raise InvalidFilenameError("Filename cannot be empty")
    if len(name) > max_length:
        raise InvalidFilenameError(f"Filename too long. Maximum {max_length} characters")
    if _BAD_FILENAME_RE.search(name):
        raise InvalidFilenameError("Filename contains invalid characters")
    if name in (".", ".."):
        raise InvalidFilenameError("Filename is reserved")
    if guest and name.startswith("."):
        raise InvalidFilenameError("Hidden files are not allowed")
    return name


def file_extension(name: str) -> Optional[str]:
    if "." not in name.lstrip("."):
        return None
    return "." + name.rsplit(".", 1)[1].lower()


def validate_extension(name: str, allowed: Optional[Iterable[str]]) -> None:
    """An empty or missing allowlist admits every extension."""
    allowed_list = [a.lower() for a in (allowed or [])]
    if not allowed_list:
        return
    ext = file_extension(name)
    if not ext:
        raise ExtensionNotAllowedError("File must have an extension")
    if ext not in allowed_list:
        raise ExtensionNotAllowedError(
            f"File type {ext} not allowed. Allowed types: {', '.join(allowed_list)}",
            details={"allowed": allowed_list},
        )


def normalize_extensions(exts: Optional[Iterable[object]]) -> Optional[List[str]]:
    """Validate a share allowlist and store every entry as '.ext' (lowercase)."""
    if exts is None:
        return None
    items = list(exts)
    if len(items) > MAX_ALLOWED_EXTENSIONS:
        raise ValidationFailedError(f"Maximum {MAX_ALLOWED_EXTENSIONS} allowed extensions")
    out: List[str] = []
    for ext in items:
        if not isinstance(ext, str):
            raise ValidationFailedError("Extensions must be strings")
        bare = ext[1:] if ext.startswith(".") else ext
        if not _EXT_RE.match(bare):
            raise ValidationFailedError('Extensions must be alphanumeric (e.g., "jpg", "png", ".pdf")')
        dotted = f".{bare.lower()}"
        if dotted not in out:
            out.append(dotted)
    return out
