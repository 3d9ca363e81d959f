# SPDX-License-Identifier: Apache-2.0
"""
Asset shares: time- and count-bounded anonymous upload links.

A guest upload takes one slot from the share with a single atomic
increment-if-below-limit in the store before the repository is touched, so
concurrent uploads cannot overshoot ``max_uploads``. A failed write gives
its slot back.
"""
from __future__ import annotations

import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import structlog

from ..errors import (
    ConfigurationError,
    InvalidPathError,
    ShareExpiredError,
    ShareNotFoundError,
    UploadLimitError,
    ValidationFailedError,
)
from ..models import AssetShare, AssetWriteResult
from ..store import Store
from ..utils.sanitize import (
    MAX_FILE_SIZE_BYTES,
    MAX_FILENAME_LENGTH,
    decode_content,
    join_path,
    normalize_extensions,
    sanitize_path,
    validate_extension,
    validate_filename,
)
from .access import load_site
from .asset_writer import AssetWriter

log = structlog.get_logger("staticsnack.services.shares")

TOKEN_RE = re.compile(r"^[a-f0-9]{64}$")
MIN_EXPIRY_HOURS = 1
MAX_EXPIRY_HOURS = 8760
MAX_UPLOADS_LIMIT = 1000
MAX_DESCRIPTION_LENGTH = 500


def generate_share_token() -> str:
    return secrets.token_hex(32)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ShareService:
    def __init__(
        self,
        store: Store,
        writer: Optional[AssetWriter],
        *,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        max_filename_length: int = MAX_FILENAME_LENGTH,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.store = store
        self.writer = writer
        self.max_file_size = max_file_size
        self.max_filename_length = max_filename_length
        self.clock = clock

    def create_share(
        self,
        site_id: str,
        asset_path: str,
        created_by: Optional[str],
        *,
        expires_in_hours: int = 24,
        max_uploads: Optional[int] = None,
        allowed_extensions: Optional[Iterable[str]] = None,
        description: Optional[str] = None,
    ) -> AssetShare:
        clean_path = sanitize_path(asset_path)
        if not _is_int(expires_in_hours) or not MIN_EXPIRY_HOURS <= expires_in_hours <= MAX_EXPIRY_HOURS:
            raise ValidationFailedError(
                f"expires_in_hours must be an integer between {MIN_EXPIRY_HOURS} and {MAX_EXPIRY_HOURS}"
            )
        if max_uploads is not None and (not _is_int(max_uploads) or not 1 <= max_uploads <= MAX_UPLOADS_LIMIT):
            raise ValidationFailedError(f"max_uploads must be an integer between 1 and {MAX_UPLOADS_LIMIT}")
        if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationFailedError(f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less")
        load_site(self.store, site_id)

        share = AssetShare(
            id=str(uuid.uuid4()),
            site_id=site_id,
            asset_path=clean_path,
            token=generate_share_token(),
            created_by=created_by,
            expires_at=self.clock() + timedelta(hours=expires_in_hours),
            max_uploads=max_uploads,
            allowed_extensions=normalize_extensions(allowed_extensions),
            description=description,
        )
        self.store.create_share(share)
        log.info("share.created", share_id=share.id, site_id=site_id, path=clean_path)
        return share

    def guest_upload(self, token: str, file_name: str, content: str) -> AssetWriteResult:
        if not token or not file_name or not content:
            raise ValidationFailedError("Missing required fields")
        if not TOKEN_RE.match(token):
            raise ValidationFailedError("Invalid token format")
        validate_filename(file_name, guest=True, max_length=self.max_filename_length)
        size = len(decode_content(content, self.max_file_size))

        share = self.store.get_share_by_token(token)
        if share is None:
            raise ShareNotFoundError("Invalid share token")
        if share.is_expired(self.clock()):
            raise ShareExpiredError("Share link has expired")
        if not share.has_capacity():
            raise UploadLimitError("Upload limit reached")
        validate_extension(file_name, share.allowed_extensions)
        try:
            asset_dir = sanitize_path(share.asset_path)
        except InvalidPathError as e:
            log.warning("share.bad_path", share_id=share.id)
            raise InvalidPathError("Invalid asset path") from e
        site = load_site(self.store, share.site_id)
        if self.writer is None:
            raise ConfigurationError("Guest uploads are not configured")

        if not self.store.claim_upload(share.id):
            raise UploadLimitError("Upload limit reached")
        try:
            result = self.writer.write(
                site,
                join_path(asset_dir, file_name),
                content,
                message=f"Guest upload: {file_name}",
                user_id=None,
                action="guest_upload",
                kind="guest",
                extra_metadata={"file_name": file_name, "file_size_bytes": size, "share_id": share.id},
            )
        except Exception:
            self.store.release_upload(share.id)
            log.warning("share.upload_failed", share_id=share.id)
            raise
        log.info("share.uploaded", share_id=share.id, path=result.file_path)
        return result
