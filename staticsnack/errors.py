# SPDX-License-Identifier: Apache-2.0
"""
Error taxonomy for the commit pipeline.

Every error carries a machine-readable ``code``, the HTTP status used by the
API layer, and an ``action`` hint telling the UI which follow-up to offer:
``reconnect`` (GitHub installation must be re-linked), ``retry`` (the same
request may succeed later) or ``none`` (fix the input or just show it).
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

Action = Literal["reconnect", "retry", "none"]


class SnackError(Exception):
    """Base class for structured pipeline failures."""

    code: str = "error"
    status_code: int = 500
    action: Action = "none"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "action": self.action,
            "details": self.details,
        }


class ConfigurationError(SnackError):
    code = "not_configured"
    status_code = 500


# -------------------------- Validation --------------------------


class ValidationFailedError(SnackError):
    code = "validation_failed"
    status_code = 400


class InvalidPathError(ValidationFailedError):
    code = "invalid_path"


class InvalidBranchError(InvalidPathError):
    code = "invalid_branch"


class InvalidEncodingError(ValidationFailedError):
    code = "invalid_encoding"


class FileTooLargeError(ValidationFailedError):
    code = "file_too_large"
    status_code = 413


class InvalidFilenameError(ValidationFailedError):
    code = "invalid_filename"


class ExtensionNotAllowedError(ValidationFailedError):
    code = "extension_not_allowed"


class ManifestFormatError(ValidationFailedError):
    code = "manifest_format"


# ------------------------- Authorization -------------------------


class UnauthorizedError(SnackError):
    code = "unauthorized"
    status_code = 401


class NotSiteMemberError(SnackError):
    code = "not_site_member"
    status_code = 403


class InstallationNotFoundError(SnackError):
    code = "installation_not_found"
    status_code = 403
    action = "reconnect"

    def __init__(self, message: Optional[str] = None, **kw: Any):
        super().__init__(
            message
            or (
                "GitHub App installation no longer exists. The app may have been "
                "uninstalled. Please reconnect GitHub and update the site settings."
            ),
            **kw,
        )


# ---------------------------- Lookups ----------------------------


class SiteNotFoundError(SnackError):
    code = "site_not_found"
    status_code = 404


class AssetNotFoundError(SnackError):
    code = "asset_not_found"
    status_code = 404


class ShareNotFoundError(SnackError):
    code = "share_not_found"
    status_code = 404


class ShareExpiredError(SnackError):
    code = "share_expired"
    status_code = 403


class UploadLimitError(SnackError):
    code = "upload_limit_reached"
    status_code = 403


# ------------------------ Provider / commit ------------------------


class BranchConflictError(SnackError):
    code = "branch_conflict"
    status_code = 409
    action = "retry"


class GitHubAPIError(SnackError):
    """Non-2xx response from the GitHub REST API."""

    code = "github_error"
    status_code = 502
    action = "retry"

    def __init__(self, message: str, *, status: Optional[int] = None, **kw: Any):
        super().__init__(message, **kw)
        self.status = status


class CommitFailedError(SnackError):
    code = "commit_failed"
    status_code = 502
    action = "retry"
