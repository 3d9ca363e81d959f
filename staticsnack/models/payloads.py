# SPDX-License-Identifier: Apache-2.0
"""Request bodies accepted by the HTTP layer."""
from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from .change import PendingChange


class BatchCommitRequest(BaseModel):
    commit_message: str = Field(validation_alias=AliasChoices("commit_message", "commitMessage", "message"))
    asset_changes: Optional[List[PendingChange]] = Field(
        default=None, validation_alias=AliasChoices("asset_changes", "assetChanges", "changes")
    )
    branch: Optional[str] = None


class AssetUploadRequest(BaseModel):
    file_path: str = Field(validation_alias=AliasChoices("file_path", "filePath", "repo_path"))
    content: str
    message: Optional[str] = None
    branch: Optional[str] = None
    sha: Optional[str] = None


class StageAssetRequest(BaseModel):
    file_path: str = Field(validation_alias=AliasChoices("file_path", "filePath", "repo_path"))
    content: str


class CreateShareRequest(BaseModel):
    asset_path: str
    expires_in_hours: int = 24
    max_uploads: Optional[int] = None
    allowed_extensions: Optional[List[str]] = None
    description: Optional[str] = None


class GuestUploadRequest(BaseModel):
    token: str
    file_content: str
    file_name: str


class AssetDeleteRequest(BaseModel):
    file_path: str = Field(validation_alias=AliasChoices("file_path", "filePath", "repo_path"))
    sha: Optional[str] = None
    message: Optional[str] = None
    branch: Optional[str] = None
