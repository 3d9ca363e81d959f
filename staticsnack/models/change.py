# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator


class PendingChange(BaseModel):
    """
    One in-browser edit waiting to be published.

    ``content`` is base64. Owned by the editing session until it is committed
    or cleared.
    """
    repo_path: str = Field(validation_alias=AliasChoices("repo_path", "repoPath", "file_path"))
    content: str
    original_content: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("original_content", "originalContent")
    )
    file_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("file_name", "fileName"))

    model_config = {"extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def _default_file_name(self) -> "PendingChange":
        if not self.file_name:
            self.file_name = self.repo_path.rstrip("/").split("/")[-1]
        return self


class CommitResult(BaseModel):
    commit_sha: str
    commit_url: Optional[str] = None
    files_committed: int
    files: List[str] = Field(default_factory=list)
    manifests_updated: List[str] = Field(default_factory=list)
    attempts: int = 1
    warnings: List[str] = Field(default_factory=list)


class AssetWriteResult(BaseModel):
    commit_sha: str
    file_url: Optional[str] = None
    file_path: str
    branch: str
    manifest_updated: bool = False
    warnings: List[str] = Field(default_factory=list)
