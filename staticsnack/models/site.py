# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

Role = Literal["owner", "admin", "editor", "viewer"]


class Site(BaseModel):
    """
    A managed static site backed by one GitHub repository.

    ``github_installation_id`` may point at an installation that has since
    been removed on GitHub; callers must treat that as a normal failure.
    """
    id: str
    repo_full_name: str = Field(description="owner/repo")
    default_branch: str = "main"
    github_installation_id: Optional[int] = None
    created_by: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("repo_full_name")
    @classmethod
    def _owner_repo(cls, v: str) -> str:
        parts = (v or "").strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError("repo_full_name must look like 'owner/repo'")
        return "/".join(parts)

    @property
    def owner(self) -> str:
        return self.repo_full_name.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repo_full_name.split("/", 1)[1]


class SiteMember(BaseModel):
    site_id: str
    user_id: str
    role: Role = "editor"
