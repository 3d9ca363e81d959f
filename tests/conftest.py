# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import base64
import hashlib
import itertools
from typing import Any, Callable, Dict, List, Optional

import pytest

from staticsnack.errors import BranchConflictError, GitHubAPIError, InstallationNotFoundError
from staticsnack.models import Site, SiteMember
from staticsnack.store import MemoryStore


def b64(text) -> str:
    data = text.encode("utf-8") if isinstance(text, str) else text
    return base64.b64encode(data).decode("ascii")


class FakeGitHub:
    """
    In-memory repository speaking the subset of the Git Data and Contents
    APIs that ``GitHubClient`` exposes.

    ``fail`` maps a method name to an exception raised on its next call.
    ``before_update_ref`` runs just before a ref update is applied, which lets
    a test move the branch underneath a commit in flight.
    """

    def __init__(self, owner: str = "acme", repo: str = "site", files: Optional[Dict[str, bytes]] = None, branch: str = "main"):
        self.owner = owner
        self.repo = repo
        self.blobs: Dict[str, bytes] = {}
        self.trees: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, Dict[str, Any]] = {}
        self.refs: Dict[str, str] = {}
        self.calls: List[str] = []
        self.fail: Dict[str, Exception] = {}
        self.before_update_ref: Optional[Callable[["FakeGitHub"], None]] = None
        self._ids = itertools.count(1)
        self.refs[branch] = self._commit_files(files or {}, "Initial commit", [])

    # ---- internals ----
    def _track(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise self.fail.pop(name)

    def _blob(self, data: bytes) -> str:
        sha = hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()
        self.blobs[sha] = data
        return sha

    def _tree(self, entries: Dict[str, str]) -> str:
        sha = f"tree{next(self._ids):04d}"
        self.trees[sha] = dict(entries)
        return sha

    def _commit(self, message: str, tree: str, parents: List[str]) -> str:
        sha = f"c{next(self._ids):04d}"
        self.commits[sha] = {"message": message, "tree": tree, "parents": list(parents)}
        return sha

    def _commit_files(self, files: Dict[str, bytes], message: str, parents: List[str]) -> str:
        tree = self._tree({p: self._blob(d) for p, d in files.items()})
        return self._commit(message, tree, parents)

    def files(self, branch: str = "main") -> Dict[str, bytes]:
        tree = self.trees[self.commits[self.refs[branch]]["tree"]]
        return {p: self.blobs[s] for p, s in tree.items()}

    def head(self, branch: str = "main") -> Dict[str, Any]:
        return self.commits[self.refs[branch]]

    def push(self, path: str, data: bytes, branch: str = "main", message: str = "Concurrent edit") -> str:
        """Commit directly to ``branch`` as another writer would."""
        files = self.files(branch)
        files[path] = data
        self.refs[branch] = self._commit_files(files, message, [self.refs[branch]])
        return self.refs[branch]

    # ---- git data ----
    def get_ref(self, branch: str) -> str:
        self._track("get_ref")
        if branch not in self.refs:
            raise GitHubAPIError("Not Found", status=404)
        return self.refs[branch]

    def get_commit_tree(self, sha: str) -> str:
        self._track("get_commit_tree")
        return self.commits[sha]["tree"]

    def create_blob(self, content_b64: str) -> str:
        self._track("create_blob")
        return self._blob(base64.b64decode(content_b64))

    def create_tree(self, base_tree: str, entries: List[Dict[str, str]]) -> str:
        self._track("create_tree")
        merged = dict(self.trees[base_tree])
        for e in entries:
            assert e["mode"] == "100644" and e["type"] == "blob"
            merged[e["path"]] = e["sha"]
        return self._tree(merged)

    def create_commit(self, message: str, tree: str, parents: List[str]) -> Dict[str, Any]:
        self._track("create_commit")
        sha = self._commit(message, tree, parents)
        return {"sha": sha, "html_url": self.commit_url(sha)}

    def update_ref(self, branch: str, sha: str, *, force: bool = False) -> None:
        self._track("update_ref")
        if self.before_update_ref is not None:
            hook, self.before_update_ref = self.before_update_ref, None
            hook(self)
        if not force and self.refs[branch] not in self.commits[sha]["parents"]:
            raise BranchConflictError("Update is not a fast forward")
        self.refs[branch] = sha

    # ---- contents ----
    def get_contents(self, path: str, ref: Optional[str] = None) -> Optional[Dict[str, Any]]:
        self._track("get_contents")
        tree = self.trees[self.commits[self.refs.get(ref or "main", ref)]["tree"]]
        if path not in tree:
            return None
        return {"type": "file", "path": path, "sha": tree[path], "content": b64(self.blobs[tree[path]])}

    def get_file_bytes(self, path: str, ref: Optional[str] = None):
        entry = self.get_contents(path, ref)
        if entry is None:
            return None
        return base64.b64decode(entry["content"]), entry["sha"]

    def put_contents(self, path: str, content_b64: str, message: str, branch: str, sha: Optional[str] = None) -> Dict[str, Any]:
        self._track("put_contents")
        tree = self.trees[self.commits[self.refs[branch]]["tree"]]
        if path in tree and sha != tree[path]:
            raise GitHubAPIError(f"{path} does not match {sha}", status=409)
        commit = self.push(path, base64.b64decode(content_b64), branch, message)
        return {
            "content": {"path": path, "sha": self.trees[self.head(branch)["tree"]][path], "html_url": f"https://github.com/{self.owner}/{self.repo}/blob/{branch}/{path}"},
            "commit": {"sha": commit},
        }

    def delete_contents(self, path: str, message: str, branch: str, sha: str) -> Dict[str, Any]:
        self._track("delete_contents")
        files = self.files(branch)
        tree = self.trees[self.head(branch)["tree"]]
        if path not in files:
            raise GitHubAPIError(f"{path} not found", status=404)
        if sha != tree[path]:
            raise GitHubAPIError(f"{path} does not match {sha}", status=409)
        del files[path]
        self.refs[branch] = self._commit_files(files, message, [self.refs[branch]])
        return {"content": None, "commit": {"sha": self.refs[branch]}}

    def commit_url(self, sha: str) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/commit/{sha}"


class FakeResolver:
    """Stands in for ``InstallationCredentialResolver``: installation id -> repo."""

    def __init__(self, repos: Optional[Dict[int, FakeGitHub]] = None):
        self.repos = repos or {}
        self.resolved: List[Optional[int]] = []

    def client_for(self, site: Site) -> FakeGitHub:
        self.resolved.append(site.github_installation_id)
        repo = self.repos.get(site.github_installation_id or 0)
        if repo is None:
            raise InstallationNotFoundError(details={"installation_id": site.github_installation_id})
        return repo


SITE_ID = "site-1"
INSTALLATION_ID = 42


@pytest.fixture()
def github() -> FakeGitHub:
    return FakeGitHub(files={
        "index.html": b"<h1>Home</h1>",
        "images/manifest.json": b'{\n  "files": [\n    "logo.png"\n  ]\n}',
        "images/logo.png": b"\x89PNG-logo",
        "content/about.md": b"# About\n",
    })


@pytest.fixture()
def resolver(github) -> FakeResolver:
    return FakeResolver({INSTALLATION_ID: github})


@pytest.fixture()
def site() -> Site:
    return Site(id=SITE_ID, repo_full_name="acme/site", default_branch="main", github_installation_id=INSTALLATION_ID)


@pytest.fixture()
def store(site) -> MemoryStore:
    s = MemoryStore()
    s.put_site(site)
    s.add_member(SiteMember(site_id=SITE_ID, user_id="u-owner", role="owner"))
    s.add_member(SiteMember(site_id=SITE_ID, user_id="u-editor", role="editor"))
    s.add_member(SiteMember(site_id=SITE_ID, user_id="u-viewer", role="viewer"))
    return s
