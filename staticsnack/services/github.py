# SPDX-License-Identifier: Apache-2.0
"""
Thin GitHub REST client for the Git Data and Contents APIs.

Only the calls the commit pipeline needs are wrapped. Idempotent methods are
retried on transient statuses by the transport; POST/PATCH are never retried
here so a half-applied request cannot be replayed.
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
import structlog
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import BranchConflictError, GitHubAPIError, InvalidPathError

log = structlog.get_logger("staticsnack.services.github")

API_VERSION = "2022-11-28"
USER_AGENT = "staticsnack/0.4 (+commit-pipeline)"


def build_session(token: Optional[str] = None, *, retries: int = 3, scheme: str = "token") -> requests.Session:
    session = requests.Session()
    session.headers.update({
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
        "User-Agent": USER_AGENT,
    })
    if token:
        session.headers["Authorization"] = f"{scheme} {token}"

    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["GET", "PUT"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_maxsize=10, pool_connections=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _url_path(path: str) -> str:
    """Percent-encode a repository path or ref name, keeping its slashes."""
    if any(seg in ("", ".", "..") for seg in path.split("/")):
        raise InvalidPathError("Invalid path segment in request", details={"path": path})
    return quote(path, safe="/")


def _error_message(r: requests.Response) -> str:
    try:
        body = r.json()
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    except ValueError:
        pass
    return (r.text or "")[:400]


class GitHubClient:
    """
    Installation-scoped client bound to one repository.
    """

    def __init__(
        self,
        *,
        owner: str,
        repo: str,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        retries: int = 3,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or build_session(token, retries=retries)
        self.repo_base = f"{self.api_url}/repos/{owner}/{repo}"

    # ------------- helpers ----------------

    def _request(self, method: str, path: str, *, ok=(200, 201), allow_404: bool = False, **kwargs) -> Optional[Dict[str, Any]]:
        url = f"{self.repo_base}/{path.lstrip('/')}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GitHubAPIError(f"GitHub {method} {path} failed: {e}") from e
        if allow_404 and r.status_code == 404:
            return None
        if r.status_code not in ok:
            raise GitHubAPIError(
                f"GitHub {method} {path} failed {r.status_code}: {_error_message(r)}",
                status=r.status_code,
            )
        return r.json() if r.content else {}

    # ------------- git data ----------------

    def get_ref(self, branch: str) -> str:
        data = self._request("GET", f"git/ref/heads/{_url_path(branch)}")
        return data["object"]["sha"]

    def get_commit(self, sha: str) -> Dict[str, Any]:
        return self._request("GET", f"git/commits/{sha}")

    def get_commit_tree(self, sha: str) -> str:
        return self.get_commit(sha)["tree"]["sha"]

    def create_blob(self, content_b64: str) -> str:
        data = self._request("POST", "git/blobs", json={"content": content_b64, "encoding": "base64"})
        return data["sha"]

    def create_tree(self, base_tree: str, entries: List[Dict[str, str]]) -> str:
        data = self._request("POST", "git/trees", json={"base_tree": base_tree, "tree": entries})
        return data["sha"]

    def create_commit(self, message: str, tree: str, parents: List[str]) -> Dict[str, Any]:
        return self._request("POST", "git/commits", json={"message": message, "tree": tree, "parents": parents})

    def update_ref(self, branch: str, sha: str, *, force: bool = False) -> None:
        """Fast-forward ``heads/{branch}``; a rejected update is a branch conflict."""
        try:
            self._request("PATCH", f"git/refs/heads/{_url_path(branch)}", json={"sha": sha, "force": force})
        except GitHubAPIError as e:
            if e.status in (409, 422):
                raise BranchConflictError(
                    f"Branch '{branch}' moved while the commit was being prepared",
                    details={"branch": branch, "commit_sha": sha},
                ) from e
            raise

    # ------------- contents ----------------

    def get_contents(self, path: str, ref: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Return the contents entry for ``path`` or None when it does not exist."""
        params = {"ref": ref} if ref else None
        return self._request("GET", f"contents/{_url_path(path)}", params=params, allow_404=True)

    def get_file_bytes(self, path: str, ref: Optional[str] = None) -> Optional[tuple]:
        """Return (bytes, sha) for a file, or None when it does not exist."""
        entry = self.get_contents(path, ref)
        if entry is None:
            return None
        if isinstance(entry, list) or entry.get("type") not in (None, "file"):
            raise GitHubAPIError(f"{path} is not a file", status=400)
        raw = (entry.get("content") or "").replace("\n", "")
        return base64.b64decode(raw), entry.get("sha")

    def put_contents(
        self,
        path: str,
        content_b64: str,
        message: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": message, "content": content_b64, "branch": branch}
        if sha:
            body["sha"] = sha
        data = self._request("PUT", f"contents/{_url_path(path)}", json=body)
        log.info("github.contents.put", repo=f"{self.owner}/{self.repo}", path=path, branch=branch)
        return data

    def delete_contents(self, path: str, message: str, branch: str, sha: str) -> Dict[str, Any]:
        """Remove one file; GitHub requires the current blob sha."""
        body = {"message": message, "sha": sha, "branch": branch}
        data = self._request("DELETE", f"contents/{_url_path(path)}", json=body)
        log.info("github.contents.delete", repo=f"{self.owner}/{self.repo}", path=path, branch=branch)
        return data

    def commit_url(self, sha: str) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/commit/{sha}"
