# SPDX-License-Identifier: Apache-2.0
"""
GitHub App installation credentials.

Turns a stored installation id into a short-lived installation token and an
authenticated, repository-bound ``GitHubClient``. The app's private key is
handed in by the caller; nothing here reads the environment.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

import jwt
import requests
import structlog

from ..errors import GitHubAPIError, InstallationNotFoundError
from ..models import Site
from .github import GitHubClient, build_session

log = structlog.get_logger("staticsnack.services.credentials")

# Installation tokens live one hour; refresh well before that.
TOKEN_SAFETY_MARGIN_S = 300


def normalize_pem_key(pem: str) -> str:
    """
    Repair a PEM key that went through an env var: surrounding quotes,
    escaped newlines, CRLF, and markers glued to the body.
    """
    s = (pem or "").strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1]
    s = s.replace("\\r\\n", "\n").replace("\r\n", "\n").replace("\\n", "\n").replace("\r", "")
    for kind in ("PRIVATE KEY", "RSA PRIVATE KEY"):
        begin, end = f"-----BEGIN {kind}-----", f"-----END {kind}-----"
        if begin in s and end in s:
            body = s.split(begin, 1)[1].split(end, 1)[0].strip()
            s = f"{begin}\n{body}\n{end}"
            break
    if s and not s.endswith("\n"):
        s += "\n"
    return s


@dataclass(frozen=True)
class GitHubAppCredentials:
    app_id: str
    private_key: str

    @classmethod
    def from_pem(cls, app_id: str, pem: str) -> "GitHubAppCredentials":
        return cls(app_id=str(app_id), private_key=normalize_pem_key(pem))


@dataclass(frozen=True)
class InstallationToken:
    installation_id: int
    token: str
    expires_at: float  # epoch seconds

    def is_fresh(self, now: Optional[float] = None) -> bool:
        return (now or time.time()) < self.expires_at - TOKEN_SAFETY_MARGIN_S


class InstallationCredentialResolver:
    """
    Resolve installation ids to scoped tokens.

    Every resolution probes ``GET /app/installations/{id}`` first so a revoked
    installation fails with a clear "reconnect" error before any write.
    """

    def __init__(
        self,
        credentials: GitHubAppCredentials,
        *,
        api_url: str = "https://api.github.com",
        timeout: float = 15.0,
        retries: int = 3,
        cache_tokens: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.credentials = credentials
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self.cache_tokens = cache_tokens
        self.session = session or build_session(retries=retries)
        self._cache: Dict[int, InstallationToken] = {}
        self._lock = threading.Lock()

    # ------------- app auth ----------------

    def app_jwt(self, now: Optional[int] = None) -> str:
        now = int(now or time.time())
        payload = {"iat": now - 60, "exp": now + 540, "iss": self.credentials.app_id}
        return jwt.encode(payload, self.credentials.private_key, algorithm="RS256")

    def _app_request(self, method: str, path: str) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.app_jwt()}"}
        try:
            return self.session.request(method, f"{self.api_url}{path}", headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise GitHubAPIError(f"GitHub {method} {path} failed: {e}") from e

    # ------------- installation ----------------

    def verify_installation(self, installation_id: Optional[int]) -> Dict:
        if not installation_id:
            raise InstallationNotFoundError("Site is not connected to a GitHub App installation.")
        r = self._app_request("GET", f"/app/installations/{installation_id}")
        if r.status_code == 404:
            log.warning("github.installation.missing", installation_id=installation_id)
            with self._lock:
                self._cache.pop(int(installation_id), None)
            raise InstallationNotFoundError(details={"installation_id": installation_id})
        if r.status_code != 200:
            raise GitHubAPIError(
                f"Installation probe failed {r.status_code}: {r.text[:200]}", status=r.status_code
            )
        return r.json()

    def resolve(self, installation_id: Optional[int]) -> InstallationToken:
        self.verify_installation(installation_id)
        iid = int(installation_id)
        if self.cache_tokens:
            with self._lock:
                cached = self._cache.get(iid)
            if cached and cached.is_fresh():
                return cached

        r = self._app_request("POST", f"/app/installations/{iid}/access_tokens")
        if r.status_code == 404:
            raise InstallationNotFoundError(details={"installation_id": iid})
        if r.status_code not in (200, 201):
            raise GitHubAPIError(
                f"Failed to get installation access token ({r.status_code})", status=r.status_code
            )
        body = r.json()
        token = InstallationToken(
            installation_id=iid,
            token=body["token"],
            expires_at=_parse_expiry(body.get("expires_at")),
        )
        if self.cache_tokens:
            with self._lock:
                self._cache[iid] = token
        log.info("github.installation.token", installation_id=iid)
        return token

    def client_for(self, site: Site) -> GitHubClient:
        token = self.resolve(site.github_installation_id)
        return GitHubClient(
            owner=site.owner,
            repo=site.repo,
            token=token.token,
            api_url=self.api_url,
            timeout=self.timeout,
            retries=self.retries,
        )


def _parse_expiry(value: Optional[str]) -> float:
    if not value:
        return time.time() + 3600
    return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
