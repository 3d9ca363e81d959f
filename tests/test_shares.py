# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from staticsnack.errors import (
    ConfigurationError,
    ExtensionNotAllowedError,
    GitHubAPIError,
    InvalidFilenameError,
    ShareExpiredError,
    ShareNotFoundError,
    SiteNotFoundError,
    UploadLimitError,
    ValidationFailedError,
)
from staticsnack.services.asset_writer import AssetWriter
from staticsnack.services.shares import ShareService, generate_share_token
from conftest import b64

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> Clock:
    return Clock(NOW)


@pytest.fixture()
def shares(resolver, store, clock) -> ShareService:
    return ShareService(store, AssetWriter(resolver, store), clock=clock)


def test_token_format():
    token = generate_share_token()
    assert len(token) == 64
    assert int(token, 16) >= 0


def test_create_share_normalizes_input(shares, site):
    share = shares.create_share(
        site.id, "/images/uploads/", "u-owner", expires_in_hours=2, max_uploads=3, allowed_extensions=["JPG", "png"]
    )
    assert share.asset_path == "images/uploads"
    assert share.expires_at == NOW + timedelta(hours=2)
    assert share.allowed_extensions == [".jpg", ".png"]
    assert share.upload_count == 0


@pytest.mark.parametrize("kw", [
    {"expires_in_hours": 0},
    {"expires_in_hours": 8761},
    {"expires_in_hours": True},
    {"max_uploads": 0},
    {"max_uploads": 1001},
    {"description": "x" * 501},
])
def test_create_share_validates_bounds(shares, site, kw):
    with pytest.raises(ValidationFailedError):
        shares.create_share(site.id, "images", "u-owner", **kw)


def test_create_share_unknown_site(shares):
    with pytest.raises(SiteNotFoundError):
        shares.create_share("nope", "images", "u-owner")


def test_guest_upload_writes_into_share_directory(shares, store, github, site):
    share = shares.create_share(site.id, "images", "u-owner", max_uploads=2)
    result = shares.guest_upload(share.token, "party.jpg", b64(b"JPEG"))

    assert result.file_path == "images/party.jpg"
    assert github.files()["images/party.jpg"] == b"JPEG"
    assert github.head()["message"] == "Update manifest: add party.jpg"
    assert store.get_share_by_token(share.token).upload_count == 1
    entry = store.list_activity(site.id)[0]
    assert entry.action == "guest_upload"
    assert entry.user_id is None
    assert entry.metadata["share_id"] == share.id
    assert entry.metadata["file_size_bytes"] == 4


def test_guest_upload_limit(shares, site):
    share = shares.create_share(site.id, "images", "u-owner", max_uploads=1)
    shares.guest_upload(share.token, "a.jpg", b64(b"a"))
    with pytest.raises(UploadLimitError):
        shares.guest_upload(share.token, "b.jpg", b64(b"b"))


def test_guest_upload_expired(shares, clock, site):
    share = shares.create_share(site.id, "images", "u-owner", expires_in_hours=1)
    clock.now = NOW + timedelta(hours=1, seconds=1)
    with pytest.raises(ShareExpiredError):
        shares.guest_upload(share.token, "a.jpg", b64(b"a"))


def test_guest_upload_input_checks(shares, site):
    share = shares.create_share(site.id, "images", "u-owner", allowed_extensions=["png"])
    with pytest.raises(ValidationFailedError):
        shares.guest_upload("abc", "a.png", b64(b"a"))
    with pytest.raises(ShareNotFoundError):
        shares.guest_upload("0" * 64, "a.png", b64(b"a"))
    with pytest.raises(InvalidFilenameError):
        shares.guest_upload(share.token, ".htaccess", b64(b"a"))
    with pytest.raises(ExtensionNotAllowedError):
        shares.guest_upload(share.token, "a.jpg", b64(b"a"))
    with pytest.raises(ValidationFailedError):
        shares.guest_upload(share.token, "a.png", "")


def test_failed_write_releases_slot(shares, store, github, site):
    share = shares.create_share(site.id, "images", "u-owner", max_uploads=1)
    github.fail["put_contents"] = GitHubAPIError("server error", status=502)
    with pytest.raises(GitHubAPIError):
        shares.guest_upload(share.token, "a.jpg", b64(b"a"))
    assert store.get_share_by_token(share.token).upload_count == 0
    shares.guest_upload(share.token, "a.jpg", b64(b"a"))


def test_guest_upload_requires_writer(store, site):
    admin = ShareService(store, None)
    share = admin.create_share(site.id, "images", "u-owner")
    with pytest.raises(ConfigurationError):
        admin.guest_upload(share.token, "a.jpg", b64(b"a"))
    assert store.get_share_by_token(share.token).upload_count == 0
