# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json

import pytest

from staticsnack.errors import (
    BranchConflictError,
    CommitFailedError,
    GitHubAPIError,
    InstallationNotFoundError,
    InvalidBranchError,
    InvalidPathError,
    ValidationFailedError,
)
from staticsnack.models import PendingChange
from staticsnack.services.batch_commit import BatchCommitBuilder, group_by_directory, prepare_changes
from conftest import b64


def _builder(resolver, store, **kw) -> BatchCommitBuilder:
    return BatchCommitBuilder(resolver, store, **kw)


def _changes(*pairs):
    return [PendingChange(repo_path=p, content=b64(c)) for p, c in pairs]


def test_prepare_changes_last_writer_wins_and_sanitizes():
    prepared = prepare_changes(_changes(("/a.md", "one"), ("b.md", "two"), ("a.md", "three")))
    assert list(prepared) == ["b.md", "a.md"]
    assert prepared["a.md"] == b"three"


def test_group_by_directory():
    # root-level files have no manifest to maintain
    assert group_by_directory(["index.html", "images/a.png", "images/b.png"]) == {"images": {"a.png", "b.png"}}


def test_pending_change_accepts_camel_case():
    change = PendingChange.model_validate({"repoPath": "images/hero.jpg", "content": "eA==", "originalContent": None})
    assert change.repo_path == "images/hero.jpg"
    assert change.file_name == "hero.jpg"


def test_batch_publishes_one_commit_on_top_of_head(github, resolver, store, site):
    head = github.refs["main"]
    before = github.files()
    hero, about = bytes(range(256)) * 4 + b"\xff" * 176, b"# About us\n" + b"x" * 389
    result = _builder(resolver, store).commit(
        site,
        "Update hero and about",
        _changes(("images/hero.jpg", hero), ("content/about.md", about)),
        user_id="u-editor",
    )

    assert result.files_committed == 2
    assert result.files == ["images/hero.jpg", "content/about.md"]
    assert result.commit_sha == github.refs["main"]
    assert result.attempts == 1
    assert result.warnings == []
    commit = github.head()
    assert commit["parents"] == [head]
    assert commit["message"] == "Update hero and about"

    files = github.files()
    assert len(hero) == 1200 and len(about) == 400
    assert files["images/hero.jpg"] == hero
    assert files["content/about.md"] == about
    changed = {p for p in files if before.get(p) != files[p]}
    assert changed == {"images/hero.jpg", "content/about.md", "images/manifest.json"}
    # manifest rides along in the same commit
    assert result.manifests_updated == ["images/manifest.json"]
    assert json.loads(files["images/manifest.json"])["files"] == ["hero.jpg", "logo.png"]
    assert github.calls.count("update_ref") == 1


def test_batch_records_activity_and_versions(github, resolver, store, site):
    result = _builder(resolver, store).commit(
        site, "msg", _changes(("index.html", "<h1>New</h1>")), user_id="u-owner", batch_id="batch-1"
    )
    (entry,) = store.list_activity(site.id)
    assert entry.action == "batch_commit"
    assert entry.user_id == "u-owner"
    assert entry.metadata == {
        "commit_sha": result.commit_sha,
        "commit_message": "msg",
        "files_count": 1,
        "files": ["index.html"],
        "batch_id": "batch-1",
    }
    (version,) = store.list_versions(site.id)
    assert version.status == "committed"
    assert version.commit_sha == result.commit_sha
    assert version.file_size_bytes == len(b"<h1>New</h1>")


def test_failed_blob_leaves_branch_untouched(github, resolver, store, site):
    head = github.refs["main"]
    github.fail["create_blob"] = GitHubAPIError("boom", status=500)
    with pytest.raises(CommitFailedError) as ei:
        _builder(resolver, store).commit(site, "msg", _changes(("a.md", "a"), ("b.md", "b")))
    assert ei.value.action == "retry"
    assert github.refs["main"] == head
    assert "update_ref" not in github.calls
    assert store.list_activity(site.id) == []


def test_branch_moved_is_rebased(github, resolver, store, site):
    github.before_update_ref = lambda gh: gh.push("content/other.md", b"theirs")
    result = _builder(resolver, store).commit(site, "mine", _changes(("content/mine.md", "ours")))

    assert result.attempts == 2
    files = github.files()
    assert files["content/other.md"] == b"theirs"
    assert files["content/mine.md"] == b"ours"
    # blobs are created once and reused on the second attempt
    assert github.calls.count("create_blob") == 1


def test_conflict_after_max_attempts_is_reported(github, resolver, store, site):
    def keep_moving(gh):
        gh.push("content/race.md", b"x")
        gh.before_update_ref = keep_moving

    github.before_update_ref = keep_moving
    with pytest.raises(BranchConflictError) as ei:
        _builder(resolver, store, max_attempts=2).commit(site, "mine", _changes(("a.md", "a")))
    assert ei.value.status_code == 409
    assert github.calls.count("update_ref") == 2
    assert "a.md" not in github.files()


def test_missing_installation_makes_no_git_calls(github, resolver, store, site):
    orphan = site.model_copy(update={"github_installation_id": 999})
    with pytest.raises(InstallationNotFoundError) as ei:
        _builder(resolver, store).commit(orphan, "msg", _changes(("a.md", "a")))
    assert ei.value.action == "reconnect"
    assert github.calls == []


def test_traversal_rejected_before_credentials(github, resolver, store, site):
    with pytest.raises(InvalidPathError):
        _builder(resolver, store).commit(site, "msg", _changes(("../../etc/passwd", "x")))
    assert resolver.resolved == []
    assert github.calls == []


def test_bad_branch_rejected_before_credentials(github, resolver, store, site):
    with pytest.raises(InvalidBranchError):
        _builder(resolver, store).commit(site, "msg", _changes(("a.md", "a")), branch="../../../../user")
    assert resolver.resolved == []
    assert github.calls == []


def test_message_and_changes_required(resolver, store, site):
    builder = _builder(resolver, store)
    with pytest.raises(ValidationFailedError):
        builder.commit(site, "   ", _changes(("a.md", "a")))
    with pytest.raises(ValidationFailedError):
        builder.commit(site, "msg", [])


def test_activity_failure_becomes_warning(github, resolver, store, site, monkeypatch):
    def broken(entry):
        raise RuntimeError("activity table offline")

    monkeypatch.setattr(store, "append_activity", broken)
    result = _builder(resolver, store).commit(site, "msg", _changes(("a.md", "a")))
    assert github.files()["a.md"] == b"a"
    assert result.warnings == ["activity log: activity table offline"]
