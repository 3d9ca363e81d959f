# SPDX-License-Identifier: Apache-2.0
"""
Directory ``manifest.json`` maintenance.

A manifest is an optional ``{"files": [...]}`` index some site templates read
client-side. It is derived data: a missing manifest means the directory is
not tracked, and nothing here may fail an asset write.
"""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import structlog

from ..errors import ManifestFormatError
from ..utils.sanitize import encode_content, join_path
from .side_effects import BestEffort

log = structlog.get_logger("staticsnack.services.manifest")

MANIFEST_NAME = "manifest.json"


def manifest_path(directory: str) -> str:
    return join_path(directory, MANIFEST_NAME)


def parse_manifest(raw: bytes) -> Dict[str, Any]:
    try:
        doc = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ManifestFormatError(f"manifest.json is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ManifestFormatError("manifest.json must be a JSON object")
    return doc


def merge_manifest(doc: Mapping[str, Any], names: Iterable[str]) -> Tuple[bool, Dict[str, Any]]:
    """
    Add missing ``names`` to ``doc["files"]`` and keep the list sorted.

    Returns (changed, new_doc); the input is never mutated and keys other
    than ``files`` are carried over untouched.
    """
    files = doc.get("files", [])
    if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
        raise ManifestFormatError("manifest.json 'files' must be a list of strings")
    present = set(files)
    missing = sorted({n for n in names if n and n != MANIFEST_NAME} - present)
    out = copy.deepcopy(dict(doc))
    if not missing:
        return False, out
    out["files"] = sorted(files + missing)
    return True, out


def render_manifest(doc: Mapping[str, Any]) -> bytes:
    return json.dumps(doc, indent=2, ensure_ascii=False).encode("utf-8")


@dataclass
class ManifestSyncResult:
    directory: str
    path: str
    tracked: bool = False
    updated: bool = False
    added: List[str] = field(default_factory=list)


class ManifestSynchronizer:
    def sync(self, client, directory: str, names: Iterable[str], branch: str) -> ManifestSyncResult:
        """
        Make ``directory/manifest.json`` list ``names``.

        No-op when the manifest is absent or already complete. The write is
        guarded by the sha read here, so a concurrent manifest edit makes it
        fail instead of clobbering the other change.
        """
        names = list(names)
        path = manifest_path(directory)
        result = ManifestSyncResult(directory=directory, path=path)
        if not directory:
            return result

        found = client.get_file_bytes(path, ref=branch)
        if found is None:
            log.debug("manifest.absent", path=path)
            return result
        raw, sha = found
        result.tracked = True

        doc = parse_manifest(raw)
        changed, merged = merge_manifest(doc, names)
        if not changed:
            return result

        result.added = sorted(set(merged["files"]) - set(doc.get("files", [])))
        client.put_contents(
            path,
            encode_content(render_manifest(merged)),
            f"Update manifest: add {', '.join(result.added)}",
            branch,
            sha=sha,
        )
        result.updated = True
        log.info("manifest.updated", path=path, added=result.added)
        return result

    def plan_entries(
        self,
        client,
        changes_by_dir: Mapping[str, Iterable[str]],
        ref: str,
        *,
        staged: Optional[Mapping[str, bytes]] = None,
        effects: Optional[BestEffort] = None,
    ) -> List[Tuple[str, bytes]]:
        """
        Compute updated manifests for a batch commit, one per directory.

        ``staged`` maps paths already in the batch to their new bytes; a
        manifest edited in the same batch is merged from that copy and the
        returned entry supersedes it. Read or
        parse failures skip the directory and land in ``effects`` as warnings.
        """
        staged = staged or {}
        effects = effects or BestEffort()
        updates: List[Tuple[str, bytes]] = []
        for directory in sorted(changes_by_dir):
            if not directory:
                continue
            path = manifest_path(directory)
            names = list(changes_by_dir[directory])

            def _load(path=path) -> Optional[bytes]:
                if path in staged:
                    return staged[path]
                found = client.get_file_bytes(path, ref=ref)
                return None if found is None else found[0]

            raw = effects.run(f"manifest {path}", _load)
            if raw is None:
                continue
            merged = effects.run(f"manifest {path}", lambda raw=raw: merge_manifest(parse_manifest(raw), names))
            if merged is None:
                continue
            changed, doc = merged
            if changed:
                updates.append((path, render_manifest(doc)))
        return updates
