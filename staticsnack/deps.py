# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from functools import lru_cache
from fastapi import Depends
from .config import Settings
from .errors import ConfigurationError
from .services.activity import ActivityRecorder
from .services.asset_writer import AssetWriter
from .services.batch_commit import BatchCommitBuilder
from .services.credentials import GitHubAppCredentials, InstallationCredentialResolver
from .services.shares import ShareService
from .services.staging import StagingService
from .store import MemoryStore, RedisStore, Store

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

@lru_cache(maxsize=1)
def _store(backend: str, url: str, prefix: str) -> Store:
    if backend == "redis":
        return RedisStore.from_url(url, prefix=prefix)
    return MemoryStore()

def get_store(cfg: Settings = Depends(get_settings)) -> Store:
    return _store(cfg.STORE_BACKEND.lower(), cfg.REDIS_URL, cfg.REDIS_PREFIX)

@lru_cache(maxsize=1)
def _resolver(app_id: str, pem: str, api_url: str, timeout: float, retries: int, cache: bool) -> InstallationCredentialResolver:
    return InstallationCredentialResolver(
        GitHubAppCredentials.from_pem(app_id, pem),
        api_url=api_url,
        timeout=timeout,
        retries=retries,
        cache_tokens=cache,
    )

def get_resolver(cfg: Settings = Depends(get_settings)):
    if not cfg.GITHUB_APP_ID or not cfg.GITHUB_APP_PKEY:
        raise ConfigurationError("GitHub App not configured properly")
    return _resolver(
        cfg.GITHUB_APP_ID, cfg.GITHUB_APP_PKEY, cfg.GITHUB_API_URL,
        cfg.GITHUB_HTTP_TIMEOUT, cfg.GITHUB_HTTP_RETRIES, cfg.TOKEN_CACHE_ENABLED,
    )

def get_activity(store: Store = Depends(get_store)) -> ActivityRecorder:
    return ActivityRecorder(store)

def get_staging(store: Store = Depends(get_store), cfg: Settings = Depends(get_settings)) -> StagingService:
    return StagingService(store, max_file_size=cfg.MAX_FILE_SIZE_BYTES)

def get_asset_writer(
    resolver=Depends(get_resolver),
    store: Store = Depends(get_store),
    cfg: Settings = Depends(get_settings),
) -> AssetWriter:
    return AssetWriter(resolver, store, max_file_size=cfg.MAX_FILE_SIZE_BYTES)

def get_batch_builder(
    resolver=Depends(get_resolver),
    store: Store = Depends(get_store),
    cfg: Settings = Depends(get_settings),
) -> BatchCommitBuilder:
    return BatchCommitBuilder(
        resolver, store,
        max_file_size=cfg.MAX_FILE_SIZE_BYTES,
        max_attempts=cfg.COMMIT_MAX_ATTEMPTS,
    )

def get_share_service(
    store: Store = Depends(get_store),
    writer: AssetWriter = Depends(get_asset_writer),
    cfg: Settings = Depends(get_settings),
) -> ShareService:
    return ShareService(
        store, writer,
        max_file_size=cfg.MAX_FILE_SIZE_BYTES,
        max_filename_length=cfg.MAX_FILENAME_LENGTH,
    )

def get_share_admin(store: Store = Depends(get_store)) -> ShareService:
    return ShareService(store, None)
