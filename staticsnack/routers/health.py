# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from fastapi import APIRouter, Depends
from ..config import Settings
from ..deps import get_settings, get_store
from ..store import Store

router = APIRouter(prefix="/api", tags=["health"])

@router.get("/healthz")
def healthz(cfg: Settings = Depends(get_settings)):
    return {"ok": True, "service": "staticsnack-api", "version": cfg.APP_VERSION}

@router.get("/readyz")
def readyz(cfg: Settings = Depends(get_settings), store: Store = Depends(get_store)):
    return {
        "ok": True,
        "store": type(store).__name__,
        "github_app": bool(cfg.GITHUB_APP_ID and cfg.GITHUB_APP_PKEY),
    }

@router.get("/health")
def health(cfg: Settings = Depends(get_settings)):
    return healthz(cfg)
