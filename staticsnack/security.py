# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import Depends, Request
import jwt
import json
import requests
import structlog
from .config import Settings
from .deps import get_settings
from .errors import UnauthorizedError

log = structlog.get_logger("staticsnack.security")

def _bearer_token(req: Request) -> Optional[str]:
    auth = req.headers.get("Authorization") or ""
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None

def _decode_jwt(token: str, cfg: Settings) -> Dict[str, Any]:
    options = {"verify_aud": bool(cfg.JWT_AUDIENCE)}
    if cfg.JWT_JWKS_URL:
        jwks = requests.get(cfg.JWT_JWKS_URL, timeout=3).json()
        kid = jwt.get_unverified_header(token)["kid"]
        key = next(k for k in jwks["keys"] if k["kid"] == kid)
        return jwt.decode(token, jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key)),
                          algorithms=["RS256"], audience=cfg.JWT_AUDIENCE, issuer=cfg.JWT_ISSUER,
                          options=options)
    if not cfg.JWT_SECRET:
        raise UnauthorizedError("Authentication is not configured")
    return jwt.decode(token, cfg.JWT_SECRET, algorithms=["HS256"], audience=cfg.JWT_AUDIENCE,
                      issuer=cfg.JWT_ISSUER, options=options)

def get_current_user(req: Request, cfg: Settings = Depends(get_settings)) -> str:
    """Return the acting user's id (the JWT ``sub`` claim)."""
    token = _bearer_token(req)
    if not token:
        raise UnauthorizedError("No authorization header")
    try:
        payload = _decode_jwt(token, cfg)
    except UnauthorizedError:
        raise
    except (jwt.PyJWTError, requests.RequestException, KeyError, StopIteration) as e:
        log.info("auth.rejected", error=str(e))
        raise UnauthorizedError("Unauthorized") from e
    sub = payload.get("sub")
    if not sub:
        raise UnauthorizedError("Unauthorized")
    return str(sub)
