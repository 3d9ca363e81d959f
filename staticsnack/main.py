# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .deps import get_settings
from .errors import SnackError
from .logging import setup_logging
from .metrics import setup_metrics
from .models import ApiError, ErrorResponse
from .routers import assets, commits, health, shares

cfg = get_settings()
logger = setup_logging(cfg.LOG_LEVEL)

app = FastAPI(
    title=cfg.APP_NAME,
    version=cfg.APP_VERSION,
    default_response_class=ORJSONResponse,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.cors_origins(),
    allow_methods=cfg.cors_methods(),
    allow_headers=cfg.cors_headers(),
)

# Rate limits (per IP)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[cfg.RATE_LIMIT_DEFAULT],
    enabled=cfg.RATE_LIMIT_ENABLED,
)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

def _error(status: int, code: str, message: str, action: str = "none", details=None) -> ORJSONResponse:
    body = ErrorResponse(error=ApiError(code=code, message=message, action=action, details=details))
    return ORJSONResponse(body.model_dump(), status_code=status)

@app.exception_handler(RateLimitExceeded)
def _ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return _error(429, "rate_limited", "Too Many Requests", "retry")

@app.exception_handler(SnackError)
def _snack_error_handler(request: Request, exc: SnackError):
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("request.rejected", path=request.url.path, code=exc.code, status=exc.status_code)
    return _error(exc.status_code, **exc.to_dict())

@app.exception_handler(RequestValidationError)
def _validation_handler(request: Request, exc: RequestValidationError):
    return _error(400, "validation_failed", "Invalid request body", details=jsonable_encoder(exc.errors()))

@app.exception_handler(Exception)
def _unhandled_handler(request: Request, exc: Exception):
    logger.exception("request.crashed", path=request.url.path)
    return _error(500, "internal_error", "Internal server error")


# Routers
app.include_router(health.router)
app.include_router(commits.router)
app.include_router(assets.router)
app.include_router(shares.router)

# Metrics
setup_metrics(app, enable=cfg.ENABLE_PROMETHEUS)
