# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiting: slowapi limiter shared by all routers
# ─────────────────────────────────────────────────────────────────────────────
# Mints cost gas and image generation costs API credits, so both are capped
# per client address. Limits come from settings at request time.
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from lemint.config import get_settings

logger = structlog.get_logger(__name__)

limiter = Limiter(key_func=get_remote_address)


def mint_limit() -> str:
    return get_settings().mint_rate_limit


def image_limit() -> str:
    return get_settings().image_rate_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the same ``{"error": ...}`` body as every other failure."""
    logger.warning(
        "rate_limited",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(status_code=429, content={"error": f"Rate limit exceeded: {exc.detail}"})
