# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes: liveness and readiness
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. "Is the process alive?" No I/O.
#   /health/ready  → Readiness probe. "Can it mint?" Checks the admin key,
#                    the RPC endpoint and the pinning credentials.
# ─────────────────────────────────────────────────────────────────────────────

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from lemint.dependencies import (
    get_contract_gateway,
    get_image_generator,
    get_pinning_client,
)
from lemint.schemas import LivenessResponse, ReadinessResponse
from lemint.services.contract_gateway import ContractGateway
from lemint.services.image_generator import ImageGenerator
from lemint.services.pinata import PinataClient

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe: is the process alive?"""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    request: Request,
    gateway: ContractGateway | None = Depends(get_contract_gateway),
    pinning: PinataClient = Depends(get_pinning_client),
    generator: ImageGenerator = Depends(get_image_generator),
) -> JSONResponse:
    """Readiness probe: returns 503 until the service can mint.

    Image generation is reported but does not gate readiness; minting
    works with client-supplied images.
    """
    chain_connected = False
    if gateway is not None:
        try:
            chain_connected = await gateway.is_connected()
        except Exception:
            logger.warning("rpc_unreachable", exc_info=True)

    pipeline = getattr(request.app.state, "mint_pipeline", None)
    ready = chain_connected and pinning.is_configured

    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        chain_configured=gateway is not None,
        chain_connected=chain_connected,
        pinning_configured=pinning.is_configured,
        image_generation_configured=generator.is_configured,
        collection_address=pipeline.resolver.address if pipeline is not None else None,
    )

    return JSONResponse(
        status_code=200 if ready else 503,
        content=response.model_dump(),
    )
