# ─────────────────────────────────────────────────────────────────────────────
# Image Routes: prompt → image, image → IPFS
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request

from lemint.dependencies import get_image_generator, get_pinning_client
from lemint.exceptions import InvalidRequestError
from lemint.pipeline.media import decode_media
from lemint.rate_limit import image_limit, limiter
from lemint.schemas import (
    GenerateImageRequest,
    GenerateImageResponse,
    PinResult,
    SaveToIpfsRequest,
)
from lemint.services.image_generator import ImageGenerator
from lemint.services.pinata import PinataClient

router = APIRouter()


@router.post("/api/generate-image", response_model=GenerateImageResponse)
@limiter.limit(image_limit)
async def generate_image(
    request: Request,
    body: GenerateImageRequest,
    generator: ImageGenerator = Depends(get_image_generator),
) -> GenerateImageResponse:
    """Generate an image from ``prompt``; returns base64 PNG data."""
    image_data = await generator.generate(body.prompt)
    return GenerateImageResponse(image_data=image_data)


@router.post("/api/save-to-ipfs", response_model=PinResult)
@limiter.limit(image_limit)
async def save_to_ipfs(
    request: Request,
    body: SaveToIpfsRequest,
    pinning: PinataClient = Depends(get_pinning_client),
) -> PinResult:
    """Pin a base64 image (data-URL prefix optional) under ``fileName``."""
    try:
        data = decode_media(body.image_data)
    except ValueError as e:
        raise InvalidRequestError(str(e)) from e
    return await pinning.pin_file(data, body.file_name)
