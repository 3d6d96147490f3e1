# ─────────────────────────────────────────────────────────────────────────────
# POST /api/mint: NFT mint endpoint (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request

from lemint.config import Settings
from lemint.dependencies import get_mint_pipeline, get_settings_dep
from lemint.rate_limit import limiter, mint_limit
from lemint.schemas import MintRequest, MintResponse
from lemint.services.mint_pipeline import MintPipeline

router = APIRouter()


@router.post("/api/mint", response_model=MintResponse)
@limiter.limit(mint_limit)
async def mint(
    request: Request,
    body: MintRequest,
    pipeline: MintPipeline = Depends(get_mint_pipeline),
    settings: Settings = Depends(get_settings_dep),
) -> MintResponse:
    """Mint a token to ``recipientAddress`` with pinned LSP4 metadata.

    ``tokenId`` is optional; when omitted the configured default is used.
    Validation is Pydantic. Errors are exceptions. Logic is in the pipeline.
    """
    token_id = body.token_id if body.token_id is not None else settings.default_token_id
    result = await pipeline.mint(body.recipient_address, body.metadata, token_id)
    return MintResponse(
        message=result,
        contract_address=result.contract_address,
        token_id=result.token_id,
    )
