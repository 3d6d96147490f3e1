# ─────────────────────────────────────────────────────────────────────────────
# Debug Routes: inspect in-process mint state and stored token metadata
# ─────────────────────────────────────────────────────────────────────────────
# Only mounted when settings.enable_debug_routes is True.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends, Request
from web3 import Web3

from lemint.cache.mint_ledger import MintLedger
from lemint.dependencies import get_contract_gateway, get_mint_ledger
from lemint.exceptions import (
    ChainNotConfiguredError,
    CollectionUnavailableError,
    InvalidRequestError,
)
from lemint.pipeline.verifiable_uri import (
    LSP4_METADATA_KEY,
    decode_verifiable_uri,
    encode_token_id,
)
from lemint.services.contract_gateway import ContractGateway

router = APIRouter()


@router.get("/mints")
async def list_mints(
    pending_only: bool = False,
    ledger: MintLedger = Depends(get_mint_ledger),
) -> dict:
    """List ledger records; ``pending_only`` keeps tokens awaiting metadata."""
    records = ledger.pending() if pending_only else ledger.all()
    return {
        "mints": [r.summary() for r in records],
        "count": len(records),
    }


@router.get("/collection")
async def collection(request: Request) -> dict:
    """The resolved collection address, or null before the first mint."""
    pipeline = getattr(request.app.state, "mint_pipeline", None)
    return {
        "chain_configured": pipeline is not None,
        "collection_address": pipeline.resolver.address if pipeline is not None else None,
    }


@router.get("/tokens/{token_id}/metadata")
async def token_metadata(
    token_id: int,
    request: Request,
    gateway: ContractGateway | None = Depends(get_contract_gateway),
) -> dict:
    """Read the token's LSP4Metadata value back from the chain and decode it."""
    pipeline = getattr(request.app.state, "mint_pipeline", None)
    if gateway is None or pipeline is None:
        raise ChainNotConfiguredError()
    address = pipeline.resolver.address
    if address is None:
        raise CollectionUnavailableError("No collection has been resolved yet")
    try:
        token_id32 = encode_token_id(token_id)
    except ValueError as e:
        raise InvalidRequestError(str(e)) from e

    value = await gateway.get_data_for_token_id(address, token_id32, LSP4_METADATA_KEY)
    body: dict = {"contractAddress": address, "tokenId": token_id, "raw": Web3.to_hex(value)}
    if not value:
        return {**body, "stored": False}
    try:
        decoded = decode_verifiable_uri(value)
    except ValueError as e:
        return {**body, "stored": True, "decodeError": str(e)}
    return {
        **body,
        "stored": True,
        "url": decoded.url,
        "method": decoded.method,
        "dataHash": Web3.to_hex(decoded.data_hash),
    }
