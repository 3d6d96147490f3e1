# ─────────────────────────────────────────────────────────────────────────────
# Request / Response Schemas: Pydantic v2
# ─────────────────────────────────────────────────────────────────────────────
# Wire field names are camelCase to match existing clients; Python attributes
# stay snake_case via aliases.
# ─────────────────────────────────────────────────────────────────────────────


from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from web3 import Web3


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Mint ─────────────────────────────────────────────────────────────────────


class Attribute(BaseModel):
    """One LSP4 attribute entry. Extra keys (e.g. display_type) pass through."""

    model_config = ConfigDict(extra="allow")

    trait_type: str
    value: str | int | float | bool


class NFTMetadata(CamelModel):
    """Per-token metadata supplied by the client."""

    name: str = Field(min_length=1)
    description: str = ""
    media_url: str = Field(
        min_length=1,
        description="Base64 image, optionally prefixed with data:image/<type>;base64,",
    )
    attributes: list[Attribute] = Field(default_factory=list)


class MintRequest(CamelModel):
    """Body of POST /api/mint."""

    recipient_address: str
    metadata: NFTMetadata
    token_id: int | None = Field(default=None, ge=0, lt=2**256)

    @field_validator("recipient_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not Web3.is_address(value):
            raise ValueError("Invalid recipient address")
        return value


class MintResult(CamelModel):
    """Summary of a completed mint pipeline run."""

    success: bool = True
    token_id: int
    token_id_bytes32: str
    image_uri: str
    metadata_uri: str
    contract_address: str
    mint_transaction_hash: str
    metadata_transaction_hash: str | None = None  # None when found already written
    resumed: bool = False


class MintResponse(CamelModel):
    """Body returned by POST /api/mint."""

    success: bool = True
    message: MintResult
    contract_address: str
    token_id: int


# ── Images / IPFS ────────────────────────────────────────────────────────────


class GenerateImageRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)


class GenerateImageResponse(CamelModel):
    image_data: str


class SaveToIpfsRequest(CamelModel):
    image_data: str = Field(min_length=1)
    file_name: str = Field(min_length=1, max_length=255)


class PinResult(CamelModel):
    """Result of pinning one file."""

    ipfs_hash: str
    ipfs_uri: str
    ipfs_url: str


# ── Health ───────────────────────────────────────────────────────────────────


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    chain_configured: bool
    chain_connected: bool
    pinning_configured: bool
    image_generation_configured: bool
    collection_address: str | None = None
