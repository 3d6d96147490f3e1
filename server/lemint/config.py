# ─────────────────────────────────────────────────────────────────────────────
# Settings: Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    Secrets are SecretStr so they never leak into logs or reprs.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ── Chain ────────────────────────────────────────────────────────────────
    admin_private_key: SecretStr = SecretStr("")
    # LUKSO_RPC_URL is the name older deployments use
    rpc_url: str = Field(
        "https://rpc.testnet.lukso.network",
        validation_alias=AliasChoices("rpc_url", "RPC_URL", "LUKSO_RPC_URL"),
    )
    rpc_timeout_seconds: float = 30.0
    tx_receipt_timeout_seconds: float = 180.0
    mint_gas_limit: int = 500_000

    # ── Collection ───────────────────────────────────────────────────────────
    # When collection_address is empty the first mint deploys a collection
    # from the artifact at collection_artifact_path.
    collection_address: str = ""
    collection_artifact_path: str = ""
    collection_name: str = "LeMint AI NFT Collection"
    collection_symbol: str = "LMNFT"
    default_token_id: int = 1

    # ── Pinning (Pinata) ─────────────────────────────────────────────────────
    pinata_api_key: SecretStr = SecretStr("")
    pinata_secret_api_key: SecretStr = SecretStr("")
    pinata_api_url: str = "https://api.pinata.cloud"
    ipfs_gateway_url: str = "https://gateway.pinata.cloud"

    # ── Image generation (OpenAI Images) ─────────────────────────────────────
    openai_api_key: SecretStr = SecretStr("")
    openai_api_url: str = "https://api.openai.com/v1"
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1024"
    image_quality: str = "low"

    # ── Limits ───────────────────────────────────────────────────────────────
    http_timeout_seconds: float = 120.0
    mint_ledger_capacity: int = 1024
    mint_rate_limit: str = "10/minute"
    image_rate_limit: str = "20/minute"

    # ── HTTP surface ─────────────────────────────────────────────────────────
    allowed_origins: str = ""
    enable_debug_routes: bool = False

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True
    otel_exporter: str = ""  # "console" or empty

    @property
    def cors_origins(self) -> list[str]:
        """``ALLOWED_ORIGINS`` split on commas; ``["*"]`` when unset."""
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return origins or ["*"]

    @property
    def chain_configured(self) -> bool:
        """Whether an admin signing key is available for on-chain writes."""
        return bool(self.admin_private_key.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
