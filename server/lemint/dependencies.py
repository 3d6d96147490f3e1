# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection: FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from lemint.cache.mint_ledger import MintLedger
from lemint.config import Settings
from lemint.exceptions import ChainNotConfiguredError
from lemint.services.contract_gateway import ContractGateway
from lemint.services.image_generator import ImageGenerator
from lemint.services.mint_pipeline import MintPipeline
from lemint.services.pinata import PinataClient


def get_mint_pipeline(request: Request) -> MintPipeline:
    """Inject MintPipeline; 503 when no admin key is configured."""
    pipeline = getattr(request.app.state, "mint_pipeline", None)
    if pipeline is None:
        raise ChainNotConfiguredError()
    return pipeline


def get_contract_gateway(request: Request) -> ContractGateway | None:
    """Inject ContractGateway (None when chain access is not configured)."""
    return getattr(request.app.state, "contract_gateway", None)


def get_mint_ledger(request: Request) -> MintLedger:
    return request.app.state.mint_ledger


def get_pinning_client(request: Request) -> PinataClient:
    return request.app.state.pinning_client


def get_image_generator(request: Request) -> ImageGenerator:
    return request.app.state.image_generator


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings
