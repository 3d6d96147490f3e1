# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures: shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# No network and no chain: Pinata, the image API and the contract gateway
# are mocks that record the order in which they were called.
# ─────────────────────────────────────────────────────────────────────────────

import os

# Set env BEFORE importing app modules
os.environ["ADMIN_PRIVATE_KEY"] = ""
os.environ["ENABLE_DEBUG_ROUTES"] = "true"
os.environ["LOG_JSON"] = "false"

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from web3 import Web3

from lemint.cache.mint_ledger import MintLedger
from lemint.config import Settings, get_settings
from lemint.main import create_app
from lemint.rate_limit import limiter
from lemint.schemas import PinResult
from lemint.services.collection import CollectionResolver
from lemint.services.contract_gateway import ContractGateway
from lemint.services.image_generator import ImageGenerator
from lemint.services.mint_pipeline import MintPipeline
from lemint.services.pinata import PinataClient

# 1x1 transparent PNG
PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URL = f"data:image/png;base64,{PNG_B64}"

RECIPIENT = Web3.to_checksum_address("0x" + "ab" * 20)
ADMIN = Web3.to_checksum_address("0x" + "ef" * 20)
COLLECTION = Web3.to_checksum_address("0x" + "cd" * 20)
IMAGE_CID = "QmImageCid1111111111111111111111111111111111111"
METADATA_CID = "QmMetadataCid22222222222222222222222222222222222"
MINT_TX = b"\x11" * 32
METADATA_TX = b"\x22" * 32
FIXED_NOW = 1_700_000_000.0


def mint_body(**overrides) -> dict:
    """A valid POST /api/mint body."""
    body = {
        "recipientAddress": RECIPIENT,
        "metadata": {
            "name": "Gold Pass",
            "description": "x",
            "mediaUrl": PNG_DATA_URL,
            "attributes": [{"trait_type": "Tier", "value": "Gold"}],
        },
    }
    body.update(overrides)
    return body


@pytest.fixture(autouse=True)
def _reset_state():
    """Fresh settings cache and rate-limit counters per test."""
    get_settings.cache_clear()
    limiter.reset()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing: no chain, no real services."""
    return Settings(
        enable_debug_routes=True,
        log_json=False,
        log_level="DEBUG",
        collection_name="Test Collection",
        collection_symbol="TST",
    )


@pytest.fixture
def events() -> list[str]:
    """Ordered names of collaborator calls made during a test."""
    return []


@pytest.fixture
def mock_pinning(events: list[str]) -> PinataClient:
    """PinataClient with async methods mocked; records pin order."""

    def _pin_file(data: bytes, file_name: str, content_type: str = "image/png") -> PinResult:
        events.append("pin_file")
        return PinResult(
            ipfs_hash=IMAGE_CID,
            ipfs_uri=f"ipfs://{IMAGE_CID}",
            ipfs_url=f"https://gateway.test/ipfs/{IMAGE_CID}",
        )

    def _pin_json(payload: bytes, file_name: str) -> PinResult:
        events.append("pin_json")
        return PinResult(
            ipfs_hash=METADATA_CID,
            ipfs_uri=f"ipfs://{METADATA_CID}",
            ipfs_url=f"https://gateway.test/ipfs/{METADATA_CID}",
        )

    pinning = MagicMock(spec=PinataClient)
    pinning.pin_file = AsyncMock(side_effect=_pin_file)
    pinning.pin_json = AsyncMock(side_effect=_pin_json)
    pinning.aclose = AsyncMock()
    pinning.is_configured = True
    return pinning


@pytest.fixture
def mock_gateway(events: list[str]) -> ContractGateway:
    """ContractGateway with chain calls mocked; records call order."""

    def _deploy(name: str, symbol: str, owner: str) -> str:
        events.append("deploy")
        return COLLECTION

    def _mint(address, recipient, token_id, force=True, data=b""):
        events.append("mint")
        return {"status": 1, "transactionHash": MINT_TX}

    def _set_data_for_token_id(address, token_id, key, value):
        events.append("set_data")
        return {"status": 1, "transactionHash": METADATA_TX}

    gateway = MagicMock(spec=ContractGateway)
    gateway.admin_address = ADMIN
    gateway.can_deploy = True
    gateway.deploy_collection = AsyncMock(side_effect=_deploy)
    gateway.mint = AsyncMock(side_effect=_mint)
    gateway.set_data_for_token_id = AsyncMock(side_effect=_set_data_for_token_id)
    gateway.set_data = AsyncMock(return_value={"status": 1, "transactionHash": METADATA_TX})
    gateway.is_connected = AsyncMock(return_value=True)
    gateway.get_data_for_token_id = AsyncMock(return_value=b"")
    gateway.wait_for_receipt = AsyncMock(return_value={"status": 1, "transactionHash": MINT_TX})
    return gateway


@pytest.fixture
def mock_generator() -> ImageGenerator:
    generator = MagicMock(spec=ImageGenerator)
    generator.generate = AsyncMock(return_value=PNG_B64)
    generator.aclose = AsyncMock()
    generator.is_configured = True
    return generator


@pytest.fixture
def ledger() -> MintLedger:
    return MintLedger(capacity=16)


@pytest.fixture
def resolver(mock_gateway: ContractGateway) -> CollectionResolver:
    """Cold resolver: the first mint deploys through the mocked gateway."""
    return CollectionResolver(mock_gateway, name="Test Collection", symbol="TST")


@pytest.fixture
def pipeline(
    resolver: CollectionResolver,
    mock_gateway: ContractGateway,
    mock_pinning: PinataClient,
    ledger: MintLedger,
) -> MintPipeline:
    return MintPipeline(resolver, mock_gateway, mock_pinning, ledger, clock=lambda: FIXED_NOW)


@pytest.fixture
def client(
    test_settings: Settings,
    pipeline: MintPipeline,
    mock_gateway: ContractGateway,
    mock_pinning: PinataClient,
    mock_generator: ImageGenerator,
    ledger: MintLedger,
) -> TestClient:
    """FastAPI TestClient with mocked dependencies."""
    app = create_app()
    # Override app.state with test dependencies (lifespan does not run)
    app.state.settings = test_settings
    app.state.pinning_client = mock_pinning
    app.state.image_generator = mock_generator
    app.state.mint_ledger = ledger
    app.state.contract_gateway = mock_gateway
    app.state.mint_pipeline = pipeline
    return TestClient(app)
