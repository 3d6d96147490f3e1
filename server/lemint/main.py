# ─────────────────────────────────────────────────────────────────────────────
# LeMint Server: app factory + lifespan
# ─────────────────────────────────────────────────────────────────────────────
# Run with: uvicorn lemint.main:create_app --factory --host 0.0.0.0 --port 3000
# ─────────────────────────────────────────────────────────────────────────────

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from lemint.cache.mint_ledger import MintLedger
from lemint.config import Settings, get_settings
from lemint.exceptions import register_exception_handlers
from lemint.logging_config import configure_logging
from lemint.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from lemint.rate_limit import limiter, rate_limit_exceeded_handler
from lemint.routes import debug, health, images, mint
from lemint.services.collection import CollectionResolver
from lemint.services.contract_gateway import ContractGateway
from lemint.services.image_generator import ImageGenerator
from lemint.services.mint_pipeline import MintPipeline
from lemint.services.pinata import PinataClient

logger = structlog.get_logger(__name__)


def _configure_tracing(exporter: str) -> None:
    """Install an SDK tracer provider; only ``console`` is supported.

    Without it, spans opened by the mint pipeline go to the API's no-op
    tracer.
    """
    if exporter != "console":
        logger.warning("otel_exporter_unsupported", exporter=exporter)
        return

    from opentelemetry import trace
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    provider = TracerProvider()
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    logger.info("otel_tracing_enabled", exporter=exporter)


def build_mint_pipeline(
    settings: Settings, pinning: PinataClient, ledger: MintLedger
) -> tuple[ContractGateway | None, MintPipeline | None]:
    """Wire the chain-side collaborators. Returns (None, None) without a key."""
    if not settings.chain_configured:
        logger.warning("chain_disabled", reason="ADMIN_PRIVATE_KEY env var not set")
        return None, None

    gateway = ContractGateway.from_settings(settings)
    resolver = CollectionResolver(
        gateway,
        name=settings.collection_name,
        symbol=settings.collection_symbol,
        address=settings.collection_address,
    )
    logger.info(
        "chain_configured",
        rpc_url=settings.rpc_url,
        admin=gateway.admin_address,
        collection=settings.collection_address or None,
        can_deploy=gateway.can_deploy,
    )
    return gateway, MintPipeline(resolver, gateway, pinning, ledger)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the outbound clients, wire the pipeline, close on shutdown.

    Everything lands in ``app.state`` and reaches endpoints through the
    providers in dependencies.py. A missing admin key leaves
    ``mint_pipeline`` as None: /api/mint answers 503 and /health/ready
    reports not ready, while image generation and pinning keep working.
    """
    settings = get_settings()
    if settings.otel_exporter:
        _configure_tracing(settings.otel_exporter)

    pinning = PinataClient(
        api_key=settings.pinata_api_key.get_secret_value(),
        secret_api_key=settings.pinata_secret_api_key.get_secret_value(),
        api_url=settings.pinata_api_url,
        gateway_url=settings.ipfs_gateway_url,
        timeout=settings.http_timeout_seconds,
    )
    generator = ImageGenerator(
        api_key=settings.openai_api_key.get_secret_value(),
        api_url=settings.openai_api_url,
        model=settings.image_model,
        size=settings.image_size,
        quality=settings.image_quality,
        timeout=settings.http_timeout_seconds,
    )
    ledger = MintLedger(capacity=settings.mint_ledger_capacity)
    gateway, pipeline = build_mint_pipeline(settings, pinning, ledger)

    app.state.settings = settings
    app.state.pinning_client = pinning
    app.state.image_generator = generator
    app.state.mint_ledger = ledger
    app.state.contract_gateway = gateway
    app.state.mint_pipeline = pipeline
    logger.info(
        "startup_complete",
        pinning_configured=pinning.is_configured,
        image_generation_configured=generator.is_configured,
    )

    try:
        yield
    finally:
        pending = ledger.pending()
        if pending:
            # in-memory only; these tokens need a manual metadata write
            logger.warning(
                "shutdown_with_pending_metadata",
                tokens=[(r.contract_address, r.token_id) for r in pending],
            )
        await pinning.aclose()
        await generator.aclose()


def create_app() -> FastAPI:
    """Build the FastAPI app. Uvicorn calls this with ``--factory``.

    Nothing stateful happens here beyond logging setup; clients and the
    chain gateway are created by the lifespan, and tests replace
    ``app.state`` directly.
    """
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="LeMint Server",
        description="AI image generation, IPFS pinning and LSP8 NFT minting",
        version="0.1.0",
        lifespan=lifespan,
    )

    # slowapi reads the limiter from app.state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Added last runs first: CORS, then request context, then the route.
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(mint.router, tags=["mint"])
    app.include_router(images.router, tags=["images"])
    if settings.enable_debug_routes:
        app.include_router(debug.router, prefix="/debug", tags=["debug"])

    return app
