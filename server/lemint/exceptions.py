# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class LeMintError(Exception):
    """Base exception for all LeMint server errors.

    ``details`` carries the underlying error text and ``context`` carries
    extra response fields (token id, stage, ...). Both are rendered into
    the JSON body by the registered handler.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details
        self.context = context or {}
        super().__init__(message if details is None else f"{message}: {details}")

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {**self.context, "error": self.message, "type": type(self).__name__}
        if self.details is not None:
            content["details"] = self.details
        return content


class InvalidRequestError(LeMintError):
    """Raised when a request fails presence/format checks."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ChainNotConfiguredError(LeMintError):
    """Raised when an on-chain operation is requested without an admin key."""

    def __init__(self):
        super().__init__(
            "Chain access is not configured (ADMIN_PRIVATE_KEY is not set)",
            status_code=503,
        )


class CollectionUnavailableError(LeMintError):
    """Raised when no collection address is known and none can be deployed."""

    def __init__(self, reason: str):
        super().__init__("NFT collection is unavailable", status_code=503, details=reason)


class ImageGenerationError(LeMintError):
    """Raised when the image-generation API call fails."""

    def __init__(self, reason: str):
        super().__init__("Failed to generate image", status_code=500, details=reason)


class PinningError(LeMintError):
    """Raised when a pin request to the pinning service fails."""

    def __init__(self, file_name: str, reason: str):
        self.file_name = file_name
        super().__init__(f"Failed to save '{file_name}' to IPFS", status_code=500, details=reason)


class ChainTransactionError(LeMintError):
    """Raised when a transaction cannot be sent or is reverted.

    ``tx_hash`` is set once the transaction was broadcast, so callers can
    tell "never sent" apart from "sent, outcome unknown" (``reverted`` False)
    and "sent and reverted" (``reverted`` True).
    """

    def __init__(
        self,
        action: str,
        reason: str,
        tx_hash: str | None = None,
        reverted: bool = False,
    ):
        self.action = action
        self.tx_hash = tx_hash
        self.reverted = reverted
        super().__init__(f"Transaction '{action}' failed", status_code=500, details=reason)


class TokenAlreadyMintedError(LeMintError):
    """Raised when the ledger shows the token was already minted."""

    def __init__(self, token_id: int, contract_address: str):
        super().__init__(
            f"Token {token_id} is already minted",
            status_code=409,
            context={"success": False, "tokenId": token_id, "contractAddress": contract_address},
        )


class MintFailedError(LeMintError):
    """Raised when any step of the mint pipeline fails."""

    def __init__(self, stage: str, reason: str, token_id: int | None = None):
        self.stage = stage
        context: dict[str, Any] = {"success": False, "stage": stage}
        if token_id is not None:
            context["tokenId"] = token_id
        super().__init__("Failed to mint NFT", status_code=500, details=reason, context=context)


class MetadataPendingError(MintFailedError):
    """Raised when the token was minted but its metadata write failed.

    The mint ledger keeps the pending record so the next request for the
    same token resumes at the metadata write instead of minting again.
    """

    def __init__(self, reason: str, token_id: int, contract_address: str):
        super().__init__("set_metadata", reason, token_id=token_id)
        self.context["contractAddress"] = contract_address
        self.context["status"] = "metadata_pending"


class MintUnconfirmedError(MintFailedError):
    """Raised when the mint was broadcast but its receipt never arrived.

    The ledger keeps the transaction hash; the next request for the same
    token waits on that transaction instead of minting again.
    """

    def __init__(self, reason: str, token_id: int, contract_address: str, tx_hash: str):
        super().__init__("mint_token", reason, token_id=token_id)
        self.context["contractAddress"] = contract_address
        self.context["status"] = "mint_unconfirmed"
        self.context["mintTransactionHash"] = tx_hash


# ── Request validation ───────────────────────────────────────────────────────


def _validation_message(exc: RequestValidationError) -> str:
    """Collapse pydantic errors into the short message clients expect."""
    missing: list[str] = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if error.get("type") == "missing":
            missing.append(".".join(loc) or "body")
            continue
        ctx_error = (error.get("ctx") or {}).get("error")
        if ctx_error is not None:
            return str(ctx_error)
        return f"Invalid field '{'.'.join(loc)}': {error.get('msg')}"
    return f"Missing required fields: {', '.join(missing)}"


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints raise LeMintError subclasses; these handlers catch them
    and return structured JSON: no inline try/except in endpoints.
    """

    @app.exception_handler(LeMintError)
    async def lemint_error_handler(request: Request, exc: LeMintError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "lemint_error",
            error=exc.message,
            details=exc.details,
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _validation_message(exc)
        logger.warning("request_rejected", path=request.url.path, error=message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "type": "UnhandledError"},
        )
