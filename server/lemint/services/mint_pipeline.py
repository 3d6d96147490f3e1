# ─────────────────────────────────────────────────────────────────────────────
# Mint Pipeline: metadata assembly + on-chain writes
# ─────────────────────────────────────────────────────────────────────────────
# Endpoints delegate here. This owns, strictly in order:
#   - Collection resolution
#   - Media decode + keccak256 of the raw image
#   - Image pin → LSP4 record → metadata pin
#   - VerifiableURI encoding
#   - mint() then setDataForTokenId(), tracked in the mint ledger
# Any failure aborts the remaining steps. Nothing is retried here; an
# unconfirmed mint or a failed metadata write is resumed by the next request
# for the same token.
# ─────────────────────────────────────────────────────────────────────────────


import time
from contextlib import contextmanager
from typing import Callable, Iterator

import structlog
from opentelemetry import trace
from web3 import Web3

from lemint.cache.mint_ledger import MintLedger, MintRecord, MintStatus
from lemint.exceptions import (
    ChainTransactionError,
    CollectionUnavailableError,
    InvalidRequestError,
    MetadataPendingError,
    MintFailedError,
    MintUnconfirmedError,
    TokenAlreadyMintedError,
)
from lemint.pipeline.lsp4 import build_lsp4_metadata, serialize_metadata
from lemint.pipeline.media import content_hash, decode_media
from lemint.pipeline.verifiable_uri import (
    LSP4_METADATA_KEY,
    decode_verifiable_uri,
    encode_token_id,
    encode_verifiable_uri,
)
from lemint.schemas import MintResult, NFTMetadata
from lemint.services.collection import CollectionResolver
from lemint.services.contract_gateway import ContractGateway
from lemint.services.pinata import PinataClient

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

_PASSTHROUGH = (MintFailedError, CollectionUnavailableError, TokenAlreadyMintedError)


class MintPipeline:
    """Orchestrates: collection → pins → mint → metadata write.

    Collaborators are injected so the pipeline never touches module-level
    state; the app lifespan builds one instance and stores it in app.state.
    """

    def __init__(
        self,
        resolver: CollectionResolver,
        gateway: ContractGateway,
        pinning: PinataClient,
        ledger: MintLedger,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._resolver = resolver
        self._gateway = gateway
        self._pinning = pinning
        self._ledger = ledger
        self._clock = clock

    @property
    def ledger(self) -> MintLedger:
        return self._ledger

    @property
    def resolver(self) -> CollectionResolver:
        return self._resolver

    async def mint(self, recipient: str, metadata: NFTMetadata | None, token_id: int) -> MintResult:
        """Mint ``token_id`` to ``recipient`` with pinned LSP4 metadata.

        Raises:
            InvalidRequestError: Missing/invalid input. Raised before any
                network or chain call.
            TokenAlreadyMintedError: The ledger already holds this token.
            MintUnconfirmedError: Mint sent, but its receipt never arrived.
            MetadataPendingError: Minted, but the metadata write failed.
            MintFailedError: Any other step failed.
        """
        if not recipient or metadata is None:
            raise InvalidRequestError("Missing required fields")
        if not Web3.is_address(recipient):
            raise InvalidRequestError("Invalid recipient address")
        try:
            token_id32 = encode_token_id(token_id)
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e

        with tracer.start_as_current_span("mint") as span:
            span.set_attribute("token_id", token_id)
            log = logger.bind(token_id=token_id, recipient=recipient)
            start = time.perf_counter()

            # 1. Collection
            with self._stage("resolve_collection", token_id):
                contract_address = await self._resolver.resolve()
            span.set_attribute("contract_address", contract_address)

            existing = self._ledger.get(contract_address, token_id)
            if existing is not None:
                if (
                    existing.status is MintStatus.COMPLETE
                    or existing.recipient.lower() != recipient.lower()
                ):
                    raise TokenAlreadyMintedError(token_id, contract_address)
                log.info(
                    "mint_resume",
                    contract_address=contract_address,
                    status=existing.status.value,
                )
                if existing.status is MintStatus.MINT_UNCONFIRMED:
                    await self._confirm_mint(existing)
                return await self._write_metadata(existing, token_id32, resumed=True)

            # 2. Decode + hash the exact bytes that will be pinned
            with self._stage("decode_media", token_id):
                image_bytes = decode_media(metadata.media_url)
                image_hash = content_hash(image_bytes)

            stamp = int(self._clock() * 1000)

            # 3. Pin image
            with self._stage("pin_image", token_id):
                image_pin = await self._pinning.pin_file(
                    image_bytes, f"{metadata.name}-{stamp}.png"
                )

            # 4–5. LSP4 record, serialized once, hashed and pinned as-is
            with self._stage("build_metadata", token_id):
                record = build_lsp4_metadata(
                    name=metadata.name,
                    description=metadata.description,
                    attributes=[a.model_dump() for a in metadata.attributes],
                    image_cid=image_pin.ipfs_hash,
                    image_hash=image_hash,
                )
                payload = serialize_metadata(record)
                metadata_hash = content_hash(payload)

            with self._stage("pin_metadata", token_id):
                metadata_pin = await self._pinning.pin_json(
                    payload, f"{metadata.name}-metadata-{stamp}"
                )

            # 6. On-chain value
            with self._stage("encode_metadata", token_id):
                encoded = encode_verifiable_uri(metadata_pin.ipfs_uri, metadata_hash)

            minted = MintRecord(
                contract_address=contract_address,
                token_id=token_id,
                recipient=recipient,
                image_uri=image_pin.ipfs_uri,
                metadata_uri=metadata_pin.ipfs_uri,
                encoded_metadata=encoded,
                mint_tx_hash="",
            )

            # 7. Mint
            with self._stage("mint_token", token_id):
                try:
                    receipt = await self._gateway.mint(
                        contract_address, recipient, token_id32, force=True, data=b""
                    )
                except ChainTransactionError as e:
                    if e.tx_hash is None or e.reverted:
                        raise
                    minted.mint_tx_hash = e.tx_hash
                    self._ledger.record_unconfirmed(minted)
                    raise MintUnconfirmedError(
                        e.details or str(e), token_id, contract_address, e.tx_hash
                    ) from e

            minted.mint_tx_hash = Web3.to_hex(receipt["transactionHash"])
            self._ledger.record_minted(minted)

            # 8. Metadata pointer
            result = await self._write_metadata(minted, token_id32, resumed=False)
            log.info(
                "mint_complete",
                contract_address=contract_address,
                image_uri=result.image_uri,
                metadata_uri=result.metadata_uri,
                time_ms=int((time.perf_counter() - start) * 1000),
            )
            return result

    async def _confirm_mint(self, record: MintRecord) -> None:
        """Wait on a mint broadcast by an earlier request."""
        with tracer.start_as_current_span("confirm_mint"):
            try:
                await self._gateway.wait_for_receipt(record.mint_tx_hash, action="mint")
            except ChainTransactionError as e:
                if e.reverted:
                    # nothing landed; the next request starts over
                    self._ledger.discard(record)
                    raise MintFailedError(
                        "mint_token", e.details or str(e), token_id=record.token_id
                    ) from e
                raise MintUnconfirmedError(
                    e.details or str(e),
                    record.token_id,
                    record.contract_address,
                    record.mint_tx_hash,
                ) from e
        self._ledger.record_minted(record)

    async def _stored_metadata(self, record: MintRecord, token_id32: bytes) -> bytes | None:
        """Current on-chain LSP4Metadata value, or None if it can't be read."""
        try:
            return await self._gateway.get_data_for_token_id(
                record.contract_address, token_id32, LSP4_METADATA_KEY
            )
        except Exception as e:
            logger.warning("metadata_readback_failed", token_id=record.token_id, error=str(e))
            return None

    async def _write_metadata(
        self, record: MintRecord, token_id32: bytes, resumed: bool
    ) -> MintResult:
        tx_hash: str | None = None
        with tracer.start_as_current_span("set_metadata"):
            # An earlier write may have landed after its receipt wait gave up.
            stored = await self._stored_metadata(record, token_id32) if resumed else None
            if stored == record.encoded_metadata:
                logger.info(
                    "metadata_already_written",
                    token_id=record.token_id,
                    metadata_uri=decode_verifiable_uri(record.encoded_metadata).url,
                )
            else:
                try:
                    receipt = await self._gateway.set_data_for_token_id(
                        record.contract_address,
                        token_id32,
                        LSP4_METADATA_KEY,
                        record.encoded_metadata,
                    )
                except Exception as e:
                    logger.error(
                        "metadata_write_failed",
                        token_id=record.token_id,
                        contract_address=record.contract_address,
                        error=str(e),
                    )
                    raise MetadataPendingError(
                        str(e) or type(e).__name__, record.token_id, record.contract_address
                    ) from e
                tx_hash = Web3.to_hex(receipt["transactionHash"])

        self._ledger.mark_complete(record, tx_hash)
        return MintResult(
            token_id=record.token_id,
            token_id_bytes32=Web3.to_hex(token_id32),
            image_uri=record.image_uri,
            metadata_uri=record.metadata_uri,
            contract_address=record.contract_address,
            mint_transaction_hash=record.mint_tx_hash,
            metadata_transaction_hash=tx_hash,
            resumed=resumed,
        )

    @contextmanager
    def _stage(self, name: str, token_id: int) -> Iterator[None]:
        """Trace one step and fold its failure into MintFailedError."""
        with tracer.start_as_current_span(name):
            try:
                yield
            except _PASSTHROUGH:
                raise
            except Exception as e:
                logger.error("mint_stage_failed", stage=name, token_id=token_id, error=str(e))
                raise MintFailedError(name, str(e) or type(e).__name__, token_id=token_id) from e
