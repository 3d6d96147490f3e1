# ─────────────────────────────────────────────────────────────────────────────
# Mint Ledger: in-memory record of two-phase mints
# ─────────────────────────────────────────────────────────────────────────────
# A mint is two transactions: mint() then setDataForTokenId(). The ledger
# remembers tokens whose mint was sent so an unconfirmed mint or a failed
# metadata write can be resumed instead of minting again. Memory only; a
# restart forgets it.
#
# Two tiers:
#   In-flight records (mint unconfirmed / metadata pending): plain dict,
#     never evicted. They are the only trace of a token stuck mid-mint.
#   Complete records: cachetools.LRUCache bounded by capacity.
# ─────────────────────────────────────────────────────────────────────────────


import enum
import logging
from dataclasses import dataclass

from cachetools import LRUCache

logger = logging.getLogger(__name__)


class MintStatus(str, enum.Enum):
    MINT_UNCONFIRMED = "mint_unconfirmed"
    METADATA_PENDING = "metadata_pending"
    COMPLETE = "complete"


@dataclass
class MintRecord:
    contract_address: str
    token_id: int
    recipient: str
    image_uri: str
    metadata_uri: str
    encoded_metadata: bytes
    mint_tx_hash: str
    status: MintStatus = MintStatus.METADATA_PENDING
    metadata_tx_hash: str | None = None

    def summary(self) -> dict:
        """JSON-friendly view for debug endpoints."""
        return {
            "contractAddress": self.contract_address,
            "tokenId": self.token_id,
            "recipient": self.recipient,
            "status": self.status.value,
            "imageUri": self.image_uri,
            "metadataUri": self.metadata_uri,
            "mintTransactionHash": self.mint_tx_hash,
            "metadataTransactionHash": self.metadata_tx_hash,
        }


class MintLedger:
    """Mint records keyed by (contract, token id).

    ``capacity`` bounds only the complete tier.
    """

    def __init__(self, capacity: int = 1024):
        self._in_flight: dict[tuple[str, int], MintRecord] = {}
        self._complete: LRUCache = LRUCache(maxsize=capacity)

    @staticmethod
    def _key(contract_address: str, token_id: int) -> tuple[str, int]:
        return contract_address.lower(), token_id

    def __len__(self) -> int:
        return len(self._in_flight) + len(self._complete)

    def get(self, contract_address: str, token_id: int) -> MintRecord | None:
        key = self._key(contract_address, token_id)
        record = self._in_flight.get(key)
        if record is None:
            record = self._complete.get(key)
        return record

    def record_unconfirmed(self, record: MintRecord) -> None:
        """Track a mint that was broadcast but whose receipt never arrived."""
        record.status = MintStatus.MINT_UNCONFIRMED
        self._in_flight[self._key(record.contract_address, record.token_id)] = record
        logger.warning(
            f"Token {record.token_id} mint sent in {record.mint_tx_hash} but not confirmed"
        )

    def record_minted(self, record: MintRecord) -> None:
        record.status = MintStatus.METADATA_PENDING
        self._in_flight[self._key(record.contract_address, record.token_id)] = record
        logger.info(f"Token {record.token_id} minted on {record.contract_address}; metadata pending")

    def mark_complete(self, record: MintRecord, tx_hash: str | None) -> MintRecord:
        """Move ``record`` to the complete tier. Never fails on an unknown key."""
        key = self._key(record.contract_address, record.token_id)
        self._in_flight.pop(key, None)
        record.status = MintStatus.COMPLETE
        record.metadata_tx_hash = tx_hash
        self._complete[key] = record
        return record

    def discard(self, record: MintRecord) -> None:
        """Forget an in-flight record (e.g. its mint reverted)."""
        self._in_flight.pop(self._key(record.contract_address, record.token_id), None)
        logger.info(f"Token {record.token_id} dropped from ledger")

    def pending(self) -> list[MintRecord]:
        return list(self._in_flight.values())

    def all(self) -> list[MintRecord]:
        return [*self._in_flight.values(), *self._complete.values()]
