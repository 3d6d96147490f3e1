# ─────────────────────────────────────────────────────────────────────────────
# Contract Gateway: LSP8 collection deploy / mint / ERC725Y data writes
# ─────────────────────────────────────────────────────────────────────────────
# web3.py's HTTPProvider is synchronous, so every chain call is wrapped in
# run_in_executor to avoid blocking the event loop. Transactions are signed
# locally with the admin key and sent raw.
# ─────────────────────────────────────────────────────────────────────────────


import asyncio
import json
import threading
from importlib import resources
from pathlib import Path
from typing import Any, Callable

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.types import TxReceipt

from lemint.config import Settings
from lemint.exceptions import ChainTransactionError, CollectionUnavailableError

logger = structlog.get_logger(__name__)

_BUNDLED_ARTIFACT = "LeMintNFTCollection.json"


def load_artifact(path: str = "") -> tuple[list[dict[str, Any]], str]:
    """Load ``(abi, bytecode)`` from a Hardhat-style artifact.

    Falls back to the bundled ABI-only artifact when ``path`` is empty;
    its bytecode is ``0x`` so it can drive an existing collection but
    cannot deploy one.
    """
    if path:
        artifact = json.loads(Path(path).read_text(encoding="utf-8"))
    else:
        text = resources.files("lemint.contracts").joinpath(_BUNDLED_ARTIFACT).read_text("utf-8")
        artifact = json.loads(text)
    return artifact["abi"], artifact.get("bytecode", "0x")


class ContractGateway:
    """Signed write access to an LSP8 collection contract.

    Every write waits for its receipt. A reverted receipt raises
    ChainTransactionError; nothing is retried.
    """

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        abi: list[dict[str, Any]],
        bytecode: str = "0x",
        mint_gas_limit: int = 500_000,
        receipt_timeout: float = 180.0,
    ) -> None:
        self._w3 = w3
        self._account = account
        self._abi = abi
        self._bytecode = bytecode
        self._mint_gas_limit = mint_gas_limit
        self._receipt_timeout = receipt_timeout
        # nonce lookup and broadcast must not interleave across executor threads
        self._send_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContractGateway":
        w3 = Web3(
            Web3.HTTPProvider(
                settings.rpc_url,
                request_kwargs={"timeout": settings.rpc_timeout_seconds},
            )
        )
        account = Account.from_key(settings.admin_private_key.get_secret_value())
        abi, bytecode = load_artifact(settings.collection_artifact_path)
        return cls(
            w3,
            account,
            abi,
            bytecode=bytecode,
            mint_gas_limit=settings.mint_gas_limit,
            receipt_timeout=settings.tx_receipt_timeout_seconds,
        )

    @property
    def admin_address(self) -> str:
        return self._account.address

    @property
    def can_deploy(self) -> bool:
        return self._bytecode not in ("", "0x")

    # ── Reads ────────────────────────────────────────────────────────────────

    async def is_connected(self) -> bool:
        return await self._run(self._w3.is_connected)

    async def get_data_for_token_id(self, address: str, token_id: bytes, key: bytes) -> bytes:
        contract = self._contract(address)
        value = await self._run(contract.functions.getDataForTokenId(token_id, key).call)
        return bytes(value)

    async def wait_for_receipt(self, tx_hash: str, action: str = "mint") -> TxReceipt:
        """Wait again on a transaction sent earlier. Same errors as a write."""
        return await self._run(self._wait_sync, action, tx_hash)

    # ── Writes ───────────────────────────────────────────────────────────────

    async def deploy_collection(self, name: str, symbol: str, owner: str) -> str:
        """Deploy a new collection and return its checksum address."""
        if not self.can_deploy:
            raise CollectionUnavailableError(
                "COLLECTION_ADDRESS is not set and the contract artifact has no bytecode"
            )
        factory = self._w3.eth.contract(abi=self._abi, bytecode=self._bytecode)
        call = factory.constructor(name, symbol, Web3.to_checksum_address(owner))
        receipt = await self._run(self._transact_sync, "deploy", call, None)
        address = Web3.to_checksum_address(receipt["contractAddress"])
        logger.info("collection_deployed", address=address, name=name, symbol=symbol)
        return address

    async def mint(
        self,
        address: str,
        recipient: str,
        token_id: bytes,
        force: bool = True,
        data: bytes = b"",
    ) -> TxReceipt:
        call = self._contract(address).functions.mint(
            Web3.to_checksum_address(recipient), token_id, force, data
        )
        return await self._run(self._transact_sync, "mint", call, self._mint_gas_limit)

    async def set_data_for_token_id(
        self, address: str, token_id: bytes, key: bytes, value: bytes
    ) -> TxReceipt:
        call = self._contract(address).functions.setDataForTokenId(token_id, key, value)
        return await self._run(self._transact_sync, "setDataForTokenId", call, None)

    async def set_data(self, address: str, key: bytes, value: bytes) -> TxReceipt:
        call = self._contract(address).functions.setData(key, value)
        return await self._run(self._transact_sync, "setData", call, None)

    # ── Internals ────────────────────────────────────────────────────────────

    def _contract(self, address: str):
        return self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=self._abi)

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def _transact_sync(self, action: str, call: Any, gas: int | None) -> TxReceipt:
        """Build, sign, send and wait. Runs in executor."""
        try:
            with self._send_lock:
                params: dict[str, Any] = {
                    "from": self._account.address,
                    "nonce": self._w3.eth.get_transaction_count(self._account.address, "pending"),
                }
                if gas is not None:
                    params["gas"] = gas
                tx = call.build_transaction(params)
                signed = self._account.sign_transaction(tx)
                tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ChainTransactionError(action, str(e) or type(e).__name__) from e

        logger.info("tx_sent", action=action, tx_hash=Web3.to_hex(tx_hash))
        return self._wait_sync(action, Web3.to_hex(tx_hash))

    def _wait_sync(self, action: str, tx_hash: str) -> TxReceipt:
        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout
            )
        except Exception as e:
            # broadcast already happened; the outcome is unknown
            raise ChainTransactionError(
                action, str(e) or type(e).__name__, tx_hash=tx_hash
            ) from e

        if receipt["status"] != 1:
            raise ChainTransactionError(
                action, f"reverted in tx {tx_hash}", tx_hash=tx_hash, reverted=True
            )
        logger.info(
            "tx_confirmed",
            action=action,
            tx_hash=tx_hash,
            block=receipt.get("blockNumber"),
        )
        return receipt
