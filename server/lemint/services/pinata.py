# ─────────────────────────────────────────────────────────────────────────────
# Pinata Client: pin raw files and JSON documents to IPFS
# ─────────────────────────────────────────────────────────────────────────────
# One long-lived httpx.AsyncClient, opened in the app lifespan and closed on
# shutdown. Every pin is a single multipart POST to pinFileToIPFS; no retry.
# ─────────────────────────────────────────────────────────────────────────────


import json

import httpx
import structlog

from lemint.exceptions import PinningError
from lemint.schemas import PinResult

logger = structlog.get_logger(__name__)

_PIN_FILE_PATH = "/pinning/pinFileToIPFS"


class PinataClient:
    """Async client for the Pinata pinning API."""

    def __init__(
        self,
        api_key: str,
        secret_api_key: str,
        api_url: str = "https://api.pinata.cloud",
        gateway_url: str = "https://gateway.pinata.cloud",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._secret_api_key = secret_api_key
        self._gateway_url = gateway_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key and self._secret_api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    def gateway_url(self, cid: str) -> str:
        return f"{self._gateway_url}/ipfs/{cid}"

    async def pin_file(
        self, data: bytes, file_name: str, content_type: str = "image/png"
    ) -> PinResult:
        """Pin raw bytes under ``file_name``."""
        return await self._pin(data, file_name, content_type, pin_name=file_name)

    async def pin_json(self, payload: bytes, file_name: str) -> PinResult:
        """Pin an already-serialized JSON document as ``<file_name>.json``.

        Taking bytes rather than a dict keeps the pinned content identical
        to whatever the caller hashed.
        """
        return await self._pin(
            payload,
            f"{file_name}.json",
            "application/json",
            pin_name=f"{file_name}-metadata",
        )

    async def _pin(
        self, data: bytes, file_name: str, content_type: str, pin_name: str
    ) -> PinResult:
        form = {
            "pinataMetadata": json.dumps({"name": pin_name}),
            "pinataOptions": json.dumps({"cidVersion": 0}),
        }
        headers = {
            "pinata_api_key": self._api_key,
            "pinata_secret_api_key": self._secret_api_key,
        }
        try:
            response = await self._client.post(
                _PIN_FILE_PATH,
                files={"file": (file_name, data, content_type)},
                data=form,
                headers=headers,
            )
            response.raise_for_status()
            cid = response.json()["IpfsHash"]
        except httpx.HTTPStatusError as e:
            raise PinningError(
                file_name, f"HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise PinningError(file_name, str(e) or type(e).__name__) from e

        logger.info("pinned", file_name=file_name, cid=cid, size=len(data))
        return PinResult(
            ipfs_hash=cid,
            ipfs_uri=f"ipfs://{cid}",
            ipfs_url=self.gateway_url(cid),
        )
