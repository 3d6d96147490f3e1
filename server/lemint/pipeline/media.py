# ─────────────────────────────────────────────────────────────────────────────
# Media Payloads: data-URL stripping, base64 decoding, content hashing
# ─────────────────────────────────────────────────────────────────────────────


import base64
import binascii
import re

from web3 import Web3

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


def strip_data_url_prefix(payload: str) -> str:
    """Remove a leading ``data:image/<type>;base64,`` marker if present.

    Idempotent: the result never starts with the marker, so stripping twice
    gives the same string as stripping once.
    """
    return _DATA_URL_PREFIX.sub("", payload.strip(), count=1)


def decode_media(payload: str) -> bytes:
    """Decode a base64 image payload (optionally a data URL) to raw bytes.

    Raises:
        ValueError: If the payload is empty or not valid base64.
    """
    encoded = strip_data_url_prefix(payload)
    if not encoded:
        raise ValueError("Media payload is empty")
    try:
        return base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Media payload is not valid base64: {e}") from e


def content_hash(data: bytes) -> str:
    """keccak256 of the exact bytes, as a 0x-prefixed hex string."""
    return Web3.to_hex(Web3.keccak(data))
