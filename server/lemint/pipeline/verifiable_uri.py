# ─────────────────────────────────────────────────────────────────────────────
# VerifiableURI: ERC725Y value encoding for LSP4Metadata
# ─────────────────────────────────────────────────────────────────────────────
# Layout (LSP2):
#   0x0000 | method id (4 bytes) | hash length (2 bytes) | hash | utf8(url)
# The method id is the first 4 bytes of keccak256(<method name>).
# ─────────────────────────────────────────────────────────────────────────────


from dataclasses import dataclass

from web3 import Web3

VERIFICATION_PREFIX = b"\x00\x00"
KECCAK256_UTF8 = "keccak256(utf8)"
KECCAK256_BYTES = "keccak256(bytes)"

# Singleton data key: keccak256("LSP4Metadata")
LSP4_METADATA_KEY: bytes = bytes(Web3.keccak(text="LSP4Metadata"))

_TOKEN_ID_BYTES = 32
_HEADER_LENGTH = 8  # prefix + method id + hash length


def method_id(method: str) -> bytes:
    return bytes(Web3.keccak(text=method)[:4])


_METHODS_BY_ID = {method_id(m): m for m in (KECCAK256_UTF8, KECCAK256_BYTES)}


@dataclass(frozen=True)
class VerifiableURI:
    """Decoded VerifiableURI value."""

    method: str
    data_hash: bytes
    url: str


def encode_verifiable_uri(url: str, data_hash: bytes | str, method: str = KECCAK256_UTF8) -> bytes:
    """Encode ``url`` and its content hash into a VerifiableURI value.

    Args:
        url: Off-chain location of the content (e.g. ``ipfs://<cid>``).
        data_hash: keccak256 of the content, raw bytes or 0x-prefixed hex.
        method: Verification method name; must be a known LSP2 method.

    Raises:
        ValueError: On an unknown method or a hash of the wrong size.
    """
    if method not in _METHODS_BY_ID.values():
        raise ValueError(f"Unsupported verification method: {method}")
    digest = bytes(Web3.to_bytes(hexstr=data_hash)) if isinstance(data_hash, str) else bytes(data_hash)
    if len(digest) != 32:
        raise ValueError(f"Expected a 32-byte hash, got {len(digest)} bytes")
    return (
        VERIFICATION_PREFIX
        + method_id(method)
        + len(digest).to_bytes(2, "big")
        + digest
        + url.encode("utf-8")
    )


def decode_verifiable_uri(value: bytes) -> VerifiableURI:
    """Inverse of :func:`encode_verifiable_uri`.

    Raises:
        ValueError: If the value is truncated or uses an unknown method.
    """
    if len(value) < _HEADER_LENGTH or value[:2] != VERIFICATION_PREFIX:
        raise ValueError("Not a VerifiableURI value")
    method = _METHODS_BY_ID.get(bytes(value[2:6]))
    if method is None:
        raise ValueError(f"Unknown verification method id 0x{value[2:6].hex()}")
    hash_length = int.from_bytes(value[6:8], "big")
    end = _HEADER_LENGTH + hash_length
    if len(value) < end:
        raise ValueError("VerifiableURI hash is truncated")
    return VerifiableURI(
        method=method,
        data_hash=bytes(value[_HEADER_LENGTH:end]),
        url=bytes(value[end:]).decode("utf-8"),
    )


def encode_token_id(token_id: int) -> bytes:
    """LSP8 bytes32 token id: big-endian, left-padded to 32 bytes."""
    if token_id < 0 or token_id >= 2 ** (8 * _TOKEN_ID_BYTES):
        raise ValueError(f"Token id {token_id} does not fit in bytes32")
    return token_id.to_bytes(_TOKEN_ID_BYTES, "big")
