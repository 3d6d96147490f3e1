# ─────────────────────────────────────────────────────────────────────────────
# Tests: VerifiableURI encoding + token ids
# ─────────────────────────────────────────────────────────────────────────────

import pytest
from web3 import Web3

from lemint.pipeline.verifiable_uri import (
    KECCAK256_BYTES,
    KECCAK256_UTF8,
    LSP4_METADATA_KEY,
    decode_verifiable_uri,
    encode_token_id,
    encode_verifiable_uri,
    method_id,
)

URL = "ipfs://QmMetadataCid"
HASH = bytes(Web3.keccak(text='{"LSP4Metadata":{}}'))


class TestConstants:
    def test_lsp4_metadata_key(self):
        assert LSP4_METADATA_KEY == bytes.fromhex(
            "9afb95cacc9f95858ec44aa8c3b685511002e30ae54415823f406128b85b238e"
        )

    def test_method_ids(self):
        assert method_id(KECCAK256_UTF8) == bytes.fromhex("6f357c6a")
        assert method_id(KECCAK256_BYTES) == bytes.fromhex("8019f9b1")


class TestEncodeVerifiableUri:
    """Tests for encode_verifiable_uri()."""

    def test_layout(self):
        value = encode_verifiable_uri(URL, HASH)
        assert value[:2] == b"\x00\x00"
        assert value[2:6] == method_id(KECCAK256_UTF8)
        assert value[6:8] == (32).to_bytes(2, "big")
        assert value[8:40] == HASH
        assert value[40:] == URL.encode()

    def test_accepts_hex_hash(self):
        assert encode_verifiable_uri(URL, Web3.to_hex(HASH)) == encode_verifiable_uri(URL, HASH)

    def test_bytes_method(self):
        value = encode_verifiable_uri(URL, HASH, method=KECCAK256_BYTES)
        assert value[2:6] == method_id(KECCAK256_BYTES)

    def test_rejects_unknown_method(self):
        with pytest.raises(ValueError, match="Unsupported verification method"):
            encode_verifiable_uri(URL, HASH, method="sha256(bytes)")

    def test_rejects_short_hash(self):
        with pytest.raises(ValueError, match="32-byte"):
            encode_verifiable_uri(URL, b"\x01" * 20)


class TestDecodeVerifiableUri:
    """Tests for decode_verifiable_uri()."""

    def test_recovers_fields(self):
        decoded = decode_verifiable_uri(encode_verifiable_uri(URL, HASH))
        assert decoded.method == KECCAK256_UTF8
        assert decoded.data_hash == HASH
        assert decoded.url == URL

    def test_rejects_raw_url_bytes(self):
        with pytest.raises(ValueError):
            decode_verifiable_uri(URL.encode())

    def test_rejects_unknown_method_id(self):
        value = b"\x00\x00" + b"\xde\xad\xbe\xef" + (32).to_bytes(2, "big") + HASH
        with pytest.raises(ValueError, match="Unknown verification method"):
            decode_verifiable_uri(value)

    def test_rejects_truncated_hash(self):
        value = encode_verifiable_uri(URL, HASH)[:20]
        with pytest.raises(ValueError, match="truncated"):
            decode_verifiable_uri(value)


class TestEncodeTokenId:
    """Tests for encode_token_id()."""

    def test_one_is_left_padded(self):
        assert encode_token_id(1) == b"\x00" * 31 + b"\x01"

    def test_big_endian(self):
        assert encode_token_id(0x0102) == b"\x00" * 30 + b"\x01\x02"

    def test_length_is_32(self):
        assert len(encode_token_id(0)) == 32
        assert len(encode_token_id(2**256 - 1)) == 32

    def test_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            encode_token_id(-1)
        with pytest.raises(ValueError):
            encode_token_id(2**256)
