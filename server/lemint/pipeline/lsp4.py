# ─────────────────────────────────────────────────────────────────────────────
# LSP4 Metadata: record construction + canonical serialization
# ─────────────────────────────────────────────────────────────────────────────
# The record layout follows the LSP4 Digital Asset Metadata standard:
#   {"LSP4Metadata": {description, links, icon, images, assets, attributes, name}}
# Images carry a verification block so clients can check the pinned bytes.
# ─────────────────────────────────────────────────────────────────────────────


import json
from typing import Any

IMAGE_WIDTH = 1024
IMAGE_HEIGHT = 1024
IMAGE_VERIFICATION_METHOD = "keccak256(bytes)"


def ipfs_uri(cid: str) -> str:
    return f"ipfs://{cid}"


def image_descriptor(image_cid: str, image_hash: str) -> dict[str, Any]:
    """A single LSP4 image entry pointing at the pinned image."""
    return {
        "width": IMAGE_WIDTH,
        "height": IMAGE_HEIGHT,
        "url": ipfs_uri(image_cid),
        "verification": {
            "method": IMAGE_VERIFICATION_METHOD,
            "data": image_hash,
        },
    }


def build_lsp4_metadata(
    name: str,
    description: str,
    attributes: list[dict[str, Any]],
    image_cid: str,
    image_hash: str,
) -> dict[str, Any]:
    """Build the LSP4Metadata document for one token.

    The same descriptor is used as the icon and as the only image, so a
    single pinned file backs both.

    Args:
        name: Token name.
        description: Token description.
        attributes: Ordered ``{"trait_type", "value"}`` entries.
        image_cid: Content identifier of the pinned image.
        image_hash: keccak256 of the raw image bytes (0x-prefixed hex).

    Returns:
        The metadata document, ready for :func:`serialize_metadata`.
    """
    return {
        "LSP4Metadata": {
            "description": description,
            "links": [],
            "icon": [image_descriptor(image_cid, image_hash)],
            "images": [[image_descriptor(image_cid, image_hash)]],
            "assets": [],
            "attributes": list(attributes),
            "name": name,
        }
    }


def serialize_metadata(record: dict[str, Any]) -> bytes:
    """Compact UTF-8 JSON, byte-for-byte what gets pinned and hashed."""
    return json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
