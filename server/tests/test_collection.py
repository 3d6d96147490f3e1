# ─────────────────────────────────────────────────────────────────────────────
# Tests: Collection Resolver
# ─────────────────────────────────────────────────────────────────────────────

import asyncio
from unittest.mock import AsyncMock

import pytest
from web3 import Web3

from conftest import ADMIN, COLLECTION
from lemint.exceptions import CollectionUnavailableError
from lemint.services.collection import CollectionResolver


class TestCollectionResolver:
    @pytest.mark.asyncio
    async def test_configured_address_skips_deploy(self, mock_gateway):
        resolver = CollectionResolver(mock_gateway, "Name", "SYM", address=COLLECTION)
        assert await resolver.resolve() == COLLECTION
        mock_gateway.deploy_collection.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cold_resolver_deploys_with_settings_identity(self, mock_gateway):
        resolver = CollectionResolver(mock_gateway, "Name", "SYM")
        assert resolver.address is None
        assert await resolver.resolve() == COLLECTION
        mock_gateway.deploy_collection.assert_awaited_once_with("Name", "SYM", ADMIN)
        assert resolver.address == COLLECTION

    @pytest.mark.asyncio
    async def test_second_resolve_is_cached(self, mock_gateway):
        resolver = CollectionResolver(mock_gateway, "Name", "SYM")
        await resolver.resolve()
        await resolver.resolve()
        assert mock_gateway.deploy_collection.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_deploy_once(self, mock_gateway):
        deployed: list[str] = []

        async def _slow_deploy(name, symbol, owner):
            await asyncio.sleep(0.01)
            address = Web3.to_checksum_address("0x" + f"{len(deployed) + 1:040x}")
            deployed.append(address)
            return address

        mock_gateway.deploy_collection = AsyncMock(side_effect=_slow_deploy)
        resolver = CollectionResolver(mock_gateway, "Name", "SYM")

        results = await asyncio.gather(*(resolver.resolve() for _ in range(5)))

        assert len(deployed) == 1
        assert set(results) == {deployed[0]}

    @pytest.mark.asyncio
    async def test_failed_deploy_is_retried_on_next_call(self, mock_gateway):
        mock_gateway.deploy_collection = AsyncMock(
            side_effect=[CollectionUnavailableError("no bytecode"), COLLECTION]
        )
        resolver = CollectionResolver(mock_gateway, "Name", "SYM")
        with pytest.raises(CollectionUnavailableError):
            await resolver.resolve()
        assert await resolver.resolve() == COLLECTION
