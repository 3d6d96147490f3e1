# ─────────────────────────────────────────────────────────────────────────────
# Collection Resolver: one collection address per process, single-flight
# ─────────────────────────────────────────────────────────────────────────────


import asyncio

import structlog

from lemint.services.contract_gateway import ContractGateway

logger = structlog.get_logger(__name__)


class CollectionResolver:
    """Resolves the collection every mint targets.

    A configured address is used as-is. Otherwise the first caller deploys
    a collection named from settings while concurrent callers wait on the
    same lock, so a cold start never deploys twice.
    """

    def __init__(
        self,
        gateway: ContractGateway,
        name: str,
        symbol: str,
        address: str | None = None,
    ) -> None:
        self._gateway = gateway
        self._name = name
        self._symbol = symbol
        self._address = address or None
        self._lock = asyncio.Lock()

    @property
    def address(self) -> str | None:
        return self._address

    async def resolve(self) -> str:
        if self._address is not None:
            return self._address
        async with self._lock:
            if self._address is None:
                logger.info("collection_deploy_start", name=self._name, symbol=self._symbol)
                self._address = await self._gateway.deploy_collection(
                    self._name, self._symbol, self._gateway.admin_address
                )
        return self._address
