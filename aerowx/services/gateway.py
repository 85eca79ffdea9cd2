from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Sequence, Tuple, TypeVar

from aerowx.clients.base import ProviderClient, normalize_icao
from aerowx.core.errors import AllProvidersFailed, ProviderError
from aerowx.models.weather import Metar, Taf

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FallbackGateway:
    """
    Tries providers one after another in priority order and returns the first
    success. Stateless: caching belongs to the caller.
    """

    def __init__(self, providers: Sequence[ProviderClient]):
        self.providers: List[ProviderClient] = list(providers)

    async def fetch_metar(self, icao: str) -> Metar:
        return await self._first_success("metar", icao, lambda p, code: p.fetch_metar(code))

    async def fetch_taf(self, icao: str) -> Taf:
        return await self._first_success("taf", icao, lambda p, code: p.fetch_taf(code))

    async def _first_success(
        self,
        product: str,
        icao: str,
        call: Callable[[ProviderClient, str], Awaitable[T]],
    ) -> T:
        code = normalize_icao(icao)
        errors: List[Tuple[str, ProviderError]] = []
        for provider in self.providers:
            try:
                return await call(provider, code)
            except ProviderError as exc:
                logger.warning("Provider %s failed for %s %s: %s", provider.name, product, code, exc)
                errors.append((provider.name, exc))
        raise AllProvidersFailed(product, code, errors)
