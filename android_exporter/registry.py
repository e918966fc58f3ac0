"""Ordered set of active providers, sampled once per scrape."""
from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from .models import MetricReading, ProviderResult, Snapshot
from .providers import Provider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Holds providers in registration order and collects snapshots.

    Built once at startup and handed to the HTTP app; ``collect`` keeps no
    state between calls, so concurrent scrapes are independent.
    """

    def __init__(self, providers: Iterable[Provider] = ()) -> None:
        self._providers: List[Provider] = []
        for provider in providers:
            self.register(provider)

    def register(self, provider: Provider) -> None:
        if any(existing.name == provider.name for existing in self._providers):
            raise ValueError(f"provider {provider.name!r} is already registered")
        self._providers.append(provider)

    @property
    def providers(self) -> Tuple[Provider, ...]:
        return tuple(self._providers)

    def _sample(self, provider: Provider) -> ProviderResult:
        try:
            return provider.sample()
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Provider %s raised while sampling", provider.name)
            return ProviderResult.failure(provider.name, str(exc) or type(exc).__name__)

    def collect(self) -> Snapshot:
        readings: List[MetricReading] = []
        failed: List[str] = []
        for provider in self._providers:
            result = self._sample(provider)
            if result.ok:
                readings.extend(result.readings)
            else:
                failed.append(result.provider)
        return Snapshot(readings=tuple(readings), failed=tuple(failed))

    def __len__(self) -> int:
        return len(self._providers)
