"""Value types shared by providers, the registry and the encoder."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

Labels = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class MetricReading:
    name: str
    value: float
    labels: Labels = ()
    help: str = ""


def reading(name: str, value: float, help: str = "", **labels: str) -> MetricReading:
    """Build a reading, keeping keyword label order."""
    return MetricReading(
        name=name,
        value=float(value),
        labels=tuple((key, str(val)) for key, val in labels.items()),
        help=help,
    )


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one provider sampling pass: all readings or a failure."""

    provider: str
    readings: Tuple[MetricReading, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, provider: str, readings) -> "ProviderResult":
        readings = tuple(readings)
        if not readings:
            raise ValueError("a successful result needs at least one reading")
        return cls(provider=provider, readings=readings)

    @classmethod
    def failure(cls, provider: str, reason: str) -> "ProviderResult":
        return cls(provider=provider, error=reason or "unknown error")


@dataclass(frozen=True)
class Snapshot:
    """Readings gathered during one scrape, in registration order."""

    readings: Tuple[MetricReading, ...] = ()
    failed: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[MetricReading]:
        return iter(self.readings)

    def __len__(self) -> int:
        return len(self.readings)

    def names(self) -> Tuple[str, ...]:
        return tuple(item.name for item in self.readings)
