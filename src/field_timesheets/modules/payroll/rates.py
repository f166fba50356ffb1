from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType


@dataclass(frozen=True)
class RateTable:
    """Hourly rates keyed by worker name, plus the weekend premium rule.

    The worker names double as the roster the line classifier recognizes, in
    priority order.
    """

    rates: Mapping[str, Decimal]
    premium_workers: frozenset[str] = field(default_factory=frozenset)
    weekend_multiplier: Decimal = Decimal("1.5")

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(k): Decimal(str(v)) for k, v in self.rates.items()})
        object.__setattr__(self, "rates", frozen)
        object.__setattr__(self, "premium_workers", frozenset(self.premium_workers))

    @property
    def workers(self) -> tuple[str, ...]:
        return tuple(self.rates)

    def rate_for(self, worker: str | None) -> Decimal:
        if not worker:
            return Decimal("0")
        return self.rates.get(worker, Decimal("0"))

    def is_premium(self, worker: str | None) -> bool:
        return bool(worker) and worker in self.premium_workers


DEFAULT_RATES = RateTable(
    rates={
        "Jose": Decimal("25"),
        "José": Decimal("25"),
        "Damian": Decimal("30"),
        "Chris": Decimal("30"),
        "Myer": Decimal("20"),
    },
    premium_workers=frozenset({"Jose", "José", "Chris", "Damian"}),
)
