"""
Data models for currency catalog, rate table and conversion state.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional


FALLBACK_CATALOG: Mapping[str, str] = MappingProxyType({
    "USD": "United States Dollar",
    "EUR": "Euro",
    "GBP": "British Pound Sterling",
    "JPY": "Japanese Yen",
    "AUD": "Australian Dollar",
    "CAD": "Canadian Dollar",
    "CHF": "Swiss Franc",
    "CNY": "Chinese Yuan",
    "INR": "Indian Rupee",
    "SGD": "Singapore Dollar",
    "HKD": "Hong Kong Dollar",
    "KRW": "South Korean Won",
    "BRL": "Brazilian Real",
    "MXN": "Mexican Peso",
    "SEK": "Swedish Krona",
    "NOK": "Norwegian Krone",
    "DKK": "Danish Krone",
    "PLN": "Polish Zloty",
    "NZD": "New Zealand Dollar",
    "ZAR": "South African Rand",
})


class SyncPhase(Enum):
    """Lifecycle of a load phase (catalog or rates)."""
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class SyncStatus:
    """Status of one load phase."""
    phase: SyncPhase = SyncPhase.LOADING
    last_updated: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.phase is SyncPhase.LOADING

    @property
    def has_error(self) -> bool:
        return self.phase is SyncPhase.ERROR


@dataclass
class RateSnapshot:
    """
    Parsed rate table for a single base currency.
    """
    base_currency: str
    rates: Dict[str, float]
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    server_timestamp: bool = False  # False when updated_at is the client wall-clock

    def __len__(self) -> int:
        return len(self.rates)

    def __str__(self) -> str:
        return f"{self.base_currency}: {len(self.rates)} rates @ {self.updated_at.isoformat()}"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one conversion request; superseded by the next one."""
    amount: float
    from_currency: str
    to_currency: str
    value: float  # unrounded upstream value
    sequence: int = 0

    @property
    def display_value(self) -> str:
        return f"{self.value:.2f}"

    @property
    def currency_pair(self) -> str:
        return f"{self.from_currency}/{self.to_currency}"

    def __str__(self) -> str:
        return f"{self.amount:g} {self.from_currency} = {self.display_value} {self.to_currency}"


@dataclass(frozen=True)
class SyncSnapshot:
    """Read-only view of the sync controller state handed to consumers."""
    catalog: Mapping[str, str]
    rates: Mapping[str, float]
    base_currency: str
    catalog_status: SyncStatus
    rates_status: SyncStatus

    @property
    def error(self) -> Optional[str]:
        """Most relevant error message, rates first."""
        return self.rates_status.error or self.catalog_status.error

    @property
    def last_updated(self) -> Optional[datetime]:
        return self.rates_status.last_updated
