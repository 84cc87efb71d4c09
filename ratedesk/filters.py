"""Search and sort over the cached rate table."""
from __future__ import annotations

from dataclasses import dataclass
from operator import itemgetter
from typing import List, Mapping, Optional, Tuple

SORT_CURRENCY = "currency"
SORT_RATE = "rate"
SORT_KEYS = (SORT_CURRENCY, SORT_RATE)

ASC = "asc"
DESC = "desc"
DIRECTIONS = (ASC, DESC)

RateRow = Tuple[str, float]


def display_name(code: str, catalog: Mapping[str, str]) -> str:
    """Catalog name for ``code``, or the code itself when unknown."""
    return catalog.get(code) or code


def filter_rates(
    rates: Mapping[str, float], catalog: Mapping[str, str], query: str = ""
) -> List[RateRow]:
    """Rows whose code or display name contains ``query`` (case-insensitive)."""
    needle = (query or "").lower()
    return [
        (code, rate)
        for code, rate in rates.items()
        if needle in code.lower() or needle in display_name(code, catalog).lower()
    ]


def sort_rates(rows: List[RateRow], key: str = SORT_CURRENCY, direction: str = ASC) -> List[RateRow]:
    """Stable sort by currency code or by rate."""
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key}. Must be one of {SORT_KEYS}")
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}. Must be one of {DIRECTIONS}")
    index = 0 if key == SORT_CURRENCY else 1
    return sorted(rows, key=itemgetter(index), reverse=direction == DESC)


@dataclass(frozen=True)
class SortState:
    key: str = SORT_CURRENCY
    direction: str = ASC

    def toggle(self, key: str) -> "SortState":
        """Same key flips direction; a different key starts ascending."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}. Must be one of {SORT_KEYS}")
        if key == self.key:
            return SortState(key, DESC if self.direction == ASC else ASC)
        return SortState(key, ASC)


class RateTableView:
    """
    Filtered, sorted rows of a rate table.

    :meth:`rows` caches its output and only recomputes when the rates, the
    catalog, the query or the sort state differ from the previous call.
    """

    def __init__(self, query: str = "", sort: Optional[SortState] = None) -> None:
        self.query = query
        self.sort = sort or SortState()
        self.recomputations = 0
        self._cache_key = None
        self._cache: List[RateRow] = []

    def set_query(self, query: str) -> None:
        self.query = query

    def sort_by(self, key: str) -> SortState:
        self.sort = self.sort.toggle(key)
        return self.sort

    def rows(self, rates: Mapping[str, float], catalog: Mapping[str, str]) -> List[RateRow]:
        cache_key = (tuple(rates.items()), tuple(catalog.items()), self.query, self.sort)
        if cache_key != self._cache_key:
            self._cache = sort_rates(
                filter_rates(rates, catalog, self.query), self.sort.key, self.sort.direction
            )
            self._cache_key = cache_key
            self.recomputations += 1
        return list(self._cache)
