"""Parsers for CurrencyBeacon payloads.

Each parser accepts the decoded JSON body and either returns a normalized value
or raises a ``DataProviderError`` subclass. Upstream responses come in several
shapes, so every parser tries the known shapes in order and gives up with
``MalformedResponse`` when none match.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from ratedesk.models import RateSnapshot
from ratedesk.utils.errors import EmptyResult, MalformedResponse
from ratedesk.utils.logging import get_logger


logger = get_logger(__name__)

CONVERSION_FIELDS = ("value", "result", "amount")


def _unwrap(payload: Any) -> Any:
    """Strip the ``{"meta": ..., "response": ...}`` envelope if present."""
    if isinstance(payload, dict) and isinstance(payload.get("response"), (dict, list)):
        return payload["response"]
    return payload


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _catalog_records(payload: Any) -> Iterable[Any]:
    # Shape A: [{...}, {...}]
    if isinstance(payload, list):
        return payload
    # Shape B: {"0": {...}, "1": {...}}
    if isinstance(payload, dict):
        return payload.values()
    raise MalformedResponse(
        f"Unexpected currencies payload type: {type(payload).__name__}"
    )


def parse_catalog(payload: Any) -> Dict[str, str]:
    """
    Extract ``code -> name`` pairs from a currencies payload.

    Args:
        payload: Decoded ``/currencies`` body (list of records or index-keyed mapping)

    Returns:
        Mapping of upper-case currency code to display name

    Raises:
        MalformedResponse: If the payload is neither a list nor a mapping
        EmptyResult: If no record carries both a code and a name
    """
    catalog: Dict[str, str] = {}
    skipped = 0

    for record in _catalog_records(_unwrap(payload)):
        if not isinstance(record, dict):
            skipped += 1
            continue
        code = record.get("short_code") or record.get("code")
        name = record.get("name")
        if isinstance(code, str) and code.strip() and isinstance(name, str) and name.strip():
            catalog[code.strip().upper()] = name.strip()
        else:
            skipped += 1

    if skipped:
        logger.debug(f"Skipped {skipped} currency records without code or name")

    if not catalog:
        raise EmptyResult("No currencies could be processed")

    return catalog


def _parse_updated_at(data: Dict[str, Any]) -> Optional[datetime]:
    ts = data.get("timestamp")
    if ts is not None and not isinstance(ts, bool):
        try:
            return datetime.fromtimestamp(float(ts), timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            logger.warning(f"Could not parse timestamp: {ts!r}")

    date = data.get("date")
    if isinstance(date, str) and date:
        try:
            parsed = datetime.fromisoformat(date.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Could not parse date: {date!r}")
        else:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    return None


def parse_rates(payload: Any, requested_base: str) -> RateSnapshot:
    """
    Parse a ``/latest`` or ``/historical`` payload into a :class:`RateSnapshot`.

    The server timestamp (``timestamp`` epoch seconds, then ``date``) is preferred;
    the client wall-clock is used when neither is usable.

    Raises:
        MalformedResponse: If the payload has no ``rates`` mapping
    """
    data = _unwrap(payload)
    if not isinstance(data, dict) or not isinstance(data.get("rates"), dict):
        raise MalformedResponse("Invalid exchange rates response format")

    rates: Dict[str, float] = {}
    for code, raw in data["rates"].items():
        number = _as_number(raw)
        if number is None:
            logger.debug(f"Dropping non-numeric rate for {code}: {raw!r}")
            continue
        rates[str(code).upper()] = number

    base = data.get("base")
    base = base.upper() if isinstance(base, str) and base else requested_base

    updated_at = _parse_updated_at(data)
    if updated_at is None:
        return RateSnapshot(base_currency=base, rates=rates)
    return RateSnapshot(base_currency=base, rates=rates, updated_at=updated_at, server_timestamp=True)


def parse_conversion(payload: Any) -> float:
    """
    Extract the converted amount from a ``/convert`` payload.

    Fields are checked in priority order ``value``, ``result``, ``amount``; the first
    present non-null one wins even if a later field disagrees.

    Raises:
        MalformedResponse: If no result field is present or it is not numeric
    """
    data = _unwrap(payload)
    if not isinstance(data, dict):
        raise MalformedResponse("Empty API response")

    for field in CONVERSION_FIELDS:
        raw = data.get(field)
        if raw is None:
            continue
        number = _as_number(raw)
        if number is None:
            raise MalformedResponse(f"Non-numeric conversion {field}: {raw!r}")
        return number

    raise MalformedResponse("No conversion result in API response")
