"""Input validation utilities."""
import math
from typing import Optional

from ratedesk.utils.errors import ValidationFailure


def parse_amount(text: Optional[str]) -> float:
    """
    Parse a user-entered amount.

    Args:
        text: Raw amount text (e.g., "1000", "12.5")

    Returns:
        Parsed amount

    Raises:
        ValidationFailure: If the text is empty, not numeric, or not strictly positive
    """
    if text is None or not str(text).strip():
        raise ValidationFailure("Amount is required")

    try:
        amount = float(str(text).strip())
    except ValueError:
        raise ValidationFailure(f"Amount is not a number: {text!r}")

    if not math.isfinite(amount):
        raise ValidationFailure(f"Amount must be finite, got: {text!r}")

    if amount <= 0:
        raise ValidationFailure(f"Amount must be positive, got: {amount}")

    return amount


def normalize_currency_code(code: Optional[str]) -> str:
    """
    Normalize a currency code to upper case.

    Raises:
        ValidationFailure: If the code is empty
    """
    code = (code or "").strip().upper()
    if not code:
        raise ValidationFailure("Currency code is required")
    return code
