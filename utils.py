"""
Utility functions for SplitLedger application
"""
from __future__ import annotations
import os
from datetime import date, datetime, timezone
from decimal import Decimal, DecimalException, InvalidOperation, localcontext


def parse_date(s: str) -> date:
    """Parse YYYY-MM-DD date string"""
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def parse_datetime(s: str) -> datetime:
    """
    Parse "YYYY-MM-DD HH:MM" (or just "YYYY-MM-DD") given in local time
    and return it as an aware UTC datetime.
    """
    s = s.strip()
    for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%d"):
        try:
            naive = datetime.strptime(s, fmt)
        except ValueError:
            continue
        return naive.astimezone().astimezone(timezone.utc)
    raise ValueError(f"invalid time {s!r}, expected YYYY-MM-DD HH:MM")


def parse_amount(s: str, digits: int = 2) -> int:
    """Convert a decimal string such as "12.34" to integer minor units"""
    try:
        value = Decimal(str(s).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {s!r}") from None
    if not value.is_finite():
        raise ValueError(f"not a number: {s!r}")
    with localcontext() as ctx:
        # scaling keeps every digit of the input
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits))
        try:
            scaled = value.scaleb(digits)
        except DecimalException:
            raise ValueError(f"amount out of range: {s!r}") from None
        if scaled != scaled.to_integral_value():
            raise ValueError(f"{s!r} has more than {digits} decimal places")
    return int(scaled)


def format_amount(amount: int, digits: int = 2) -> str:
    """Format integer minor units as a decimal string, e.g. -1234 -> "-12.34" """
    if digits == 0:
        return str(amount)
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), 10 ** digits)
    return f"{sign}{major}.{minor:0{digits}d}"


def to_major(amount: int, digits: int = 2) -> float:
    """Minor units as a float in major units, for spreadsheet cells only"""
    return float(Decimal(amount).scaleb(-digits))


def app_dir() -> str:
    """
    Get application data directory: $SPLITLEDGER_HOME or ~/.splitledger
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("SPLITLEDGER_HOME") or os.path.join(os.path.expanduser("~"), ".splitledger")
    os.makedirs(path, exist_ok=True)
    return path
