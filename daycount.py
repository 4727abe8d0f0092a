"""Day-count conventions for curve times and coupon accruals."""
from datetime import date


def actual_360(d1: date, d2: date) -> float:
    """Actual/360 year fraction between two dates."""
    return (d2 - d1).days / 360.0


def actual_365_fixed(d1: date, d2: date) -> float:
    """Actual/365 (Fixed) year fraction between two dates."""
    return (d2 - d1).days / 365.0
