"""
Risk-free discount curve for the CDS legs.

Zero rates are quoted in percent with continuous compounding. Three or more
quotes are joined by a natural cubic spline, fewer by straight lines; beyond
the first and last quote the rate is held constant.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import numpy as np
from scipy.interpolate import CubicSpline

from .daycount import actual_365_fixed
from .errors import InvalidParameterError


@dataclass
class YieldCurvePoint:
    maturity_years: float
    yield_pct: float  # percent, 2.0 means 2%


@dataclass
class YieldCurve:
    """Zero curve anchored at `as_of_date`; times are Actual/365 Fixed."""
    as_of_date: date
    points: list[YieldCurvePoint] = field(default_factory=list)
    _spline: Optional[CubicSpline] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.points:
            raise InvalidParameterError("a yield curve needs at least one quote")
        self.points.sort(key=lambda p: p.maturity_years)
        self._mats = np.array([p.maturity_years for p in self.points], dtype=float)
        self._rates = np.array([p.yield_pct for p in self.points], dtype=float)
        if np.any(np.diff(self._mats) <= 0):
            raise InvalidParameterError("curve maturities must be distinct")
        if len(self._mats) >= 3:
            self._spline = CubicSpline(self._mats, self._rates, bc_type='natural')

    def get_yield(self, maturity_years: float) -> float:
        """Zero yield in percent for a maturity in years."""
        t = min(max(maturity_years, self._mats[0]), self._mats[-1])
        if self._spline is not None:
            return float(self._spline(t))
        return float(np.interp(t, self._mats, self._rates))

    def discount_factor(self, maturity_years: float) -> float:
        return float(np.exp(-self.get_yield(maturity_years) / 100.0 * maturity_years))

    def discount(self, d: date) -> float:
        """Discount factor from the curve date to `d`."""
        return self.discount_factor(actual_365_fixed(self.as_of_date, d))


def flat_curve(as_of: date, rate: float) -> YieldCurve:
    """
    Flat continuously compounded curve.

    Args:
        as_of: Curve reference date
        rate: Zero rate as a decimal, e.g. 0.02 for 2%
    """
    return YieldCurve(as_of_date=as_of, points=[YieldCurvePoint(1.0, rate * 100.0)])
