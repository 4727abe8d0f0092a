"""
Cox-Ingersoll-Ross diffusion and its one-step transition sampler.

    dx = kappa (theta - x) dt + sigma sqrt(x) dW

The sampler advances the state over dt given one standard-normal shock.
Five discretizations share the `evolve` signature:

- PLAIN: exact conditional mean plus exact conditional std times the shock
- FULL_TRUNCATION: PLAIN on max(x0, 0), result floored at zero
  (Lord, Koekkoek & van Dijk, 2006)
- QUADRATIC_EXPONENTIAL: Andersen's QE scheme (2008)
- QUADRATIC_EXPONENTIAL_MARTINGALE: QE plus the martingale-correction
  admissibility check
- EXACT: inversion of the noncentral chi-square transition law
"""
import logging
from enum import Enum

import numpy as np

from .distributions import (
    InverseNonCentralChiSquare, complementary_normal, cumulative_normal,
)
from .errors import InvalidParameterError, NumericDomainError

logger = logging.getLogger(__name__)

# Andersen's switching level between the quadratic and exponential regimes
PSI_CRITICAL = 1.5


class Discretization(Enum):
    PLAIN = "plain"
    FULL_TRUNCATION = "full_truncation"
    QUADRATIC_EXPONENTIAL = "quadratic_exponential"
    QUADRATIC_EXPONENTIAL_MARTINGALE = "quadratic_exponential_martingale"
    EXACT = "exact"


class CoxIngersollRossProcess:
    """
    CIR process with a fixed discretization scheme.

    The scheme is bound to an evolution method once, at construction, so
    the per-path hot loop never branches on the scheme tag.
    """

    def __init__(
        self,
        speed: float,
        volatility: float,
        x0: float = 0.0,
        level: float = 0.0,
        discretization: Discretization = Discretization.QUADRATIC_EXPONENTIAL,
        max_evaluations: int = 100,
    ):
        if speed <= 0:
            raise InvalidParameterError(f"speed must be positive, got {speed}")
        if volatility <= 0:
            raise InvalidParameterError(f"volatility must be positive, got {volatility}")
        self.speed = speed
        self.volatility = volatility
        self.level = level
        self._x0 = x0
        self.discretization = Discretization(discretization)
        self.max_evaluations = max_evaluations

        self._evolve = {
            Discretization.PLAIN: self._evolve_plain,
            Discretization.FULL_TRUNCATION: self._evolve_full_truncation,
            Discretization.QUADRATIC_EXPONENTIAL: self._evolve_quadratic_exponential,
            Discretization.QUADRATIC_EXPONENTIAL_MARTINGALE: self._evolve_qe_martingale,
            Discretization.EXACT: self._evolve_exact,
        }[self.discretization]

    def __repr__(self):
        return (f"CoxIngersollRossProcess(speed={self.speed}, level={self.level}, "
                f"volatility={self.volatility}, x0={self._x0}, "
                f"discretization={self.discretization.value})")

    def x0(self) -> float:
        return self._x0

    def drift(self, t: float, x: float) -> float:
        return self.speed * (self.level - x)

    def diffusion(self, t: float, x: float) -> float:
        return self.volatility * np.sqrt(max(x, 0.0))

    def expectation(self, t0: float, x0: float, dt: float) -> float:
        """Exact conditional mean E[x(t0+dt) | x(t0)=x0]."""
        return self.level + (x0 - self.level) * np.exp(-self.speed * dt)

    def variance(self, t0: float, x0: float, dt: float) -> float:
        """Exact conditional variance Var[x(t0+dt) | x(t0)=x0]."""
        ex1 = np.exp(-self.speed * dt)
        ex2 = np.exp(-2.0 * self.speed * dt)
        fraction = self.volatility * self.volatility / self.speed
        return (x0 * fraction * (ex1 - ex2)
                + self.level * fraction * (1.0 - ex1) * (1.0 - ex1) / 2.0)

    def std_deviation(self, t0: float, x0: float, dt: float) -> float:
        var = self.variance(t0, x0, dt)
        if var < 0.0:
            raise NumericDomainError(
                f"negative conditional variance {var} for x0={x0}, dt={dt}"
            )
        return np.sqrt(var)

    def evolve(self, t0: float, x0: float, dt: float, dw: float) -> float:
        """
        Advance the state from x0 at t0 over dt using the standard-normal shock dw.

        The same shock is used by every scheme; it is never redrawn.
        """
        if not dt > 0:
            raise InvalidParameterError(f"time step must be positive, got {dt}")
        return float(self._evolve(t0, x0, dt, dw))

    # ─── Schemes ─────────────────────────────────────────────────────────

    def _evolve_plain(self, t0, x0, dt, dw):
        return self.expectation(t0, x0, dt) + self.std_deviation(t0, x0, dt) * dw

    def _evolve_full_truncation(self, t0, x0, dt, dw):
        x0_trunc = x0 if x0 > 0.0 else 0.0
        result = (self.expectation(t0, x0_trunc, dt)
                  + self.std_deviation(t0, x0_trunc, dt) * dw)
        return result if result > 0.0 else 0.0

    def _evolve_quadratic_exponential(self, t0, x0, dt, dw):
        return self._quadratic_exponential(x0, dt, dw, martingale=False)

    def _evolve_qe_martingale(self, t0, x0, dt, dw):
        return self._quadratic_exponential(x0, dt, dw, martingale=True)

    def _evolve_exact(self, t0, x0, dt, dw):
        ex = np.exp(-self.speed * dt)
        sigma2 = self.volatility * self.volatility

        c = 4.0 * self.speed / (sigma2 * (1.0 - ex))
        nu = 4.0 * self.speed * self.level / sigma2
        eta = c * max(x0, 0.0) * ex
        if nu <= 0:
            raise InvalidParameterError(
                "exact sampling needs a positive level (degrees of freedom were zero)"
            )

        chi2_inverse = InverseNonCentralChiSquare(nu, eta, self.max_evaluations, 1e-10)
        # right-tail shocks go through the survival function; N(dw) rounds to 1 past ~8.3
        if dw > 0.0:
            return chi2_inverse.upper_quantile(complementary_normal(dw)) / c
        return chi2_inverse(cumulative_normal(dw)) / c

    # ─── Quadratic-exponential helpers ───────────────────────────────────

    def _moments(self, x0, dt):
        ex = np.exp(-self.speed * dt)
        sigma2 = self.volatility * self.volatility
        m = self.level + (x0 - self.level) * ex
        s2 = (x0 * sigma2 * ex / self.speed * (1.0 - ex)
              + self.level * sigma2 / (2.0 * self.speed) * (1.0 - ex) * (1.0 - ex))
        return m, s2

    @staticmethod
    def _quadratic_coefficients(m, psi):
        b2 = 2.0 / psi - 1.0 + np.sqrt(2.0 / psi * (2.0 / psi - 1.0))
        a = m / (1.0 + b2)
        return a, b2

    @staticmethod
    def _exponential_coefficients(m, psi):
        p = (psi - 1.0) / (psi + 1.0)
        beta = (1.0 - p) / m
        return p, beta

    def _quadratic_exponential(self, x0, dt, dw, martingale):
        x0 = max(x0, 0.0)
        m, s2 = self._moments(x0, dt)
        if m <= 0.0:
            if martingale:
                raise InvalidParameterError(
                    "martingale correction undefined for a zero conditional mean"
                )
            return 0.0
        psi = s2 / (m * m)

        if martingale:
            # computed for the admissibility check only; not applied to the sample
            self._correction(x0, dt, m, psi)

        if psi < PSI_CRITICAL:
            a, b2 = self._quadratic_coefficients(m, psi)
            b = np.sqrt(b2)
            return a * (b + dw) * (b + dw)

        p, beta = self._exponential_coefficients(m, psi)
        u = cumulative_normal(dw)
        if u <= p:
            return 0.0
        return np.log((1.0 - p) / complementary_normal(dw)) / beta

    def martingale_correction(self, x0: float, dt: float) -> float:
        """
        Drift-correction constant K0 of the QE-martingale scheme.

        Raises InvalidParameterError when the correction denominator is
        non-positive.
        """
        if not dt > 0:
            raise InvalidParameterError(f"time step must be positive, got {dt}")
        x0 = max(x0, 0.0)
        m, s2 = self._moments(x0, dt)
        if m <= 0.0:
            raise InvalidParameterError(
                "martingale correction undefined for a zero conditional mean"
            )
        return float(self._correction(x0, dt, m, s2 / (m * m)))

    def _correction(self, x0, dt, m, psi):
        rho = 0.0
        g1 = g2 = 0.5
        sigma = self.volatility
        k1 = g1 * dt * (self.speed * rho / sigma - 0.5) - rho / sigma
        k2 = g2 * dt * (self.speed * rho / sigma - 0.5) + rho / sigma
        k3 = g1 * dt * (1.0 - rho * rho)
        k4 = g2 * dt * (1.0 - rho * rho)
        A = k2 + 0.5 * k4

        if psi < PSI_CRITICAL:
            a, b2 = self._quadratic_coefficients(m, psi)
            denominator = 1.0 - 2.0 * A * a
            if denominator <= 0.0:
                raise InvalidParameterError(
                    f"illegal martingale correction: 1 - 2Aa = {denominator}"
                )
            return (-A * b2 * a / denominator + 0.5 * np.log(denominator)
                    - (k1 + 0.5 * k3) * x0)

        p, beta = self._exponential_coefficients(m, psi)
        if beta - A <= 0.0:
            raise InvalidParameterError(
                f"illegal martingale correction: beta - A = {beta - A}"
            )
        return -np.log(p + beta * (1.0 - p) / (beta - A)) - (k1 + 0.5 * k3) * x0
