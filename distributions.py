"""
Distribution helpers for the CIR transition law.

The exact CIR scheme samples x(t+dt) as a scaled noncentral chi-square
variate, so we need its CDF and a robust inverse. The inverse brackets
the quantile by doubling from the mean and then polishes it with Brent's
method; both phases share one evaluation budget. Upper quantiles are
solved against the survival function so that shocks far in the right
tail, where the normal CDF rounds to 1, still map to a finite sample.
"""
import numpy as np
from scipy.optimize import brentq
from scipy.stats import chi2, ncx2, norm

from .errors import InvalidParameterError, NumericDomainError


def cumulative_normal(x: float) -> float:
    """Standard normal CDF, used to map a normal shock to a uniform variate."""
    return float(norm.cdf(x))


def complementary_normal(x: float) -> float:
    """Upper tail 1 - N(x), accurate for large shocks."""
    return float(norm.sf(x))


def noncentral_chi2_cdf(x: float, df: float, ncp: float) -> float:
    """CDF of the noncentral chi-square distribution with `df` degrees of freedom."""
    if x <= 0.0:
        return 0.0
    if ncp == 0.0:
        return float(chi2.cdf(x, df))
    return float(ncx2.cdf(x, df, ncp))


def noncentral_chi2_sf(x: float, df: float, ncp: float) -> float:
    """Survival function 1 - CDF, evaluated directly in the upper tail."""
    if x <= 0.0:
        return 1.0
    if ncp == 0.0:
        return float(chi2.sf(x, df))
    return float(ncx2.sf(x, df, ncp))


class InverseNonCentralChiSquare:
    """
    Inverse CDF of the noncentral chi-square distribution.

    Args:
        df: Degrees of freedom (nu), must be positive
        ncp: Noncentrality (eta), must be non-negative
        max_evaluations: Evaluation budget shared by bracketing and Brent
        accuracy: Absolute tolerance on the returned quantile
    """

    def __init__(self, df: float, ncp: float,
                 max_evaluations: int = 10, accuracy: float = 1e-8):
        if df <= 0:
            raise InvalidParameterError(f"degrees of freedom must be positive, got {df}")
        if ncp < 0:
            raise InvalidParameterError(f"noncentrality must be non-negative, got {ncp}")
        self.df = df
        self.ncp = ncp
        self.max_evaluations = max_evaluations
        self.accuracy = accuracy

    def cdf(self, x: float) -> float:
        return noncentral_chi2_cdf(x, self.df, self.ncp)

    def sf(self, x: float) -> float:
        return noncentral_chi2_sf(x, self.df, self.ncp)

    def __call__(self, u: float) -> float:
        """Quantile at lower-tail probability `u`."""
        if u <= 0.0:
            return 0.0
        if u >= 1.0 or not np.isfinite(u):
            raise NumericDomainError(f"quantile {u} is outside (0, 1)")
        return self._solve(lambda y: self.cdf(y) - u, u)

    def upper_quantile(self, q: float) -> float:
        """Quantile at upper-tail probability `q`, i.e. the value x with sf(x) = q."""
        if q >= 1.0:
            return 0.0
        if q <= 0.0 or not np.isfinite(q):
            raise NumericDomainError(f"upper-tail probability {q} is outside (0, 1)")
        return self._solve(lambda y: q - self.sf(y), 1.0 - q)

    def _solve(self, excess, u):
        # excess is increasing in y and changes sign at the quantile
        upper = self.df + self.ncp
        evaluations = self.max_evaluations
        while excess(upper) < 0.0 and evaluations > 0:
            upper *= 2.0
            evaluations -= 1

        if excess(upper) < 0.0:
            raise NumericDomainError(
                f"could not bracket quantile {u} within {self.max_evaluations} evaluations"
            )
        if evaluations == 0:
            raise NumericDomainError(
                f"evaluation budget exhausted while bracketing quantile {u}"
            )

        lower = 0.0 if evaluations == self.max_evaluations else 0.5 * upper
        try:
            return float(brentq(excess, lower, upper,
                                xtol=self.accuracy, maxiter=evaluations))
        except RuntimeError as exc:
            raise NumericDomainError(
                f"inverse noncentral chi-square did not converge for u={u}"
            ) from exc
