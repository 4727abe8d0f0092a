"""
Cox-Ingersoll-Ross affine model for the default intensity.

    dx_t = k (theta - x_t) dt + sigma sqrt(x_t) dW_t

Used as a hazard-rate model, the zero-coupon "discount bond"
P(t, T, x) = E[exp(-int_t^T x_s ds) | x_t = x] is the survival
probability between t and T given intensity x at t. It has the affine
closed form P = A(t,T) exp(-B(t,T) x).
"""
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .distributions import noncentral_chi2_cdf
from .errors import InvalidParameterError
from .process import CoxIngersollRossProcess, Discretization

# Below this maturity an option is treated as expired
EXPIRY_EPSILON = 1e-12


class OptionType(Enum):
    CALL = "call"
    PUT = "put"


@dataclass(frozen=True)
class CirParameters:
    """
    CIR model parameters.

    `with_feller_constraint` records whether the caller wants parameters
    restricted to 2*k*theta >= sigma^2. It is advisory: the sampler does
    not enforce it.
    """
    speed: float = 0.1          # k: mean-reversion speed
    level: float = 0.1          # theta: long-run level
    volatility: float = 0.1     # sigma
    x0: float = 0.05            # initial intensity
    with_feller_constraint: bool = True

    def __post_init__(self):
        if self.speed <= 0:
            raise InvalidParameterError(f"speed must be positive, got {self.speed}")
        if self.volatility <= 0:
            raise InvalidParameterError(f"volatility must be positive, got {self.volatility}")
        if self.level < 0:
            raise InvalidParameterError(f"level must be non-negative, got {self.level}")

    @property
    def feller_satisfied(self) -> bool:
        """Check if the Feller condition (2 k theta >= sigma^2) holds."""
        return 2.0 * self.speed * self.level >= self.volatility ** 2


class CoxIngersollRoss:
    """CIR short-rate/intensity model with closed-form bond prices."""

    def __init__(self, params: CirParameters,
                 discretization: Discretization = Discretization.QUADRATIC_EXPONENTIAL):
        self.params = params
        self.discretization = Discretization(discretization)

    @property
    def k(self) -> float:
        return self.params.speed

    @property
    def theta(self) -> float:
        return self.params.level

    @property
    def sigma(self) -> float:
        return self.params.volatility

    @property
    def x0(self) -> float:
        return self.params.x0

    def process(self, max_evaluations: int = 100) -> CoxIngersollRossProcess:
        """The diffusion driving the model, discretized with the model's scheme."""
        return CoxIngersollRossProcess(
            speed=self.k,
            volatility=self.sigma,
            x0=self.x0,
            level=self.theta,
            discretization=self.discretization,
            max_evaluations=max_evaluations,
        )

    def _h(self) -> float:
        return np.sqrt(self.k * self.k + 2.0 * self.sigma * self.sigma)

    def A(self, t: float, T: float) -> float:
        sigma2 = self.sigma * self.sigma
        h = self._h()
        numerator = 2.0 * h * np.exp(0.5 * (self.k + h) * (T - t))
        denominator = 2.0 * h + (self.k + h) * (np.exp((T - t) * h) - 1.0)
        value = np.log(numerator / denominator) * 2.0 * self.k * self.theta / sigma2
        return float(np.exp(value))

    def B(self, t: float, T: float) -> float:
        h = self._h()
        temp = np.exp((T - t) * h) - 1.0
        numerator = 2.0 * temp
        denominator = 2.0 * h + (self.k + h) * temp
        return float(numerator / denominator)

    def discount_bond(self, t: float, T: float, x: float) -> float:
        """
        P(t, T, x) = A(t,T) * exp(-B(t,T) * x).

        Args:
            t: Start time (years)
            T: End time (years), T >= t
            x: Intensity at t; may be negative for untruncated schemes
        """
        if T < t:
            raise InvalidParameterError(f"bond maturity {T} precedes start {t}")
        return self.A(t, T) * float(np.exp(-self.B(t, T) * x))

    def discount_bond_option(self, option_type: OptionType, strike: float,
                             maturity: float, bond_maturity: float) -> float:
        """
        European option on a zero-coupon bond (Cox, Ingersoll & Ross, 1985).

        Args:
            option_type: CALL or PUT
            strike: Strike price of the bond, must be positive
            maturity: Option expiry t
            bond_maturity: Bond maturity s > t
        """
        if strike <= 0:
            raise InvalidParameterError(f"strike must be positive, got {strike}")
        option_type = OptionType(option_type)

        discount_t = self.discount_bond(0.0, maturity, self.x0)
        discount_s = self.discount_bond(0.0, bond_maturity, self.x0)

        if maturity < EXPIRY_EPSILON:
            if option_type is OptionType.CALL:
                return max(discount_s - strike, 0.0)
            return max(strike - discount_s, 0.0)

        sigma2 = self.sigma * self.sigma
        h = self._h()
        b = self.B(maturity, bond_maturity)
        rho = 2.0 * h / (sigma2 * (np.exp(h * maturity) - 1.0))
        psi = (self.k + h) / sigma2
        df = 4.0 * self.k * self.theta / sigma2
        ncps = 2.0 * rho * rho * self.x0 * np.exp(h * maturity) / (rho + psi + b)
        ncpt = 2.0 * rho * rho * self.x0 * np.exp(h * maturity) / (rho + psi)

        z = np.log(self.A(maturity, bond_maturity) / strike) / b
        call = (discount_s * noncentral_chi2_cdf(2.0 * z * (rho + psi + b), df, ncps)
                - strike * discount_t * noncentral_chi2_cdf(2.0 * z * (rho + psi), df, ncpt))

        if option_type is OptionType.CALL:
            return float(call)
        return float(call - discount_s + strike * discount_t)
