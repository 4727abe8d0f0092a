"""
Single-name CDS contracts and the mid-point valuation engine.

Defaults are assumed to happen half-way through each accrual period:

    coupon leg      = sum_i  S(pay_i) * N * s * tau_i * D(pay_i)
    accrual rebate  = sum_i  P_i * N * s * tau(start_i, mid_i) * D(mid_i)
    default leg     = sum_i  P_i * N * (1 - R) * D(mid_i)

where P_i is the default probability over period i. The protection seller
receives the premium (coupon leg plus rebate) and pays the default leg.

`price_cds` is a pure function of its inputs: nothing is attached to or
mutated on the contract, so concurrent trials can value the same contract
against different survival curves.
"""
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Optional

from .daycount import actual_360
from .errors import InvalidParameterError
from .schedule import Schedule
from .survival_curve import SurvivalCurve
from .yield_curve import YieldCurve


class Protection(Enum):
    BUYER = "buyer"
    SELLER = "seller"


@dataclass
class Coupon:
    accrual_start: date
    accrual_end: date
    payment_date: date
    accrual_period: float   # year fraction
    amount: float


@dataclass
class CreditDefaultSwap:
    """Running-spread CDS paying premium in arrears on the schedule dates."""
    side: Protection
    notional: float
    spread: float                   # running spread, decimal (0.01 = 100bp)
    schedule: Schedule
    day_counter: Callable[[date, date], float] = actual_360

    @property
    def protection_start(self) -> date:
        return self.schedule.start_date

    @property
    def protection_end(self) -> date:
        return self.schedule.end_date

    def coupons(self) -> list[Coupon]:
        result = []
        for start, end in self.schedule.periods():
            tau = self.day_counter(start, end)
            result.append(Coupon(start, end, end, tau, self.notional * self.spread * tau))
        return result

    def accrued_amount(self, coupon: Coupon, d: date) -> float:
        """Premium accrued on `coupon` from its start up to `d`."""
        return self.notional * self.spread * self.day_counter(coupon.accrual_start, d)

    def with_spread(self, spread: float) -> "CreditDefaultSwap":
        return replace(self, spread=spread)


@dataclass
class CdsOption:
    """European option to enter the underlying CDS at `exercise_date`."""
    underlying: CreditDefaultSwap
    exercise_date: Optional[date] = None

    def __post_init__(self):
        if self.exercise_date is None:
            self.exercise_date = self.underlying.protection_start


@dataclass
class CdsValuation:
    npv: float
    coupon_leg_npv: float
    default_leg_npv: float
    accrual_rebate_npv: float
    fair_spread: float


def _has_occurred(d: date, today: date, include_today: Optional[bool]) -> bool:
    # flows on the reference date are treated as paid unless explicitly included
    if include_today is None:
        include_today = False
    return d < today or (d == today and not include_today)


def price_cds(
    cds: CreditDefaultSwap,
    survival_curve: SurvivalCurve,
    recovery_rate: float,
    discount_curve: YieldCurve,
    today: date,
    include_settlement_date_flows: Optional[bool] = None,
) -> CdsValuation:
    """
    Value a CDS with the mid-point engine.

    Args:
        cds: Contract to value
        survival_curve: Default-probability term structure; must cover the
            protection period (its reference date may not follow the first
            accrual start still alive)
        recovery_rate: Recovery as a fraction of notional, in [0, 1]
        discount_curve: Risk-free discounting from its as-of date
        today: Valuation date; flows before it are ignored
        include_settlement_date_flows: Whether flows on `today` still count

    Returns:
        CdsValuation with the NPV from the contract side's perspective
    """
    if not 0.0 <= recovery_rate <= 1.0:
        raise InvalidParameterError(f"recovery rate must lie in [0, 1], got {recovery_rate}")

    coupon_leg = 0.0
    rebate_leg = 0.0
    default_leg = 0.0
    claim = cds.notional * (1.0 - recovery_rate)

    for coupon in cds.coupons():
        if _has_occurred(coupon.payment_date, today, include_settlement_date_flows):
            continue
        start, end = coupon.accrual_start, coupon.accrual_end
        effective_start = today if start <= today <= end else start
        default_date = effective_start + timedelta(days=(end - effective_start).days // 2)

        survival = survival_curve.survival_probability(coupon.payment_date)
        default_prob = survival_curve.default_probability(effective_start, end)
        df_default = discount_curve.discount(default_date)

        coupon_leg += survival * coupon.amount * discount_curve.discount(coupon.payment_date)
        rebate_leg += default_prob * cds.accrued_amount(coupon, default_date) * df_default
        default_leg += default_prob * claim * df_default

    premium = coupon_leg + rebate_leg
    if premium > 0.0:
        fair = cds.spread * default_leg / premium
    else:
        fair = 0.0

    sign = 1.0 if cds.side is Protection.SELLER else -1.0
    return CdsValuation(
        npv=sign * (premium - default_leg),
        coupon_leg_npv=sign * coupon_leg,
        default_leg_npv=-sign * default_leg,
        accrual_rebate_npv=sign * rebate_leg,
        fair_spread=fair,
    )


def fair_spread(
    cds: CreditDefaultSwap,
    survival_curve: SurvivalCurve,
    recovery_rate: float,
    discount_curve: YieldCurve,
    today: date,
) -> float:
    """Running spread that makes the CDS worth zero."""
    if cds.spread == 0.0:
        cds = cds.with_spread(1.0)
    return price_cds(cds, survival_curve, recovery_rate, discount_curve, today).fair_spread
