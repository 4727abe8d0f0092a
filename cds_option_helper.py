"""
At-the-money CDS option construction.

The underlying is a protection-seller CDS starting `option_months` after
the evaluation date and running for `length_months`, struck at the forward
fair spread implied by a reference default curve. At that strike the
underlying is worth zero on the reference curve, so the payer and receiver
options coincide.
"""
import logging
from datetime import date

from .cds import CdsOption, CreditDefaultSwap, Protection, fair_spread
from .errors import InvalidParameterError
from .schedule import add_months, adjust_following, make_schedule
from .survival_curve import SurvivalCurve
from .yield_curve import YieldCurve

logger = logging.getLogger(__name__)

# Placeholder running spread; only used to back out the fair spread
PLACEHOLDER_SPREAD = 0.02


def make_atm_cds_option(
    evaluation_date: date,
    option_months: int,
    length_months: int,
    recovery_rate: float,
    default_curve: SurvivalCurve,
    discount_curve: YieldCurve,
    notional: float = 1.0,
    tenor_months: int = 3,
) -> CdsOption:
    """
    Build an ATM option on a forward-starting CDS.

    Args:
        evaluation_date: Pricing date
        option_months: Time to exercise (= protection start), in months
        length_months: Protection length after exercise, in months
        recovery_rate: Recovery used for the forward spread
        default_curve: Reference survival curve covering the protection period
        discount_curve: Risk-free discount curve
        notional: Contract notional
        tenor_months: Premium frequency in months (3 = quarterly)
    """
    if option_months < 1 or length_months < 1:
        raise InvalidParameterError("option and protection lengths must be at least one month")

    start = adjust_following(add_months(evaluation_date, option_months))
    end = adjust_following(add_months(start, length_months))
    schedule = make_schedule(start, end, tenor_months=tenor_months)

    template = CreditDefaultSwap(Protection.SELLER, notional, PLACEHOLDER_SPREAD, schedule)
    forward_spread = fair_spread(template, default_curve, recovery_rate,
                                 discount_curve, evaluation_date)
    logger.info("ATM CDS option %s -> %s, forward spread %.2f bp",
                start, end, forward_spread * 1e4)

    underlying = template.with_spread(forward_spread)
    return CdsOption(underlying=underlying, exercise_date=start)
