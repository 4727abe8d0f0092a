"""CIR CDS Option - Monte Carlo pricing of CDS options under CIR default intensity"""
__version__ = "0.1.0"

from .errors import CirCdsOptionError, InvalidParameterError, NumericDomainError
from .daycount import actual_360, actual_365_fixed
from .distributions import (
    InverseNonCentralChiSquare, complementary_normal, cumulative_normal,
    noncentral_chi2_cdf, noncentral_chi2_sf,
)
from .process import CoxIngersollRossProcess, Discretization
from .model import CirParameters, CoxIngersollRoss, OptionType
from .path_generator import PathGenerator, TimeGrid
from .yield_curve import YieldCurve, YieldCurvePoint, flat_curve
from .survival_curve import SurvivalCurve, build_survival_curve, enforce_monotone
from .schedule import Schedule, make_schedule, add_months, adjust_following
from .cds import (
    CdsOption, CdsValuation, Coupon, CreditDefaultSwap, Protection,
    fair_spread, price_cds,
)
from .cds_option_helper import make_atm_cds_option
from .monte_carlo import (
    EngineState, McCirCdsOptionEngine, MonteCarloConfig, MonteCarloResult,
    price_cds_option,
)
