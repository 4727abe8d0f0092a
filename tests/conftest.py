"""
Shared test fixtures for the CIR CDS option test suite.
"""
import importlib.util
import os
import sys
from datetime import date

import pytest

# Ensure the repository root is importable as `cir_cds_option`
ROOT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..")
try:
    import cir_cds_option  # noqa: F401
except ImportError:
    _spec = importlib.util.spec_from_file_location(
        "cir_cds_option", os.path.join(ROOT, "__init__.py"),
        submodule_search_locations=[ROOT],
    )
    _module = importlib.util.module_from_spec(_spec)
    sys.modules["cir_cds_option"] = _module
    _spec.loader.exec_module(_module)

from cir_cds_option.model import CirParameters, CoxIngersollRoss
from cir_cds_option.process import Discretization
from cir_cds_option.survival_curve import SurvivalCurve
from cir_cds_option.cds_option_helper import make_atm_cds_option
from cir_cds_option.schedule import add_months
from cir_cds_option.yield_curve import flat_curve


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def evaluation_date():
    """A Monday, so the one-year exercise date needs no weekend roll."""
    return date(2024, 1, 15)


@pytest.fixture
def params():
    """Reference CIR intensity: k=0.5, theta=5%, sigma=10%, x0=5%."""
    return CirParameters(speed=0.5, level=0.05, volatility=0.1, x0=0.05)


@pytest.fixture
def model(params):
    return CoxIngersollRoss(params, Discretization.QUADRATIC_EXPONENTIAL)


@pytest.fixture
def discount_curve(evaluation_date):
    """Flat 2% continuously compounded curve."""
    return flat_curve(evaluation_date, 0.02)


@pytest.fixture
def default_curve(model, evaluation_date):
    """Model-implied survival curve at x0 covering ten years."""
    return SurvivalCurve.from_model(model, evaluation_date, add_months(evaluation_date, 120))


@pytest.fixture
def atm_option(evaluation_date, default_curve, discount_curve):
    """ATM option: exercise in one year into four years of protection."""
    return make_atm_cds_option(
        evaluation_date,
        option_months=12,
        length_months=48,
        recovery_rate=0.4,
        default_curve=default_curve,
        discount_curve=discount_curve,
    )
