"""
Monte Carlo CDS option engine with CIR default intensity.

For each trial i = 1..M:

    x_i      = CIR intensity simulated to the exercise date (one step)
    S_i(.)   = survival curve after exercise given x_i
    NPV_i    = mid-point CDS value of the underlying on S_i
    payoff_i = max(NPV_i, 0)

and the option value is (1/M) sum_i payoff_i.

The underlying NPV already discounts its cash flows to the evaluation
date, so no extra discounting from exercise to evaluation is applied to
the average. This is a known approximation and is kept deliberately.

Features:
- Five CIR discretizations (see process.Discretization)
- Reproducible per-trial random sub-streams, identical results whether
  trials run sequentially or on a thread pool
- Order-independent reduction (math.fsum) of the floored payoffs
- Fail-fast: any error from a trial aborts the whole valuation
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

import numpy as np

from .cds import CdsOption, price_cds
from .daycount import actual_360
from .errors import InvalidParameterError
from .model import CoxIngersollRoss
from .path_generator import PathGenerator, TimeGrid
from .survival_curve import build_survival_curve
from .yield_curve import YieldCurve

logger = logging.getLogger(__name__)


@dataclass
class MonteCarloConfig:
    """Configuration for the Monte Carlo CDS option engine."""
    evaluation_date: date
    n_samples: int = 10_000
    seed: int = 42
    recovery_rate: float = 0.4
    include_settlement_date_flows: Optional[bool] = None
    n_workers: int = 1               # >1 runs trials on a thread pool
    steps_per_year: int = 4          # survival curve nodes per year

    def __post_init__(self):
        n = self.n_samples
        if isinstance(n, float):
            if not n.is_integer():
                raise InvalidParameterError(f"sample count must be a whole number, got {n}")
            n = int(n)
        if n <= 0:
            raise InvalidParameterError(f"sample count must be positive, got {n}")
        self.n_samples = n
        if self.seed < 0:
            raise InvalidParameterError(f"seed must be non-negative, got {self.seed}")
        if not 0.0 <= self.recovery_rate <= 1.0:
            raise InvalidParameterError(
                f"recovery rate must lie in [0, 1], got {self.recovery_rate}"
            )
        if self.n_workers < 1:
            raise InvalidParameterError(f"need at least one worker, got {self.n_workers}")
        if self.steps_per_year < 1:
            raise InvalidParameterError(
                f"steps per year must be positive, got {self.steps_per_year}"
            )


@dataclass
class MonteCarloResult:
    value: float          # option value, mean of floored payoffs
    n_samples: int
    n_positive: int       # trials with a strictly positive payoff
    std_error: float


class EngineState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


class McCirCdsOptionEngine:
    """
    Prices a CdsOption by simulating the CIR intensity to exercise.

    Args:
        model: CIR model; its discretization selects the sampler
        discount_curve: Risk-free curve anchored at the evaluation date
        config: Sample count, seed, recovery and evaluation date
    """

    def __init__(self, model: CoxIngersollRoss, discount_curve: YieldCurve,
                 config: MonteCarloConfig):
        self.model = model
        self.discount_curve = discount_curve
        self.config = config
        self.state = EngineState.IDLE
        self.result: Optional[MonteCarloResult] = None

    def _path_generator(self, exercise_time: float) -> PathGenerator:
        grid = TimeGrid.uniform(exercise_time, steps=1)
        return PathGenerator(self.model.process(), grid, seed=self.config.seed)

    def _trial_payoff(self, option: CdsOption, generator: PathGenerator, trial: int) -> float:
        cfg = self.config
        x = generator.terminal_value(trial)
        curve = build_survival_curve(
            self.model, x,
            exercise_date=option.exercise_date,
            maturity_date=option.underlying.protection_end,
            evaluation_date=cfg.evaluation_date,
            steps_per_year=cfg.steps_per_year,
        )
        npv = price_cds(
            option.underlying, curve, cfg.recovery_rate, self.discount_curve,
            today=cfg.evaluation_date,
            include_settlement_date_flows=cfg.include_settlement_date_flows,
        ).npv
        return npv if npv > 0.0 else 0.0

    def calculate(self, option: CdsOption) -> MonteCarloResult:
        """
        Value the option from scratch.

        Raises whatever a trial raises; no partial result is kept.
        """
        cfg = self.config
        n = cfg.n_samples
        payoffs = np.zeros(n)
        self.state = EngineState.RUNNING
        self.result = None
        try:
            exercise_time = actual_360(cfg.evaluation_date, option.exercise_date)
            if exercise_time <= 0:
                raise InvalidParameterError(
                    f"exercise date {option.exercise_date} must follow "
                    f"evaluation date {cfg.evaluation_date}"
                )
            generator = self._path_generator(exercise_time)

            def run_trial(i):
                payoffs[i] = self._trial_payoff(option, generator, i)

            logger.info("MC CDS option: %d samples, scheme=%s, workers=%d, t_ex=%.4f",
                        n, self.model.discretization.value, cfg.n_workers, exercise_time)
            if cfg.n_workers == 1:
                for i in range(n):
                    run_trial(i)
            else:
                with ThreadPoolExecutor(max_workers=cfg.n_workers) as pool:
                    for _ in pool.map(run_trial, range(n)):
                        pass
        except Exception:
            self.state = EngineState.IDLE
            raise

        value = math.fsum(payoffs) / n
        std_error = float(np.std(payoffs, ddof=1) / np.sqrt(n)) if n > 1 else 0.0
        self.result = MonteCarloResult(
            value=value,
            n_samples=n,
            n_positive=int(np.count_nonzero(payoffs)),
            std_error=std_error,
        )
        self.state = EngineState.DONE
        logger.info("MC CDS option value %.8f (std err %.8f, %d/%d in the money)",
                    value, std_error, self.result.n_positive, n)
        return self.result


def price_cds_option(
    option: CdsOption,
    model: CoxIngersollRoss,
    discount_curve: YieldCurve,
    config: MonteCarloConfig,
) -> MonteCarloResult:
    """Convenience wrapper: build an engine and value `option` once."""
    return McCirCdsOptionEngine(model, discount_curve, config).calculate(option)
