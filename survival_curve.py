"""
Survival-probability curves built from simulated CIR intensities.

For each Monte Carlo path the terminal intensity x(t_ex) is turned into a
curve of survival probabilities S(t_ex, t_ex + j*dt) = P(t_ex, t_ex + j*dt, x)
using the model's closed-form bond price. Near zero (or negative) intensities
the raw values can increase with maturity, which would imply negative hazard
rates, so the builder clamps every node to its predecessor.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable

import numpy as np

from .daycount import actual_360
from .errors import InvalidParameterError
from .model import CoxIngersollRoss

logger = logging.getLogger(__name__)


@dataclass
class SurvivalCurve:
    """
    Dated survival probabilities, linear in time between nodes.

    The first date is the reference date. Past the last node the hazard
    rate implied by the final segment is held flat when `extrapolate` is
    set, so extrapolated probabilities stay positive and keep decaying.
    """
    dates: list[date]
    probabilities: np.ndarray
    day_counter: Callable[[date, date], float] = actual_360
    extrapolate: bool = True
    _times: np.ndarray = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.probabilities = np.asarray(self.probabilities, dtype=float)
        if len(self.dates) == 0 or len(self.dates) != len(self.probabilities):
            raise InvalidParameterError("dates and probabilities must be non-empty and aligned")
        if any(d2 <= d1 for d1, d2 in zip(self.dates, self.dates[1:])):
            raise InvalidParameterError("survival curve dates must be strictly increasing")
        if np.any(self.probabilities < 0.0) or np.any(self.probabilities > 1.0):
            raise InvalidParameterError("survival probabilities must lie in [0, 1]")
        if np.any(np.diff(self.probabilities) > 0.0):
            raise InvalidParameterError("survival probabilities must be non-increasing")
        self._times = np.array([self.day_counter(self.reference_date, d) for d in self.dates])

    @property
    def reference_date(self) -> date:
        return self.dates[0]

    @property
    def max_date(self) -> date:
        return self.dates[-1]

    def survival_probability(self, d: date) -> float:
        t = self.day_counter(self.reference_date, d)
        if t < 0:
            raise InvalidParameterError(
                f"{d} precedes the curve reference date {self.reference_date}"
            )
        times, probs = self._times, self.probabilities
        if t <= times[-1]:
            return float(np.interp(t, times, probs))
        if not self.extrapolate:
            raise InvalidParameterError(f"{d} is past the last curve date {self.max_date}")
        if len(times) == 1 or probs[-1] == 0.0:
            return float(probs[-1])
        hazard = np.log(probs[-2] / probs[-1]) / (times[-1] - times[-2])
        return float(probs[-1] * np.exp(-hazard * (t - times[-1])))

    def default_probability(self, d1: date, d2: date) -> float:
        """Probability of default between d1 and d2 (d1 <= d2)."""
        if d2 < d1:
            raise InvalidParameterError(f"end date {d2} precedes start date {d1}")
        return self.survival_probability(d1) - self.survival_probability(d2)

    @classmethod
    def from_model(cls, model: CoxIngersollRoss, reference_date: date,
                   end_date: date, steps_per_year: int = 4) -> "SurvivalCurve":
        """Model-implied curve at the current intensity x0."""
        horizon = actual_360(reference_date, end_date)
        if horizon <= 0:
            raise InvalidParameterError("end date must follow the reference date")
        n_steps = max(1, math.ceil(steps_per_year * horizon))
        dt = horizon / n_steps

        dates = [reference_date]
        probs = [1.0]
        for j in range(1, n_steps + 1):
            d = reference_date + timedelta(days=int(round(j * dt * 360)))
            if d <= dates[-1]:
                continue
            dates.append(d)
            probs.append(model.discount_bond(0.0, actual_360(reference_date, d), model.x0))
        return cls(dates=dates, probabilities=enforce_monotone(probs))


def enforce_monotone(probabilities) -> np.ndarray:
    """Clamp each probability to its predecessor so the sequence never increases."""
    repaired = np.array(probabilities, dtype=float)
    for j in range(len(repaired) - 1):
        if repaired[j + 1] > repaired[j]:
            repaired[j + 1] = repaired[j]
    return repaired


def build_survival_curve(
    model: CoxIngersollRoss,
    terminal_value: float,
    exercise_date: date,
    maturity_date: date,
    evaluation_date: date,
    steps_per_year: int = 4,
) -> SurvivalCurve:
    """
    Survival curve from exercise to maturity conditional on x(t_ex).

    Args:
        model: CIR model supplying P(t, T, x)
        terminal_value: Simulated intensity at the exercise date
        exercise_date: Curve anchor, survival probability 1
        maturity_date: End of protection
        evaluation_date: Origin of the Actual/360 model times
        steps_per_year: Curve nodes per year (4 = quarterly)
    """
    if maturity_date <= exercise_date:
        raise InvalidParameterError(
            f"maturity {maturity_date} must follow exercise {exercise_date}"
        )
    t = actual_360(evaluation_date, exercise_date)
    T = actual_360(evaluation_date, maturity_date)
    n_steps = max(1, math.ceil(steps_per_year * (T - t)))
    dt = (T - t) / n_steps

    dates = [exercise_date]
    raw = [1.0]
    for j in range(1, n_steps + 1):
        d = exercise_date + timedelta(days=int(j * dt * 365))
        if d <= dates[-1]:
            continue
        dates.append(d)
        raw.append(model.discount_bond(t, t + j * dt, terminal_value))

    probabilities = enforce_monotone(raw)
    logger.debug("survival curve for x=%.6f: %d nodes, S(T)=%.6f",
                 terminal_value, len(dates), probabilities[-1])
    return SurvivalCurve(dates=dates, probabilities=probabilities)
