"""
Time grids and single-factor path generation.

Each Monte Carlo trial draws its shocks from its own sub-stream,
SeedSequence(seed, spawn_key=(trial,)), so a given seed and trial index
always reproduce the same path no matter how trials are scheduled.
"""
from typing import Optional, Sequence

import numpy as np

from .errors import InvalidParameterError
from .process import CoxIngersollRossProcess


class TimeGrid:
    """Strictly increasing, non-negative simulation times starting at 0."""

    def __init__(self, times: Sequence[float]):
        t = np.asarray(times, dtype=float)
        if t.ndim != 1 or t.size == 0:
            raise InvalidParameterError("time grid needs at least one time")
        if np.any(t < 0):
            raise InvalidParameterError("time grid contains negative times")
        if np.any(np.diff(t) <= 0):
            raise InvalidParameterError("time grid must be strictly increasing")
        if t[0] > 0:
            t = np.concatenate(([0.0], t))
        self.times = t

    @classmethod
    def uniform(cls, end: float, steps: int = 1) -> "TimeGrid":
        """`steps` equal intervals on [0, end]."""
        if end <= 0:
            raise InvalidParameterError(f"grid end must be positive, got {end}")
        if steps < 1:
            raise InvalidParameterError(f"grid needs at least one step, got {steps}")
        return cls(np.linspace(0.0, end, steps + 1))

    @property
    def dt(self) -> np.ndarray:
        return np.diff(self.times)

    @property
    def steps(self) -> int:
        return len(self.times) - 1

    def __len__(self):
        return len(self.times)

    def __repr__(self):
        return f"TimeGrid(steps={self.steps}, end={self.times[-1]:.6f})"


class PathGenerator:
    """
    Drives a CIR process across a time grid with pseudo-random normal shocks.

    Args:
        process: The discretized diffusion
        grid: Simulation checkpoints; one shock is drawn per step
        seed: Non-negative integer seed
    """

    def __init__(self, process: CoxIngersollRossProcess, grid: TimeGrid, seed: int = 0):
        if seed < 0:
            raise InvalidParameterError(f"seed must be non-negative, got {seed}")
        self.process = process
        self.grid = grid
        self.seed = int(seed)
        self._next_trial = 0

    def rng(self, trial: int) -> np.random.Generator:
        """Independent, reproducible random stream for one trial."""
        seq = np.random.SeedSequence(self.seed, spawn_key=(trial,))
        return np.random.Generator(np.random.PCG64(seq))

    def next(self, trial: Optional[int] = None) -> np.ndarray:
        """
        Simulate one path.

        Without `trial`, successive calls walk through trial 0, 1, 2, ...
        and so return fresh independent paths.

        Returns:
            array of length grid.steps + 1 with path[0] == x0
        """
        if trial is None:
            trial = self._next_trial
            self._next_trial += 1

        shocks = self.rng(trial).standard_normal(self.grid.steps)
        times = self.grid.times
        dts = self.grid.dt

        path = np.empty(len(times))
        path[0] = self.process.x0()
        for i in range(self.grid.steps):
            path[i + 1] = self.process.evolve(times[i], path[i], dts[i], shocks[i])
        return path

    def terminal_value(self, trial: int) -> float:
        """Diffusion value at the last grid time for the given trial."""
        return float(self.next(trial)[-1])
