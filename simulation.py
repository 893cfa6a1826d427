import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

from config import DEFAULTS
from metrics import PortfolioMetrics, portfolio_metrics
from numeric import finite_or_zero, non_negative, round1, round_half_up
from survival import SurvivalReport, evaluate_survival

LOGGER = logging.getLogger(__name__)
TOL = DEFAULTS["float_tolerance"]

@dataclass(frozen=True)
class ProjectionInputs:
    current_asset: float
    target_expense: float          # monthly
    monthly_contribution: float
    growth_pct: float              # weighted portfolio growth, % per year
    dividend_yield_pct: float      # weighted portfolio yield, % per year
    start_year: int = field(default_factory=lambda: date.today().year)

    def sanitized(self) -> "ProjectionInputs":
        # Money: non-finite/negative -> 0. Growth can't lose more than everything.
        return replace(
            self,
            current_asset=non_negative(self.current_asset),
            target_expense=non_negative(self.target_expense),
            monthly_contribution=non_negative(self.monthly_contribution),
            growth_pct=max(-100.0, finite_or_zero(self.growth_pct)),
            dividend_yield_pct=finite_or_zero(self.dividend_yield_pct),
        )

    @classmethod
    def from_metrics(cls, metrics: PortfolioMetrics, current_asset, target_expense,
                     monthly_contribution, start_year: int = None):
        kwargs = {} if start_year is None else {"start_year": int(start_year)}
        return cls(
            current_asset=current_asset,
            target_expense=target_expense,
            monthly_contribution=monthly_contribution,
            growth_pct=metrics.weighted_growth,
            dividend_yield_pct=metrics.weighted_yield,
            **kwargs,
        )

@dataclass(frozen=True)
class FreedomResult:
    computable: bool
    reached: bool
    freedom_period_index: Optional[int]
    horizon_period_index: int
    start_year: int = 0

    @property
    def end_period_index(self) -> int:
        if self.reached and self.freedom_period_index is not None:
            return self.freedom_period_index
        return self.horizon_period_index

    @property
    def freedom_year(self) -> Optional[int]:
        if not self.reached:
            return None
        return self.start_year + self.freedom_period_index

    @property
    def horizon_year(self) -> int:
        return self.start_year + self.horizon_period_index

    @property
    def beyond_horizon(self) -> bool:
        return self.computable and not self.reached

@dataclass(frozen=True)
class ProjectionSample:
    period: float      # int for whole years, x.5 for half-year marks
    asset: float
    dividend: float    # monthly
    expense: float     # monthly

    @property
    def label(self) -> str:
        return format_period_key(self.period)

def _scaled(amount, factor):
    # 0 x inf is nan; an empty pot stays empty however fast it would grow
    if not amount:
        return np.zeros_like(factor, dtype=float) if isinstance(factor, np.ndarray) else 0.0
    return amount * factor

def asset_at_period(inputs: ProjectionInputs, i: int) -> float:
    """
    Asset after `i` years of annual compounding at the portfolio growth rate,
    with a fixed yearly contribution (12 x monthly) added as an annuity.
    """
    r = inputs.growth_pct / 100.0
    annual_contribution = inputs.monthly_contribution * 12
    try:
        growth = (1 + r) ** i
    except OverflowError:
        growth = math.inf
    annuity = i if r == 0 else (growth - 1) / r
    return _scaled(inputs.current_asset, growth) + _scaled(annual_contribution, annuity)

def monthly_dividend(asset: float, dividend_yield_pct: float) -> float:
    return asset * (dividend_yield_pct / 100.0) / 12

def find_freedom(inputs: ProjectionInputs, horizon: int = DEFAULTS["max_freedom_years"]) -> FreedomResult:
    """
    First whole period i in 0..horizon where the monthly dividend covers the
    target expense. Zero expense or zero yield has no meaningful crossing.
    """
    p = inputs.sanitized()
    horizon = int(horizon)

    if not p.target_expense or not p.dividend_yield_pct:
        LOGGER.debug("freedom search skipped: expense=%s yield=%s", p.target_expense, p.dividend_yield_pct)
        return FreedomResult(False, False, None, horizon, p.start_year)

    for i in range(horizon + 1):
        dividend = monthly_dividend(asset_at_period(p, i), p.dividend_yield_pct)
        if dividend >= p.target_expense:
            LOGGER.debug("freedom reached at period %d (dividend %.2f >= %.2f)", i, dividend, p.target_expense)
            return FreedomResult(True, True, i, horizon, p.start_year)

    LOGGER.debug("freedom not reached within %d periods", horizon)
    return FreedomResult(True, False, None, horizon, p.start_year)

def step_size(duration_years: float, half_year_max_years: float = DEFAULTS["half_year_max_years"]) -> float:
    return 0.5 if duration_years <= half_year_max_years else 1.0

def _period_key(t: float):
    rounded = round1(t)
    if abs(rounded % 1) < TOL:
        return int(round_half_up(rounded))
    return rounded

def format_period_key(t) -> str:
    return str(_period_key(float(t)))

def project_series(inputs: ProjectionInputs, freedom: FreedomResult) -> list[ProjectionSample]:
    """
    Samples from now to the freedom period (or the search horizon), half-year
    steps for short runs and whole years otherwise. Index 0 is "now".
    """
    p = inputs.sanitized()
    duration = freedom.end_period_index
    dt = step_size(duration)
    steps = int(round_half_up(duration / dt))

    r = p.growth_pct / 100.0
    g = (1 + r) ** dt
    contrib_step = p.monthly_contribution * 12 * dt

    idx = np.arange(steps + 1)
    if abs(g - 1) < TOL:
        assets = p.current_asset + contrib_step * idx
    else:
        # Extreme growth overflows to inf rather than raising
        with np.errstate(over="ignore"):
            gi = g ** idx
            assets = _scaled(p.current_asset, gi) + _scaled(contrib_step, (gi - 1) / (g - 1))
    dividends = _scaled(p.dividend_yield_pct / 100.0, assets) / 12

    return [
        ProjectionSample(
            period=_period_key(p.start_year + i * dt),
            asset=round_half_up(float(a)),
            dividend=round_half_up(float(d)),
            expense=p.target_expense,
        )
        for i, a, d in zip(idx, assets, dividends)
    ]

def is_half_year_series(series) -> bool:
    if len(series) < 2:
        return False
    return abs(float(series[1].period) - float(series[0].period) - 0.5) < 1e-6

def series_frame(series) -> pd.DataFrame:
    return pd.DataFrame({
        "period": [s.period for s in series],
        "label": [s.label for s in series],
        "asset": [s.asset for s in series],
        "dividend": [s.dividend for s in series],
        "expense": [s.expense for s in series],
    })

@dataclass(frozen=True)
class ProjectionResult:
    metrics: PortfolioMetrics
    inputs: ProjectionInputs
    freedom: FreedomResult
    series: list
    survival: SurvivalReport

    @property
    def half_year_mode(self) -> bool:
        return is_half_year_series(self.series)

    @property
    def years_to_freedom(self) -> Optional[int]:
        if not self.freedom.reached or not self.series:
            return None
        return self.freedom.freedom_year - int(self.series[0].period)

def run_projection(state,
                   current_asset=DEFAULTS["current_asset"],
                   target_expense=DEFAULTS["target_expense"],
                   monthly_contribution=DEFAULTS["monthly_contribution"],
                   selected_period=None, start_year: int = None,
                   horizon: int = DEFAULTS["max_freedom_years"]) -> ProjectionResult:
    """
    Full recompute for one input snapshot: metrics -> freedom search -> series
    -> survival of the selected period. The step size depends on the search
    result, so the search always runs first.
    """
    entries = getattr(state, "entries", state)
    metrics = portfolio_metrics(entries)
    inputs = ProjectionInputs.from_metrics(metrics, current_asset, target_expense,
                                           monthly_contribution, start_year).sanitized()
    freedom = find_freedom(inputs, horizon)
    series = project_series(inputs, freedom)
    survival = evaluate_survival(series, selected_period)
    return ProjectionResult(metrics, inputs, freedom, series, survival)
