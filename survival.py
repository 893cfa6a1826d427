import math
from dataclasses import dataclass
from typing import Optional

from config import DEFAULTS

UNKNOWN = "unknown"

@dataclass(frozen=True)
class SurvivalReport:
    period: Optional[float]
    survival_index: float      # % of expense covered by dividend, 0..999
    status: str
    gap: float                 # dividend - expense (signed, monthly)
    dividend: float
    expense: float
    asset: float

def _as_period(key):
    try:
        t = float(key)
    except (TypeError, ValueError):
        return None
    return t if math.isfinite(t) else None

def select_sample(series, key=None):
    """Sample whose period matches `key`; falls back to the first (now) sample."""
    if not series:
        return None
    wanted = _as_period(key)
    if wanted is not None:
        for sample in series:
            if abs(float(sample.period) - wanted) < 1e-6:
                return sample
    return series[0]

def survival_index(dividend, expense, cap: float = DEFAULTS["survival_cap"]) -> float:
    if not expense:
        return 0.0
    raw = (dividend / expense) * 100
    if math.isnan(raw):
        return raw
    return max(0.0, min(float(cap), raw))

def survival_status(pct) -> str:
    if pct is None or not math.isfinite(pct):
        return UNKNOWN
    t = DEFAULTS["survival_thresholds"]
    if pct < t["caution"]:
        return "danger"
    if pct < t["stable"]:
        return "caution"
    if pct < t["surplus"]:
        return "stable"
    return "surplus"

def evaluate_survival(series, key=None) -> SurvivalReport:
    sample = select_sample(series, key)
    if sample is None:
        return SurvivalReport(None, 0.0, survival_status(0.0), 0.0, 0.0, 0.0, 0.0)
    dividend = sample.dividend or 0
    expense = sample.expense or 0
    pct = survival_index(dividend, expense)
    return SurvivalReport(
        period=sample.period,
        survival_index=pct,
        status=survival_status(pct),
        gap=dividend - expense,
        dividend=dividend,
        expense=expense,
        asset=sample.asset,
    )
