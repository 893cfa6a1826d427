import numpy as np
import pandas as pd
from dataclasses import dataclass

@dataclass(frozen=True)
class PortfolioMetrics:
    allocation_sum: float
    weighted_yield: float     # % per year
    weighted_growth: float    # % per year

def _finite(values) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    return np.where(np.isfinite(arr), arr, 0.0)

def portfolio_metrics(entries) -> PortfolioMetrics:
    """
    Allocation-weighted yield and growth. Weights are relative, so the numbers
    stay meaningful while the allocations are mid-edit and don't sum to 100.
    """
    entries = list(entries)
    if not entries:
        return PortfolioMetrics(0.0, 0.0, 0.0)

    w = _finite([e.allocation_pct for e in entries])
    total = float(w.sum())
    if not total:
        return PortfolioMetrics(total, 0.0, 0.0)

    y = _finite([e.avg_yield_pct for e in entries])
    g = _finite([e.growth_pct for e in entries])
    return PortfolioMetrics(
        allocation_sum=total,
        weighted_yield=float((w * y).sum() / total),
        weighted_growth=float((w * g).sum() / total),
    )

def to_frame(entries) -> pd.DataFrame:
    """Entries as a table, with each row's share of the total allocation."""
    df = pd.DataFrame([{
        "ticker": e.ticker,
        "growth_pct": e.growth_pct,
        "growth_label": e.growth_label,
        "avg_yield_pct": e.avg_yield_pct,
        "allocation_pct": e.allocation_pct,
    } for e in entries], columns=["ticker", "growth_pct", "growth_label", "avg_yield_pct", "allocation_pct"])
    alloc = pd.Series(_finite(df["allocation_pct"].to_numpy()), index=df.index)
    total = alloc.sum()
    df["weight"] = alloc / total if total else 0.0
    return df
