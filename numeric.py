import math

def finite_or_zero(x) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0

def non_negative(x) -> float:
    """Money inputs: non-finite or negative values count as 0."""
    v = finite_or_zero(x)
    return v if v > 0 else 0.0

def clamp(v: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, v))

def round_half_up(x: float) -> float:
    # Ties go towards +inf; Python's round() would send 2.5 to 2
    if not math.isfinite(x):
        return x
    return math.floor(x + 0.5)

def round1(x: float) -> float:
    return round_half_up(x * 10) / 10
