import logging
import re
from dataclasses import dataclass, replace

from config import DEFAULTS
from numeric import clamp, finite_or_zero, round1
from presets import PRESETS, lookup

LOGGER = logging.getLogger(__name__)
TICKER_JUNK = re.compile(r"[^A-Z0-9.-]")

@dataclass(frozen=True)
class PortfolioEntry:
    ticker: str
    growth_pct: float          # annualised % return
    avg_yield_pct: float       # annual % dividend yield
    allocation_pct: float      # 0..100
    growth_label: str = "Manual"

@dataclass(frozen=True)
class PortfolioState:
    """
    The live portfolio collection. Allocations sum to 100 after every
    add/edit/remove; `with_raw_allocation` holds an un-normalized mid-edit value.
    """
    entries: tuple = ()

    def __len__(self):
        return len(self.entries)

    @property
    def allocation_sum(self) -> float:
        return sum(_alloc(e) for e in self.entries)

    def tickers(self) -> list[str]:
        return [e.ticker for e in self.entries]

    def index_of(self, ticker: str):
        wanted = (ticker or "").strip().upper()
        for i, e in enumerate(self.entries):
            if e.ticker.upper() == wanted:
                return i
        return None

    def with_raw_allocation(self, index: int, value: float) -> "PortfolioState":
        _check_index(self, index)
        entries = list(self.entries)
        entries[index] = replace(entries[index], allocation_pct=value)
        return PortfolioState(tuple(entries))

def _alloc(entry: PortfolioEntry) -> float:
    return finite_or_zero(entry.allocation_pct)

def _check_index(state: PortfolioState, index: int):
    if not 0 <= index < len(state.entries):
        raise IndexError(f"No portfolio entry at index {index} (have {len(state.entries)})")

def _absorb_rounding(allocs: list, adjust_idx: int, skip: int = None):
    # Whatever one-decimal rounding lost or gained lands on adjust_idx; what
    # the [0, 100] clamp leaves over walks backwards to earlier entries.
    diff = round1(100 - sum(allocs))
    for i in range(adjust_idx, -1, -1):
        if not diff:
            break
        if i == skip:
            continue
        new = round1(clamp(allocs[i] + diff, 0, 100))
        diff = round1(diff - (new - allocs[i]))
        allocs[i] = new

def _with_allocations(entries, allocs) -> tuple:
    return tuple(replace(e, allocation_pct=a) for e, a in zip(entries, allocs))

def apply_allocation_change(state: PortfolioState, index: int, value: float) -> PortfolioState:
    """
    Set entry `index` to `value` percent and redistribute the rest so the
    collection sums to 100. Others keep their relative proportions (or split
    evenly when they are all zero); the rounding remainder goes to the last
    entry, or the second-to-last when the last one is being edited.
    """
    _check_index(state, index)
    entries = state.entries
    n = len(entries)
    if n == 1:
        return PortfolioState(_with_allocations(entries, [100.0]))

    v = clamp(finite_or_zero(value), 0, 100)
    remaining = 100 - v
    others = [i for i in range(n) if i != index]

    if remaining <= 0:
        allocs = [0.0] * n
        allocs[index] = 100.0
        return PortfolioState(_with_allocations(entries, allocs))

    allocs = [_alloc(e) for e in entries]
    others_sum = sum(allocs[i] for i in others)
    allocs[index] = round1(v)

    if others_sum > 0:
        factor = remaining / others_sum
        for i in others:
            allocs[i] = round1(allocs[i] * factor)
    else:
        each = round1(remaining / len(others))
        for i in others:
            allocs[i] = each

    adjust_idx = n - 2 if index == n - 1 else n - 1
    _absorb_rounding(allocs, adjust_idx, skip=index)
    LOGGER.debug("allocation change: %s -> %.1f%%, others scaled over %.1f%%",
                 entries[index].ticker, allocs[index], remaining)
    return PortfolioState(_with_allocations(entries, allocs))

def normalize_after_remove(entries) -> tuple:
    """Rescale a collection to 100% (equal shares when everything is zero)."""
    entries = tuple(entries)
    if not entries:
        return entries

    total = sum(_alloc(e) for e in entries)
    if not total:
        allocs = [round1(100 / len(entries))] * len(entries)
    else:
        factor = 100 / total
        allocs = [round1(_alloc(e) * factor) for e in entries]
    _absorb_rounding(allocs, len(allocs) - 1)
    return _with_allocations(entries, allocs)

def apply_removal(state: PortfolioState, index: int) -> PortfolioState:
    _check_index(state, index)
    removed = state.entries[index]
    rest = state.entries[:index] + state.entries[index + 1:]
    LOGGER.debug("removed %s (%.1f%%), renormalizing %d entries",
                 removed.ticker, _alloc(removed), len(rest))
    return PortfolioState(normalize_after_remove(rest))

def upsert_entry(state: PortfolioState, entry: PortfolioEntry) -> PortfolioState:
    """
    Add a ticker, or overwrite the existing one with the same symbol
    (case-insensitive), then treat its allocation as the one just set.
    """
    entry = replace(entry, ticker=entry.ticker.strip().upper())
    idx = state.index_of(entry.ticker)
    entries = list(state.entries)
    if idx is None:
        entries.append(entry)
        idx = len(entries) - 1
    else:
        entries[idx] = entry
    return apply_allocation_change(PortfolioState(tuple(entries)), idx, entry.allocation_pct)

def with_entry_fields(state: PortfolioState, index: int, **changes) -> PortfolioState:
    """
    Edit growth, yield or label of one row in place. Allocations are left
    alone unless `allocation_pct` is among the changes.
    """
    _check_index(state, index)
    if "ticker" in changes:
        raise ValueError("Ticker is the row key; use upsert_entry to add another symbol.")
    for key in ("growth_pct", "avg_yield_pct"):
        if key in changes:
            changes[key] = finite_or_zero(changes[key])
    allocation = changes.pop("allocation_pct", None)
    entries = list(state.entries)
    entries[index] = replace(entries[index], **changes)
    state = PortfolioState(tuple(entries))
    if allocation is None:
        return state
    return apply_allocation_change(state, index, allocation)

def clean_ticker(raw) -> str:
    return TICKER_JUNK.sub("", str(raw or "").strip().upper())

def make_entry(ticker, growth_pct, avg_yield_pct,
               allocation_pct=DEFAULTS["new_entry_allocation_pct"],
               growth_label: str = None) -> PortfolioEntry:
    """
    Build an entry from raw form values. Unparseable growth/yield become 0;
    the provenance label comes from the preset when the ticker is a known one.
    """
    symbol = clean_ticker(ticker)
    if not symbol:
        raise ValueError("Ticker must contain at least one of A-Z, 0-9, dot, hyphen.")
    if growth_label is None:
        preset = lookup(symbol)
        growth_label = preset["growth_label"] if preset else DEFAULTS["manual_growth_label"]
    return PortfolioEntry(
        ticker=symbol,
        growth_pct=finite_or_zero(growth_pct),
        avg_yield_pct=finite_or_zero(avg_yield_pct),
        allocation_pct=finite_or_zero(allocation_pct),
        growth_label=growth_label,
    )

def default_state() -> PortfolioState:
    return PortfolioState(tuple(PortfolioEntry(**row) for row in PRESETS))
