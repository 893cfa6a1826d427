import math

import pytest

from allocation import (
    PortfolioEntry,
    PortfolioState,
    apply_allocation_change,
    apply_removal,
    clean_ticker,
    default_state,
    make_entry,
    normalize_after_remove,
    upsert_entry,
    with_entry_fields,
)

def _state(*allocs) -> PortfolioState:
    return PortfolioState(tuple(
        PortfolioEntry(ticker=f"T{i}", growth_pct=5.0, avg_yield_pct=3.0, allocation_pct=a)
        for i, a in enumerate(allocs)
    ))

def _allocs(state: PortfolioState) -> list[float]:
    return [e.allocation_pct for e in state.entries]

def _sums_to_100(state: PortfolioState) -> bool:
    return round(sum(_allocs(state)), 1) == 100.0

def test_default_state_sums_to_100() -> None:
    state = default_state()
    assert state.tickers() == ["SCHD", "O", "JEPI", "JEPQ"]
    assert state.allocation_sum == 100

def test_edit_scales_others_proportionally() -> None:
    state = apply_allocation_change(default_state(), 0, 60)
    assert _allocs(state) == pytest.approx([60, 16, 16, 8])
    assert _sums_to_100(state)

def test_edit_to_100_zeroes_everything_else() -> None:
    state = apply_allocation_change(default_state(), 1, 100)
    assert _allocs(state) == [0.0, 100.0, 0.0, 0.0]

def test_edit_value_is_clamped() -> None:
    assert _allocs(apply_allocation_change(default_state(), 2, 250)) == [0.0, 0.0, 100.0, 0.0]

    state = apply_allocation_change(default_state(), 0, -5)
    assert _allocs(state) == pytest.approx([0, 40, 40, 20])

def test_every_edit_sums_to_100() -> None:
    base = default_state()
    for idx in range(len(base)):
        for step in range(0, 201):
            state = apply_allocation_change(base, idx, step * 0.5)
            assert _sums_to_100(state), (idx, step * 0.5, _allocs(state))
            assert all(0 <= a <= 100 for a in _allocs(state))

def test_zero_others_split_evenly_with_rounding_on_last() -> None:
    state = apply_allocation_change(_state(100, 0, 0, 0), 0, 0)
    assert _allocs(state) == pytest.approx([0, 33.3, 33.3, 33.4])
    assert _sums_to_100(state)

def test_rounding_goes_to_second_to_last_when_last_is_edited() -> None:
    state = apply_allocation_change(_state(0, 0, 0, 100), 3, 0)
    assert _allocs(state) == pytest.approx([33.3, 33.3, 33.4, 0])

def test_single_entry_always_holds_everything() -> None:
    assert _allocs(apply_allocation_change(_state(100), 0, 35)) == [100.0]
    assert _allocs(apply_allocation_change(_state(float("nan")), 0, 0)) == [100.0]

def test_non_finite_allocations_count_as_zero() -> None:
    state = apply_allocation_change(_state(float("nan"), 50, 50), 1, 50)
    assert _allocs(state) == pytest.approx([0, 50, 50])

    state = apply_allocation_change(_state(40, 60), 0, float("inf"))
    assert _allocs(state) == [0.0, 100.0]
    assert not any(math.isnan(a) for a in _allocs(state))

def test_renormalizing_is_idempotent() -> None:
    base = default_state()
    again = apply_allocation_change(base, 0, 50)
    assert _allocs(again) == pytest.approx(_allocs(base), abs=0.1)

def test_bad_index_raises() -> None:
    with pytest.raises(IndexError):
        apply_allocation_change(default_state(), 4, 10)
    with pytest.raises(IndexError):
        apply_removal(PortfolioState(), 0)

def test_raw_allocation_is_kept_until_normalized() -> None:
    raw = default_state().with_raw_allocation(0, 80)
    assert raw.allocation_sum == 130
    assert _sums_to_100(apply_allocation_change(raw, 0, 80))

def test_removal_rescales_remaining() -> None:
    state = apply_removal(default_state(), 0)
    assert state.tickers() == ["O", "JEPI", "JEPQ"]
    assert _allocs(state) == pytest.approx([40, 40, 20])

    state = apply_removal(default_state(), 1)
    assert _allocs(state) == pytest.approx([62.5, 25, 12.5])
    assert _sums_to_100(state)

def test_removal_with_all_zero_remainder_gives_equal_shares() -> None:
    state = apply_removal(_state(0, 0, 0, 100), 3)
    assert _allocs(state) == pytest.approx([33.3, 33.3, 33.4])
    assert _sums_to_100(state)

def test_removing_last_entry_leaves_empty_state() -> None:
    state = apply_removal(_state(100), 0)
    assert len(state) == 0
    assert normalize_after_remove([]) == ()

def test_upsert_appends_new_ticker() -> None:
    state = upsert_entry(default_state(), make_entry("vti", 9.5, 1.6))
    assert state.tickers() == ["SCHD", "O", "JEPI", "JEPQ", "VTI"]
    assert _allocs(state) == pytest.approx([45, 18, 18, 9, 10])
    assert state.entries[-1].growth_label == "Manual"
    assert _sums_to_100(state)

def test_upsert_overwrites_existing_case_insensitively() -> None:
    entry = PortfolioEntry(ticker="schd", growth_pct=11.0, avg_yield_pct=3.8, allocation_pct=30)
    state = upsert_entry(default_state(), entry)
    assert state.tickers() == ["SCHD", "O", "JEPI", "JEPQ"]
    assert state.entries[0].growth_pct == 11.0
    assert _allocs(state) == pytest.approx([30, 28, 28, 14])

def test_upsert_into_empty_state() -> None:
    state = upsert_entry(PortfolioState(), make_entry("VYM", 8, 3, allocation_pct=25))
    assert _allocs(state) == [100.0]

def test_make_entry_cleans_and_labels() -> None:
    entry = make_entry(" jepi ", "12.14", None)
    assert entry.ticker == "JEPI"
    assert entry.growth_pct == pytest.approx(12.14)
    assert entry.avg_yield_pct == 0.0
    assert entry.allocation_pct == 10
    assert entry.growth_label == "Since 2020-05-21 CAGR"

    assert clean_ticker("brk.b!") == "BRK.B"
    assert make_entry("x", "abc", float("nan")).growth_pct == 0.0

def test_make_entry_rejects_empty_ticker() -> None:
    with pytest.raises(ValueError):
        make_entry("$$$", 1, 1)

@pytest.mark.parametrize("allocs", [
    (0, 50, 50, 0),
    (10, 45, 45, 0),
    (0, 0, 100, 0),
    (33.3, 33.3, 33.4, 0),
    (0, 70, 30),
    (5, 0, 95, 0, 0),
])
def test_every_edit_sums_to_100_with_zero_entries(allocs) -> None:
    base = _state(*allocs)
    for idx in range(len(base)):
        for step in range(0, 1001):
            state = apply_allocation_change(base, idx, step / 10)
            assert _sums_to_100(state), (allocs, idx, step / 10, _allocs(state))
            assert all(0 <= a <= 100 for a in _allocs(state))
            assert state.entries[idx].allocation_pct == pytest.approx(step / 10)

def test_rounding_overflow_moves_to_earlier_entry() -> None:
    state = apply_allocation_change(_state(0, 50, 50, 0), 0, 0.1)
    assert _allocs(state) == pytest.approx([0.1, 50.0, 49.9, 0.0])
    assert _sums_to_100(state)

def test_field_edit_keeps_allocations() -> None:
    state = with_entry_fields(default_state(), 1, growth_pct=7.25, avg_yield_pct="5.9", growth_label="Manual")
    assert _allocs(state) == [50, 20, 20, 10]
    assert state.entries[1].growth_pct == 7.25
    assert state.entries[1].avg_yield_pct == pytest.approx(5.9)
    assert state.entries[1].growth_label == "Manual"
    assert state.entries[0] == default_state().entries[0]

def test_field_edit_with_allocation_renormalizes() -> None:
    state = with_entry_fields(default_state(), 0, avg_yield_pct=float("nan"), allocation_pct=60)
    assert state.entries[0].avg_yield_pct == 0.0
    assert _allocs(state) == pytest.approx([60, 16, 16, 8])

def test_field_edit_rejects_ticker_and_bad_index() -> None:
    with pytest.raises(ValueError):
        with_entry_fields(default_state(), 0, ticker="VTI")
    with pytest.raises(IndexError):
        with_entry_fields(default_state(), 9, growth_pct=1)
