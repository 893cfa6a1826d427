# Recommended dividend portfolio. Yields are rough averages; growth is an
# annualised total-return CAGR over the window named in growth_label.
# Not promises, just sane defaults users can override.

PRESETS = [
    {"ticker": "SCHD", "avg_yield_pct": 3.5, "growth_pct": 13.97, "growth_label": "10Y CAGR", "allocation_pct": 50},
    {"ticker": "O", "avg_yield_pct": 5.5, "growth_pct": 6.53, "growth_label": "10Y CAGR", "allocation_pct": 20},
    {"ticker": "JEPI", "avg_yield_pct": 8.0, "growth_pct": 12.14, "growth_label": "Since 2020-05-21 CAGR", "allocation_pct": 20},
    {"ticker": "JEPQ", "avg_yield_pct": 9.0, "growth_pct": 15.50, "growth_label": "Since 2022-05-04 CAGR", "allocation_pct": 10},
]

def lookup(ticker: str):
    """Preset row for a ticker (case-insensitive), or None."""
    wanted = (ticker or "").strip().upper()
    for row in PRESETS:
        if row["ticker"].upper() == wanted:
            return dict(row)
    return None
