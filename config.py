# Default inputs and engine constants (money in a single fixed unit, e.g. 10k KRW)
DEFAULTS = {
    # Finances
    "current_asset": 10_000,
    "target_expense": 250,            # monthly
    "monthly_contribution": 150,

    # Freedom search
    "max_freedom_years": 60,          # search horizon (periods)
    "half_year_max_years": 10,        # <= this duration -> half-year steps
    "float_tolerance": 1e-9,

    # Portfolio entries
    "new_entry_allocation_pct": 10,
    "manual_growth_label": "Manual",

    # Survival index
    "survival_cap": 999,
    "survival_thresholds": {          # lower bound (inclusive) of each status
        "caution": 70,
        "stable": 100,
        "surplus": 130,
    },
}
