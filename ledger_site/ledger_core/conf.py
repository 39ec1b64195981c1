from decimal import Decimal

from django.conf import settings

# Fallbacks for anything missing from settings.LEDGER
DEFAULTS = {
    "BALANCE_TOLERANCE": Decimal("0.01"),
    "COGS_CODE_RANGE": (5000, 6000),
    "AGING_BUCKETS": (30, 60, 90),
    "DASHBOARD_MONTHS": 6,
    "DASHBOARD_TOP_EXPENSES": 8,
    "DASHBOARD_LIST_LIMIT": 10,
    "NUMBER_RETRIES": 1,
}


def ledger_setting(name):
    """Look up a ledger tunable, read fresh so override_settings works."""
    overrides = getattr(settings, "LEDGER", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
