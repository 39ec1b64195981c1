"""
Starter charts of accounts, one per industry.

Codes follow the numbering the reports rely on:
1xxx assets, 2xxx liabilities, 3xxx equity, 4xxx revenue,
5xxx cost of goods sold, 6xxx and up operating expenses.
"""

# Rows shared by every industry: (code, name, ac_type)
_BALANCE_SHEET_CORE = [
    ("1000", "Cash and Bank", "ASSET"),
    ("1100", "Accounts Receivable", "ASSET"),
    ("1300", "Prepaid Expenses", "ASSET"),
    ("1510", "Accumulated Depreciation", "ASSET"),
    ("2000", "Accounts Payable", "LIABILITY"),
    ("2100", "SST Payable", "LIABILITY"),
    ("2200", "Accrued Expenses", "LIABILITY"),
    ("3000", "Owner's Equity", "EQUITY"),
    ("3100", "Retained Earnings", "EQUITY"),
]

_OVERHEADS = [
    ("6000", "Rent Expense", "EXPENSE"),
    ("6100", "Utilities", "EXPENSE"),
    ("6200", "Salaries & Wages", "EXPENSE"),
    ("6700", "Bank Charges", "EXPENSE"),
    ("6800", "Miscellaneous Expense", "EXPENSE"),
]

_INDUSTRY_ROWS = {
    "retail": [
        ("1200", "Inventory", "ASSET"),
        ("1500", "Fixed Assets", "ASSET"),
        ("2300", "Loans Payable", "LIABILITY"),
        ("4000", "Sales Revenue", "REVENUE"),
        ("4100", "Other Income", "REVENUE"),
        ("5000", "Cost of Goods Sold", "EXPENSE"),
        ("5100", "Freight & Shipping", "EXPENSE"),
        ("6300", "Marketing & Advertising", "EXPENSE"),
        ("6400", "Office Supplies", "EXPENSE"),
        ("6500", "Insurance", "EXPENSE"),
        ("6600", "Depreciation Expense", "EXPENSE"),
    ],
    "services": [
        ("1200", "Work in Progress", "ASSET"),
        ("1500", "Equipment", "ASSET"),
        ("2300", "Unearned Revenue", "LIABILITY"),
        ("4000", "Service Revenue", "REVENUE"),
        ("4100", "Consulting Revenue", "REVENUE"),
        ("4200", "Other Income", "REVENUE"),
        ("5000", "Cost of Services", "EXPENSE"),
        ("5100", "Subcontractor Costs", "EXPENSE"),
        ("6300", "Professional Development", "EXPENSE"),
        ("6400", "Software & Subscriptions", "EXPENSE"),
        ("6500", "Travel Expense", "EXPENSE"),
        ("6600", "Insurance", "EXPENSE"),
    ],
    "fnb": [
        ("1200", "Food Inventory", "ASSET"),
        ("1210", "Beverage Inventory", "ASSET"),
        ("1500", "Kitchen Equipment", "ASSET"),
        ("4000", "Food Sales", "REVENUE"),
        ("4100", "Beverage Sales", "REVENUE"),
        ("4200", "Other Income", "REVENUE"),
        ("5000", "Cost of Food", "EXPENSE"),
        ("5100", "Cost of Beverages", "EXPENSE"),
        ("6300", "Kitchen Supplies", "EXPENSE"),
        ("6400", "Marketing", "EXPENSE"),
        ("6500", "Delivery Charges", "EXPENSE"),
        ("6600", "Insurance", "EXPENSE"),
    ],
    "manufacturing": [
        ("1200", "Raw Materials", "ASSET"),
        ("1210", "Work in Progress", "ASSET"),
        ("1220", "Finished Goods", "ASSET"),
        ("1500", "Machinery & Equipment", "ASSET"),
        ("2300", "Loans Payable", "LIABILITY"),
        ("4000", "Product Sales", "REVENUE"),
        ("4100", "Other Income", "REVENUE"),
        ("5000", "Raw Materials Used", "EXPENSE"),
        ("5100", "Direct Labour", "EXPENSE"),
        ("5200", "Manufacturing Overhead", "EXPENSE"),
        ("6300", "Maintenance & Repairs", "EXPENSE"),
        ("6400", "Freight & Shipping", "EXPENSE"),
        ("6500", "Insurance", "EXPENSE"),
        ("6600", "Depreciation Expense", "EXPENSE"),
    ],
}

DEFAULT_INDUSTRY = "services"
INDUSTRIES = tuple(sorted(_INDUSTRY_ROWS))


def template_for(industry):
    """Rows for `industry` sorted by code; unknown industries get services."""
    key = (industry or DEFAULT_INDUSTRY).strip().lower()
    rows = _INDUSTRY_ROWS.get(key, _INDUSTRY_ROWS[DEFAULT_INDUSTRY])
    return sorted(_BALANCE_SHEET_CORE + _OVERHEADS + rows)
