import logging

from django.db.models import Sum
from django.utils import timezone

from ..conf import ledger_setting
from ..models import Invoice, JournalLine
from .aging import aged_payables, aged_receivables  # noqa: F401 (re-export)
from .consistency import consistent_read
from .periods import date_range_filter
from .values import ZERO, money

logger = logging.getLogger(__name__)

"""
    Financial statements, read-only.
    - Explicit dateFrom / dateTo filters are inclusive on both ends.
    - Balances are summed in the database, one grouped query per section.
    - Each report runs inside consistent_read(), so its debit and credit
      totals come from the same snapshot.
    - A period without postings is a valid, empty report.
"""


def _account_balances(company, **line_filters):
    """
    One row per account touched by the matching journal lines:
    {account_id, code, name, type, debit, credit}, ordered by code.
    """
    grouped = (
        JournalLine.objects.for_company(company)
        .filter(**line_filters)
        .values("account_id", "account__code", "account__name",
                "account__ac_type")
        .annotate(total_debit=Sum("debit"), total_credit=Sum("credit"))
        .order_by("account__code", "account_id")
    )
    return [
        {
            "account_id": row["account_id"],
            "code": row["account__code"],
            "name": row["account__name"],
            "type": row["account__ac_type"],
            "debit": money(row["total_debit"] or ZERO),
            "credit": money(row["total_credit"] or ZERO),
        }
        for row in grouped
    ]


def is_cogs_code(code):
    """Expense codes in [5000, 6000) are cost of goods sold."""
    low, high = ledger_setting("COGS_CODE_RANGE")
    try:
        numeric = int(code)
    except (TypeError, ValueError):
        # codes like "EXP-01" are operating expenses
        return False
    return low <= numeric < high


def _line(row, amount):
    return {"account_id": row["account_id"], "code": row["code"],
            "name": row["name"], "amount": amount}


# ---------- Trial Balance ----------
def trial_balance(company, date_from=None, date_to=None):
    """
    Net (debit − credit) per account; positive nets go in the debit
    column, negative nets in the credit column. Zero nets are omitted.
    """
    with consistent_read("Trial balance"):
        balances = _account_balances(
            company, **date_range_filter("journal__date", date_from, date_to))

    rows = []
    total_debit = ZERO
    total_credit = ZERO
    for row in balances:
        net = row["debit"] - row["credit"]
        if net == ZERO:
            continue
        debit, credit = (net, ZERO) if net > 0 else (ZERO, -net)
        total_debit += debit
        total_credit += credit
        rows.append({
            "account_id": row["account_id"],
            "code": row["code"],
            "name": row["name"],
            "type": row["type"],
            "debit": debit,
            "credit": credit,
        })

    balanced = abs(total_debit - total_credit) <= ledger_setting(
        "BALANCE_TOLERANCE")
    if not balanced:
        # cannot happen through the journal service; flags manual DB edits
        logger.warning("Trial balance for company %s is out by %s",
                       company.pk, total_debit - total_credit)
    return {
        "date_from": date_from,
        "date_to": date_to,
        "rows": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "balanced": balanced,
    }


# ---------- Profit & Loss ----------
def profit_and_loss(company, date_from=None, date_to=None):
    """
    Revenue, COGS and operating expenses for [date_from, date_to].

    Revenue is the larger of journal revenue and PAID invoices dated in
    the range: some tenants only invoice, some only journal, and neither
    should be under-reported. The two are never added together.
    """
    with consistent_read("Profit and loss"):
        balances = _account_balances(
            company,
            account__ac_type__in=("REVENUE", "EXPENSE"),
            **date_range_filter("journal__date", date_from, date_to),
        )
        paid = (
            Invoice.objects.for_company(company)
            .filter(status="PAID",
                    **date_range_filter("date", date_from, date_to))
            .aggregate(total=Sum("total"))
        )

    revenue, cogs, expenses = [], [], []
    for row in balances:
        if row["type"] == "REVENUE":
            amount = row["credit"] - row["debit"]
            bucket = revenue
        else:
            amount = row["debit"] - row["credit"]
            bucket = cogs if is_cogs_code(row["code"]) else expenses
        if amount != ZERO:
            bucket.append(_line(row, amount))

    journal_revenue = sum((r["amount"] for r in revenue), ZERO)
    invoice_revenue = money(paid["total"] or ZERO)
    total_revenue = max(journal_revenue, invoice_revenue)
    total_cogs = sum((r["amount"] for r in cogs), ZERO)
    total_expenses = sum((r["amount"] for r in expenses), ZERO)
    gross_profit = total_revenue - total_cogs

    return {
        "date_from": date_from,
        "date_to": date_to,
        "revenue": revenue,
        "cogs": cogs,
        "expenses": expenses,
        "journal_revenue": journal_revenue,
        "invoice_revenue": invoice_revenue,
        "total_revenue": total_revenue,
        "total_cogs": total_cogs,
        "total_expenses": total_expenses,
        "gross_profit": gross_profit,
        "net_profit": gross_profit - total_expenses,
    }


# ---------- Balance Sheet ----------
def balance_sheet(company, as_of=None):
    """
    Cumulative balances from inception through `as_of` (inclusive).

    Revenue and expense postings not yet closed to equity show up as
    current_earnings, which is what makes
    assets = liabilities + equity + current_earnings hold.
    """
    as_of = as_of or timezone.localdate()
    with consistent_read("Balance sheet"):
        balances = _account_balances(company, journal__date__lte=as_of)

    sections = {"ASSET": [], "LIABILITY": [], "EQUITY": []}
    current_earnings = ZERO
    for row in balances:
        debit_net = row["debit"] - row["credit"]
        if row["type"] in ("REVENUE", "EXPENSE"):
            # revenue − expense == −(net debit) over both types
            current_earnings -= debit_net
            continue
        # assets are debit-normal, the other two credit-normal
        balance = debit_net if row["type"] == "ASSET" else -debit_net
        if balance != ZERO:
            sections[row["type"]].append({
                "account_id": row["account_id"],
                "code": row["code"],
                "name": row["name"],
                "balance": balance,
            })

    total_assets = sum((r["balance"] for r in sections["ASSET"]), ZERO)
    total_liabilities = sum((r["balance"] for r in sections["LIABILITY"]),
                            ZERO)
    total_equity = sum((r["balance"] for r in sections["EQUITY"]), ZERO)
    liabilities_and_equity = total_liabilities + total_equity + current_earnings

    return {
        "as_of": as_of,
        "assets": sections["ASSET"],
        "liabilities": sections["LIABILITY"],
        "equity": sections["EQUITY"],
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "current_earnings": current_earnings,
        "total_liabilities_and_equity": liabilities_and_equity,
        "balanced": abs(total_assets - liabilities_and_equity)
        <= ledger_setting("BALANCE_TOLERANCE"),
    }
