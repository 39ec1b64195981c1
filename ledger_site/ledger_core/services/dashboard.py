import datetime
import logging
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from ..conf import ledger_setting
from ..models import Contact, Invoice, JournalLine
from .aging import days_overdue
from .consistency import consistent_read
from .periods import add_months, month_filter, month_window, trailing_months
from .reports import profit_and_loss
from .values import ZERO, money

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def revenue_change(this_month, last_month):
    """
    Month-over-month change in percent, 2 dp.
    From a zero base: 100 when there is any revenue now, else 0.
    """
    if last_month == 0:
        return Decimal("100.00") if this_month > 0 else Decimal("0.00")
    return money((this_month - last_month) / last_month * HUNDRED)


def _paid_total(company, start, end):
    # PAID invoice totals dated in [start, end)
    agg = (Invoice.objects.for_company(company)
           .filter(status="PAID", **month_filter("date", start, end))
           .aggregate(total=Sum("total")))
    return money(agg["total"] or ZERO)


def _expense_outflow(company, start, end):
    # Σ(debit − credit) of EXPENSE lines dated in [start, end)
    agg = (JournalLine.objects.for_company(company)
           .filter(account__ac_type="EXPENSE",
                   **month_filter("journal__date", start, end))
           .aggregate(debit=Sum("debit"), credit=Sum("credit")))
    return money((agg["debit"] or ZERO) - (agg["credit"] or ZERO))


def cash_flow_series(company, today, months=None):
    """
    Trailing months, oldest first: money_in is PAID invoices, money_out
    is expense postings floored at zero, and net_cash is the running
    balance carried across the whole window (not the month's own delta).
    """
    months = months or ledger_setting("DASHBOARD_MONTHS")
    series = []
    running = ZERO
    for start, end in trailing_months(today, months):
        money_in = _paid_total(company, start, end)
        money_out = max(_expense_outflow(company, start, end), ZERO)
        running += money_in - money_out
        series.append({
            "month": start.strftime("%Y-%m"),
            "label": start.strftime("%b"),
            "money_in": money_in,
            "money_out": money_out,
            "net_cash": running,
        })
    return series


def top_expenses(company, start, end, limit=None):
    """
    Largest positive expense accounts in [start, end); each percentage
    is relative to the shown accounts only, not to all expenses.
    """
    limit = limit or ledger_setting("DASHBOARD_TOP_EXPENSES")
    grouped = (
        JournalLine.objects.for_company(company)
        .filter(account__ac_type="EXPENSE",
                **month_filter("journal__date", start, end))
        .values("account_id", "account__code", "account__name")
        .annotate(total_debit=Sum("debit"), total_credit=Sum("credit"))
    )
    items = []
    for row in grouped:
        amount = money((row["total_debit"] or ZERO) -
                       (row["total_credit"] or ZERO))
        if amount > 0:
            items.append({"account_id": row["account_id"],
                          "code": row["account__code"],
                          "name": row["account__name"],
                          "amount": amount})

    items.sort(key=lambda item: (-item["amount"], item["code"]))
    items = items[:limit]
    shown = sum((item["amount"] for item in items), ZERO)
    for item in items:
        item["percentage"] = money(item["amount"] / shown * HUNDRED)
    return items


def _invoice_summary(invoice, today):
    return {
        "id": invoice.pk,
        "invoice_no": invoice.invoice_no,
        "contact_name": invoice.contact.name,
        "date": invoice.date,
        "due_date": invoice.due_date,
        "total": invoice.total,
        "status": invoice.display_status(today),
        "days_overdue": max(days_overdue(invoice.due_date, today), 0),
    }


def dashboard_summary(company, today=None):
    """Everything the landing page shows, read in one consistent pass."""
    today = today or timezone.localdate()
    this_start, next_start = month_window(today)
    last_start = add_months(this_start, -1)
    limit = ledger_setting("DASHBOARD_LIST_LIMIT")

    with consistent_read("Dashboard"):
        revenue_this = _paid_total(company, this_start, next_start)
        revenue_last = _paid_total(company, last_start, this_start)

        invoices = Invoice.objects.for_company(company)
        outstanding = invoices.open().aggregate(total=Sum("total"))
        active_customers = (Contact.objects.for_company(company)
                            .filter(contact_type__in=("CUSTOMER", "BOTH"))
                            .count())

        overdue = (invoices.overdue(today).select_related("contact")
                   .order_by("due_date", "id"))
        overdue_count = overdue.count()
        overdue_list = [_invoice_summary(inv, today)
                        for inv in overdue[:limit]]
        recent = [_invoice_summary(inv, today)
                  for inv in invoices.select_related("contact")
                  .order_by("-date", "-id")[:limit]]

        # month windows are half-open; the P&L filter is inclusive
        month_pl = profit_and_loss(
            company, this_start, next_start - datetime.timedelta(days=1))
        cash_flow = cash_flow_series(company, today)
        expenses = top_expenses(company, this_start, next_start)

    logger.debug("Dashboard for company %s as of %s", company.pk, today)
    return {
        "as_of": today,
        "revenue_this_month": revenue_this,
        "revenue_last_month": revenue_last,
        "revenue_change": revenue_change(revenue_this, revenue_last),
        "outstanding_receivables": money(outstanding["total"] or ZERO),
        "active_customers": active_customers,
        "overdue_invoices": {"count": overdue_count, "list": overdue_list},
        "recent_invoices": recent,
        "profit_and_loss": {
            "revenue": month_pl["total_revenue"],
            "cogs": month_pl["total_cogs"],
            "expenses": month_pl["total_expenses"],
            "gross_profit": month_pl["gross_profit"],
            "net_profit": month_pl["net_profit"],
        },
        "cash_flow": cash_flow,
        "top_expenses": expenses,
    }
