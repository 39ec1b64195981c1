import datetime
import logging

from django.utils import timezone

from ..conf import ledger_setting
from ..models import Bill, Invoice
from .consistency import consistent_read
from .values import ZERO

""" Aging buckets (upper bounds come from LEDGER["AGING_BUCKETS"]):
      days overdue <= 30 → current   (not-yet-due counts as current too)
      31..60            → days31to60
      61..90            → days61to90
      > 90              → over90 """
BUCKET_KEYS = ("current", "days31to60", "days61to90", "over90")

logger = logging.getLogger(__name__)


def days_overdue(due_date, today):
    # Whole days; datetimes are cut down to their date first
    if isinstance(due_date, datetime.datetime):
        due_date = due_date.date()
    if isinstance(today, datetime.datetime):
        today = today.date()
    return (today - due_date).days


def bucket_for(days, bounds=None):
    bounds = bounds or ledger_setting("AGING_BUCKETS")
    for key, upper in zip(BUCKET_KEYS, bounds):
        if days <= upper:
            return key
    return BUCKET_KEYS[-1]


def _empty_row(contact_id, name):
    row = {"contact_id": contact_id, "name": name}
    row.update({key: ZERO for key in BUCKET_KEYS})
    row["total"] = ZERO
    return row


def age_documents(documents, today):
    """
    Bucket open documents per contact.

    `documents` yields dicts with contact_id, name, due_date, amount.
    Column totals are accumulated document by document, independently of
    the row totals. Rows that net to zero are left out; rows are sorted
    by contact name.
    """
    bounds = ledger_setting("AGING_BUCKETS")
    rows = {}
    totals = {key: ZERO for key in BUCKET_KEYS}

    for doc in documents:
        amount = doc["amount"] or ZERO
        bucket = bucket_for(days_overdue(doc["due_date"], today), bounds)
        row = rows.get(doc["contact_id"])
        if row is None:
            row = rows[doc["contact_id"]] = _empty_row(
                doc["contact_id"], doc["name"])
        row[bucket] += amount
        row["total"] += amount
        totals[bucket] += amount

    ordered = sorted(
        (row for row in rows.values() if row["total"] != ZERO),
        key=lambda row: ((row["name"] or "").lower(), row["contact_id"]),
    )
    return {
        "rows": ordered,
        "totals": totals,
        "grand_total": sum(totals.values(), ZERO),
    }


def _open_documents(qs):
    for contact_id, name, due_date, amount in qs.values_list(
            "contact_id", "contact__name", "due_date", "total"):
        yield {"contact_id": contact_id, "name": name,
               "due_date": due_date, "amount": amount}


def aged_receivables(company, today=None):
    """Unpaid customer invoices (DRAFT, SENT and the computed OVERDUE)."""
    today = today or timezone.localdate()
    with consistent_read("Aged receivables"):
        qs = Invoice.objects.for_company(company).open()
        result = age_documents(_open_documents(qs), today)
    logger.debug("Aged receivables for company %s: %s customers, %s",
                 company.pk, len(result["rows"]), result["grand_total"])
    return {
        "as_of": today,
        "customers": result["rows"],
        "totals": result["totals"],
        "grand_total": result["grand_total"],
    }


def aged_payables(company, today=None):
    """Unpaid vendor bills (DRAFT and OPEN)."""
    today = today or timezone.localdate()
    with consistent_read("Aged payables"):
        qs = Bill.objects.for_company(company).filter(
            status__in=("DRAFT", "OPEN"))
        result = age_documents(_open_documents(qs), today)
    return {
        "as_of": today,
        "vendors": result["rows"],
        "totals": result["totals"],
        "grand_total": result["grand_total"],
    }
