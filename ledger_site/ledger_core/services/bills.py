import logging

from django.db import transaction

from ..exceptions import (ContactNotFoundError, InvalidTransitionError,
                          LedgerValidationError, RecordNotFound)
from ..models import Bill, Contact
from ..models.bill import BILL_TRANSITIONS
from .values import to_amount, to_date

logger = logging.getLogger(__name__)


# ----------------------------
# Vendor bill workflows (AP side)
# ----------------------------
def get_bill(company, bill_id):
    try:
        return (Bill.objects.for_company(company)
                .select_related("contact").get(pk=bill_id))
    except (Bill.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound(f"Bill {bill_id} not found")


def list_bills(company, status=None):
    qs = Bill.objects.for_company(company).select_related("contact")
    if status:
        qs = qs.filter(status=status.upper())
    return list(qs.order_by("-date", "-id"))


def create_bill(company, contact_id, date, due_date, total, bill_no=None,
                notes=None):
    """Record a vendor bill as DRAFT."""
    try:
        contact = Contact.objects.for_company(company).get(pk=contact_id)
    except (Contact.DoesNotExist, ValueError, TypeError):
        raise ContactNotFoundError(
            f"Contact {contact_id} does not exist for this company")

    bill_date = to_date(date, "date")
    due = to_date(due_date, "due date")
    if due < bill_date:
        raise LedgerValidationError(
            f"Due date {due} is before bill date {bill_date}")
    amount = to_amount(total, "Bill total")
    if amount < 0:
        raise LedgerValidationError(f"Bill total must be >= 0, got {amount}")

    bill = Bill.objects.create(
        company=company,
        contact=contact,
        bill_no=(bill_no or "").strip() or None,
        date=bill_date,
        due_date=due,
        total=amount,
        notes=(notes or "").strip() or None,
    )
    logger.info("Created bill id=%s (%s) for company %s, total %s",
                bill.pk, bill.bill_no, company.pk, amount)
    return bill


def transition_bill(company, bill_id, new_status):
    """DRAFT → OPEN, DRAFT / OPEN → PAID, DRAFT / OPEN → CANCELLED."""
    target = (new_status or "").strip().upper()
    with transaction.atomic():
        try:
            bill = (Bill.objects.for_company(company)
                    .select_for_update().get(pk=bill_id))
        except (Bill.DoesNotExist, ValueError, TypeError):
            raise RecordNotFound(f"Bill {bill_id} not found")
        current = bill.status
        if target not in BILL_TRANSITIONS.get(current, ()):
            raise InvalidTransitionError(
                f"Bill {bill.bill_no or bill.pk} cannot go from "
                f"{current} to {target or 'an empty status'}")
        bill.status = target
        bill.save(update_fields=["status"])

    logger.info("Bill id=%s for company %s: %s → %s",
                bill.pk, company.pk, current, target)
    return bill
