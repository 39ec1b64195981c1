import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from ..exceptions import (ContactNotFoundError, EmptyInvoiceError,
                          ImmutableInvoiceError, InvalidLineError,
                          InvalidTransitionError, LedgerValidationError,
                          RecordNotFound)
from ..models import Contact, Invoice, InvoiceLine
from ..models.invoice import INV_TRANSITIONS
from .periods import date_range_filter
from .sequences import create_numbered
from .values import AMOUNT_MAX, money, to_date, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
# Precision of the stored InvoiceLine columns; inputs are rounded to it
# before any arithmetic so stored lines reproduce the stored totals
QTY_PLACES = Decimal("0.0001")
PRICE_PLACES = Decimal("0.0001")
PCT_PLACES = Decimal("0.01")
QTY_MAX = Decimal("1e10")
PRICE_MAX = Decimal("1e14")


# ----------------------------
# Pure calculations
# ----------------------------
def _line_parts(quantity, unit_price, discount, tax_rate):
    """Exact (net, tax) of one line, before any rounding."""
    net = quantity * unit_price * (HUNDRED - discount) / HUNDRED
    tax = net * tax_rate / HUNDRED
    return net, tax


def compute_line_amount(quantity, unit_price, discount=0, tax_rate=0):
    """
    amount = quantity × unit_price × (1 − discount/100) × (1 + tax_rate/100)
    rounded to cents. Pure Decimal arithmetic.
    """
    net, tax = _line_parts(Decimal(quantity or 0), Decimal(unit_price or 0),
                           Decimal(discount or 0), Decimal(tax_rate or 0))
    return money(net + tax)


def compute_invoice_totals(lines):
    """
    (subtotal, tax_total, total) for objects carrying quantity /
    unit_price / discount / tax_rate.
    Subtotal and tax are summed exactly and rounded once each;
    total is their sum, so it always equals subtotal + tax_total.
    """
    subtotal = Decimal("0")
    tax_total = Decimal("0")
    for line in lines:
        net, tax = _line_parts(Decimal(line.quantity or 0),
                               Decimal(line.unit_price or 0),
                               Decimal(line.discount or 0),
                               Decimal(line.tax_rate or 0))
        subtotal += net
        tax_total += tax
    subtotal, tax_total = money(subtotal), money(tax_total)
    return subtotal, tax_total, subtotal + tax_total


def validate_line_values(quantity, unit_price, discount, tax_rate,
                         label="Line"):
    if quantity is None or quantity <= 0:
        raise InvalidLineError(f"{label}: quantity must be > 0, got {quantity}")
    if quantity >= QTY_MAX:
        raise InvalidLineError(f"{label}: quantity {quantity} is too large")
    if unit_price is None or unit_price < 0:
        raise InvalidLineError(
            f"{label}: unit price must be >= 0, got {unit_price}")
    if unit_price >= PRICE_MAX:
        raise InvalidLineError(f"{label}: unit price {unit_price} is too large")
    if discount is None or not (0 <= discount <= 100):
        raise InvalidLineError(
            f"{label}: discount must be between 0 and 100, got {discount}")
    if tax_rate is None or not (0 <= tax_rate <= 100):
        raise InvalidLineError(
            f"{label}: tax rate must be between 0 and 100, got {tax_rate}")


# ----------------------------
# Input preparation
# ----------------------------
def _field(raw, key, label, places, default=Decimal("0")):
    value = to_decimal(raw.get(key), label, default=default)
    try:
        return value.quantize(places)
    except InvalidOperation:
        raise InvalidLineError(f"{label} {value} is too large")


def _prepare_lines(company, lines):
    """
    Build unsaved InvoiceLine objects from raw dicts.
    Lines with a blank item name are ignored; client amounts are never read.
    """
    prepared = []
    for idx, raw in enumerate(lines or [], start=1):
        item_name = (raw.get("item_name") or "").strip()
        if not item_name:
            continue
        label = f"Line {idx} ({item_name})"
        # a missing quantity means one unit
        quantity = _field(raw, "quantity", f"{label} quantity", QTY_PLACES,
                          default=Decimal("1"))
        unit_price = _field(raw, "unit_price", f"{label} unit price",
                            PRICE_PLACES)
        discount = _field(raw, "discount", f"{label} discount", PCT_PLACES)
        tax_rate = _field(raw, "tax_rate", f"{label} tax rate", PCT_PLACES)
        validate_line_values(quantity, unit_price, discount, tax_rate, label)
        amount = compute_line_amount(quantity, unit_price, discount, tax_rate)
        if amount >= AMOUNT_MAX:
            raise InvalidLineError(
                f"{label}: amount {amount} is too large; amounts must be "
                f"below {AMOUNT_MAX:,.0f}")

        prepared.append(InvoiceLine(
            company=company,
            item_name=item_name,
            item_code=(raw.get("item_code") or "").strip() or None,
            description=(raw.get("description") or "").strip() or None,
            quantity=quantity,
            unit_price=unit_price,
            discount=discount,
            tax_rate=tax_rate,
            amount=amount,
            sort_order=len(prepared),
        ))

    if not prepared:
        raise EmptyInvoiceError("Invoice needs at least one line with an item name")
    return prepared


def _resolve_contact(company, contact_id):
    try:
        return Contact.objects.for_company(company).get(pk=contact_id)
    except (Contact.DoesNotExist, ValueError, TypeError):
        raise ContactNotFoundError(
            f"Contact {contact_id} does not exist for this company")


def _clean_custom_fields(values):
    # key → string map; None clears it
    if values in (None, ""):
        return None
    if not isinstance(values, dict):
        raise LedgerValidationError("Custom field values must be a key/value map")
    return {str(k): "" if v is None else str(v) for k, v in values.items()}


def _invoice_totals(lines):
    subtotal, tax_total, total = compute_invoice_totals(lines)
    if total >= AMOUNT_MAX:
        raise LedgerValidationError(
            f"Invoice total {total} is too large; amounts must be below "
            f"{AMOUNT_MAX:,.0f}")
    return subtotal, tax_total, total


def _check_dates(issue_date, due_date):
    if due_date < issue_date:
        raise LedgerValidationError(
            f"Due date {due_date} is before invoice date {issue_date}")


# ----------------------------
# Invoice workflows
# ----------------------------
def create_invoice(company, contact_id, date, due_date, lines, notes=None,
                   template_ref=None, custom_field_values=None):
    """
    Create a DRAFT invoice with its lines in one transaction.
    Totals are always recomputed here from the lines.
    """
    contact = _resolve_contact(company, contact_id)
    issue_date = to_date(date, "date")
    due = to_date(due_date, "due date")
    _check_dates(issue_date, due)
    custom = _clean_custom_fields(custom_field_values)
    prepared = _prepare_lines(company, lines)
    subtotal, tax_total, total = _invoice_totals(prepared)

    def write(invoice_no):
        invoice = Invoice.objects.create(
            company=company,
            contact=contact,
            invoice_no=invoice_no,
            date=issue_date,
            due_date=due,
            status="DRAFT",
            subtotal=subtotal,
            tax_total=tax_total,
            total=total,
            notes=(notes or "").strip() or None,
            template_ref=template_ref or None,
            custom_field_values=custom,
        )
        for line in prepared:
            line.invoice = invoice
        InvoiceLine.objects.bulk_create(prepared)
        return invoice

    year = timezone.localdate().year
    with transaction.atomic():
        invoice = create_numbered(company, f"INV-{year}", Invoice,
                                  "invoice_no", write)

    logger.info("Created invoice %s id=%s for company %s (total %s)",
                invoice.invoice_no, invoice.pk, company.pk, total)
    return invoice


def get_invoice(company, invoice_id):
    try:
        return (Invoice.objects.for_company(company)
                .select_related("contact")
                .prefetch_related("lines").get(pk=invoice_id))
    except (Invoice.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound(f"Invoice {invoice_id} not found")


def _lock_invoice(company, invoice_id):
    try:
        return (Invoice.objects.for_company(company)
                .select_for_update().get(pk=invoice_id))
    except (Invoice.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound(f"Invoice {invoice_id} not found")


def list_invoices(company, status=None, contact_id=None, date_from=None,
                  date_to=None, today=None):
    """
    Newest first. status="OVERDUE" selects the computed overdue set,
    the same rule display_status applies.
    """
    qs = Invoice.objects.for_company(company)
    if status:
        status = status.upper()
        if status == "OVERDUE":
            qs = qs.overdue(today or timezone.localdate())
        else:
            qs = qs.filter(status=status)
    if contact_id:
        qs = qs.filter(contact_id=contact_id)
    qs = qs.filter(**date_range_filter("date", date_from, date_to))
    return list(qs.select_related("contact").order_by("-date", "-id"))


UPDATABLE_FIELDS = ("contact_id", "date", "due_date", "lines", "notes",
                    "template_ref", "custom_field_values")


def update_invoice(company, invoice_id, **changes):
    """
    Edit a DRAFT or CANCELLED invoice. Passing `lines` replaces every
    line; totals are recomputed in the same transaction.
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise LedgerValidationError(
            f"Cannot update invoice fields: {sorted(unknown)}")

    with transaction.atomic():
        invoice = _lock_invoice(company, invoice_id)
        if not invoice.is_editable:
            logger.warning("Rejected edit of invoice %s in status %s",
                           invoice.invoice_no, invoice.status)
            raise ImmutableInvoiceError(
                f"Invoice {invoice.invoice_no} is {invoice.status}; only "
                "DRAFT or CANCELLED invoices can be edited")

        # validate everything before touching a row
        if "contact_id" in changes:
            invoice.contact = _resolve_contact(company, changes["contact_id"])
        if "date" in changes:
            invoice.date = to_date(changes["date"], "date")
        if "due_date" in changes:
            invoice.due_date = to_date(changes["due_date"], "due date")
        _check_dates(invoice.date, invoice.due_date)
        if "notes" in changes:
            invoice.notes = (changes["notes"] or "").strip() or None
        if "template_ref" in changes:
            invoice.template_ref = changes["template_ref"] or None
        if "custom_field_values" in changes:
            invoice.custom_field_values = _clean_custom_fields(
                changes["custom_field_values"])
        new_lines = None
        if "lines" in changes:
            new_lines = _prepare_lines(company, changes["lines"])
            lines = new_lines
        else:
            lines = list(invoice.lines.all())
        invoice.subtotal, invoice.tax_total, invoice.total = \
            _invoice_totals(lines)

        if new_lines is not None:
            InvoiceLine.objects.filter(invoice=invoice).delete()
            for line in new_lines:
                line.invoice = invoice
            InvoiceLine.objects.bulk_create(new_lines)
        invoice.save()

    logger.info("Updated invoice %s for company %s: %s",
                invoice.invoice_no, company.pk, sorted(changes))
    return invoice


def transition_status(company, invoice_id, new_status):
    """
    Move an invoice along DRAFT → SENT → PAID, DRAFT → PAID,
    DRAFT / SENT → CANCELLED. OVERDUE is never a target.
    """
    target = (new_status or "").strip().upper()
    with transaction.atomic():
        invoice = _lock_invoice(company, invoice_id)
        current = invoice.status
        if target not in INV_TRANSITIONS.get(current, ()):
            logger.warning("Rejected invoice %s transition %s → %s",
                           invoice.invoice_no, current, target)
            raise InvalidTransitionError(
                f"Invoice {invoice.invoice_no} cannot go from "
                f"{current} to {target or 'an empty status'}")
        invoice.status = target
        invoice.save(update_fields=["status"])

    logger.info("Invoice %s for company %s: %s → %s",
                invoice.invoice_no, company.pk, current, target)
    return invoice


def delete_invoice(company, invoice_id):
    """Only DRAFT or CANCELLED invoices may be deleted; lines go with them."""
    with transaction.atomic():
        invoice = _lock_invoice(company, invoice_id)
        if not invoice.is_editable:
            raise ImmutableInvoiceError(
                f"Invoice {invoice.invoice_no} is {invoice.status}; only "
                "DRAFT or CANCELLED invoices can be deleted")
        invoice_no = invoice.invoice_no
        InvoiceLine.objects.filter(invoice=invoice).delete()
        invoice.delete()

    logger.info("Deleted invoice %s for company %s", invoice_no, company.pk)
    return invoice_no
