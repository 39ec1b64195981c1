import logging

from django.db import transaction

from ..exceptions import ContactInUseError, LedgerValidationError, RecordNotFound
from ..models import Contact
from ..models.contact import CONTACT_TYPES
from .values import to_amount

logger = logging.getLogger(__name__)

VALID_CONTACT_TYPES = {code for code, _ in CONTACT_TYPES}
UPDATABLE_FIELDS = ("code", "name", "email", "phone", "contact_type",
                    "credit_terms", "credit_limit")


def get_contact(company, contact_id):
    try:
        return Contact.objects.for_company(company).get(pk=contact_id)
    except (Contact.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound(f"Contact {contact_id} not found")


def list_contacts(company, contact_type=None):
    """contact_type="CUSTOMER" also returns BOTH (same for VENDOR)."""
    qs = Contact.objects.for_company(company)
    if contact_type:
        contact_type = contact_type.upper()
        if contact_type in ("CUSTOMER", "VENDOR"):
            qs = qs.filter(contact_type__in=(contact_type, "BOTH"))
        else:
            qs = qs.filter(contact_type=contact_type)
    return list(qs.order_by("name", "id"))


def _apply(contact, changes):
    # Copy validated values onto the (unsaved or locked) contact
    if "name" in changes:
        contact.name = (changes["name"] or "").strip()
        if not contact.name:
            raise LedgerValidationError("Contact name is required")
    if "code" in changes:
        contact.code = (changes["code"] or "").strip() or None
    if "email" in changes:
        contact.email = (changes["email"] or "").strip() or None
    if "phone" in changes:
        contact.phone = (changes["phone"] or "").strip() or None
    if "contact_type" in changes:
        contact_type = (changes["contact_type"] or "CUSTOMER").strip().upper()
        if contact_type not in VALID_CONTACT_TYPES:
            raise LedgerValidationError(
                f"Contact type must be one of {sorted(VALID_CONTACT_TYPES)}")
        contact.contact_type = contact_type
    if "credit_terms" in changes:
        terms = changes["credit_terms"]
        if terms in (None, ""):
            contact.credit_terms = None
        else:
            try:
                contact.credit_terms = int(terms)
            except (TypeError, ValueError):
                raise LedgerValidationError(
                    f"Credit terms must be a number of days, got {terms!r}")
            if contact.credit_terms < 0:
                raise LedgerValidationError("Credit terms must be >= 0 days")
    if "credit_limit" in changes:
        limit = to_amount(changes["credit_limit"], "Credit limit",
                          default=None)
        if limit is not None and limit < 0:
            raise LedgerValidationError("Credit limit must be >= 0")
        contact.credit_limit = limit


def create_contact(company, name, **fields):
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise LedgerValidationError(
            f"Unknown contact fields: {sorted(unknown)}")
    contact = Contact(company=company)
    _apply(contact, {"name": name, **fields})
    contact.save()
    logger.info("Created contact %s id=%s for company %s",
                contact.name, contact.pk, company.pk)
    return contact


def update_contact(company, contact_id, **changes):
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise LedgerValidationError(
            f"Cannot update contact fields: {sorted(unknown)}")
    with transaction.atomic():
        contact = get_contact(company, contact_id)
        _apply(contact, changes)
        contact.save()
    logger.info("Updated contact id=%s for company %s: %s",
                contact.pk, company.pk, sorted(changes))
    return contact


def delete_contact(company, contact_id):
    """Contacts referenced by invoices or bills are kept."""
    with transaction.atomic():
        contact = get_contact(company, contact_id)
        invoices = contact.invoices.count()
        bills = contact.bills.count()
        if invoices or bills:
            raise ContactInUseError(
                f"Contact {contact.name} is used by {invoices} invoices "
                f"and {bills} bills and cannot be deleted")
        contact.delete()
    logger.info("Deleted contact id=%s for company %s", contact_id, company.pk)
