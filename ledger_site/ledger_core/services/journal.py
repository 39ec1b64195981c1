import logging

from django.db import transaction

from ..conf import ledger_setting
from ..exceptions import (EmptyEntryError, InvalidAccountError,
                          LedgerValidationError, RecordNotFound,
                          UnbalancedJournalError)
from ..models import Account, JournalEntry, JournalLine
from .periods import date_range_filter
from .sequences import create_numbered
from .values import ZERO, to_amount, to_date

logger = logging.getLogger(__name__)


# ----------------------------
# Journal-related workflows
# ----------------------------
def _prepare_lines(lines):
    """
    Parse raw line dicts into (account_id, description, debit, credit).
    Lines with neither a debit nor a credit carry nothing and are dropped.
    """
    prepared = []
    for idx, raw in enumerate(lines or [], start=1):
        debit = to_amount(raw.get("debit"), f"Line {idx} debit")
        credit = to_amount(raw.get("credit"), f"Line {idx} credit")
        if debit < 0 or credit < 0:
            raise LedgerValidationError(
                f"Line {idx}: negative amounts are not allowed "
                f"(debit={debit}, credit={credit})")
        if debit == 0 and credit == 0:
            continue
        prepared.append((raw.get("account_id"),
                         (raw.get("description") or "").strip() or None,
                         debit, credit))
    return prepared


def _resolve_accounts(company, prepared):
    """Map every referenced id to an Account of this company, or fail."""
    wanted = {}
    for account_id, *_ in prepared:
        try:
            wanted[account_id] = int(account_id)
        except (TypeError, ValueError):
            raise InvalidAccountError(
                f"Account {account_id!r} does not exist for this company")

    found = Account.objects.for_company(company).in_bulk(set(wanted.values()))
    for raw_id, pk in wanted.items():
        if pk not in found:
            raise InvalidAccountError(
                f"Account {raw_id} does not exist for this company")
    return {raw_id: found[pk] for raw_id, pk in wanted.items()}


def create_journal_entry(company, date, lines, description=None,
                         reference=None):
    """
    Validate and persist one balanced entry with its lines.

    All checks run before anything is written; the header and every
    line are inserted in one transaction, so a failure leaves no trace.
    """
    entry_date = to_date(date)
    prepared = _prepare_lines(lines)
    if not prepared:
        raise EmptyEntryError(
            "Journal entry needs at least one line with a debit or credit")

    total_debit = sum((debit for _, _, debit, _ in prepared), ZERO)
    total_credit = sum((credit for _, _, _, credit in prepared), ZERO)
    if abs(total_debit - total_credit) > ledger_setting("BALANCE_TOLERANCE"):
        logger.warning(
            "Rejected journal entry for company %s: debits=%s credits=%s",
            company.pk, total_debit, total_credit)
        raise UnbalancedJournalError(
            f"Journal not balanced: debits={total_debit}, "
            f"credits={total_credit}")

    accounts = _resolve_accounts(company, prepared)

    def write(entry_no):
        je = JournalEntry.objects.create(
            company=company,
            entry_no=entry_no,
            date=entry_date,
            description=(description or "").strip() or None,
            reference=(reference or "").strip() or None,
        )
        JournalLine.objects.bulk_create([
            JournalLine(
                company=company,
                journal=je,
                account=accounts[account_id],
                description=line_desc,
                debit=debit,
                credit=credit,
            )
            for account_id, line_desc, debit, credit in prepared
        ])
        return je

    with transaction.atomic():
        # numbered per year of the entry's own date
        je = create_numbered(company, f"JE-{entry_date.year}",
                             JournalEntry, "entry_no", write)

    logger.info("Created journal entry %s id=%s for company %s (%s lines, %s)",
                je.entry_no, je.pk, company.pk, len(prepared), total_debit)
    return je


def get_journal_entry(company, entry_id):
    try:
        return (JournalEntry.objects.for_company(company)
                .prefetch_related("lines__account").get(pk=entry_id))
    except (JournalEntry.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound(f"Journal entry {entry_id} not found")


def delete_journal_entry(company, entry_id):
    """Remove an entry together with all of its lines."""
    with transaction.atomic():
        try:
            je = (JournalEntry.objects.for_company(company)
                  .select_for_update().get(pk=entry_id))
        except (JournalEntry.DoesNotExist, ValueError, TypeError):
            raise RecordNotFound(f"Journal entry {entry_id} not found")
        entry_no = je.entry_no
        # lines first, explicitly, then the header
        removed = JournalLine.objects.filter(journal=je).delete()[0]
        je.delete()

    logger.info("Deleted journal entry %s (%s lines) for company %s",
                entry_no, removed, company.pk)
    return entry_no


def list_entries(company, date_from=None, date_to=None):
    """Entries dated in [date_from, date_to] (both ends inclusive)."""
    qs = JournalEntry.objects.for_company(company).filter(
        **date_range_filter("date", date_from, date_to))
    return list(qs.order_by("date", "entry_no", "id")
                .prefetch_related("lines__account"))
