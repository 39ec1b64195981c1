import logging

from django.db import IntegrityError, transaction

from ..conf import ledger_setting
from ..exceptions import NumberConflictError
from ..models import CompanySequence

logger = logging.getLogger(__name__)


# ----------------------------------------
# Per-company document numbering
# (replaces count-then-format numbering)
# ----------------------------------------
def reserve_number(company, name, seed=None):
    """
    Hand out the next value of the `name` counter for `company`.

    The counter row is locked with select_for_update, so two concurrent
    callers can never get the same value. `seed` (an int, or a callable
    returning one) is only consulted when the row does not exist yet: the
    first value handed out is seed + 1. Numbers reserved inside a
    transaction that later rolls back are returned to the pool.
    """
    with transaction.atomic():
        try:
            seq = CompanySequence.objects.select_for_update().get(
                company=company, name=name
            )
        except CompanySequence.DoesNotExist:
            start = seed() if callable(seed) else (seed or 0)
            try:
                # savepoint, so a lost creation race does not poison
                # the caller's transaction
                with transaction.atomic():
                    seq = CompanySequence.objects.create(
                        company=company, name=name, next_value=start + 1
                    )
            except IntegrityError:
                # someone else created the row first → lock theirs
                seq = CompanySequence.objects.select_for_update().get(
                    company=company, name=name
                )

        value = seq.next_value
        seq.next_value = value + 1
        seq.save(update_fields=["next_value", "updated_at"])

    logger.debug("Reserved %s #%s for company %s", name, value, company.pk)
    return value


def format_number(prefix, value):
    # ("INV-2026", 7) → "INV-2026-007"; grows past 3 digits as needed
    return f"{prefix}-{value:03d}"


def next_number(company, prefix, model, field):
    """
    Reserve the next "<prefix>-NNN" for `model`.
    The first time a prefix is used its counter starts after the documents
    that already carry that prefix.
    """
    lookup = {"company": company, f"{field}__startswith": f"{prefix}-"}

    def seed():
        return model._default_manager.filter(**lookup).count()

    return format_number(prefix, reserve_number(company, prefix, seed=seed))


def create_numbered(company, prefix, model, field, create):
    """
    Reserve a number and call create(number) in a savepoint.

    If the insert still collides on the number (a row written outside
    this service), a fresh number is reserved and the insert retried,
    NUMBER_RETRIES times at most.
    """
    retries = ledger_setting("NUMBER_RETRIES")
    for attempt in range(retries + 1):
        number = next_number(company, prefix, model, field)
        try:
            with transaction.atomic():
                return create(number)
        except IntegrityError:
            taken = model._default_manager.filter(
                company=company, **{field: number}).exists()
            if not taken:
                # some other constraint failed; not ours to retry
                raise
            logger.warning("%s %s already taken for company %s (attempt %s)",
                           model.__name__, number, company.pk, attempt + 1)

    raise NumberConflictError(
        f"Could not allocate a unique {model.__name__} number "
        f"with prefix {prefix} after {retries + 1} attempts")
