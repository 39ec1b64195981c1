import logging
from collections import defaultdict

from django.db import IntegrityError, transaction

from ..coa_templates import template_for
from ..exceptions import (AccountInUseError, DuplicateAccountCodeError,
                          InvalidParentAccountError, LedgerValidationError,
                          RecordNotFound)
from ..models import Account
from ..models.account import AC_TYPES

logger = logging.getLogger(__name__)

VALID_TYPES = {code for code, _ in AC_TYPES}


# ----------------------------
# Chart of accounts workflows
# ----------------------------
def get_account(company, account_id):
    # Tenant-scoped lookup: another company's account is "not found"
    try:
        return Account.objects.for_company(company).get(pk=account_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound(f"Account {account_id} not found")


def list_accounts(company, active_only=False):
    qs = Account.objects.for_company(company)
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs.order_by("code"))


def _resolve_parent(company, parent_id):
    if parent_id in (None, ""):
        return None
    try:
        return Account.objects.for_company(company).get(pk=parent_id)
    except (Account.DoesNotExist, ValueError, TypeError):
        raise InvalidParentAccountError(
            f"Parent account {parent_id} does not exist for this company")


def _clean_type(ac_type):
    value = (ac_type or "").strip().upper()
    if value not in VALID_TYPES:
        raise LedgerValidationError(
            f"Account type must be one of {sorted(VALID_TYPES)}, got {ac_type!r}")
    return value


def _require(value, label):
    value = (value or "").strip()
    if not value:
        raise LedgerValidationError(f"Account {label} is required")
    return value


def create_account(company, code, name, ac_type, parent_id=None,
                   description=None):
    """
    Add one account to the company's chart.
    Fails with DuplicateAccountCodeError / InvalidParentAccountError;
    nothing is written when validation fails.
    """
    code = _require(code, "code")
    name = _require(name, "name")
    ac_type = _clean_type(ac_type)
    parent = _resolve_parent(company, parent_id)

    if Account.objects.for_company(company).filter(code=code).exists():
        logger.warning("Rejected account %s for company %s: duplicate code",
                       code, company.pk)
        raise DuplicateAccountCodeError(
            f"Account code {code} already exists")

    try:
        # savepoint: a concurrent insert of the same code lands here
        with transaction.atomic():
            account = Account.objects.create(
                company=company,
                code=code,
                name=name,
                ac_type=ac_type,
                parent=parent,
                description=description or None,
            )
    except IntegrityError:
        raise DuplicateAccountCodeError(
            f"Account code {code} already exists")

    logger.info("Created account %s (%s) id=%s for company %s",
                code, ac_type, account.pk, company.pk)
    return account


def _would_create_cycle(account, new_parent):
    # Walk up from the new parent; meeting `account` means a loop
    seen = set()
    node = new_parent
    while node is not None and node.pk not in seen:
        if node.pk == account.pk:
            return True
        seen.add(node.pk)
        node = node.parent
    return False


UPDATABLE_FIELDS = ("code", "name", "ac_type", "description",
                    "parent_id", "is_active")


def update_account(company, account_id, **changes):
    """Edit an account in place. Unknown keys are rejected."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise LedgerValidationError(
            f"Cannot update account fields: {sorted(unknown)}")

    with transaction.atomic():
        account = get_account(company, account_id)

        if "code" in changes:
            code = _require(changes["code"], "code")
            clash = (Account.objects.for_company(company)
                     .filter(code=code).exclude(pk=account.pk))
            if clash.exists():
                raise DuplicateAccountCodeError(
                    f"Account code {code} already exists")
            account.code = code

        if "name" in changes:
            account.name = _require(changes["name"], "name")

        if "ac_type" in changes:
            ac_type = _clean_type(changes["ac_type"])
            # Retyping a posted account would move history between reports
            if ac_type != account.ac_type and account.journal_lines.exists():
                raise LedgerValidationError(
                    f"Account {account.code} has postings; "
                    f"its type cannot change from {account.ac_type} to {ac_type}")
            account.ac_type = ac_type

        if "description" in changes:
            account.description = changes["description"] or None

        if "is_active" in changes:
            account.is_active = bool(changes["is_active"])

        if "parent_id" in changes:
            parent = _resolve_parent(company, changes["parent_id"])
            if parent is not None and _would_create_cycle(account, parent):
                raise InvalidParentAccountError(
                    f"Account {parent.code} cannot be the parent of "
                    f"{account.code}: it would create a cycle")
            account.parent = parent

        try:
            with transaction.atomic():
                account.save()
        except IntegrityError:
            raise DuplicateAccountCodeError(
                f"Account code {account.code} already exists")

    logger.info("Updated account id=%s for company %s: %s",
                account.pk, company.pk, sorted(changes))
    return account


def delete_account(company, account_id):
    """
    Delete an account.
    Children are re-rooted (parent cleared) instead of deleted.
    Accounts with journal lines are kept: deleting them would rewrite
    every report that covers those postings.
    """
    with transaction.atomic():
        try:
            account = (Account.objects.for_company(company)
                       .select_for_update().get(pk=account_id))
        except (Account.DoesNotExist, ValueError, TypeError):
            raise RecordNotFound(f"Account {account_id} not found")

        postings = account.journal_lines.count()
        if postings:
            logger.warning("Rejected delete of account %s: %s journal lines",
                           account.code, postings)
            raise AccountInUseError(
                f"Account {account.code} has {postings} journal lines "
                "and cannot be deleted; deactivate it instead")

        # explicit re-rooting; the FK itself is PROTECT
        orphaned = Account.objects.filter(parent=account).update(parent=None)
        account.delete()

    logger.info("Deleted account id=%s for company %s (%s children re-rooted)",
                account_id, company.pk, orphaned)
    return orphaned


def create_accounts_from_template(company, industry):
    """
    Bulk-insert an industry starter chart.
    Codes the company already uses are left untouched.
    """
    with transaction.atomic():
        existing = set(
            Account.objects.for_company(company).values_list("code", flat=True)
        )
        new_accounts = [
            Account(company=company, code=code, name=name, ac_type=ac_type)
            for code, name, ac_type in template_for(industry)
            if code not in existing
        ]
        Account.objects.bulk_create(new_accounts)

    logger.info("Seeded %s accounts (%s template) for company %s",
                len(new_accounts), industry, company.pk)
    return new_accounts


# ----------------------------
# Hierarchy (pure)
# ----------------------------
def _code_key(account):
    return (account.code, account.pk)


def build_hierarchy(accounts):
    """
    Arrange accounts into a forest.

    Returns root nodes {"account", "depth", "children"}, siblings sorted
    by code at every level. An account whose parent is not in `accounts`
    becomes a root. Every account appears exactly once, even when the
    parent links contain a cycle: the lowest-coded member of a cycle
    that is not reachable from a root is promoted to a root.
    Uses an explicit stack, so nesting depth is unbounded.
    """
    accounts = list(accounts)
    by_id = {a.pk: a for a in accounts}

    children = defaultdict(list)
    roots = []
    for acc in accounts:
        if acc.parent_id in by_id and acc.parent_id != acc.pk:
            children[acc.parent_id].append(acc)
        else:
            roots.append(acc)
    for siblings in children.values():
        siblings.sort(key=_code_key)

    visited = set()
    forest = []

    def grow(root_account):
        root = {"account": root_account, "depth": 0, "children": []}
        visited.add(root_account.pk)
        forest.append(root)
        stack = [root]
        while stack:
            node = stack.pop()
            for child in children[node["account"].pk]:
                if child.pk in visited:
                    continue
                visited.add(child.pk)
                child_node = {"account": child,
                              "depth": node["depth"] + 1,
                              "children": []}
                node["children"].append(child_node)
                stack.append(child_node)

    for acc in sorted(roots, key=_code_key):
        grow(acc)

    # whatever is left only hangs off a cycle
    for acc in sorted(accounts, key=_code_key):
        if acc.pk not in visited:
            grow(acc)

    forest.sort(key=lambda node: _code_key(node["account"]))
    return forest


def flatten_hierarchy(forest):
    """Pre-order (account, depth) pairs, the order a COA listing shows."""
    out = []
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        out.append((node["account"], node["depth"]))
        stack.extend(reversed(node["children"]))
    return out
