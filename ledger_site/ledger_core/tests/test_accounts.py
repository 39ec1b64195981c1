from types import SimpleNamespace

import pytest
from django.test import TestCase

from ledger_core.coa_templates import DEFAULT_INDUSTRY, INDUSTRIES, template_for
from ledger_core.exceptions import (AccountInUseError, DuplicateAccountCodeError,
                                    InvalidParentAccountError,
                                    LedgerValidationError, RecordNotFound)
from ledger_core.models import Account, Company
from ledger_core.services.accounts import (build_hierarchy, create_account,
                                           create_accounts_from_template,
                                           delete_account, flatten_hierarchy,
                                           get_account, list_accounts,
                                           update_account)
from ledger_core.services.journal import create_journal_entry


class AccountServiceTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co")
        self.other = Company.objects.create(name="Other Co")
        self.assets = create_account(self.company, "1000", "Current Assets", "ASSET")

    def test_create_normalises_type_and_parent(self):
        cash = create_account(self.company, "1010", "Petty Cash", "asset",
                              parent_id=self.assets.pk)
        self.assertEqual(cash.ac_type, "ASSET")
        self.assertEqual(cash.parent, self.assets)
        self.assertEqual(cash.normal_balance, "debit")

    def test_duplicate_code_is_rejected_within_company_only(self):
        with self.assertRaises(DuplicateAccountCodeError):
            create_account(self.company, "1000", "Again", "ASSET")
        # other tenants may reuse codes
        create_account(self.other, "1000", "Cash", "ASSET")

    def test_invalid_type_and_blank_values_are_rejected(self):
        with self.assertRaises(LedgerValidationError):
            create_account(self.company, "9000", "Odd", "INCOME")
        with self.assertRaises(LedgerValidationError):
            create_account(self.company, " ", "No code", "ASSET")

    def test_parent_from_other_company_is_rejected(self):
        foreign = create_account(self.other, "1000", "Cash", "ASSET")
        with self.assertRaises(InvalidParentAccountError):
            create_account(self.company, "1010", "Petty Cash", "ASSET",
                           parent_id=foreign.pk)

    def test_update_refuses_cycles(self):
        child = create_account(self.company, "1010", "Petty Cash", "ASSET",
                               parent_id=self.assets.pk)
        grandchild = create_account(self.company, "1011", "Float", "ASSET",
                                    parent_id=child.pk)
        with self.assertRaises(InvalidParentAccountError):
            update_account(self.company, self.assets.pk, parent_id=grandchild.pk)
        with self.assertRaises(InvalidParentAccountError):
            update_account(self.company, self.assets.pk, parent_id=self.assets.pk)

    def test_update_fields(self):
        account = update_account(self.company, self.assets.pk, name="Assets",
                                 description="Top level", is_active=False)
        self.assertEqual(account.name, "Assets")
        self.assertFalse(account.is_active)
        self.assertEqual(list_accounts(self.company, active_only=True), [])

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(LedgerValidationError):
            update_account(self.company, self.assets.pk, company_id=self.other.pk)

    def test_type_is_locked_once_posted(self):
        equity = create_account(self.company, "3000", "Capital", "EQUITY")
        create_journal_entry(self.company, "2026-02-01", [
            {"account_id": self.assets.pk, "debit": "5"},
            {"account_id": equity.pk, "credit": "5"},
        ])
        with self.assertRaises(LedgerValidationError):
            update_account(self.company, self.assets.pk, ac_type="EXPENSE")

    def test_delete_re_roots_children(self):
        child = create_account(self.company, "1010", "Petty Cash", "ASSET",
                               parent_id=self.assets.pk)
        other_child = create_account(self.company, "1020", "Bank", "ASSET",
                                     parent_id=self.assets.pk)

        orphaned = delete_account(self.company, self.assets.pk)

        self.assertEqual(orphaned, 2)
        self.assertFalse(Account.objects.filter(pk=self.assets.pk).exists())
        child.refresh_from_db()
        other_child.refresh_from_db()
        self.assertIsNone(child.parent_id)
        self.assertIsNone(other_child.parent_id)

    def test_delete_with_postings_is_blocked(self):
        equity = create_account(self.company, "3000", "Capital", "EQUITY")
        create_journal_entry(self.company, "2026-02-01", [
            {"account_id": self.assets.pk, "debit": "5"},
            {"account_id": equity.pk, "credit": "5"},
        ])
        with self.assertRaises(AccountInUseError):
            delete_account(self.company, self.assets.pk)
        self.assertTrue(Account.objects.filter(pk=self.assets.pk).exists())

    def test_other_company_account_is_not_found(self):
        with self.assertRaises(RecordNotFound):
            get_account(self.other, self.assets.pk)
        with self.assertRaises(RecordNotFound):
            delete_account(self.other, self.assets.pk)


class TemplateTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co")

    def test_every_industry_has_balance_sheet_and_pnl_rows(self):
        for industry in INDUSTRIES:
            types = {ac_type for _, _, ac_type in template_for(industry)}
            self.assertEqual(types, {"ASSET", "LIABILITY", "EQUITY",
                                     "REVENUE", "EXPENSE"})

    def test_unknown_industry_falls_back(self):
        self.assertEqual(template_for("space-mining"), template_for(DEFAULT_INDUSTRY))

    def test_template_skips_codes_in_use(self):
        create_account(self.company, "1000", "My Cash", "ASSET")
        created = create_accounts_from_template(self.company, "retail")
        self.assertEqual(len(created), len(template_for("retail")) - 1)
        mine = Account.objects.get(company=self.company, code="1000")
        self.assertEqual(mine.name, "My Cash")
        # second run adds nothing
        self.assertEqual(create_accounts_from_template(self.company, "retail"), [])


def _acc(pk, code, parent_id=None):
    return SimpleNamespace(pk=pk, code=code, parent_id=parent_id)


def test_build_hierarchy_nests_and_sorts():
    accounts = [
        _acc(1, "1000"),
        _acc(2, "1100", parent_id=1),
        _acc(3, "1010", parent_id=1),
        _acc(4, "1011", parent_id=3),
        _acc(5, "4000"),
    ]
    forest = build_hierarchy(accounts)

    assert [n["account"].code for n in forest] == ["1000", "4000"]
    assert [n["account"].code for n in forest[0]["children"]] == ["1010", "1100"]
    flat = [(a.code, depth) for a, depth in flatten_hierarchy(forest)]
    assert flat == [("1000", 0), ("1010", 1), ("1011", 2), ("1100", 1), ("4000", 0)]


def test_build_hierarchy_missing_parent_becomes_root():
    forest = build_hierarchy([_acc(1, "1000", parent_id=99)])
    assert [n["account"].pk for n in forest] == [1]


def test_build_hierarchy_survives_cycles():
    # 1 → 2 → 3 → 1, plus a self-parented account
    accounts = [_acc(1, "1000", 3), _acc(2, "2000", 1), _acc(3, "3000", 2),
                _acc(4, "4000", 4)]
    flat = flatten_hierarchy(build_hierarchy(accounts))
    assert sorted(a.pk for a, _ in flat) == [1, 2, 3, 4]


def test_build_hierarchy_deep_chain():
    depth = 3000
    accounts = [_acc(1, "0000")] + [
        _acc(i, f"{i:05d}", parent_id=i - 1) for i in range(2, depth + 1)
    ]
    flat = flatten_hierarchy(build_hierarchy(accounts))
    assert len(flat) == depth
    assert flat[-1][1] == depth - 1


@pytest.mark.django_db
def test_normal_balance_by_type():
    company = Company.objects.create(name="Types Co")
    expected = {"ASSET": "debit", "EXPENSE": "debit", "LIABILITY": "credit",
                "EQUITY": "credit", "REVENUE": "credit"}
    for i, (ac_type, side) in enumerate(expected.items()):
        account = create_account(company, str(1000 + i), ac_type.title(), ac_type)
        assert account.normal_balance == side
    assert len(list_accounts(company)) == 5
