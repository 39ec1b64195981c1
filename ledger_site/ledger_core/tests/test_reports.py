import datetime
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from ledger_core.exceptions import InfrastructureError
from ledger_core.models import Account, Company, Contact
from ledger_core.services.invoicing import create_invoice, transition_status
from ledger_core.services.journal import create_journal_entry
from ledger_core.services.reports import (balance_sheet, is_cogs_code,
                                          profit_and_loss, trial_balance)


class ReportTestBase(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Report Co")
        self.accounts = {}
        for code, name, ac_type in [
            ("1000", "Cash", "ASSET"),
            ("2100", "Bank Loan", "LIABILITY"),
            ("3000", "Capital", "EQUITY"),
            ("4000", "Sales", "REVENUE"),
            ("5000", "Cost of Goods Sold", "EXPENSE"),
            ("6000", "Rent", "EXPENSE"),
            ("EXP-9", "Sundries", "EXPENSE"),
        ]:
            self.accounts[code] = Account.objects.create(
                company=self.company, code=code, name=name, ac_type=ac_type)

    def post(self, date, debit_code, credit_code, amount):
        return create_journal_entry(self.company, date, [
            {"account_id": self.accounts[debit_code].pk, "debit": amount},
            {"account_id": self.accounts[credit_code].pk, "credit": amount},
        ])


class EndToEndTests(ReportTestBase):

    def test_cash_sale_today(self):
        today = timezone.localdate()
        self.post(today, "1000", "4000", "1000.00")

        tb = trial_balance(self.company, today, today)
        rows = {row["code"]: row for row in tb["rows"]}
        self.assertEqual(rows["1000"]["debit"], Decimal("1000.00"))
        self.assertEqual(rows["1000"]["credit"], Decimal("0.00"))
        self.assertEqual(rows["4000"]["credit"], Decimal("1000.00"))
        self.assertTrue(tb["balanced"])

        pl = profit_and_loss(self.company, today, today)
        self.assertEqual(pl["total_revenue"], Decimal("1000.00"))
        self.assertEqual(pl["journal_revenue"], Decimal("1000.00"))
        self.assertEqual(pl["invoice_revenue"], Decimal("0.00"))
        self.assertEqual(pl["net_profit"], Decimal("1000.00"))


class TrialBalanceTests(ReportTestBase):

    def test_nets_are_placed_by_sign_and_zero_nets_omitted(self):
        self.post("2026-01-05", "1000", "3000", "500")
        self.post("2026-01-06", "6000", "1000", "200")
        # 6000 back to zero
        self.post("2026-01-07", "1000", "6000", "200")

        tb = trial_balance(self.company)
        self.assertEqual([(r["code"], r["debit"], r["credit"]) for r in tb["rows"]], [
            ("1000", Decimal("500.00"), Decimal("0.00")),
            ("3000", Decimal("0.00"), Decimal("500.00")),
        ])
        self.assertEqual(tb["total_debit"], tb["total_credit"])

    def test_date_range_is_inclusive(self):
        self.post("2026-01-31", "1000", "3000", "1")
        self.post("2026-02-01", "1000", "3000", "10")
        self.post("2026-02-28", "1000", "3000", "100")
        self.post("2026-03-01", "1000", "3000", "1000")

        tb = trial_balance(self.company, datetime.date(2026, 2, 1),
                           datetime.date(2026, 2, 28))
        self.assertEqual(tb["total_debit"], Decimal("110.00"))

    def test_empty_period_is_an_empty_report(self):
        tb = trial_balance(self.company, datetime.date(2030, 1, 1),
                           datetime.date(2030, 1, 31))
        self.assertEqual(tb["rows"], [])
        self.assertTrue(tb["balanced"])

    def test_store_failure_is_reported_as_infrastructure_error(self):
        with mock.patch("ledger_core.services.reports._account_balances",
                        side_effect=DatabaseError("connection lost")):
            with self.assertRaises(InfrastructureError):
                trial_balance(self.company)


class ProfitAndLossTests(ReportTestBase):

    def test_cogs_and_operating_expenses_are_split(self):
        self.post("2026-04-01", "1000", "4000", "5000")
        self.post("2026-04-02", "5000", "1000", "1200")
        self.post("2026-04-03", "6000", "1000", "800")
        self.post("2026-04-04", "EXP-9", "1000", "50")

        pl = profit_and_loss(self.company, datetime.date(2026, 4, 1),
                             datetime.date(2026, 4, 30))
        self.assertEqual([r["code"] for r in pl["cogs"]], ["5000"])
        self.assertEqual([r["code"] for r in pl["expenses"]], ["6000", "EXP-9"])
        self.assertEqual(pl["total_cogs"], Decimal("1200.00"))
        self.assertEqual(pl["total_expenses"], Decimal("850.00"))
        self.assertEqual(pl["gross_profit"], Decimal("3800.00"))
        self.assertEqual(pl["net_profit"], Decimal("2950.00"))

    def test_revenue_is_larger_source_not_the_sum(self):
        customer = Contact.objects.create(company=self.company, name="Acme")
        inv = create_invoice(self.company, customer.pk, "2026-04-10", "2026-05-10",
                             [{"item_name": "Consulting", "unit_price": "700"}])
        transition_status(self.company, inv.pk, "PAID")
        self.post("2026-04-11", "1000", "4000", "300")

        pl = profit_and_loss(self.company, datetime.date(2026, 4, 1),
                             datetime.date(2026, 4, 30))
        self.assertEqual(pl["journal_revenue"], Decimal("300.00"))
        self.assertEqual(pl["invoice_revenue"], Decimal("700.00"))
        self.assertEqual(pl["total_revenue"], Decimal("700.00"))

    def test_unpaid_invoices_are_not_revenue(self):
        customer = Contact.objects.create(company=self.company, name="Acme")
        inv = create_invoice(self.company, customer.pk, "2026-04-10", "2026-05-10",
                             [{"item_name": "Consulting", "unit_price": "700"}])
        transition_status(self.company, inv.pk, "SENT")
        pl = profit_and_loss(self.company, datetime.date(2026, 4, 1),
                             datetime.date(2026, 4, 30))
        self.assertEqual(pl["total_revenue"], Decimal("0.00"))

    def test_cogs_range(self):
        self.assertTrue(is_cogs_code("5000"))
        self.assertTrue(is_cogs_code("5999"))
        self.assertFalse(is_cogs_code("6000"))
        self.assertFalse(is_cogs_code("4999"))
        self.assertFalse(is_cogs_code("COGS"))


class BalanceSheetTests(ReportTestBase):

    def test_balances_with_current_earnings(self):
        self.post("2026-01-01", "1000", "3000", "10000")
        self.post("2026-01-02", "1000", "2100", "2000")
        self.post("2026-01-03", "1000", "4000", "1000")
        self.post("2026-01-04", "6000", "1000", "500")
        # after as_of, ignored
        self.post("2026-02-01", "1000", "4000", "999")

        bs = balance_sheet(self.company, datetime.date(2026, 1, 31))
        self.assertEqual(bs["total_assets"], Decimal("12500.00"))
        self.assertEqual(bs["total_liabilities"], Decimal("2000.00"))
        self.assertEqual(bs["total_equity"], Decimal("10000.00"))
        self.assertEqual(bs["current_earnings"], Decimal("500.00"))
        self.assertEqual(bs["total_liabilities_and_equity"], Decimal("12500.00"))
        self.assertTrue(bs["balanced"])
        self.assertEqual(bs["as_of"], datetime.date(2026, 1, 31))

    def test_as_of_is_inclusive(self):
        self.post("2026-01-31", "1000", "3000", "10")
        bs = balance_sheet(self.company, datetime.date(2026, 1, 31))
        self.assertEqual(bs["total_assets"], Decimal("10.00"))
