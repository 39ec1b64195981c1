import datetime
from unittest import mock

from django.contrib import admin, messages
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from ledger_core.admin.account import AccountAdmin
from ledger_core.models import Account, Company
from ledger_core.services.journal import create_journal_entry


class AccountAdminDeleteTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Admin Co")
        self.cash = Account.objects.create(
            company=self.company, code="1000", name="Cash", ac_type="ASSET")
        self.sales = Account.objects.create(
            company=self.company, code="4000", name="Sales", ac_type="REVENUE")
        create_journal_entry(self.company, datetime.date(2026, 3, 1), [
            {"account_id": self.cash.pk, "debit": "50"},
            {"account_id": self.sales.pk, "credit": "50"},
        ])
        user = get_user_model().objects.create_superuser(
            username="root", password="pw")
        self.request = RequestFactory().post("/admin/")
        self.request.user = user
        self.request.company = self.company
        self.model_admin = AccountAdmin(Account, admin.site)

    def test_deleting_posted_account_shows_error_message(self):
        with mock.patch.object(self.model_admin, "message_user") as message_user:
            self.model_admin.delete_model(self.request, self.cash)

        self.assertTrue(Account.objects.filter(pk=self.cash.pk).exists())
        message_user.assert_called_once()
        self.assertEqual(message_user.call_args.kwargs["level"], messages.ERROR)
        self.assertIn("1000", message_user.call_args.args[1])

    def test_unused_account_is_deleted_and_children_rerooted(self):
        parent = Account.objects.create(
            company=self.company, code="6000", name="Expenses", ac_type="EXPENSE")
        child = Account.objects.create(
            company=self.company, code="6100", name="Rent", ac_type="EXPENSE",
            parent=parent)
        with mock.patch.object(self.model_admin, "message_user") as message_user:
            self.model_admin.delete_model(self.request, parent)

        message_user.assert_not_called()
        self.assertFalse(Account.objects.filter(pk=parent.pk).exists())
        child.refresh_from_db()
        self.assertIsNone(child.parent_id)
