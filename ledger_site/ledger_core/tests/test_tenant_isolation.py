import datetime
import json
from decimal import Decimal

import pytest
from django.test import RequestFactory, TestCase
from django.urls import reverse

from ledger_core.models import (Account, Company, Contact, EntityMembership,
                                Invoice)
from ledger_core.services.invoicing import create_invoice
from ledger_core.views import invoice_list


class TenantIsolationManagerTests(TestCase):
    def setUp(self):
        self.company_a = Company.objects.create(name="Company A")
        self.company_b = Company.objects.create(name="Company B")
        contact_a = Contact.objects.create(company=self.company_a, name="A buyer")
        contact_b = Contact.objects.create(company=self.company_b, name="B buyer")

        # one invoice per company, with the same number in each
        lines = [{"item_name": "Widget", "unit_price": "100"}]
        self.inv_a = create_invoice(self.company_a, contact_a.pk,
                                    datetime.date.today(), datetime.date.today(), lines)
        self.inv_b = create_invoice(self.company_b, contact_b.pk,
                                    datetime.date.today(), datetime.date.today(), lines)

    def test_numbering_is_per_company(self):
        self.assertEqual(self.inv_a.invoice_no, self.inv_b.invoice_no)

    def test_for_company_returns_only_that_company_objects(self):
        """Compare invoice primary keys"""
        self.assertListEqual(
            list(
                Invoice.objects.for_company(self.company_a)
                .order_by("id")
                .values_list("pk", flat=True)
            ),
            [self.inv_a.pk],  # expected result
        )

        self.assertListEqual(
            list(
                Invoice.objects.for_company(self.company_b)
                .order_by("id")
                .values_list("pk", flat=True)
            ),
            [self.inv_b.pk],
        )

    def test_get_other_company_object_raises_does_not_exist(self):
        # `for_company` shouldn't return the other company's record
        with self.assertRaises(Invoice.DoesNotExist):
            Invoice.objects.for_company(self.company_a).get(pk=self.inv_b.pk)


@pytest.mark.django_db
def test_invoice_list_returns_only_tenant_data(django_user_model):
    c1 = Company.objects.create(name="Company A")
    c2 = Company.objects.create(name="Company B")
    u1 = django_user_model.objects.create_user(username="alice", password="pw")
    for company, name in ((c1, "C1 customer"), (c2, "C2 customer")):
        contact = Contact.objects.create(company=company, name=name)
        create_invoice(company, contact.pk, "2026-01-01", "2026-01-31",
                       [{"item_name": "Widget", "unit_price": "100"}])

    # Bypass client & call view with a RequestFactory
    request = RequestFactory().get("/api/invoices/")
    request.user = u1
    request.company = c1  # manually simulate middleware

    data = json.loads(invoice_list(request).content)

    names = [d["contactName"] for d in data]
    assert names == ["C1 customer"]


@pytest.mark.django_db
def test_other_tenant_records_are_not_found(client, django_user_model):
    mine = Company.objects.create(name="Mine")
    theirs = Company.objects.create(name="Theirs")
    user = django_user_model.objects.create_user(username="bob", password="pw")
    EntityMembership.objects.create(user=user, company=mine, is_default=True)
    account = Account.objects.create(company=theirs, code="1000", name="Cash",
                                     ac_type="ASSET")
    client.force_login(user)

    assert client.get(reverse("account-detail", args=[account.pk])).status_code == 404
    assert client.delete(reverse("account-detail", args=[account.pk])).status_code == 404
    assert Account.objects.filter(pk=account.pk).exists()


@pytest.mark.django_db
def test_session_can_only_select_member_companies(client, django_user_model):
    first = Company.objects.create(name="First")
    second = Company.objects.create(name="Second")
    stranger = Company.objects.create(name="Stranger")
    user = django_user_model.objects.create_user(username="carol", password="pw")
    EntityMembership.objects.create(user=user, company=first, is_default=True)
    EntityMembership.objects.create(user=user, company=second)
    Account.objects.create(company=second, code="2000", name="Payables",
                           ac_type="LIABILITY")
    client.force_login(user)

    # default membership
    assert client.get(reverse("account-list")).json() == []

    session = client.session
    session["active_company_id"] = second.pk
    session.save()
    assert [a["code"] for a in client.get(reverse("account-list")).json()] == ["2000"]

    # a tampered session never lands in a foreign tenant
    session["active_company_id"] = stranger.pk
    session.save()
    assert client.get(reverse("account-list")).status_code == 401


@pytest.mark.django_db
def test_reports_are_tenant_scoped(client, django_user_model):
    mine = Company.objects.create(name="Mine")
    theirs = Company.objects.create(name="Theirs")
    user = django_user_model.objects.create_user(username="dave", password="pw")
    EntityMembership.objects.create(user=user, company=mine, is_default=True)
    contact = Contact.objects.create(company=theirs, name="Big Buyer")
    create_invoice(theirs, contact.pk, "2026-01-01", "2026-01-31",
                   [{"item_name": "Widget", "unit_price": "5000"}])
    client.force_login(user)

    ar = client.get(reverse("report-aged-receivables")).json()
    assert ar["grandTotal"] == str(Decimal("0.00"))
    stats = client.get(reverse("dashboard-stats")).json()
    assert stats["outstandingReceivables"] == "0.00"
