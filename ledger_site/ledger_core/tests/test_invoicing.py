import datetime
from decimal import Decimal
from itertools import product

import pytest
from django.test import TestCase
from django.utils import timezone

from ledger_core.exceptions import (ContactNotFoundError, EmptyInvoiceError,
                                    ImmutableInvoiceError, InvalidLineError,
                                    InvalidTransitionError,
                                    LedgerValidationError)
from ledger_core.models import Company, Contact, Invoice, InvoiceLine
from ledger_core.models.invoice import INV_STATUS_CHOICES
from ledger_core.services.invoicing import (compute_invoice_totals,
                                            compute_line_amount,
                                            create_invoice, delete_invoice,
                                            get_invoice, list_invoices,
                                            transition_status, update_invoice)

STATUSES = [code for code, _ in INV_STATUS_CHOICES]
ALLOWED = {("DRAFT", "SENT"), ("DRAFT", "PAID"), ("SENT", "PAID"),
           ("DRAFT", "CANCELLED"), ("SENT", "CANCELLED")}


class InvoiceServiceTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Test Co")
        self.customer = Contact.objects.create(company=self.company, name="Acme")
        self.today = datetime.date(2026, 3, 10)

    def make_invoice(self, lines=None, **kwargs):
        """Helper: one 100.00 line unless `lines` is given."""
        lines = lines or [{"item_name": "Widget", "quantity": "1",
                           "unit_price": "100"}]
        return create_invoice(self.company, self.customer.pk, self.today,
                              self.today + datetime.timedelta(days=30),
                              lines, **kwargs)

    def test_discount_and_tax_scenario(self):
        invoice = self.make_invoice([{"item_name": "Consulting", "quantity": 1,
                                      "unit_price": 1000, "discount": 10,
                                      "tax_rate": 6}])
        invoice.refresh_from_db()
        line = invoice.lines.get()
        self.assertEqual(line.amount, Decimal("954.00"))
        self.assertEqual(invoice.subtotal, Decimal("900.00"))
        self.assertEqual(invoice.tax_total, Decimal("54.00"))
        self.assertEqual(invoice.total, Decimal("954.00"))
        self.assertEqual(invoice.status, "DRAFT")

    def test_stored_totals_match_recomputed_lines(self):
        invoice = self.make_invoice([
            {"item_name": "A", "quantity": "3", "unit_price": "19.99",
             "discount": "5", "tax_rate": "8"},
            {"item_name": "B", "quantity": "0.333", "unit_price": "7.10",
             "tax_rate": "6"},
            {"item_name": "C", "quantity": "2", "unit_price": "0"},
        ])
        fetched = get_invoice(self.company, invoice.pk)
        self.assertEqual(compute_invoice_totals(fetched.lines.all()),
                         (fetched.subtotal, fetched.tax_total, fetched.total))
        self.assertEqual(fetched.total, fetched.subtotal + fetched.tax_total)

    def test_client_amounts_are_ignored(self):
        invoice = self.make_invoice([{"item_name": "Widget", "quantity": 2,
                                      "unit_price": "10", "amount": "999"}])
        self.assertEqual(invoice.total, Decimal("20.00"))
        self.assertEqual(invoice.lines.get().amount, Decimal("20.00"))

    def test_blank_lines_are_skipped_and_quantity_defaults_to_one(self):
        invoice = self.make_invoice([
            {"item_name": "  ", "quantity": 5, "unit_price": 5},
            {"item_name": "Widget", "unit_price": "12.50"},
        ])
        line = invoice.lines.get()
        self.assertEqual(line.quantity, Decimal("1"))
        self.assertEqual(invoice.total, Decimal("12.50"))

    def test_invoice_number_uses_current_year_sequence(self):
        year = timezone.localdate().year
        first = self.make_invoice()
        second = self.make_invoice()
        self.assertEqual(first.invoice_no, f"INV-{year}-001")
        self.assertEqual(second.invoice_no, f"INV-{year}-002")

    def test_custom_fields_and_template_are_stored(self):
        invoice = self.make_invoice(template_ref="modern",
                                    custom_field_values={"PO": 1234, "Ref": None})
        invoice.refresh_from_db()
        self.assertEqual(invoice.template_ref, "modern")
        self.assertEqual(invoice.custom_field_values, {"PO": "1234", "Ref": ""})

    def test_invalid_input_is_rejected(self):
        with self.assertRaises(EmptyInvoiceError):
            self.make_invoice([{"item_name": "", "quantity": 1}])
        with self.assertRaises(InvalidLineError):
            self.make_invoice([{"item_name": "X", "quantity": 0, "unit_price": 1}])
        with self.assertRaises(InvalidLineError):
            self.make_invoice([{"item_name": "X", "unit_price": -1}])
        with self.assertRaises(InvalidLineError):
            self.make_invoice([{"item_name": "X", "unit_price": 1, "discount": 101}])
        with self.assertRaises(InvalidLineError):
            self.make_invoice([{"item_name": "X", "unit_price": 1, "tax_rate": -1}])
        with self.assertRaises(LedgerValidationError):
            create_invoice(self.company, self.customer.pk, self.today,
                           self.today - datetime.timedelta(days=1),
                           [{"item_name": "X", "unit_price": 1}])
        self.assertEqual(Invoice.objects.count(), 0)

    def test_amounts_beyond_money_columns_are_rejected(self):
        with self.assertRaises(InvalidLineError) as ctx:
            self.make_invoice([{"item_name": "X", "quantity": "9999999999",
                                "unit_price": "99999999999999"}])
        self.assertIn("too large", ctx.exception.messages[0])
        # each line fits, their sum does not
        big = {"item_name": "Plant", "quantity": "100",
               "unit_price": "60000000000000"}
        with self.assertRaises(LedgerValidationError) as ctx:
            self.make_invoice([big, big])
        self.assertIn("Invoice total", ctx.exception.messages[0])
        self.assertEqual(Invoice.objects.count(), 0)

        invoice = self.make_invoice()
        with self.assertRaises(LedgerValidationError):
            update_invoice(self.company, invoice.pk, lines=[big, big])
        invoice.refresh_from_db()
        self.assertEqual(invoice.total, Decimal("100.00"))
        self.assertEqual(invoice.lines.count(), 1)

    def test_contact_of_other_company_is_rejected(self):
        other = Company.objects.create(name="Other Co")
        stranger = Contact.objects.create(company=other, name="Stranger")
        with self.assertRaises(ContactNotFoundError):
            create_invoice(self.company, stranger.pk, self.today, self.today,
                           [{"item_name": "X", "unit_price": 1}])

    def test_update_replaces_lines_and_recomputes(self):
        invoice = self.make_invoice()
        updated = update_invoice(self.company, invoice.pk, notes="Thanks",
                                 lines=[{"item_name": "Gadget", "quantity": 2,
                                         "unit_price": "50", "tax_rate": "10"}])
        self.assertEqual(updated.total, Decimal("110.00"))
        self.assertEqual(updated.notes, "Thanks")
        self.assertEqual(list(InvoiceLine.objects.filter(invoice=invoice)
                              .values_list("item_name", flat=True)), ["Gadget"])

    def test_sent_and_paid_invoices_are_immutable(self):
        invoice = self.make_invoice()
        transition_status(self.company, invoice.pk, "SENT")
        with self.assertRaises(ImmutableInvoiceError):
            update_invoice(self.company, invoice.pk, notes="late edit")
        with self.assertRaises(ImmutableInvoiceError):
            delete_invoice(self.company, invoice.pk)
        transition_status(self.company, invoice.pk, "PAID")
        with self.assertRaises(ImmutableInvoiceError):
            update_invoice(self.company, invoice.pk, lines=[])

    def test_cancelled_invoice_can_be_edited_and_deleted(self):
        invoice = self.make_invoice()
        transition_status(self.company, invoice.pk, "CANCELLED")
        update_invoice(self.company, invoice.pk, notes="void")
        self.assertEqual(delete_invoice(self.company, invoice.pk), invoice.invoice_no)
        self.assertFalse(InvoiceLine.objects.filter(invoice_id=invoice.pk).exists())

    def test_overdue_is_computed_not_stored(self):
        invoice = self.make_invoice()
        transition_status(self.company, invoice.pk, "SENT")
        later = self.today + datetime.timedelta(days=31)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, "SENT")
        self.assertEqual(invoice.display_status(later), "OVERDUE")
        self.assertEqual(invoice.display_status(self.today), "SENT")
        self.assertEqual([i.pk for i in list_invoices(self.company, status="overdue",
                                                      today=later)], [invoice.pk])
        self.assertEqual(list_invoices(self.company, status="OVERDUE",
                                       today=self.today), [])
        with self.assertRaises(InvalidTransitionError):
            transition_status(self.company, invoice.pk, "OVERDUE")

    def test_line_edit_outside_services_keeps_totals_in_sync(self):
        invoice = self.make_invoice()
        line = invoice.lines.get()
        line.quantity = Decimal("3")
        line.save()
        invoice.refresh_from_db()
        self.assertEqual(invoice.total, Decimal("300.00"))
        line.delete()
        invoice.refresh_from_db()
        self.assertEqual(invoice.total, Decimal("0.00"))


@pytest.mark.django_db
@pytest.mark.parametrize("current, target", list(product(STATUSES, STATUSES + ["OVERDUE"])))
def test_transition_table(current, target):
    company = Company.objects.create(name="Flow Co")
    contact = Contact.objects.create(company=company, name="Acme")
    invoice = create_invoice(company, contact.pk, "2026-01-05", "2026-02-04",
                             [{"item_name": "Widget", "unit_price": "10"}])
    Invoice.objects.filter(pk=invoice.pk).update(status=current)

    if (current, target) in ALLOWED:
        assert transition_status(company, invoice.pk, target).status == target
    else:
        with pytest.raises(InvalidTransitionError):
            transition_status(company, invoice.pk, target)
        invoice.refresh_from_db()
        assert invoice.status == current


@pytest.mark.parametrize("qty, price, discount, tax, expected", [
    ("1", "1000", "10", "6", "954.00"),
    ("2", "19.99", "0", "0", "39.98"),
    ("3", "0.335", "0", "0", "1.01"),
    ("1", "100", "100", "6", "0.00"),
    ("0.5", "10.01", "0", "0", "5.01"),
    ("7", "13.13", "12.5", "8.25", "87.06"),
])
def test_compute_line_amount(qty, price, discount, tax, expected):
    amount = compute_line_amount(Decimal(qty), Decimal(price),
                                 Decimal(discount), Decimal(tax))
    assert amount == Decimal(expected)
    # same inputs, same answer
    assert amount == compute_line_amount(Decimal(qty), Decimal(price),
                                         Decimal(discount), Decimal(tax))
