import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from ledger_core.coa_templates import DEFAULT_INDUSTRY, INDUSTRIES
from ledger_core.models import Account, Company, Contact, EntityMembership
from ledger_core.services import bills, contacts, invoicing, journal
from ledger_core.services.accounts import create_accounts_from_template

User = get_user_model()

DEMO_CONTACTS = [
    # (name, contact_type, credit_terms)
    ("Acme Trading", "CUSTOMER", 30),
    ("Blue Harbour Cafe", "CUSTOMER", 14),
    ("Northwind Supplies", "VENDOR", 30),
]


class Command(BaseCommand):
    help = (
        "Create a demo tenant (company), user, and sample financial data for testing."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",  # Define flag
            default="Demo Company",
            help="Name of the demo company to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )
        parser.add_argument(
            "--industry",
            default=DEFAULT_INDUSTRY,
            help=f"Chart of accounts template ({', '.join(INDUSTRIES)}).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        company_name = options["company_name"]
        username = options["username"]
        password = options["password"]
        industry = options["industry"]
        if industry not in INDUSTRIES:
            raise CommandError(
                f"Unknown industry {industry!r}; choose from {', '.join(INDUSTRIES)}")

        # 1. Company (slug is derived on save)
        company, _ = Company.objects.get_or_create(name=company_name)
        self.stdout.write(self.style.SUCCESS(f"Created company: {company}"))

        # 2. User + membership
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if created:  # if user newly created
            user.set_password(password)
            user.save()
        has_default = EntityMembership.objects.filter(
            user=user, is_default=True).exclude(company=company).exists()
        EntityMembership.objects.get_or_create(
            user=user,
            company=company,
            defaults={"role": "owner", "is_default": not has_default},
        )
        self.stdout.write(
            self.style.SUCCESS(f"Created user: {user.username} (pw={password})")
        )

        # 3. Chart of accounts
        seeded = create_accounts_from_template(company, industry)
        self.stdout.write(
            self.style.SUCCESS(f"Created {len(seeded)} accounts ({industry})"))
        codes = dict(Account.objects.for_company(company)
                     .values_list("code", "pk"))

        # 4. Contacts
        people = {}
        for name, contact_type, terms in DEMO_CONTACTS:
            contact = Contact.objects.for_company(company).filter(name=name).first()
            if contact is None:
                contact = contacts.create_contact(
                    company, name, contact_type=contact_type, credit_terms=terms)
            people[name] = contact
        self.stdout.write(self.style.SUCCESS(f"Created {len(people)} contacts"))

        # 5. Journal entries: capital, rent, cost of sales
        today = timezone.localdate()
        month_start = today.replace(day=1)
        postings = [
            ("Owner capital", [("1000", "10000.00", "0"), ("3000", "0", "10000.00")]),
            ("Office rent", [("6000", "1500.00", "0"), ("1000", "0", "1500.00")]),
            ("Cost of sales", [("5000", "800.00", "0"), ("1000", "0", "800.00")]),
        ]
        for description, rows in postings:
            journal.create_journal_entry(
                company, month_start, [
                    {"account_id": codes[code], "debit": debit, "credit": credit}
                    for code, debit, credit in rows
                ],
                description=description,
            )
        self.stdout.write(self.style.SUCCESS("Created journal entries"))

        # 6. Invoices: one paid this month, one still open, one overdue
        acme = people["Acme Trading"]
        cafe = people["Blue Harbour Cafe"]
        samples = [
            (acme, month_start, "PAID", "Consulting", "10", "150.00"),
            (cafe, today, "SENT", "Monthly support", "1", "600.00"),
            (acme, today - datetime.timedelta(days=75), "SENT", "Setup fee", "2", "450.00"),
        ]
        for contact, issued, status, item, qty, price in samples:
            inv = invoicing.create_invoice(
                company, contact.pk, issued,
                issued + datetime.timedelta(days=contact.credit_terms or 30),
                [{"item_name": item, "quantity": qty, "unit_price": price,
                  "tax_rate": "6"}],
            )
            invoicing.transition_status(company, inv.pk, status)
            self.stdout.write(self.style.SUCCESS(f"Created invoice: {inv.invoice_no}"))

        # 7. A vendor bill waiting to be paid
        vendor = people["Northwind Supplies"]
        bill = bills.create_bill(
            company, vendor.pk, today - datetime.timedelta(days=40),
            today - datetime.timedelta(days=10), Decimal("320.00"))
        bills.transition_bill(company, bill.pk, "OPEN")
        self.stdout.write(self.style.SUCCESS(f"Created bill: {bill.bill_no}"))
        self.stdout.write(self.style.SUCCESS("Demo tenant setup complete!"))
