from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .contact import Contact
from .entitymembership import Company

BILL_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("OPEN", "Open"),  # approved, awaiting payment
    ("PAID", "Paid"),
    ("CANCELLED", "Cancelled"),
]

# Current state vs. allowed next states
BILL_TRANSITIONS = {
    "DRAFT": ("OPEN", "PAID", "CANCELLED"),
    "OPEN": ("PAID", "CANCELLED"),
    "PAID": (),  # "paid" → (no further transitions)
    "CANCELLED": (),
}

# ---------- Bills ----------

# Header represents vendor bill (Accounts Payable document)


class Bill(models.Model):
    # Bill belongs to a company (multi-tenant)
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    # Linked to a vendor contact
    contact = models.ForeignKey(
        Contact,
        # prevent deleting vendor who has a bill
        on_delete=models.PROTECT,
        related_name="bills",
    )
    # Vendor’s bill/invoice number (e.g. "INV-4567")
    bill_no = models.CharField(max_length=64, null=True, blank=True)
    date = models.DateField()  # bill date
    # when payment is expected
    due_date = models.DateField()

    # Track workflow
    status = models.CharField(
        max_length=10, choices=BILL_STATUS_CHOICES, default="DRAFT"
    )

    # Amount owed to the vendor
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # Optimize queries for “all bills for this vendor”
        # and AP aging by due date
        indexes = [
            models.Index(fields=["company", "contact"], name="bill_company_contact_idx"),
            models.Index(fields=["company", "status", "due_date"],
                         name="bill_company_status_due_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="bill_non_negative_total",
            ),
        ]

    def __str__(self):
        # If no bill number, fall back to database ID
        return f"Bill: {self.bill_no or self.pk}"

    def clean(self):
        # Ensure vendor chosen belongs to the same company
        if self.contact_id and self.company_id:
            if self.contact.company_id != self.company_id:
                raise ValidationError(
                    "Vendor must belong to the same company.")
        if self.total is not None and self.total < 0:
            raise ValidationError("Bill total must be >= 0")
        if self.date and self.due_date and self.due_date < self.date:
            raise ValidationError("Due date cannot be before bill date")
