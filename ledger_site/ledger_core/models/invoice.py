from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import InvoiceManager, TenantManager
from .contact import Contact
from .entitymembership import Company

# OVERDUE is deliberately absent: it is computed from due_date, never stored
INV_STATUS_CHOICES = [
    ("DRAFT", "Draft"),
    ("SENT", "Sent"),
    ("PAID", "Paid"),
    ("CANCELLED", "Cancelled"),
]

""" Workflow:
    DRAFT → SENT → PAID
    DRAFT → PAID
    DRAFT / SENT → CANCELLED
    PAID and CANCELLED are terminal. """
INV_TRANSITIONS = {
    "DRAFT": ("SENT", "PAID", "CANCELLED"),
    "SENT": ("PAID", "CANCELLED"),
    "PAID": (),
    "CANCELLED": (),
}

# Only these may have their lines edited, or be deleted
INV_EDITABLE_STATUSES = ("DRAFT", "CANCELLED")


class Invoice(models.Model):  # Represents a customer invoice

    # Invoice belongs to one company (multi-tenant)
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Customer being billed; cannot be deleted while invoiced
    contact = models.ForeignKey(
        Contact,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    # human-readable (e.g. "INV-2026-001")
    invoice_no = models.CharField(max_length=32)
    date = models.DateField()  # issue date
    due_date = models.DateField()  # payment deadline

    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="DRAFT"
    )

    # Stored totals; always recomputed from lines, never taken from input
    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    tax_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    notes = models.TextField(null=True, blank=True)
    # Layout template chosen for rendering (rendering itself lives elsewhere)
    template_ref = models.CharField(max_length=64, null=True, blank=True)
    # Free-form custom field values: {"PO Number": "PO-88"}
    custom_field_values = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = InvoiceManager()

    class Meta:
        # Optimize for fast lookups by customer and due date (aging)
        indexes = [
            models.Index(fields=["company", "contact"], name="inv_company_contact_idx"),
            models.Index(fields=["company", "status", "due_date"],
                         name="inv_company_status_due_idx"),
            models.Index(fields=["company", "date"], name="inv_company_date_idx"),
        ]
        constraints = [
            # Within one company, each invoice number must be unique
            # Across companies, duplicates are allowed
            models.UniqueConstraint(
                fields=["company", "invoice_no"],
                name="uq_invoice_company_number"
            )
        ]

    def __str__(self):
        return f"Inv {self.invoice_no or self.pk}"

    def display_status(self, today=None):
        """Status as shown to users; OVERDUE when open past its due date."""
        today = today or timezone.localdate()
        if self.status in ("DRAFT", "SENT") and self.due_date < today:
            return "OVERDUE"
        return self.status

    @property
    def is_editable(self):
        return self.status in INV_EDITABLE_STATUSES

    """ Ensure invoice's stored totals are always in sync with its lines """

    def recalc_totals(self):
        # lazy import to avoid circular import at module load time
        from ..services.invoicing import compute_invoice_totals

        # guard if no pk: there are no lines yet
        if not self.pk:
            self.subtotal = self.tax_total = self.total = Decimal("0.00")
            return
        lines = self.lines.all()
        self.subtotal, self.tax_total, self.total = compute_invoice_totals(
            lines)

    def clean(self):
        # Ensure contact chosen belongs to the same company
        if self.contact_id and self.company_id:
            if self.contact.company_id != self.company_id:
                raise ValidationError(
                    "Contact must belong to the same company.")
        if self.date and self.due_date and self.due_date < self.date:
            raise ValidationError("Due date cannot be before invoice date")


class InvoiceLine(
    models.Model
):  # Each line describes a product/service sold on the invoice

    # Line belongs to both company and parent invoice
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="lines")

    item_name = models.CharField(max_length=200)
    item_code = models.CharField(max_length=64, null=True, blank=True)
    description = models.TextField(null=True, blank=True)

    # Core pricing logic:
    # amount = quantity × unit_price × (1 − discount%) × (1 + tax%)
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1")
    )
    unit_price = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.00")
    )
    discount = models.DecimalField(  # percent, 0–100
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )
    tax_rate = models.DecimalField(  # percent, 0–100
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )
    amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    # keeps lines in the order they were entered
    sort_order = models.PositiveIntegerField(default=0)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        ordering = ("sort_order", "id")
        indexes = [
            models.Index(fields=["company", "invoice"], name="invl_company_invoice_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0) &
                models.Q(unit_price__gte=0),
                name="invl_positive_qty_non_negative_price",
            ),
            models.CheckConstraint(
                condition=models.Q(discount__gte=0) &
                models.Q(discount__lte=100) &
                models.Q(tax_rate__gte=0) &
                models.Q(tax_rate__lte=100),
                name="invl_percentages_in_range",
            ),
        ]

    # Show something human-readable in Django Admin
    def __str__(self):
        return f"{self.item_name} x {self.quantity} = {self.amount}"

    def clean(self):
        # lazy import to avoid circular import at module load time
        from ..services.invoicing import validate_line_values

        validate_line_values(
            self.quantity, self.unit_price, self.discount, self.tax_rate)

    def save(self, *args, **kwargs):
        from ..services.invoicing import compute_line_amount

        # copy company_id from the parent invoice
        if not self.company_id and self.invoice_id:
            self.company_id = self.invoice.company_id
        # compute amount always
        self.amount = compute_line_amount(
            self.quantity, self.unit_price, self.discount, self.tax_rate)
        return super().save(*args, **kwargs)
