from django.core.exceptions import \
    ValidationError  # Built-in way to raise validation errors
from django.db import \
    models  # ORM base classes to define database tables as Python classes

from ..managers import TenantManager
from .entitymembership import Company

CONTACT_TYPES = [
    ("CUSTOMER", "Customer"),  # receives invoices (AR side)
    ("VENDOR", "Vendor"),      # sends bills (AP side)
    ("BOTH", "Both"),
]


# ---------- Contact ----------
# Customer and/or vendor of a company
class Contact(models.Model):
    # Multi-tenant: every contact belongs to a single company.
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Optional short code used on documents ("C-001")
    code = models.CharField(max_length=32, null=True, blank=True)
    # The contact’s legal or trade name
    name = models.CharField(max_length=200)

    # Optional contact for billing/communication
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, null=True, blank=True)

    contact_type = models.CharField(
        max_length=10, choices=CONTACT_TYPES, default="CUSTOMER"
    )

    # Standard credit terms
    credit_terms = models.PositiveIntegerField(null=True, blank=True)
    """ Example: If terms = 30 → invoice due 30 days after issue. """
    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="contact_company_name_idx"),
            models.Index(fields=["company", "contact_type"], name="contact_company_type_idx"),
        ]

    # Display contact name in admin/UI
    def __str__(self):
        return self.name

    def clean(self):
        if not (self.name or "").strip():
            raise ValidationError("Contact name is required")
        if self.credit_limit is not None and self.credit_limit < 0:
            raise ValidationError("Credit limit must be >= 0")
        return super().clean()
