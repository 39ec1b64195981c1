from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.text import slugify

from ..managers import TenantManager


# ---------- Tenant / Company ----------
class Company(models.Model):

    """Tenant / Organization"""
    # Store company’s full display name
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two companies can have the same slug
    )

    # Reporting currency; amounts are stored in this currency only
    currency_code = models.CharField(max_length=10, default="USD")

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    # Meta options
    class Meta:
        verbose_name_plural = "companies"

    # String Representation
    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Derive slug from name when caller left it blank
        if not self.slug:
            base = slugify(self.name)[:70] or "company"
            slug = base
            i = 1
            # If plain slug is taken, append -1, -2, etc.
            while Company.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                slug = f"{base}-{i}"
                i += 1
            self.slug = slug
        super().save(*args, **kwargs)


# ---------- EntityMembership ----------
class EntityMembership(
    models.Model
):  # Bridge table (or a "join model") between User and Company

    # Limit roles to predefined values
    ROLE_CHOICES = [
        ("owner", "Owner"),            # full control
        ("admin", "Admin"),            # can manage settings & users
        ("accountant", "Accountant"),  # can post journals, invoices
        ("viewer", "Viewer"),          # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        # If user is deleted, their memberships go too
        on_delete=models.CASCADE,
        related_name="memberships",  # See all companies users belong to
    )
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default="viewer",  # Defaults to "viewer" (safe, read-only)
    )
    # Company picked for the user when the session has no explicit choice
    is_default = models.BooleanField(default=False)

    # Suspend someone’s access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # one user can only have one membership per company
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["company", "user"], name="membership_company_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"

    def clean(self):
        # At most one default company per user
        if self.is_default and self.user_id:
            others = EntityMembership.objects.filter(
                user_id=self.user_id, is_default=True
            ).exclude(pk=self.pk)
            if others.exists():
                raise ValidationError(
                    "User already has a default company membership."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
