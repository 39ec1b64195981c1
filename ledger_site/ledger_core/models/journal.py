from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..conf import ledger_setting
from ..managers import TenantManager
from .account import Account
from .entitymembership import Company


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):  # Represents one accounting transaction
    # Multi-tenant: every entry belongs to a company
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # Human-readable sequential number, e.g. "JE-2026-007"
    # (reserved from CompanySequence, never count-then-format)
    entry_no = models.CharField(max_length=32)

    # Business metadata
    date = models.DateField()
    description = models.TextField(null=True, blank=True)
    reference = models.CharField(max_length=200, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # Speed up listing & filtering by date range
        indexes = [
            models.Index(fields=["company", "date"], name="je_company_date_idx"),
        ]
        constraints = [
            # Within one company, each entry number must be unique
            models.UniqueConstraint(
                fields=["company", "entry_no"], name="uq_je_company_entry_no"
            )
        ]
        verbose_name_plural = "journal entries"

    def __str__(self):
        return f"{self.entry_no} {self.date}"

    # Aggregate all debit and credit amounts across entry’s lines
    def compute_totals(self):
        """Return debits, credits sums for lines"""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    # True if double-entry rule holds: total debits = total credits
    def is_balanced(self):
        debit, credit = self.compute_totals()
        return abs(debit - credit) <= ledger_setting("BALANCE_TOLERANCE")


class JournalLine(models.Model):  # Stores Lines ( credits / debits )
    """
    Each line belongs to a journal entry and to a GL account.
    Lines live and die with their entry.
    """

    # Belongs to company & a journal entry
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    # Must point to one Account (can’t delete account if lines exist → PROTECT)
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="journal_lines"
    )
    description = models.CharField(max_length=400, null=True, blank=True)

    debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Custom managers
    objects = TenantManager()  # Enforce tenant scoping

    class Meta:
        # For fast queries like “all lines for this account” /
        # “all lines in this JE.”
        indexes = [
            models.Index(fields=["company", "account"], name="jl_company_account_idx"),
            models.Index(fields=["company", "journal"], name="jl_company_journal_idx"),
        ]
        # Enforce debits and credits must be non-negative
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(debit__gte=0) &
                    models.Q(credit__gte=0)
                ),
                name="jl_non_negative_amounts",
            ),
        ]

    # Show journal, account, and amounts in admin dropdowns and debug logs
    def __str__(self):
        return f"{self.journal_id} | {self.account} | D:{self.debit} C:{self.credit}"

    @property
    def net(self):
        # debit-positive net of this line
        return (self.debit or Decimal("0")) - (self.credit or Decimal("0"))

    def clean(self):
        # Ensure no negative values sneak in
        # (redundant with CheckConstraint but useful at app-level)
        if (self.debit or 0) < 0 or (self.credit or 0) < 0:
            raise ValidationError("Debit and credit must be >= 0")

        # Prevent “cross-company” contamination
        if self.account_id and self.company_id:
            if self.account.company_id != self.company_id:
                raise ValidationError(
                    "JournalLine.account must belong to the same company.")
        if self.journal_id and self.company_id:
            if self.journal.company_id != self.company_id:
                raise ValidationError(
                    "JournalLine.company must equal JournalEntry.company")

    def save(self, *args, **kwargs):
        # If company not set but JE is known, get company from JE
        if not self.company_id and self.journal_id:
            self.company_id = self.journal.company_id
        return super().save(*args, **kwargs)
