from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company

# Choice Lists
AC_TYPES = [
    # Used in Account model to classify general ledger accounts
    ("ASSET", "Asset"),
    ("LIABILITY", "Liability"),
    ("EQUITY", "Equity"),
    ("REVENUE", "Revenue"),
    ("EXPENSE", "Expense"),
]

# Types that normally increase on the debit side;
# everything else increases on the credit side
DEBIT_NORMAL_TYPES = ("ASSET", "EXPENSE")


class Account(models.Model):
    """
    Actual ledger account entry in Chart of Accounts.
    - code should be unique per company
    - ac_type: determines reporting -BS vs P&L
    - parent: optional, accounts form a forest per company
    """

    company = models.ForeignKey(  # Each account belongs to one company
        Company,  # All reports must filter by company_id to prevent data leaks
        on_delete=models.CASCADE,
    )
    # Every account has a code
    # which lets you sort/group accounts consistently in reports.
    code = models.CharField(
        max_length=32
    )
    name = models.CharField(
        max_length=200
    )  # Human-readable name → "Cash on Hand", "Accounts Payable".

    # Classify account into one of the 5 basic accounting types
    ac_type = models.CharField(
        max_length=10,
        choices=AC_TYPES,
        # This tells system whether the account
        # goes on the Balance Sheet or P&L
    )
    description = models.TextField(null=True, blank=True)

    # Optional hierarchy:
    # you can make sub-accounts
    # (e.g. 1000 Cash, 1010 Petty Cash, 1020 Bank Account)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        related_name="children",
        # deleting a parent goes through services.accounts.delete_account,
        # which re-roots the children first
        on_delete=models.PROTECT,
    )

    # “soft deactivate” accounts (hide in UI, stop new postings)
    # without deleting history
    is_active = models.BooleanField(
        default=True
    )
    created_at = models.DateTimeField(
        auto_now_add=True
    )  # Track when the account was created.

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [  # Optimize queries
            # For reports grouped by ac_type
            # (Trial Balance, P&L, Balance Sheet)
            models.Index(
                fields=["company", "ac_type"], name="acct_company_type_idx"
            ),
            models.Index(
                fields=["company", "parent"], name="acct_company_parent_idx"
            ),  # Sub-accounts by parent account
        ]

        """ Each company defines its own chart of accounts.
               Codes repeat across companies but must be unique within one. """
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"], name="uq_company_account_code"
            )
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"
        # Example: "1000 – Cash on Hand".

    @property
    def normal_balance(self):
        # Assets/Expenses → Debit, Liabilities/Equity/Revenue → Credit.
        return "debit" if self.ac_type in DEBIT_NORMAL_TYPES else "credit"

    def clean(self):
        """Enforce company consistency (multi-tenancy)"""
        # Check if parent account belongs to same company
        if self.parent_id and self.parent.company_id != self.company_id:
            raise ValidationError(
                "Parent & child accounts must belong to the same company"
            )
        if self.pk and self.parent_id == self.pk:
            raise ValidationError("Account cannot be its own parent")
