from decimal import Decimal

from django.contrib import admin
from django.db.models import Prefetch
from django.utils.html import format_html

from ledger_core.models import JournalEntry, JournalLine

from .inlines import JournalLineInline
from .mixins import TenantAdminMixin


# Register `JournalEntry` model
@admin.register(JournalEntry)
class JournalEntryAdmin(TenantAdminMixin, admin.ModelAdmin):
    """
    Entries are created through the journal service (balance check,
    numbering); the admin browses them and may delete them.
    """

    list_display = (
        "id",
        "company",
        "entry_no",
        "date",
        "reference",
        "balanced",
    )
    list_filter = ("company", "date")
    search_fields = ("entry_no", "reference", "description")
    readonly_fields = ("company", "entry_no", "date", "created_at")
    inlines = [JournalLineInline]

    def get_queryset(self, request):
        """
        For each JournalEntry, prefetch its JournalLines together with
        their Account, so the balance column costs no extra queries.
        """
        qs = super().get_queryset(request)
        journalline_qs = JournalLine.objects.select_related("account")
        return qs.select_related("company").prefetch_related(
            Prefetch("lines", queryset=journalline_qs, to_attr="prefetched_lines")
        )

    """ Computed column for balance check """
    def balanced(self, obj):
        lines = getattr(obj, "prefetched_lines", None)
        if lines is None:
            d, c = obj.compute_totals()
        else:
            d = sum((line.debit for line in lines), Decimal("0.00"))
            c = sum((line.credit for line in lines), Decimal("0.00"))
        # format: bold debits / small credits
        return format_html("<b>{}</b> / <small>{}</small>", d, c)

    # set column header in admin
    balanced.short_description = "Debits / Credits"

    # new entries only through the API / service
    def has_add_permission(self, request):
        return False


# Register `JournalLine` model
@admin.register(JournalLine)
class JournalLineAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "journal",
        "account",
        "debit",
        "credit",
    )
    list_filter = ("company", "account__ac_type")
    search_fields = ("description", "journal__entry_no")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "journal", "account")

    # lines should be created only together with their JournalEntry
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
