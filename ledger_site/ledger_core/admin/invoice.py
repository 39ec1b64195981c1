from django.contrib import admin, messages
from django.db.models import Prefetch

from ledger_core.exceptions import InvalidTransitionError
from ledger_core.models import Invoice, InvoiceLine
from ledger_core.services.invoicing import transition_status

from .inlines import InvoiceLineInline
from .mixins import TenantAdminMixin


# Register `Invoice` model
@admin.register(Invoice)
class InvoiceAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "invoice_no",
        "contact",
        "date",
        "due_date",
        "current_status",
        "total",
    )
    list_filter = ("company", "status", "date")
    search_fields = ("invoice_no", "contact__name")
    readonly_fields = ("invoice_no", "subtotal", "tax_total", "total",
                       "created_at")
    actions = ["mark_sent", "mark_paid", "mark_cancelled"]
    inlines = [InvoiceLineInline]

    """
        For each Invoice, prefetch all its InvoiceLines,
        and join company & contact in the same query.
    """
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "contact").prefetch_related(
            Prefetch("lines", queryset=InvoiceLine.objects.order_by(
                "sort_order", "id"))
        )

    # OVERDUE is shown, never stored
    @admin.display(description="Status")
    def current_status(self, obj):
        return obj.display_status()

    def _transition(self, request, queryset, status):
        done = 0
        for inv in queryset:
            try:
                transition_status(inv.company, inv.pk, status)
                done += 1
            except InvalidTransitionError as exc:
                self.message_user(request, f"{inv.invoice_no}: {exc.messages[0]}",
                                  level=messages.ERROR)
        self.message_user(request, f"{done} of {len(queryset)} invoices marked {status}.",
                          level=messages.SUCCESS)

    @admin.action(description="Mark selected invoices as sent")
    def mark_sent(self, request, queryset):
        self._transition(request, queryset, "SENT")

    @admin.action(description="Mark selected invoices as paid")
    def mark_paid(self, request, queryset):
        self._transition(request, queryset, "PAID")

    @admin.action(description="Cancel selected invoices")
    def mark_cancelled(self, request, queryset):
        self._transition(request, queryset, "CANCELLED")

    """ Enforce immutability at admin level """

    def get_readonly_fields(self, request, obj=None):
        # sent/paid invoices: every field becomes read-only
        if obj and not obj.is_editable:
            return [f.name for f in self.model._meta.fields]
        return super().get_readonly_fields(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and not obj.is_editable:
            return False  # removes “Delete” option for that invoice
        return super().has_delete_permission(request, obj)
