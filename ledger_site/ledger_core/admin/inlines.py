from django.contrib import admin

from ledger_core.models import InvoiceLine, JournalLine

from .mixins import TenantAdminMixin

# ---------- Inline admin classes ----------


class JournalLineInline(TenantAdminMixin, admin.TabularInline):
    """Show JournalLine rows on the JournalEntry page (read-only)"""

    model = JournalLine
    extra = 0  # don’t show “empty” rows by default
    fields = ("account", "description", "debit", "credit")
    readonly_fields = fields
    ordering = ("id",)  # lines appear in creation order

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("account")

    # Lines are written together with their entry by the journal service,
    # which checks the balance; the admin must not unbalance an entry
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class InvoiceLineInline(TenantAdminMixin, admin.TabularInline):
    """Shows invoice lines under an Invoice page"""

    model = InvoiceLine
    # users don’t need to set `company` manually
    exclude = ("company",)
    extra = 0
    fields = (
        "item_name", "item_code", "description", "quantity",
        "unit_price", "discount", "tax_rate", "amount", "sort_order")
    # `amount` is computed automatically on save
    readonly_fields = ("amount",)

    def _editable(self, obj):
        return obj is None or obj.is_editable

    # sent or paid invoices keep their lines
    def has_add_permission(self, request, obj=None):
        return self._editable(obj) and super().has_add_permission(request, obj)

    def has_change_permission(self, request, obj=None):
        return self._editable(obj) and super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return self._editable(obj) and super().has_delete_permission(request, obj)
