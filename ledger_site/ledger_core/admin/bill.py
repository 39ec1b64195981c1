from django.contrib import admin

from ledger_core.models import Bill

from .mixins import TenantAdminMixin


# Register `Bill` model
@admin.register(Bill)
class BillAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "bill_no",
        "contact",
        "date",
        "due_date",
        "status",
        "total",
    )
    list_filter = ("company", "status", "date")
    search_fields = ("bill_no", "contact__name")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Fetch everything in one SQL join
        return qs.select_related("company", "contact")

    """ Enforce immutability at admin level """

    def get_readonly_fields(self, request, obj=None):
        # A settled bill is history
        if obj and obj.status == "PAID":
            return [f.name for f in self.model._meta.fields]
        return super().get_readonly_fields(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status == "PAID":
            return False
        return super().has_delete_permission(request, obj)
