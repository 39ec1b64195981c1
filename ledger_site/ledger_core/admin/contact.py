from django.contrib import admin

from ledger_core.models import Contact

from .mixins import TenantAdminMixin


# Register `Contact` model
@admin.register(Contact)
class ContactAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "code",
        "name",
        "contact_type",
        "email",
        "credit_terms",
        "credit_limit",
    )
    list_filter = ("company", "contact_type")
    search_fields = ("name", "code", "email")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company")
