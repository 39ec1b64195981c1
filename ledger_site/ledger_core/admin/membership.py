from django.contrib import admin

from ledger_core.models import Company, CompanySequence, EntityMembership

from .mixins import TenantAdminMixin


# Register `Company` model in admin with this custom config
@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    """a clean admin table for browsing companies"""

    # columns shown in company list view
    list_display = ("id", "name", "slug", "currency_code", "created_at")
    search_fields = ("name", "slug")  # enable search by name and slug
    ordering = ("name",)  # sort companies alphabetically by default

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Fetch all memberships and their users in bulk
        return qs.prefetch_related("memberships__user")


# Register `EntityMembership` model
@admin.register(EntityMembership)
class EntityMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "user", "company", "role", "is_default", "is_active")
    list_filter = ("company", "role", "is_active")
    search_fields = ("user__username", "company__name")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("user", "company")


# Register `CompanySequence` model (numbering counters, read-only)
@admin.register(CompanySequence)
class CompanySequenceAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("company", "name", "next_value", "updated_at")
    list_filter = ("company",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
