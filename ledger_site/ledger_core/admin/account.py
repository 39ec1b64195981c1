from django.contrib import admin, messages

from ledger_core.exceptions import AccountInUseError
from ledger_core.models import Account
from ledger_core.services.accounts import delete_account

from .mixins import TenantAdminMixin


# Register `Account` model
@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    # show key accounting fields
    list_display = (
        "id",
        "company",
        "code",
        "name",
        "ac_type",
        "normal_balance",
        "parent",
        "is_active",
    )
    list_filter = ("company", "ac_type", "is_active")
    search_fields = ("code", "name")
    # accounts grouped by company, then sorted by code
    ordering = ("company", "code")
    fields = (
        "company", "code", "name", "ac_type",
        "description", "parent", "is_active",
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "parent")

    # Go through the service so children are re-rooted first
    def delete_model(self, request, obj):
        try:
            delete_account(obj.company, obj.pk)
        except AccountInUseError as exc:
            self.message_user(request, "; ".join(exc.messages),
                              level=messages.ERROR)

    def delete_queryset(self, request, queryset):
        for account in queryset:
            try:
                delete_account(account.company, account.pk)
            except AccountInUseError as exc:
                self.message_user(request, "; ".join(exc.messages),
                                  level=messages.ERROR)
