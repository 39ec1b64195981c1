from django.db.models.signals import post_delete, post_save, pre_delete
from django.dispatch import receiver

from .exceptions import AccountInUseError
from .models import Account, Invoice, InvoiceLine, JournalLine

"""
    Recalculate invoice totals when a line is added/updated/removed
    outside the service layer (admin inlines, shell).
    The services write lines with bulk_create, which sends no signals,
    and set the totals themselves.
"""


@receiver((post_save, post_delete), sender=InvoiceLine)
def invoice_line_changed(sender, instance, **kwargs):
    # fixtures load rows as-is
    if kwargs.get("raw"):
        return
    try:
        inv = Invoice.objects.get(pk=instance.invoice_id)
    except Invoice.DoesNotExist:
        # parent already gone (cascade delete)
        return
    inv.recalc_totals()
    # save only the changed fields to reduce churn
    inv.save(update_fields=["subtotal", "tax_total", "total"])


"""Block deletion if account has ever been used in a journal line."""


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalLine.objects.filter(account=instance).exists():
        raise AccountInUseError(
            f"Cannot delete account {instance.code}: it is used in journal lines.")
