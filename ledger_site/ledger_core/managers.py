from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
# Define subclass of Django’s QuerySet
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):          # Add queryset helper
        return self.filter(company=company)  # Apply filter

    def active(self, company):
        return self.filter(
                            company=company,  # enforce tenant scoping
                            is_active=True    # only fetch active records
                        )
    # Enables query:
    # Account.objects.active(request.company)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager):

    def get_queryset(self):  # ensure every model gets TenantQuerySet(so .for_company() is always available)
        return TenantQuerySet(self.model, using=self._db)

    def for_company(self, company):  # can call for_company() directly on objects
        return self.get_queryset().for_company(company)

    def active(self, company):
        return self.get_queryset().active(company)


# Invoices: OVERDUE is never stored, it is derived from due_date at read time
class InvoiceQuerySet(TenantQuerySet):
    OPEN_STATUSES = ("DRAFT", "SENT")

    def open(self):
        # still owed: not settled and not voided
        return self.filter(status__in=self.OPEN_STATUSES)

    def overdue(self, today):
        # due strictly before today and still open
        return self.open().filter(due_date__lt=today)


class InvoiceManager(TenantManager):
    def get_queryset(self):
        return InvoiceQuerySet(self.model, using=self._db)

    def overdue(self, today):
        return self.get_queryset().overdue(today)
