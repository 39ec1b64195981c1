from django.db import models

from .entitymembership import Company


# ---------- Document numbering ----------
class CompanySequence(models.Model):
    """
    Per-company counter row, one per sequence name
    (e.g. "INV-2026", "JE-2026").
    Incremented under select_for_update by services.sequences.
    """

    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="sequences"
    )
    name = models.CharField(max_length=50)
    # Value handed out by the next reservation
    next_value = models.PositiveIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_sequence_name"
            )
        ]

    def __str__(self):
        return f"{self.company_id}:{self.name} → {self.next_value}"
