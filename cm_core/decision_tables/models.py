# cm_core/decision_tables/models.py
from django.db import models

from cm_core.common.models import TimeStampedModel


class EntryGroup(models.TextChoices):
    FIRST = "first", "First group (recommended)"
    SECOND = "second", "Second group (optional)"


# Column order sentinel for header cells without a numeric sequence.
UNSEQUENCED_COLUMN = 9999


class DecisionTable(TimeStampedModel):
    """
    Imported grid mapping clinical case codes to products per category.

    At most one active table is the default; the flag is only flipped through
    DecisionTableService.set_default so the clear-then-set stays atomic.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    source_file_name = models.CharField(max_length=255, blank=True)
    source_file = models.FileField(upload_to="decision_tables/", blank=True)  # CSV as imported, UTF-8
    is_active = models.BooleanField(default=True, db_index=True)
    is_default = models.BooleanField(default=False, db_index=True)

    class Meta:
        db_table = "decision_tables_table"
        ordering = ["-is_default", "-created_at"]

    def __str__(self) -> str:
        return self.name


class DecisionEntry(TimeStampedModel):
    table = models.ForeignKey(DecisionTable, on_delete=models.CASCADE, related_name="entries")

    clinical_case_code = models.CharField(max_length=32)
    category = models.CharField(max_length=255)
    product_code = models.CharField(max_length=255)  # free text, resolved loosely
    group = models.CharField(max_length=16, choices=EntryGroup.choices, default=EntryGroup.FIRST)
    should_mark = models.BooleanField(default=True)

    display_order = models.PositiveIntegerField(default=0)  # accepted data row index
    column_sequence = models.IntegerField(default=UNSEQUENCED_COLUMN)

    class Meta:
        db_table = "decision_tables_entry"
        indexes = [
            models.Index(fields=["table", "clinical_case_code"]),
        ]

    def __str__(self) -> str:
        return f"{self.clinical_case_code} / {self.category}: {self.product_code}"
