# cm_core/products/models.py
from django.db import models

from cm_core.common.models import TimeStampedModel


class Product(TimeStampedModel):
    """
    Product directory entry. Owned by the catalogue side of the clinic app;
    the recommendation engine only reads id/code/name/is_active.
    """
    code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "products_product"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"
