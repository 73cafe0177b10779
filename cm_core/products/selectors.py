# cm_core/products/selectors.py
from __future__ import annotations

from typing import Optional

from django.db.models import Q

from cm_core.products.models import Product


def get_product(*, product_id: int) -> Optional[Product]:
    """
    Exact lookup by id, regardless of the active flag.
    """
    return Product.objects.filter(id=product_id).first()


def resolve_product(*, reference: str) -> Optional[Product]:
    """
    Resolve the free-text product reference carried by a decision-table cell.

    Active products only, first hit wins:
      1) exact code
      2) exact name
      3) code or name containing the reference (case-insensitive)
    Ties inside a tier go to the lowest id.
    """
    ref = (reference or "").strip()
    if not ref:
        return None

    qs = Product.objects.filter(is_active=True).order_by("id")

    return (
        qs.filter(code=ref).first()
        or qs.filter(name=ref).first()
        or qs.filter(Q(code__icontains=ref) | Q(name__icontains=ref)).first()
    )
