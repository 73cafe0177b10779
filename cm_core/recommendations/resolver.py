# cm_core/recommendations/resolver.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from cm_core.decision_tables.models import EntryGroup
from cm_core.decision_tables.selectors import lookup_entries
from cm_core.products.models import Product
from cm_core.products.selectors import get_product, resolve_product
from cm_core.rules.engine import EngineState

logger = logging.getLogger(__name__)

RULE_GROUP = "regra"
RULE_CATEGORY = "Regra Condicional"


class Origin:
    DECISION_TABLE = "decision_table"
    RULE_OVERRIDE = "rule_override"


@dataclass(frozen=True)
class RecommendationItem:
    product: Optional[Product]
    category: str
    product_code: str
    group: str
    preselected: bool
    origin: str

    @property
    def product_id(self) -> Optional[int]:
        return self.product.id if self.product is not None else None


def _table_items(case_code: str, state: EngineState) -> list[RecommendationItem]:
    items: list[RecommendationItem] = []
    if state.selected_table is None:
        return items

    for entry in lookup_entries(table=state.selected_table, case_code=case_code):
        product = resolve_product(reference=entry.product_code)
        if product is None:
            logger.debug("No product matches %r (table=%s)", entry.product_code, state.selected_table.id)
        elif product.id in state.removals:
            continue

        items.append(
            RecommendationItem(
                product=product,
                category=entry.category,
                product_code=entry.product_code,
                group=entry.group,
                preselected=entry.should_mark and entry.group == EntryGroup.FIRST,
                origin=Origin.DECISION_TABLE,
            )
        )
    return items


def recommend(case_code: str, state: EngineState) -> list[RecommendationItem]:
    """
    Table entries for the case (resolved to products, minus removals), then
    rule additions not already listed. One item per product; items with an
    unresolved product are always kept.
    """
    result: list[RecommendationItem] = []
    seen: set[int] = set()

    for item in _table_items(case_code, state):
        if item.product_id is not None:
            if item.product_id in seen:
                continue
            seen.add(item.product_id)
        result.append(item)

    for product_id, info in state.additions.items():
        if product_id in seen or product_id in state.removals:
            continue
        product = get_product(product_id=product_id)
        if product is None:
            continue
        seen.add(product_id)
        result.append(
            RecommendationItem(
                product=product,
                category=info.category or RULE_CATEGORY,
                product_code=product.code or product.name,
                group=RULE_GROUP,
                preselected=info.mark,
                origin=Origin.RULE_OVERRIDE,
            )
        )

    return result
