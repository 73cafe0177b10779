# cm_core/decision_tables/selectors.py
from __future__ import annotations

from typing import Optional

from django.db.models import Count, QuerySet

from cm_core.decision_tables.models import DecisionEntry, DecisionTable


def get_table(*, table_id: int) -> DecisionTable:
    return DecisionTable.objects.get(id=table_id)


def get_default() -> Optional[DecisionTable]:
    """
    The active table flagged as default, if any.
    """
    return (
        DecisionTable.objects.filter(is_default=True, is_active=True)
        .order_by("id")
        .first()
    )


def list_tables(*, active_only: bool = False) -> QuerySet[DecisionTable]:
    """
    Default table first, then newest. Annotated with case_count (distinct case
    codes) and entry_count.
    """
    qs = DecisionTable.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.annotate(
        case_count=Count("entries__clinical_case_code", distinct=True),
        entry_count=Count("entries"),
    ).order_by("-is_default", "-created_at", "-id")


def lookup_entries(*, table: DecisionTable, case_code: str) -> QuerySet[DecisionEntry]:
    return DecisionEntry.objects.filter(table=table, clinical_case_code=case_code).order_by(
        "display_order", "column_sequence", "id"
    )


def entries_by_case(*, table: DecisionTable) -> dict[str, list[DecisionEntry]]:
    """
    Grid view of a table: case code -> entries, cases in import row order and
    entries in source column order.
    """
    grouped: dict[str, list[DecisionEntry]] = {}
    qs = DecisionEntry.objects.filter(table=table).order_by("display_order", "column_sequence", "id")
    for entry in qs:
        grouped.setdefault(entry.clinical_case_code, []).append(entry)
    return grouped


def categories(*, table: DecisionTable) -> list[str]:
    """
    Distinct categories ordered by their source column sequence.
    """
    rows = (
        DecisionEntry.objects.filter(table=table)
        .values_list("category", "column_sequence")
        .order_by("column_sequence", "category")
        .distinct()
    )
    seen: list[str] = []
    for category, _seq in rows:
        if category not in seen:
            seen.append(category)
    return seen
