# cm_core/rules/selectors.py
from __future__ import annotations

from django.db.models import Prefetch, QuerySet

from cm_core.rules.models import ConditionalRule, RuleAction, RuleCondition, RuleType


def _with_children(qs: QuerySet[ConditionalRule]) -> QuerySet[ConditionalRule]:
    """
    Conditions in creation order, actions by position; both prefetched so
    evaluation does not hit the DB per rule.
    """
    return qs.prefetch_related(
        Prefetch("conditions", queryset=RuleCondition.objects.order_by("id")),
        Prefetch(
            "actions",
            queryset=RuleAction.objects.select_related("target_table", "product").order_by("position", "id"),
        ),
    )


def selection_rules() -> QuerySet[ConditionalRule]:
    qs = ConditionalRule.objects.filter(is_active=True, rule_type=RuleType.SELECTION)
    return _with_children(qs).order_by("order", "id")


def modification_rules_for(table_id: int) -> QuerySet[ConditionalRule]:
    qs = ConditionalRule.objects.filter(
        is_active=True,
        rule_type=RuleType.MODIFICATION,
        target_table_id=table_id,
    )
    return _with_children(qs).order_by("order", "id")


def get_rule(*, rule_id: int) -> ConditionalRule:
    return _with_children(ConditionalRule.objects.select_related("target_table")).get(id=rule_id)


def list_rules() -> QuerySet[ConditionalRule]:
    """
    Admin listing, all rules in evaluation order. Filtering happens in the
    API FilterSet.
    """
    qs = ConditionalRule.objects.select_related("target_table")
    return _with_children(qs).order_by("order", "id")
