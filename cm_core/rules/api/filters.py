# cm_core/rules/api/filters.py
from __future__ import annotations

import django_filters

from cm_core.rules.models import ConditionalRule, RuleType


class ConditionalRuleFilter(django_filters.FilterSet):
    """
    ?type=selection|modification, ?target_table=<id> (modification rules of
    one table), ?is_active=true|false
    """
    type = django_filters.ChoiceFilter(field_name="rule_type", choices=RuleType.choices)
    target_table = django_filters.NumberFilter(field_name="target_table_id")
    is_active = django_filters.BooleanFilter()

    class Meta:
        model = ConditionalRule
        fields = []
