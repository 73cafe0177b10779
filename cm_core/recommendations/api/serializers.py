# cm_core/recommendations/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from cm_core.rules.models import ConditionField


class AssessmentSerializer(serializers.Serializer):
    """
    Clinical intake answers. Every field is optional; unknown keys are
    dropped.
    """

    def get_fields(self):
        return {
            name: serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True)
            for name in ConditionField.values
        }


class RecommendationItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(allow_null=True)
    product_name = serializers.SerializerMethodField()
    category = serializers.CharField()
    product_code = serializers.CharField()
    group = serializers.CharField()
    preselected = serializers.BooleanField()
    origin = serializers.CharField()

    def get_product_name(self, item) -> str | None:
        return item.product.name if item.product is not None else None


class SuggestionSerializer(serializers.Serializer):
    case_code = serializers.CharField()
    selected_table = serializers.SerializerMethodField()
    applied_rules = serializers.SerializerMethodField()
    items = RecommendationItemSerializer(many=True)

    def get_selected_table(self, suggestion) -> dict | None:
        table = suggestion.state.selected_table
        if table is None:
            return None
        return {"id": table.id, "name": table.name}

    def get_applied_rules(self, suggestion) -> list[dict]:
        return [{"id": r.id, "name": r.name, "rule_type": r.rule_type} for r in suggestion.state.applied_rules]
