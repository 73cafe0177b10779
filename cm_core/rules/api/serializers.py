# cm_core/rules/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from cm_core.decision_tables.models import DecisionTable
from cm_core.products.models import Product
from cm_core.rules.models import (
    ActionType,
    ConditionalRule,
    ConditionField,
    Operator,
    RuleAction,
    RuleCondition,
    RuleType,
)


class RuleConditionSerializer(serializers.ModelSerializer):
    class Meta:
        model = RuleCondition
        fields = ["id", "field", "operator", "expected_value"]


class RuleActionSerializer(serializers.ModelSerializer):
    class Meta:
        model = RuleAction
        fields = ["id", "action_type", "target_table", "product", "mark", "quantity", "category", "position"]


class ConditionalRuleSerializer(serializers.ModelSerializer):
    conditions = RuleConditionSerializer(many=True, read_only=True)
    actions = RuleActionSerializer(many=True, read_only=True)

    class Meta:
        model = ConditionalRule
        fields = [
            "id",
            "name",
            "description",
            "rule_type",
            "target_table",
            "order",
            "is_active",
            "conditions",
            "actions",
            "created_at",
            "updated_at",
        ]


class ConditionInputSerializer(serializers.Serializer):
    field = serializers.ChoiceField(choices=ConditionField.choices)
    operator = serializers.ChoiceField(choices=Operator.choices, default=Operator.EQUALS)
    expected_value = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)


class ActionInputSerializer(serializers.Serializer):
    action_type = serializers.ChoiceField(choices=ActionType.choices)
    target_table = serializers.PrimaryKeyRelatedField(
        queryset=DecisionTable.objects.all(), required=False, allow_null=True
    )
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), required=False, allow_null=True)
    mark = serializers.BooleanField(required=False, default=True)
    quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    category = serializers.CharField(max_length=255, required=False, allow_null=True, allow_blank=True)


class RuleWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
    rule_type = serializers.ChoiceField(choices=RuleType.choices)
    target_table = serializers.PrimaryKeyRelatedField(
        queryset=DecisionTable.objects.all(), required=False, allow_null=True
    )
    is_active = serializers.BooleanField(required=False, default=True)
    conditions = ConditionInputSerializer(many=True)
    actions = ActionInputSerializer(many=True)


class RuleOrderSerializer(serializers.Serializer):
    id = serializers.PrimaryKeyRelatedField(queryset=ConditionalRule.objects.all())
    order = serializers.IntegerField(min_value=0)


class ReorderSerializer(serializers.Serializer):
    orders = RuleOrderSerializer(many=True)
