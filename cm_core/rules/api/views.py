# cm_core/rules/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from cm_core.rules import selectors
from cm_core.rules.api.filters import ConditionalRuleFilter
from cm_core.rules.api.serializers import (
    ConditionalRuleSerializer,
    ReorderSerializer,
    RuleWriteSerializer,
)
from cm_core.rules.models import FIELD_VALUE_OPTIONS, ActionType, ConditionField, Operator, RuleType
from cm_core.rules.services import RuleService


class ConditionalRuleViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Reads go through selectors (evaluation order, children prefetched);
    writes go through RuleService.
    """

    serializer_class = ConditionalRuleSerializer
    filterset_class = ConditionalRuleFilter
    ordering_fields = ["order", "name", "created_at"]

    def get_queryset(self):
        return selectors.list_rules()

    def get_permissions(self):
        if self.action in ("list", "retrieve", "vocabulary"):
            return [IsAuthenticated()]
        return [IsAdminUser()]

    def _write_kwargs(self, data: dict) -> dict:
        return {
            "name": data["name"],
            "description": data.get("description", ""),
            "rule_type": data["rule_type"],
            "target_table": data.get("target_table"),
            "is_active": data.get("is_active", True),
            "conditions": [dict(c) for c in data["conditions"]],
            "actions": [dict(a) for a in data["actions"]],
        }

    def _read(self, rule_id) -> dict:
        rule = selectors.get_rule(rule_id=rule_id)
        return ConditionalRuleSerializer(rule).data

    @extend_schema(request=RuleWriteSerializer, responses={201: ConditionalRuleSerializer}, tags=["Rules"])
    def create(self, request):
        ser = RuleWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        rule = RuleService.create_rule(**self._write_kwargs(ser.validated_data))
        return Response(self._read(rule.id), status=status.HTTP_201_CREATED)

    @extend_schema(request=RuleWriteSerializer, responses={200: ConditionalRuleSerializer}, tags=["Rules"])
    def update(self, request, pk=None):
        rule = self.get_object()
        ser = RuleWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        RuleService.update_rule(rule=rule, **self._write_kwargs(ser.validated_data))
        return Response(self._read(rule.id), status=status.HTTP_200_OK)

    @extend_schema(responses={204: None}, tags=["Rules"])
    def destroy(self, request, pk=None):
        RuleService.delete_rule(rule=self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=ReorderSerializer, responses={200: None}, tags=["Rules"])
    @action(detail=False, methods=["post"], url_path="reorder")
    def reorder(self, request):
        ser = ReorderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        updated = RuleService.reorder(
            orders=[{"id": item["id"].id, "order": item["order"]} for item in ser.validated_data["orders"]]
        )
        return Response({"updated": updated}, status=status.HTTP_200_OK)

    @extend_schema(responses={200: None}, tags=["Rules"])
    @action(detail=False, methods=["get"], url_path="vocabulary")
    def vocabulary(self, request):
        """
        Choices for the rule editor: fields with their answer values,
        operators, action and rule types.
        """
        return Response(
            {
                "fields": dict(ConditionField.choices),
                "field_values": FIELD_VALUE_OPTIONS,
                "operators": dict(Operator.choices),
                "action_types": dict(ActionType.choices),
                "rule_types": dict(RuleType.choices),
            },
            status=status.HTTP_200_OK,
        )
