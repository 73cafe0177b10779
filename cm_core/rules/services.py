# cm_core/rules/services.py
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from django.db import transaction
from django.db.models import Max
from django.utils.timezone import now
from rest_framework.exceptions import ValidationError

from cm_core.decision_tables.models import DecisionTable
from cm_core.rules.models import (
    ActionType,
    ConditionalRule,
    ConditionField,
    Operator,
    RuleAction,
    RuleCondition,
    RuleType,
)

logger = logging.getLogger(__name__)


class RuleService:
    """
    Rules write-model service.

    Consistency enforced here (admin input, not evaluation):
      - modification rules need a target table
      - selection rules only carry use_table actions
      - modification rules never carry use_table
      - modify_quantity needs a quantity >= 1
      - "any" conditions store no expected value
    Conditions and actions are replaced wholesale on update.
    """

    @staticmethod
    def _validate(
        *,
        rule_type: str,
        target_table: Optional[DecisionTable],
        conditions: list[dict[str, Any]],
        actions: list[dict[str, Any]],
    ) -> None:
        if rule_type not in RuleType.values:
            raise ValidationError({"rule_type": f"Invalid rule type {rule_type!r}."})

        if rule_type == RuleType.MODIFICATION and target_table is None:
            raise ValidationError({"target_table": "Modification rules require a target table."})

        if not conditions:
            raise ValidationError({"conditions": "At least one condition is required."})
        if not actions:
            raise ValidationError({"actions": "At least one action is required."})

        for c in conditions:
            if c.get("field") not in ConditionField.values:
                raise ValidationError({"conditions": f"Unknown field {c.get('field')!r}."})

        for a in actions:
            kind = a.get("action_type")
            if kind not in ActionType.values:
                raise ValidationError({"actions": f"Unknown action type {kind!r}."})
            if rule_type == RuleType.SELECTION and kind != ActionType.USE_TABLE:
                raise ValidationError({"actions": "Selection rules can only use the use_table action."})
            if rule_type == RuleType.MODIFICATION and kind == ActionType.USE_TABLE:
                raise ValidationError({"actions": "Modification rules cannot use the use_table action."})
            if kind == ActionType.USE_TABLE and not a.get("target_table"):
                raise ValidationError({"actions": "use_table requires a target table."})
            if kind != ActionType.USE_TABLE and not a.get("product"):
                raise ValidationError({"actions": f"{kind} requires a product."})
            if kind == ActionType.MODIFY_QUANTITY and not (a.get("quantity") or 0) >= 1:
                raise ValidationError({"actions": "modify_quantity requires a quantity of at least 1."})

    @staticmethod
    def _write_children(
        *,
        rule: ConditionalRule,
        conditions: Iterable[dict[str, Any]],
        actions: Iterable[dict[str, Any]],
    ) -> None:
        RuleCondition.objects.bulk_create(
            [
                RuleCondition(
                    rule=rule,
                    field=c["field"],
                    operator=c.get("operator") or Operator.EQUALS,
                    expected_value=None if c.get("operator") == Operator.ANY else c.get("expected_value"),
                )
                for c in conditions
            ]
        )
        RuleAction.objects.bulk_create(
            [
                RuleAction(
                    rule=rule,
                    action_type=a["action_type"],
                    target_table=a.get("target_table"),
                    product=a.get("product"),
                    mark=bool(a.get("mark", True)),
                    quantity=a.get("quantity"),
                    category=a.get("category") or None,
                    position=index,
                )
                for index, a in enumerate(actions)
            ]
        )

    @staticmethod
    @transaction.atomic
    def create_rule(
        *,
        name: str,
        rule_type: str,
        conditions: list[dict[str, Any]],
        actions: list[dict[str, Any]],
        description: str = "",
        target_table: Optional[DecisionTable] = None,
        is_active: bool = True,
        order: Optional[int] = None,
    ) -> ConditionalRule:
        RuleService._validate(
            rule_type=rule_type,
            target_table=target_table,
            conditions=conditions,
            actions=actions,
        )

        if order is None:
            current = ConditionalRule.objects.aggregate(m=Max("order"))["m"]
            order = (current or 0) + 1

        rule = ConditionalRule.objects.create(
            name=name,
            description=description or "",
            rule_type=rule_type,
            target_table=target_table if rule_type == RuleType.MODIFICATION else None,
            order=order,
            is_active=bool(is_active),
        )
        RuleService._write_children(rule=rule, conditions=conditions, actions=actions)

        logger.info("Created %s rule id=%s order=%s", rule_type, rule.id, order)
        return rule

    @staticmethod
    @transaction.atomic
    def update_rule(
        *,
        rule: ConditionalRule,
        name: str,
        rule_type: str,
        conditions: list[dict[str, Any]],
        actions: list[dict[str, Any]],
        description: str = "",
        target_table: Optional[DecisionTable] = None,
        is_active: bool = True,
    ) -> ConditionalRule:
        RuleService._validate(
            rule_type=rule_type,
            target_table=target_table,
            conditions=conditions,
            actions=actions,
        )

        rule.name = name
        rule.description = description or ""
        rule.rule_type = rule_type
        rule.target_table = target_table if rule_type == RuleType.MODIFICATION else None
        rule.is_active = bool(is_active)
        rule.save()

        rule.conditions.all().delete()
        rule.actions.all().delete()
        RuleService._write_children(rule=rule, conditions=conditions, actions=actions)

        logger.info("Updated rule id=%s", rule.id)
        return rule

    @staticmethod
    @transaction.atomic
    def reorder(*, orders: Iterable[dict[str, int]]) -> int:
        """
        orders: [{"id": rule_id, "order": n}, ...]. Returns rows updated.
        """
        ts = now()
        updated = 0
        for item in orders:
            updated += ConditionalRule.objects.filter(id=item["id"]).update(order=item["order"], updated_at=ts)
        return updated

    @staticmethod
    @transaction.atomic
    def delete_rule(*, rule: ConditionalRule) -> None:
        rule_id = rule.id
        rule.delete()
        logger.info("Deleted rule id=%s", rule_id)
