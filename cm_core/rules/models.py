# cm_core/rules/models.py
from __future__ import annotations

from typing import Mapping, Optional

from django.db import models
from django.db.models import Q

from cm_core.common.models import TimeStampedModel
from cm_core.decision_tables.models import DecisionTable
from cm_core.products.models import Product


class RuleType(models.TextChoices):
    SELECTION = "selection", "Table selection"
    MODIFICATION = "modification", "Table modification"


class ConditionField(models.TextChoices):
    """
    Clinical fields a condition can test. Values are the intake form keys.
    """
    GRAVIDEZ = "gravidez", "Pregnancy"
    ROSACEA = "rosacea", "Rosacea"
    FOTOTIPO = "fototipo", "Phototype"
    TIPO_PELE = "tipo_pele", "Skin type"
    MANCHAS = "manchas", "Spots"
    RUGAS = "rugas", "Wrinkles"
    ACNE = "acne", "Acne"
    FLACIDEZ = "flacidez", "Sagging"


class Operator(models.TextChoices):
    EQUALS = "equals", "Equals"
    NOT_EQUALS = "not_equals", "Not equals"
    ANY = "any", "Any value"


class ActionType(models.TextChoices):
    USE_TABLE = "use_table", "Use decision table"
    ADD_ITEM = "add_item", "Add item"
    REMOVE_ITEM = "remove_item", "Remove item"
    MODIFY_QUANTITY = "modify_quantity", "Modify quantity"
    CHANGE_MARKING = "change_marking", "Change marking"


SEVERITY_OPTIONS = ["Pouca ou Nenhuma", "Moderado", "Intenso"]

# Answer values offered by the intake form for each field.
FIELD_VALUE_OPTIONS: dict[str, list[str]] = {
    ConditionField.GRAVIDEZ: ["Sim", "Não"],
    ConditionField.ROSACEA: ["Sim", "Não"],
    ConditionField.FOTOTIPO: ["1", "1.5", "2", "2.5", "3", "3.5", "4", "4.5"],
    ConditionField.TIPO_PELE: ["Seca", "Normal", "Mista Ressecada", "Mista", "Oleosa"],
    ConditionField.MANCHAS: SEVERITY_OPTIONS,
    ConditionField.RUGAS: SEVERITY_OPTIONS,
    ConditionField.ACNE: SEVERITY_OPTIONS,
    ConditionField.FLACIDEZ: SEVERITY_OPTIONS,
}


class ConditionalRule(TimeStampedModel):
    """
    Admin-authored rule. Selection rules pick the decision table; modification
    rules (scoped to one target table) add or remove items afterwards.
    Lower `order` is evaluated first.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    rule_type = models.CharField(max_length=16, choices=RuleType.choices, default=RuleType.SELECTION)
    target_table = models.ForeignKey(
        DecisionTable,
        on_delete=models.CASCADE,
        related_name="modification_rules",
        null=True,
        blank=True,
    )
    order = models.IntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "rules_conditional_rule"
        constraints = [
            models.CheckConstraint(
                condition=~Q(rule_type=RuleType.MODIFICATION) | Q(target_table__isnull=False),
                name="ck_rule_modification_has_target",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "rule_type", "order"]),
        ]

    def __str__(self) -> str:
        return self.name

    def verify(self, assessment: Mapping[str, Optional[str]]) -> bool:
        """
        True when every condition holds; a rule without conditions always
        matches.
        """
        return all(c.verify(assessment) for c in self.conditions.all())


class RuleCondition(TimeStampedModel):
    rule = models.ForeignKey(ConditionalRule, on_delete=models.CASCADE, related_name="conditions")
    field = models.CharField(max_length=32, choices=ConditionField.choices)
    # not validated at DB level: unknown operators evaluate as EQUALS
    operator = models.CharField(max_length=16, choices=Operator.choices, default=Operator.EQUALS)
    expected_value = models.CharField(max_length=255, null=True, blank=True)

    class Meta:
        db_table = "rules_condition"
        indexes = [
            models.Index(fields=["rule", "field"]),
        ]

    def __str__(self) -> str:
        return f"{self.field} {self.operator} {self.expected_value!r}"

    def verify(self, assessment: Mapping[str, Optional[str]]) -> bool:
        actual = assessment.get(self.field)

        if self.operator == Operator.ANY:
            return True
        if self.operator == Operator.NOT_EQUALS:
            return actual != self.expected_value
        return actual == self.expected_value


class RuleAction(TimeStampedModel):
    """
    One effect of a rule. Payload depends on action_type:
      use_table                    -> target_table
      add_item / modify_quantity   -> product, mark, quantity, category
      remove_item                  -> product
      change_marking               -> product, mark
    """
    rule = models.ForeignKey(ConditionalRule, on_delete=models.CASCADE, related_name="actions")
    action_type = models.CharField(max_length=32, choices=ActionType.choices)

    target_table = models.ForeignKey(
        DecisionTable,
        on_delete=models.SET_NULL,
        related_name="selecting_actions",
        null=True,
        blank=True,
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="rule_actions",
        null=True,
        blank=True,
    )
    mark = models.BooleanField(default=True)
    quantity = models.PositiveIntegerField(null=True, blank=True)
    category = models.CharField(max_length=255, null=True, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "rules_action"
        indexes = [
            models.Index(fields=["rule", "action_type"]),
        ]

    def __str__(self) -> str:
        return f"{self.action_type} (rule={self.rule_id})"
