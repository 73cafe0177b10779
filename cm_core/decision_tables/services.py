# cm_core/decision_tables/services.py
from __future__ import annotations

import logging

from django.db import transaction
from django.utils.timezone import now
from rest_framework.exceptions import ValidationError

from cm_core.decision_tables.models import DecisionTable

logger = logging.getLogger(__name__)


class DecisionTableService:
    """
    Write-model operations for decision tables.

    Import lives in cm_core.decision_tables.csv_import; this service owns the
    default flag, activation and deletion.
    """

    @staticmethod
    @transaction.atomic
    def set_default(*, table: DecisionTable) -> DecisionTable:
        """
        Clear the default flag everywhere else, then set it on `table`.
        """
        if not table.is_active:
            raise ValidationError({"detail": "Only an active table can be the default."})

        # lock current defaults so concurrent flips serialize
        list(DecisionTable.objects.select_for_update().filter(is_default=True).values_list("id", flat=True))

        ts = now()
        DecisionTable.objects.filter(is_default=True).exclude(id=table.id).update(is_default=False, updated_at=ts)
        DecisionTable.objects.filter(id=table.id).update(is_default=True, updated_at=ts)

        table.refresh_from_db()
        logger.info("Decision table id=%s is now the default", table.id)
        return table

    @staticmethod
    @transaction.atomic
    def toggle_active(*, table: DecisionTable) -> DecisionTable:
        """
        Flip the active flag. A deactivated table also loses the default flag.
        """
        table = DecisionTable.objects.select_for_update().get(id=table.id)
        table.is_active = not table.is_active
        if not table.is_active:
            table.is_default = False
        table.save(update_fields=["is_active", "is_default", "updated_at"])
        return table

    @staticmethod
    @transaction.atomic
    def delete_table(*, table: DecisionTable) -> int:
        """
        Delete a table and the selection rules pointing at it.

        Modification rules and entries go with the table through FK cascade;
        the stored CSV is removed from storage.
        Returns the number of selection rules removed.
        """
        from cm_core.rules.models import ActionType, ConditionalRule, RuleType

        rule_ids = list(
            ConditionalRule.objects.filter(
                rule_type=RuleType.SELECTION,
                actions__action_type=ActionType.USE_TABLE,
                actions__target_table=table,
            )
            .values_list("id", flat=True)
            .distinct()
        )
        ConditionalRule.objects.filter(id__in=rule_ids).delete()

        table_id = table.id
        table.delete()
        if table.source_file:
            table.source_file.delete(save=False)
        logger.info("Deleted decision table id=%s and %d selection rule(s)", table_id, len(rule_ids))
        return len(rule_ids)
