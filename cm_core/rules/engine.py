# cm_core/rules/engine.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import reduce
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from cm_core.decision_tables.models import DecisionTable
from cm_core.decision_tables.selectors import get_default
from cm_core.rules.models import ActionType, ConditionalRule, RuleAction
from cm_core.rules.selectors import modification_rules_for, selection_rules

logger = logging.getLogger(__name__)

Assessment = Mapping[str, Optional[str]]


@dataclass(frozen=True)
class Addition:
    mark: bool
    category: Optional[str]


@dataclass(frozen=True)
class EngineState:
    """
    Result of one evaluation. Every step of the fold returns a new state.

    additions: product id -> Addition (later add for the same product wins)
    removals:  product ids, only ever grows within one evaluation
    """
    selected_table: Optional[DecisionTable] = None
    additions: Mapping[int, Addition] = field(default_factory=lambda: MappingProxyType({}))
    removals: frozenset[int] = frozenset()
    applied_rules: tuple[ConditionalRule, ...] = ()

    @property
    def applied_rule_ids(self) -> list[int]:
        return [r.id for r in self.applied_rules]


class RuleEngine:
    """
    Two passes per evaluation:
      1) active selection rules, ascending order -> picks the table
         (falls back to the default table)
      2) active modification rules of the picked table -> additions/removals

    Conflicts are not weighed: the last matching use_table wins.
    """

    @staticmethod
    def evaluate(assessment: Assessment) -> EngineState:
        state = RuleEngine.run_pass(EngineState(), selection_rules(), assessment)

        if state.selected_table is None:
            state = replace(state, selected_table=get_default())

        if state.selected_table is not None:
            state = RuleEngine.run_pass(
                state,
                modification_rules_for(state.selected_table.id),
                assessment,
            )

        logger.debug(
            "Rule evaluation: table=%s applied=%s additions=%s removals=%s",
            getattr(state.selected_table, "id", None),
            state.applied_rule_ids,
            sorted(state.additions),
            sorted(state.removals),
        )
        return state

    @staticmethod
    def run_pass(state: EngineState, rules: Iterable[ConditionalRule], assessment: Assessment) -> EngineState:
        return reduce(
            lambda acc, rule: RuleEngine.apply_rule(acc, rule) if rule.verify(assessment) else acc,
            rules,
            state,
        )

    @staticmethod
    def apply_rule(state: EngineState, rule: ConditionalRule) -> EngineState:
        state = replace(state, applied_rules=state.applied_rules + (rule,))
        return reduce(RuleEngine.apply_action, rule.actions.all(), state)

    @staticmethod
    def apply_action(state: EngineState, action: RuleAction) -> EngineState:
        kind = action.action_type

        if kind == ActionType.USE_TABLE:
            table = action.target_table
            if table is not None and table.is_active:
                return replace(state, selected_table=table)
            return state

        if kind == ActionType.ADD_ITEM:
            if action.product_id is None:
                return state
            additions = dict(state.additions)
            additions[action.product_id] = Addition(mark=action.mark, category=action.category)
            return replace(state, additions=MappingProxyType(additions))

        if kind == ActionType.REMOVE_ITEM:
            if action.product_id is None:
                return state
            return replace(state, removals=state.removals | {action.product_id})

        if kind in (ActionType.MODIFY_QUANTITY, ActionType.CHANGE_MARKING):
            # stored with the rule, not applied to recommendations yet
            logger.debug(
                "Skipping inert %s action id=%s (product=%s quantity=%s mark=%s)",
                kind,
                action.id,
                action.product_id,
                action.quantity,
                action.mark,
            )
            return state

        logger.debug("Ignoring unknown action type %r on action id=%s", kind, action.id)
        return state
