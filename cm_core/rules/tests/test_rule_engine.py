# cm_core/rules/tests/test_rule_engine.py
from types import MappingProxyType

import pytest

from cm_core.rules.engine import Addition, EngineState, RuleEngine
from cm_core.rules.models import ActionType, Operator, RuleType

pytestmark = pytest.mark.django_db


def _use(table):
    return {"action_type": ActionType.USE_TABLE, "target_table": table}


def test_no_rules_no_default_selects_nothing():
    state = RuleEngine.evaluate({"tipo_pele": "Seca"})

    assert state.selected_table is None
    assert dict(state.additions) == {}
    assert state.removals == frozenset()
    assert state.applied_rules == ()


def test_falls_back_to_default_table(make_table):
    default = make_table(name="Padrao", is_default=True)

    state = RuleEngine.evaluate({})

    assert state.selected_table == default
    assert state.applied_rules == ()


def test_last_matching_selection_rule_wins(make_table, make_rule):
    t1 = make_table(name="T1")
    t2 = make_table(name="T2")
    make_table(name="Padrao", is_default=True)

    r1 = make_rule(name="r1", order=1, conditions=[("tipo_pele", Operator.EQUALS, "Seca")], actions=[_use(t1)])
    r2 = make_rule(name="r2", order=2, conditions=[("gravidez", Operator.EQUALS, "Sim")], actions=[_use(t2)])

    state = RuleEngine.evaluate({"tipo_pele": "Seca", "gravidez": "Sim"})

    assert state.selected_table == t2
    assert state.applied_rule_ids == [r1.id, r2.id]


def test_non_matching_rule_is_not_applied(make_table, make_rule):
    t1 = make_table(name="T1")
    default = make_table(name="Padrao", is_default=True)
    make_rule(conditions=[("tipo_pele", Operator.EQUALS, "Seca")], actions=[_use(t1)])

    state = RuleEngine.evaluate({"tipo_pele": "Oleosa"})

    assert state.selected_table == default
    assert state.applied_rules == ()


def test_use_table_on_inactive_table_is_ignored(make_table, make_rule):
    inactive = make_table(name="Inativa", is_active=False)
    default = make_table(name="Padrao", is_default=True)
    rule = make_rule(conditions=[("acne", Operator.ANY, None)], actions=[_use(inactive)])

    state = RuleEngine.evaluate({})

    assert state.selected_table == default
    assert state.applied_rule_ids == [rule.id]


def test_inactive_rules_are_skipped(make_table, make_rule):
    t1 = make_table(name="T1")
    make_rule(is_active=False, conditions=[("acne", Operator.ANY, None)], actions=[_use(t1)])

    assert RuleEngine.evaluate({}).selected_table is None


def test_modification_rules_of_selected_table_only(make_table, make_rule, make_product):
    table = make_table(name="T", is_default=True)
    other = make_table(name="Outra")
    p1 = make_product("SABAO-X")
    p2 = make_product("CREME-Y")

    make_rule(
        rule_type=RuleType.MODIFICATION,
        target_table=table,
        conditions=[("gravidez", Operator.EQUALS, "Sim")],
        actions=[
            {"action_type": ActionType.REMOVE_ITEM, "product": p1},
            {"action_type": ActionType.ADD_ITEM, "product": p2, "mark": False, "category": "Gestante"},
        ],
    )
    make_rule(
        rule_type=RuleType.MODIFICATION,
        target_table=other,
        conditions=[("gravidez", Operator.EQUALS, "Sim")],
        actions=[{"action_type": ActionType.REMOVE_ITEM, "product": p2}],
    )

    state = RuleEngine.evaluate({"gravidez": "Sim"})

    assert state.selected_table == table
    assert state.removals == frozenset({p1.id})
    assert dict(state.additions) == {p2.id: Addition(mark=False, category="Gestante")}


def test_later_add_overwrites_earlier_add(make_table, make_rule, make_product):
    table = make_table(is_default=True)
    p = make_product("SERUM-Z")

    for order, (mark, category) in enumerate([(True, "Primeira"), (False, None)]):
        make_rule(
            name=f"add-{order}",
            order=order,
            rule_type=RuleType.MODIFICATION,
            target_table=table,
            conditions=[("acne", Operator.ANY, None)],
            actions=[{"action_type": ActionType.ADD_ITEM, "product": p, "mark": mark, "category": category}],
        )

    state = RuleEngine.evaluate({})

    assert dict(state.additions) == {p.id: Addition(mark=False, category=None)}


def test_inert_actions_change_nothing(make_table, make_rule, make_product):
    table = make_table(is_default=True)
    p = make_product("GEL-W")
    rule = make_rule(
        rule_type=RuleType.MODIFICATION,
        target_table=table,
        conditions=[("acne", Operator.ANY, None)],
        actions=[
            {"action_type": ActionType.MODIFY_QUANTITY, "product": p, "quantity": 3},
            {"action_type": ActionType.CHANGE_MARKING, "product": p, "mark": False},
        ],
    )

    state = RuleEngine.evaluate({})

    assert state.applied_rule_ids == [rule.id]
    assert dict(state.additions) == {}
    assert state.removals == frozenset()


def test_evaluation_is_deterministic(make_table, make_rule, make_product):
    t1 = make_table(name="T1")
    p = make_product("SABAO-X")
    make_rule(order=1, conditions=[("tipo_pele", Operator.EQUALS, "Seca")], actions=[_use(t1)])
    make_rule(
        rule_type=RuleType.MODIFICATION,
        target_table=t1,
        conditions=[("rugas", Operator.NOT_EQUALS, "Intenso")],
        actions=[{"action_type": ActionType.ADD_ITEM, "product": p}],
    )

    assessment = {"tipo_pele": "Seca", "rugas": "Moderado"}
    first = RuleEngine.evaluate(assessment)
    second = RuleEngine.evaluate(assessment)

    assert first.selected_table == second.selected_table == t1
    assert dict(first.additions) == dict(second.additions)
    assert first.removals == second.removals
    assert first.applied_rule_ids == second.applied_rule_ids


def test_apply_action_returns_new_state(make_product):
    p = make_product("SABAO-X")
    initial = EngineState()

    class _Action:
        id = None
        action_type = ActionType.ADD_ITEM
        product_id = p.id
        mark = True
        category = None

    after = RuleEngine.apply_action(initial, _Action())

    assert dict(initial.additions) == {}
    assert isinstance(after.additions, MappingProxyType)
    assert after.additions[p.id] == Addition(mark=True, category=None)
    with pytest.raises(TypeError):
        after.additions[p.id] = Addition(mark=False, category=None)
