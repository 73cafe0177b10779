# cm_core/rules/tests/test_rules_api.py
import pytest

from cm_core.rules.models import ActionType, ConditionalRule, Operator, RuleType

pytestmark = pytest.mark.django_db

BASE = "/api/v1/rules/"


def test_create_selection_rule(api_client, make_table):
    table = make_table()
    payload = {
        "name": "Pele seca",
        "rule_type": RuleType.SELECTION,
        "conditions": [{"field": "tipo_pele", "operator": Operator.EQUALS, "expected_value": "Seca"}],
        "actions": [{"action_type": ActionType.USE_TABLE, "target_table": table.id}],
    }

    r = api_client.post(BASE, payload, format="json")

    assert r.status_code == 201, r.data
    assert r.data["order"] == 1
    assert r.data["target_table"] is None
    assert r.data["conditions"][0]["expected_value"] == "Seca"
    assert r.data["actions"][0]["target_table"] == table.id


def test_create_modification_without_target_is_rejected(api_client, make_product):
    product = make_product("SABAO-X")
    payload = {
        "name": "Gestante",
        "rule_type": RuleType.MODIFICATION,
        "conditions": [{"field": "gravidez", "expected_value": "Sim"}],
        "actions": [{"action_type": ActionType.REMOVE_ITEM, "product": product.id}],
    }

    r = api_client.post(BASE, payload, format="json")

    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert "target_table" in r.data["error"]["details"]
    assert ConditionalRule.objects.count() == 0


def test_list_filters(user_client, make_table, make_rule):
    table = make_table()
    sel = make_rule(name="sel", order=1)
    mod = make_rule(name="mod", rule_type=RuleType.MODIFICATION, target_table=table, order=2)
    make_rule(name="off", order=3, is_active=False)

    r = user_client.get(BASE)
    assert r.status_code == 200
    assert [x["name"] for x in r.data["results"]] == ["sel", "mod", "off"]

    r = user_client.get(BASE, {"type": RuleType.MODIFICATION})
    assert [x["id"] for x in r.data["results"]] == [mod.id]

    r = user_client.get(BASE, {"target_table": table.id})
    assert [x["id"] for x in r.data["results"]] == [mod.id]

    r = user_client.get(BASE, {"is_active": "true", "type": RuleType.SELECTION})
    assert [x["id"] for x in r.data["results"]] == [sel.id]


def test_update_rule(api_client, make_table, make_rule):
    t1 = make_table(name="T1")
    t2 = make_table(name="T2")
    rule = make_rule(
        conditions=[("tipo_pele", Operator.EQUALS, "Seca")],
        actions=[{"action_type": ActionType.USE_TABLE, "target_table": t1}],
    )
    payload = {
        "name": "Renomeada",
        "rule_type": RuleType.SELECTION,
        "conditions": [{"field": "rosacea", "operator": Operator.EQUALS, "expected_value": "Sim"}],
        "actions": [{"action_type": ActionType.USE_TABLE, "target_table": t2.id}],
    }

    r = api_client.put(f"{BASE}{rule.id}/", payload, format="json")

    assert r.status_code == 200, r.data
    assert r.data["name"] == "Renomeada"
    assert [c["field"] for c in r.data["conditions"]] == ["rosacea"]
    assert r.data["actions"][0]["target_table"] == t2.id


def test_reorder_and_delete(api_client, make_rule):
    a = make_rule(name="a", order=1)
    b = make_rule(name="b", order=2)

    r = api_client.post(
        f"{BASE}reorder/",
        {"orders": [{"id": a.id, "order": 2}, {"id": b.id, "order": 1}]},
        format="json",
    )
    assert r.status_code == 200
    assert r.data == {"updated": 2}

    r = api_client.get(BASE)
    assert [x["name"] for x in r.data["results"]] == ["b", "a"]

    r = api_client.delete(f"{BASE}{a.id}/")
    assert r.status_code == 204
    assert not ConditionalRule.objects.filter(id=a.id).exists()


def test_reorder_unknown_rule(api_client):
    r = api_client.post(f"{BASE}reorder/", {"orders": [{"id": 424242, "order": 1}]}, format="json")
    assert r.status_code == 400


def test_vocabulary(user_client):
    r = user_client.get(f"{BASE}vocabulary/")

    assert r.status_code == 200
    assert "tipo_pele" in r.data["fields"]
    assert r.data["field_values"]["tipo_pele"] == ["Seca", "Normal", "Mista Ressecada", "Mista", "Oleosa"]
    assert set(r.data["operators"]) == {"equals", "not_equals", "any"}
    assert "use_table" in r.data["action_types"]


def test_non_staff_cannot_write(user_client, make_rule):
    rule = make_rule()

    assert user_client.post(BASE, {}, format="json").status_code == 403
    assert user_client.delete(f"{BASE}{rule.id}/").status_code == 403
