# conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from cm_core.decision_tables.models import DecisionEntry, DecisionTable, EntryGroup
from cm_core.products.models import Product
from cm_core.rules.models import ConditionalRule, RuleAction, RuleCondition, RuleType
from cm_core.tests.helpers import SAMPLE_CSV


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    return settings.MEDIA_ROOT


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def admin_user(db):
    User = get_user_model()
    return User.objects.create_user(
        username="admin",
        password="adminpass",
        is_staff=True,
        is_active=True,
    )


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="doctor", password="doctorpass", is_active=True)


@pytest.fixture
def api_client(admin_user):
    c = APIClient()
    c.force_authenticate(user=admin_user)
    return c


@pytest.fixture
def user_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def make_product(db):
    def _make(code, name=None, is_active=True):
        return Product.objects.create(code=code, name=name or code.title(), is_active=is_active)

    return _make


@pytest.fixture
def make_table(db):
    def _make(name="Tabela", is_active=True, is_default=False, entries=()):
        table = DecisionTable.objects.create(name=name, is_active=is_active, is_default=is_default)
        for i, (case_code, category, product_code, group) in enumerate(entries):
            DecisionEntry.objects.create(
                table=table,
                clinical_case_code=case_code,
                category=category,
                product_code=product_code,
                group=group,
                should_mark=group == EntryGroup.FIRST,
                display_order=0,
                column_sequence=i + 1,
            )
        return table

    return _make


@pytest.fixture
def make_rule(db):
    """
    make_rule(order=1, conditions=[("tipo_pele", "equals", "Seca")],
              actions=[{"action_type": "use_table", "target_table": t}])
    """

    def _make(
        name="Regra",
        rule_type=RuleType.SELECTION,
        order=0,
        conditions=(),
        actions=(),
        target_table=None,
        is_active=True,
    ):
        rule = ConditionalRule.objects.create(
            name=name,
            rule_type=rule_type,
            order=order,
            target_table=target_table,
            is_active=is_active,
        )
        for field, operator, expected in conditions:
            RuleCondition.objects.create(rule=rule, field=field, operator=operator, expected_value=expected)
        for position, payload in enumerate(actions):
            RuleAction.objects.create(rule=rule, position=position, **payload)
        return rule

    return _make
