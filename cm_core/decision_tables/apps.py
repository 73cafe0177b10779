# cm_core/decision_tables/apps.py
from django.apps import AppConfig


class DecisionTablesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cm_core.decision_tables"
