# cm_core/recommendations/apps.py
from django.apps import AppConfig


class RecommendationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cm_core.recommendations"
