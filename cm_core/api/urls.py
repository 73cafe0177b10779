# cm_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from cm_core.decision_tables.api.views import DecisionTableViewSet
from cm_core.recommendations.api.views import SuggestView
from cm_core.rules.api.views import ConditionalRuleViewSet

router = DefaultRouter()
router.register(r"decision-tables", DecisionTableViewSet, basename="decision-tables")
router.register(r"rules", ConditionalRuleViewSet, basename="rules")

urlpatterns = [
    path("recommendations/suggest/", SuggestView.as_view(), name="recommendations-suggest"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
