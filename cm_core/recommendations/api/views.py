# cm_core/recommendations/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from cm_core.recommendations.api.serializers import AssessmentSerializer, SuggestionSerializer
from cm_core.recommendations.services import RecommendationService


class SuggestView(APIView):
    @extend_schema(request=AssessmentSerializer, responses={200: SuggestionSerializer}, tags=["Recommendations"])
    def post(self, request):
        ser = AssessmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        assessment = {k: v for k, v in ser.validated_data.items() if v not in (None, "")}
        suggestion = RecommendationService.suggest(assessment)
        return Response(SuggestionSerializer(suggestion).data, status=status.HTTP_200_OK)
