# cm_core/decision_tables/api/views.py
from __future__ import annotations

from django.http import FileResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from cm_core.common.api.pagination import paginate
from cm_core.decision_tables import selectors
from cm_core.decision_tables.api.serializers import (
    CsvUploadSerializer,
    CsvValidationSerializer,
    DecisionEntrySerializer,
    DecisionTableImportSerializer,
    DecisionTableSerializer,
)
from cm_core.decision_tables.csv_import import decode_csv_bytes, import_csv, validate_csv
from cm_core.decision_tables.models import DecisionTable
from cm_core.decision_tables.services import DecisionTableService


class DecisionTableViewSet(viewsets.ViewSet):
    """
    Thin API layer over the decision-table selectors/services:
    listing and grid view for any user, import and admin actions for staff.
    """

    serializer_class = DecisionTableSerializer
    queryset = DecisionTable.objects.none()

    def get_permissions(self):
        if self.action in ("list", "retrieve", "download"):
            return [IsAuthenticated()]
        return [IsAdminUser()]

    def _get_table(self, pk) -> DecisionTable:
        try:
            return selectors.get_table(table_id=pk)
        except (DecisionTable.DoesNotExist, ValueError, TypeError):
            raise NotFound("Decision table not found.")

    @extend_schema(responses={200: DecisionTableSerializer(many=True)}, tags=["Decision tables"])
    def list(self, request):
        return paginate(request, selectors.list_tables(), DecisionTableSerializer)

    @extend_schema(tags=["Decision tables"])
    def retrieve(self, request, pk=None):
        table = self._get_table(pk)
        cases = [
            {"case_code": code, "entries": DecisionEntrySerializer(entries, many=True).data}
            for code, entries in selectors.entries_by_case(table=table).items()
        ]
        return Response(
            {
                "table": DecisionTableSerializer(table).data,
                "categories": selectors.categories(table=table),
                "cases": cases,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        responses={200: inline_serializer("DecisionTableDelete", {"removed_selection_rules": serializers.IntegerField()})},
        tags=["Decision tables"],
    )
    def destroy(self, request, pk=None):
        table = self._get_table(pk)
        removed = DecisionTableService.delete_table(table=table)
        return Response({"removed_selection_rules": removed}, status=status.HTTP_200_OK)

    @extend_schema(
        request=DecisionTableImportSerializer,
        responses={201: DecisionTableSerializer},
        tags=["Decision tables"],
    )
    @action(detail=False, methods=["post"], url_path="import")
    def import_table(self, request):
        ser = DecisionTableImportSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        upload = data["file"]
        content = decode_csv_bytes(upload.read())
        issues = validate_csv(content)
        if issues:
            raise ValidationError({"file": issues})

        table = import_csv(
            content,
            name=data["name"],
            description=data.get("description"),
            file_name=upload.name,
            set_default=data.get("is_default", False),
        )
        return Response(DecisionTableSerializer(table).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=CsvUploadSerializer, responses={200: CsvValidationSerializer}, tags=["Decision tables"])
    @action(detail=False, methods=["post"], url_path="validate")
    def validate(self, request):
        ser = CsvUploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        errors = validate_csv(decode_csv_bytes(ser.validated_data["file"].read()))
        return Response({"valid": not errors, "errors": errors}, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: DecisionTableSerializer}, tags=["Decision tables"])
    @action(detail=True, methods=["post"], url_path="set-default")
    def set_default(self, request, pk=None):
        table = DecisionTableService.set_default(table=self._get_table(pk))
        return Response(DecisionTableSerializer(table).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: DecisionTableSerializer}, tags=["Decision tables"])
    @action(detail=True, methods=["post"], url_path="toggle-active")
    def toggle_active(self, request, pk=None):
        table = DecisionTableService.toggle_active(table=self._get_table(pk))
        return Response(DecisionTableSerializer(table).data, status=status.HTTP_200_OK)

    @extend_schema(responses={(200, "text/csv"): OpenApiTypes.BINARY}, tags=["Decision tables"])
    @action(detail=True, methods=["get"], url_path="download")
    def download(self, request, pk=None):
        table = self._get_table(pk)
        if not table.source_file:
            raise NotFound("No CSV stored for this table.")
        return FileResponse(
            table.source_file.open("rb"),
            as_attachment=True,
            filename=table.source_file_name or f"{table.name}.csv",
            content_type="text/csv",
        )
