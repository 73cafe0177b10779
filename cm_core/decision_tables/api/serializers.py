# cm_core/decision_tables/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from cm_core.decision_tables.models import DecisionEntry, DecisionTable


class DecisionTableSerializer(serializers.ModelSerializer):
    case_count = serializers.SerializerMethodField()
    entry_count = serializers.SerializerMethodField()
    has_source_file = serializers.SerializerMethodField()

    class Meta:
        model = DecisionTable
        fields = [
            "id",
            "name",
            "description",
            "source_file_name",
            "has_source_file",
            "is_active",
            "is_default",
            "case_count",
            "entry_count",
            "created_at",
            "updated_at",
        ]

    def get_case_count(self, obj) -> int:
        count = getattr(obj, "case_count", None)
        if count is None:
            count = obj.entries.values("clinical_case_code").distinct().count()
        return count

    def get_entry_count(self, obj) -> int:
        count = getattr(obj, "entry_count", None)
        if count is None:
            count = obj.entries.count()
        return count

    def get_has_source_file(self, obj) -> bool:
        return bool(obj.source_file)


class DecisionEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = DecisionEntry
        fields = [
            "id",
            "clinical_case_code",
            "category",
            "product_code",
            "group",
            "should_mark",
            "display_order",
            "column_sequence",
        ]


class CsvUploadSerializer(serializers.Serializer):
    file = serializers.FileField()


class DecisionTableImportSerializer(CsvUploadSerializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")
    is_default = serializers.BooleanField(required=False, default=False)


class CsvValidationSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    errors = serializers.ListField(child=serializers.CharField())
