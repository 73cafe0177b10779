# cm_core/decision_tables/admin.py
from __future__ import annotations

from django.contrib import admin, messages
from rest_framework.exceptions import ValidationError

from cm_core.decision_tables.models import DecisionEntry, DecisionTable
from cm_core.decision_tables.services import DecisionTableService


class DecisionEntryInline(admin.TabularInline):
    model = DecisionEntry
    extra = 0
    fields = ("clinical_case_code", "category", "product_code", "group", "should_mark", "display_order", "column_sequence")
    ordering = ("display_order", "column_sequence", "id")


@admin.register(DecisionTable)
class DecisionTableAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "is_active", "is_default", "source_file_name", "created_at")
    list_filter = ("is_active", "is_default")
    search_fields = ("name", "description", "source_file_name")
    ordering = ("-is_default", "-created_at")
    readonly_fields = ("is_default", "source_file", "created_at", "updated_at")
    inlines = [DecisionEntryInline]
    actions = ["make_default"]

    fieldsets = (
        ("Table", {"fields": ("name", "description", "source_file_name", "source_file")}),
        ("Status", {"fields": ("is_active", "is_default")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    @admin.action(description="Set selected table as default")
    def make_default(self, request, queryset):
        if queryset.count() != 1:
            self.message_user(request, "Select exactly one table.", level=messages.ERROR)
            return
        try:
            table = DecisionTableService.set_default(table=queryset.get())
        except ValidationError as e:
            self.message_user(request, str(e.detail), level=messages.ERROR)
            return
        self.message_user(request, f"'{table.name}' is now the default table.")


@admin.register(DecisionEntry)
class DecisionEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "table", "clinical_case_code", "category", "product_code", "group", "should_mark")
    list_filter = ("group", "should_mark", "table")
    search_fields = ("clinical_case_code", "category", "product_code")
    ordering = ("table", "display_order", "column_sequence", "id")
    list_select_related = ("table",)
