# cm_core/rules/admin.py
from __future__ import annotations

from django.contrib import admin

from cm_core.rules.models import ConditionalRule, RuleAction, RuleCondition


class RuleConditionInline(admin.TabularInline):
    model = RuleCondition
    extra = 0
    fields = ("field", "operator", "expected_value")


class RuleActionInline(admin.TabularInline):
    model = RuleAction
    extra = 0
    fields = ("position", "action_type", "target_table", "product", "mark", "quantity", "category")
    ordering = ("position", "id")
    autocomplete_fields = ("product",)


@admin.register(ConditionalRule)
class ConditionalRuleAdmin(admin.ModelAdmin):
    list_display = ("order", "name", "rule_type", "target_table", "is_active", "updated_at")
    list_display_links = ("name",)
    list_filter = ("rule_type", "is_active", "target_table")
    search_fields = ("name", "description")
    ordering = ("order", "id")
    readonly_fields = ("created_at", "updated_at")
    list_select_related = ("target_table",)
    inlines = [RuleConditionInline, RuleActionInline]

    fieldsets = (
        ("Rule", {"fields": ("name", "description", "order", "is_active")}),
        ("Scope", {"fields": ("rule_type", "target_table")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
