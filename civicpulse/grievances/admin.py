from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Feedback, Grievance, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "name", "role", "department", "is_active")
    list_filter = ("role", "department", "is_active", "is_staff")
    search_fields = ("username", "email", "name", "department")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Portal", {"fields": ("name", "role", "department")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Portal", {"fields": ("email", "name", "role", "department")}),
    )


class FeedbackInline(admin.StackedInline):
    model = Feedback
    extra = 0
    readonly_fields = ("created_at",)


@admin.register(Grievance)
class GrievanceAdmin(admin.ModelAdmin):
    list_display = (
        "reference_id",
        "title",
        "category",
        "location",
        "status",
        "verification_status",
        "citizen",
        "assigned_officer",
        "created_at",
    )
    list_filter = ("status", "verification_status", "category", "created_at")
    search_fields = ("reference_id", "title", "citizen__username", "location")
    readonly_fields = ("reference_id", "created_at", "updated_at", "resolved_at")
    inlines = [FeedbackInline]


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ("id", "grievance", "citizen", "rating", "is_reopened", "created_at")
    list_filter = ("rating", "is_reopened")
    search_fields = ("grievance__reference_id", "citizen__username", "comment")
    readonly_fields = ("created_at",)
