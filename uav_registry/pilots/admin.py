from django.contrib import admin

from .models import ManagerRecipient, Pilot


# ============================================================
# PILOTS
# ============================================================

@admin.register(Pilot)
class PilotAdmin(admin.ModelAdmin):
    list_display = (
        "first_name",
        "last_name",
        "email",
        "rata_certification",
        "health_certificate_expiry",
        "is_instructor",
        "instructor_license_expiry",
        "restrictions",
    )

    list_filter = (
        "rata_certification",
        "is_instructor",
        "restrictions",
    )

    search_fields = (
        "first_name",
        "last_name",
        "email",
    )

    ordering = ("first_name", "last_name")
    date_hierarchy = "health_certificate_expiry"

    readonly_fields = (
        "rata_certification",
        "created_at",
        "updated_at",
    )

    fieldsets = (
        ("Identity", {
            "fields": ("first_name", "last_name", "email"),
        }),
        ("Licensing", {
            "fields": (
                "certifications",
                "rata_certification",
                "categories",
                "restrictions",
                "custom_restrictions",
            ),
        }),
        ("Expiry", {
            "fields": (
                "health_certificate_expiry",
                "is_instructor",
                "instructor_license_expiry",
            ),
        }),
        ("Timestamps", {
            "fields": ("created_at", "updated_at"),
        }),
    )


# ============================================================
# MANAGER MAILING LIST
# ============================================================

@admin.register(ManagerRecipient)
class ManagerRecipientAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "email",
        "position",
        "created_at",
    )

    search_fields = (
        "name",
        "email",
        "position",
    )

    ordering = ("-created_at",)
