from django.contrib import admin

from .models import ReminderLedgerEntry, ReminderRunLock


@admin.register(ReminderLedgerEntry)
class ReminderLedgerEntryAdmin(admin.ModelAdmin):
    """
    Read-only view of dispatched reminders.
    Entries are written by the reminder job only.
    """

    # =====================================================
    # LIST VIEW
    # =====================================================
    list_display = (
        "subject_name",
        "subject_id",
        "kind",
        "expiry_date",
        "sent_at",
        "sent_by",
    )

    list_filter = (
        "kind",
        "sent_by",
        "sent_at",
    )

    search_fields = (
        "subject_name",
        "subject_id",
    )

    ordering = ("-sent_at",)
    list_per_page = 25
    date_hierarchy = "sent_at"

    readonly_fields = (
        "subject_id",
        "subject_name",
        "kind",
        "expiry_date",
        "sent_at",
        "sent_by",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(ReminderRunLock)
class ReminderRunLockAdmin(admin.ModelAdmin):
    """
    Current reminder run, if any.
    Deleting the row releases a lock left behind by a crashed run.
    """
    list_display = ("name", "holder", "acquired_at")
    readonly_fields = ("name", "holder", "acquired_at")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
