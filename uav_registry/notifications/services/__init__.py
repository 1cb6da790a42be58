"""
Reminder service layer.

Reminder logic is:
- service-layer only
- date-based
- deduplicated through the ledger
- independent of how it is triggered (scheduler, command, dashboard)
"""

from .reminders import (
    DispatchReport,
    ReminderScheduler,
    run_expiry_reminders,
    send_manual_reminder,
)

__all__ = [
    "DispatchReport",
    "ReminderScheduler",
    "run_expiry_reminders",
    "send_manual_reminder",
]
