from dataclasses import dataclass, fields

from django.conf import settings


EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


class ReminderConfigurationError(Exception):
    """Reminder settings are missing or invalid; nothing was sent."""


@dataclass(frozen=True)
class ReminderConfig:
    """
    Everything the reminder job needs to know about its environment.

    Built once per run and handed to the scheduler and the dispatcher,
    so neither of them reads settings on its own.
    """
    lead_days: int = 45
    send_delay_seconds: float = 1.0
    request_timeout: float = 10.0
    retention_days: int = 365
    run_lock_stale_minutes: int = 180

    backend: str = "emailjs"
    emailjs_url: str = EMAILJS_SEND_URL
    emailjs_service_id: str = ""
    emailjs_template_id: str = ""
    emailjs_public_key: str = ""
    emailjs_private_key: str = ""

    from_email: str = ""
    from_name: str = "מערכת ניהול רישיונות UAV"

    sent_by: str = "scheduler"

    @classmethod
    def from_settings(cls, **overrides):
        options = dict(getattr(settings, "UAV_REMINDERS", {}))
        options.update(overrides)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ReminderConfigurationError(
                f"Unknown UAV_REMINDERS option(s): {', '.join(unknown)}"
            )

        config = cls(**options)
        config.validate()
        return config

    def validate(self):
        if self.lead_days < 0:
            raise ReminderConfigurationError("lead_days must not be negative")
        if self.send_delay_seconds < 0:
            raise ReminderConfigurationError("send_delay_seconds must not be negative")
        if self.request_timeout <= 0:
            raise ReminderConfigurationError("request_timeout must be positive")
        if self.retention_days <= 0:
            raise ReminderConfigurationError("retention_days must be positive")
        if self.run_lock_stale_minutes <= 0:
            raise ReminderConfigurationError("run_lock_stale_minutes must be positive")
