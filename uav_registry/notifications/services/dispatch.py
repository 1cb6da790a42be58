"""
Outbound reminder email.

A dispatcher takes a ReminderPayload and reports whether the provider
accepted it. It never raises for delivery problems: a refused or timed-out
send is logged and returned as False so the caller can carry on with the
next pilot.
"""

import logging
import smtplib
from dataclasses import dataclass, replace

import requests
from django.core.mail import BadHeaderError, get_connection, send_mail

from notifications.models import certificate_label
from notifications.services.config import ReminderConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderPayload:
    pilot_name: str
    recipient_email: str
    kind: str
    expiry_display: str
    days_remaining: int

    @property
    def certificate_label(self):
        return certificate_label(self.kind)

    def for_recipient(self, email):
        """Same reminder, addressed to someone else (manager copies)."""
        return replace(self, recipient_email=email)


# ============================================================
# EMAILJS (REST API)
# ============================================================

class EmailJSDispatcher:
    """
    Sends through the EmailJS REST endpoint using the account's
    private access token.
    """

    REQUIRED = (
        "emailjs_service_id",
        "emailjs_template_id",
        "emailjs_public_key",
        "emailjs_private_key",
    )

    def __init__(self, config, session=None):
        missing = [name for name in self.REQUIRED if not getattr(config, name)]
        if missing:
            raise ReminderConfigurationError(
                f"EmailJS is not configured, missing: {', '.join(missing)}"
            )

        self.config = config
        self.session = session or requests.Session()

    def build_request(self, payload):
        return {
            "service_id": self.config.emailjs_service_id,
            "template_id": self.config.emailjs_template_id,
            "user_id": self.config.emailjs_public_key,
            "accessToken": self.config.emailjs_private_key,
            "template_params": {
                "pilot_name": payload.pilot_name,
                "to_name": payload.pilot_name,
                "pilot_email": payload.recipient_email,
                "to_email": payload.recipient_email,
                "license_type": payload.certificate_label,
                "certificate_type": payload.certificate_label,
                "expiry_date": payload.expiry_display,
                "days_until_expiry": payload.days_remaining,
                "from_name": self.config.from_name,
            },
        }

    def send(self, payload) -> bool:
        try:
            response = self.session.post(
                self.config.emailjs_url,
                json=self.build_request(payload),
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error(
                "EmailJS request for %s failed: %s",
                payload.recipient_email, exc
            )
            return False

        if response.status_code != 200:
            logger.error(
                "EmailJS refused reminder for %s (status=%s): %s",
                payload.recipient_email,
                response.status_code,
                response.text[:200],
            )
            return False

        logger.info(
            "EmailJS accepted %s reminder for %s",
            payload.kind, payload.recipient_email
        )
        return True


# ============================================================
# DJANGO MAIL (SMTP / EMAIL_BACKEND)
# ============================================================

def render_reminder_email(payload, from_name):
    label = payload.certificate_label

    subject = f"תזכורת: תוקף {label} יפוג בעוד {payload.days_remaining} ימים"
    body = (
        f"שלום,\n\n"
        f"זוהי תזכורת כי תוקף {label} של {payload.pilot_name} "
        f"יפוג בתאריך {payload.expiry_display}.\n"
        f"ימים שנותרו עד תום התוקף: {payload.days_remaining}.\n\n"
        f"נא לדאוג לחידוש המסמך לפני מועד התפוגה.\n\n"
        f"{from_name}"
    )
    return subject, body


class DjangoMailDispatcher:
    """
    Sends through Django's configured EMAIL_BACKEND, with the same
    per-send timeout as the EmailJS backend.
    """

    def __init__(self, config):
        if not config.from_email:
            raise ReminderConfigurationError(
                "from_email (DEFAULT_FROM_EMAIL) is required for the django backend"
            )
        self.config = config

    def send(self, payload) -> bool:
        subject, body = render_reminder_email(payload, self.config.from_name)

        try:
            delivered = send_mail(
                subject=subject,
                message=body,
                from_email=self.config.from_email,
                recipient_list=[payload.recipient_email],
                fail_silently=False,
                connection=get_connection(timeout=self.config.request_timeout),
            )
        except (BadHeaderError, smtplib.SMTPException, OSError) as exc:
            logger.error(
                "SMTP delivery of reminder for %s failed: %s",
                payload.recipient_email, exc
            )
            return False

        return delivered == 1


DISPATCHERS = {
    "emailjs": EmailJSDispatcher,
    "django": DjangoMailDispatcher,
}


def build_dispatcher(config):
    try:
        dispatcher_class = DISPATCHERS[config.backend]
    except KeyError:
        raise ReminderConfigurationError(
            f"Unknown reminder backend {config.backend!r}; "
            f"expected one of: {', '.join(sorted(DISPATCHERS))}"
        ) from None

    return dispatcher_class(config)
