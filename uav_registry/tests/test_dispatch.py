import smtplib
from dataclasses import replace
from unittest import mock

import pytest
import requests
from django.core.mail import get_connection
from django.core.mail.backends.smtp import EmailBackend

from notifications.services.config import EMAILJS_SEND_URL, ReminderConfigurationError
from notifications.services.dispatch import (
    DjangoMailDispatcher,
    EmailJSDispatcher,
    ReminderPayload,
    build_dispatcher,
    render_reminder_email,
)


@pytest.fixture
def payload():
    return ReminderPayload(
        pilot_name="יוסי כהן",
        recipient_email="yossi@example.com",
        kind="medical",
        expiry_display="15.2.2025",
        days_remaining=45,
    )


def emailjs_with(config, status_code=200, side_effect=None):
    session = mock.Mock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = mock.Mock(status_code=status_code, text="error text")
    return EmailJSDispatcher(config, session=session), session


# ============================================================
# EMAILJS
# ============================================================

def test_emailjs_posts_template_params(reminder_config, payload):
    dispatcher, session = emailjs_with(reminder_config)

    assert dispatcher.send(payload) is True

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == (EMAILJS_SEND_URL,)
    assert kwargs["timeout"] == reminder_config.request_timeout
    body = kwargs["json"]
    assert body["service_id"] == "service_test"
    assert body["template_id"] == "template_test"
    assert body["user_id"] == "public_test"
    assert body["accessToken"] == "private_test"
    params = body["template_params"]
    assert params["to_email"] == "yossi@example.com"
    assert params["pilot_name"] == "יוסי כהן"
    assert params["license_type"] == "תעודה רפואית"
    assert params["expiry_date"] == "15.2.2025"
    assert params["days_until_expiry"] == 45


def test_emailjs_manager_copy_keeps_pilot_details(reminder_config, payload):
    dispatcher, _ = emailjs_with(reminder_config)

    params = dispatcher.build_request(payload.for_recipient("dana@example.com"))["template_params"]

    assert params["to_email"] == "dana@example.com"
    assert params["pilot_name"] == "יוסי כהן"


def test_emailjs_refusal_returns_false(reminder_config, payload):
    dispatcher, _ = emailjs_with(reminder_config, status_code=400)

    assert dispatcher.send(payload) is False


def test_emailjs_timeout_returns_false(reminder_config, payload):
    dispatcher, _ = emailjs_with(reminder_config, side_effect=requests.Timeout("slow"))

    assert dispatcher.send(payload) is False


def test_emailjs_requires_credentials(reminder_config):
    config = replace(reminder_config, emailjs_private_key="", emailjs_service_id="")

    with pytest.raises(ReminderConfigurationError) as excinfo:
        EmailJSDispatcher(config)

    assert "emailjs_service_id" in str(excinfo.value)
    assert "emailjs_private_key" in str(excinfo.value)


# ============================================================
# DJANGO MAIL
# ============================================================

def test_render_reminder_email_names_the_document(payload):
    subject, body = render_reminder_email(payload, "מערכת")

    assert "תעודה רפואית" in subject
    assert "45" in subject
    assert "יוסי כהן" in body
    assert "15.2.2025" in body


def test_django_backend_sends_through_the_mail_backend(reminder_config, payload, mailoutbox):
    dispatcher = DjangoMailDispatcher(replace(reminder_config, backend="django"))

    assert dispatcher.send(payload) is True

    assert len(mailoutbox) == 1
    message = mailoutbox[0]
    assert message.to == ["yossi@example.com"]
    assert message.from_email == "registry@example.com"


def test_django_backend_bounds_the_smtp_connection(reminder_config, payload, settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
    settings.EMAIL_TIMEOUT = None
    dispatcher = DjangoMailDispatcher(
        replace(reminder_config, backend="django", request_timeout=2.0)
    )

    connections = []

    def connect(**kwargs):
        connection = get_connection(**kwargs)
        connections.append(connection)
        return connection

    with mock.patch("notifications.services.dispatch.get_connection", side_effect=connect), \
            mock.patch.object(EmailBackend, "send_messages", return_value=1):
        assert dispatcher.send(payload) is True

    assert [c.timeout for c in connections] == [2.0]


def test_django_backend_smtp_error_returns_false(reminder_config, payload):
    dispatcher = DjangoMailDispatcher(replace(reminder_config, backend="django"))

    with mock.patch(
        "notifications.services.dispatch.send_mail",
        side_effect=smtplib.SMTPServerDisconnected("gone"),
    ):
        assert dispatcher.send(payload) is False


def test_django_backend_requires_a_sender(reminder_config):
    with pytest.raises(ReminderConfigurationError):
        DjangoMailDispatcher(replace(reminder_config, backend="django", from_email=""))


# ============================================================
# FACTORY
# ============================================================

def test_build_dispatcher_picks_the_backend(reminder_config):
    assert isinstance(build_dispatcher(reminder_config), EmailJSDispatcher)
    assert isinstance(
        build_dispatcher(replace(reminder_config, backend="django")),
        DjangoMailDispatcher,
    )


def test_build_dispatcher_rejects_unknown_backends(reminder_config):
    with pytest.raises(ReminderConfigurationError):
        build_dispatcher(replace(reminder_config, backend="carrier-pigeon"))
