import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404, redirect

from notifications.models import CertificateKind
from notifications.services.config import ReminderConfigurationError
from notifications.services.ledger import ReminderRunInProgress
from notifications.services.reminders import run_expiry_reminders, send_manual_reminder
from pilots.models import Pilot
from pilots.repository import RepositoryError

logger = logging.getLogger(__name__)


def _method_not_allowed():
    return JsonResponse(
        {
            "success": False,
            "error": "Invalid request method. Please use POST."
        },
        status=405
    )


def _reply(request, payload, status=200, fallback="pilots:dashboard"):
    """
    JSON for AJAX calls; plain form posts go back to the page with a
    flash message.
    """
    if request.headers.get("x-requested-with") == "XMLHttpRequest":
        return JsonResponse(payload, status=status)

    if payload["success"]:
        messages.success(request, payload["message"])
    else:
        messages.error(request, payload["error"])
    return redirect(fallback)


@login_required
def run_reminders(request):
    """
    Dashboard button: run the daily reminder check now.
    Already-sent reminders are skipped through the ledger as usual.
    """
    if request.method != "POST":
        return _method_not_allowed()

    try:
        report = run_expiry_reminders(sent_by="dashboard")
    except ReminderConfigurationError as exc:
        return _reply(request, {"success": False, "error": str(exc)}, status=400)
    except ReminderRunInProgress as exc:
        return _reply(request, {"success": False, "error": str(exc)}, status=409)
    except RepositoryError as exc:
        return _reply(request, {"success": False, "error": str(exc)}, status=503)
    except DatabaseError:
        logger.exception("Reminder run from the dashboard failed")
        return _reply(
            request,
            {"success": False, "error": "The reminder ledger is unavailable."},
            status=503
        )

    return _reply(
        request,
        {
            "success": True,
            "message": f"{report.sent} reminder(s) sent",
            "report": report.as_dict(),
        }
    )


@login_required
def send_pilot_reminder(request, pk, kind):
    if request.method != "POST":
        return _method_not_allowed()

    if kind not in CertificateKind.values:
        return JsonResponse(
            {"success": False, "error": f"Unknown certificate kind {kind!r}"},
            status=404
        )

    pilot = get_object_or_404(Pilot, pk=pk)
    fallback = "pilots:pilot-list"

    try:
        sent = send_manual_reminder(pilot, kind)
    except ReminderConfigurationError as exc:
        return _reply(request, {"success": False, "error": str(exc)}, 400, fallback)
    except ValueError as exc:
        return _reply(request, {"success": False, "error": str(exc)}, 400, fallback)

    if not sent:
        logger.warning("Manual %s reminder to pilot %s failed", kind, pilot.pk)
        return _reply(
            request,
            {"success": False, "error": "The email provider did not accept the reminder."},
            502,
            fallback
        )

    return _reply(
        request,
        {"success": True, "message": f"Reminder sent to {pilot.email}"},
        fallback=fallback
    )
