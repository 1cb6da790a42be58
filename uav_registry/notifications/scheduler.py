from apscheduler.schedulers.background import BackgroundScheduler
from django.conf import settings
from django.core.management import call_command
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)

# ============================================================
# GLOBAL SAFETY LOCK
# Prevents scheduler from starting more than once
# ============================================================
_scheduler = None

# How late a daily run may start and still fire
MISFIRE_GRACE_SECONDS = 4 * 60 * 60


def start_scheduler():
    """
    Start APScheduler for the daily expiry reminders.

    - Respects ENABLE_SCHEDULER setting
    - Prevents double start (Django autoreload, imports)
    - Meant for a single web process; use cron + the management
      command when running several workers
    """
    global _scheduler

    if not getattr(settings, "ENABLE_SCHEDULER", False):
        logger.info("APScheduler disabled via settings (ENABLE_SCHEDULER=False)")
        return None

    if _scheduler is not None:
        logger.info("APScheduler already running, skipping initialization")
        return _scheduler

    logger.info("Starting APScheduler...")

    _scheduler = BackgroundScheduler(
        timezone=settings.TIME_ZONE
    )

    # --------------------------------------------
    # SCHEDULE: ONCE A DAY
    # The 45-day rule matches a single calendar day, so the job
    # must run once per day. The job store is in memory: a run missed
    # while the process is down is not replayed after a restart. A run
    # that starts late while the process is up still fires within the
    # grace window.
    # --------------------------------------------
    _scheduler.add_job(
        run_expiry_reminders_job,
        trigger="cron",
        hour=settings.REMINDER_CRON_HOUR,
        minute=settings.REMINDER_CRON_MINUTE,
        id="send_expiry_reminders",
        replace_existing=True,
        max_instances=1,      # Prevent overlapping runs
        coalesce=True,        # Several late firings collapse into one
        misfire_grace_time=MISFIRE_GRACE_SECONDS,
    )

    # --------------------------------------------
    # SCHEDULE: WEEKLY LEDGER CLEANUP
    # --------------------------------------------
    _scheduler.add_job(
        purge_reminder_ledger_job,
        trigger="cron",
        day_of_week="sun",
        hour=3,
        id="purge_reminder_ledger",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    _scheduler.start()

    logger.info(
        "APScheduler started: expiry reminders scheduled daily at %02d:%02d",
        settings.REMINDER_CRON_HOUR,
        settings.REMINDER_CRON_MINUTE,
    )
    return _scheduler


def run_expiry_reminders_job():
    """
    Wrapper job that calls the management command.
    Keeps all business logic out of the scheduler.
    """
    now = timezone.now()
    logger.info(f"Running scheduled expiry reminders at {now:%Y-%m-%d %H:%M:%S}")

    call_command("send_expiry_reminders", sent_by="scheduler")


def purge_reminder_ledger_job():
    call_command("purge_reminder_ledger")
