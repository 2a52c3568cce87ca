import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("boxrental")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Upcoming -> Active -> Completed transitions, every hour
    "sync-booking-statuses": {
        "task": "bookings.sync_booking_statuses",
        "schedule": crontab(minute=5),
    },
}

app.conf.timezone = "Europe/Stockholm"
