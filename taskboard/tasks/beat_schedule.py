"""Celery Beat periodic task schedule."""

from celery.schedules import crontab

# Periodic task schedule
beat_schedule = {
    # Drop expired refresh credentials every day at 3 AM
    "cleanup-expired-sessions": {
        "task": "cleanup_expired_sessions",
        "schedule": crontab(hour=3, minute=0),
        "options": {
            "expires": 3600,  # Expire after 1 hour
        },
    },
}
