"""Celery application setup"""
from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from app.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure the Celery application"""
    app = Celery(
        "salon_booking",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=[
            "app.tasks.notification_tasks",
            "app.tasks.booking_tasks",
        ],
    )

    app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        timezone=settings.SALON_TIMEZONE,
        enable_utc=True,
        task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        task_default_queue="default",
        task_queues=(
            Queue("default"),
            Queue("notifications"),
        ),
        task_routes={
            "app.tasks.notification_tasks.*": {"queue": "notifications"},
        },
        # Publishing must never hang a booking request when the broker is down
        broker_transport_options={"max_retries": 1},
        task_publish_retry_policy={"max_retries": 1, "interval_start": 0},
    )

    app.conf.beat_schedule = {
        "update-booking-statuses": {
            "task": "app.tasks.booking_tasks.update_booking_statuses",
            "schedule": crontab(minute="*/15"),
        },
        "send-due-reminders": {
            "task": "app.tasks.booking_tasks.send_due_reminders",
            "schedule": crontab(minute=0),
        },
    }

    return app


celery_app = create_celery_app()
