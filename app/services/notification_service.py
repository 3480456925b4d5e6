import logging
import threading
from datetime import datetime, timedelta

from app.extensions import db
from app.models import MaintenanceTask, Notification
from app.scheduling import MaintenanceStatus

logger = logging.getLogger(__name__)

CHECK_INTERVAL_MINUTES = 15
REMINDER_LEAD_TIME = timedelta(hours=1)
UPCOMING_WINDOW = timedelta(hours=24)
GROUP = "MaintenanceTasks"


class NotificationService:
    """
    Reminders for maintenance tasks.

    Scheduled reminders are notification rows with a future `deliver_at`;
    a row becomes visible once its delivery time has passed. A timer
    re-scans all tasks every interval and (re)schedules what is due soon.
    """

    def __init__(self, app=None, interval_minutes=CHECK_INTERVAL_MINUTES):
        self.app = app
        self.interval_minutes = interval_minutes
        self._timer = None
        self._running = False

    def init_app(self, app):
        self.app = app
        self.interval_minutes = app.config.get('NOTIFICATION_INTERVAL_MINUTES', CHECK_INTERVAL_MINUTES)

    # timer
    def start(self):
        if self._running:
            return
        self._running = True
        self._arm()
        logger.info("Notification check timer started (every %s min)", self.interval_minutes)

    def stop(self):
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Notification check timer stopped")

    @property
    def running(self):
        return self._running

    def _arm(self):
        self._timer = threading.Timer(self.interval_minutes * 60, self._on_elapsed)
        self._timer.daemon = True
        self._timer.start()

    def _on_elapsed(self):
        try:
            with self.app.app_context():
                self.check_upcoming_tasks()
        except Exception:
            logger.exception("notification check failed")
        finally:
            if self._running:
                self._arm()

    # scheduling
    def setup_notifications_from_database(self, now=None):
        now = now or datetime.now()
        tasks = MaintenanceTask.query.all()

        self.clear_all_scheduled_notifications()

        scheduled = 0
        for task in tasks:
            if task.notifications_enabled and task.get_status(now) == MaintenanceStatus.UPCOMING:
                if self.schedule_notification(task, now=now):
                    scheduled += 1

        logger.info("Scheduled %d maintenance reminders", scheduled)
        return scheduled

    def schedule_notification(self, task, now=None):
        if not task.notifications_enabled:
            return None

        now = now or datetime.now()
        notify_time = task.scheduled_datetime - REMINDER_LEAD_TIME

        # one reminder per task, a stale one goes even when nothing replaces it
        self._remove_by_tag(task.notification_id)
        if notify_time < now:
            db.session.commit()
            return None

        lines = [task.title]
        if task.description:
            lines.append(task.description)
        lines.append(f"Scheduled for: {task.scheduled_datetime:%Y-%m-%d %H:%M}")

        notification = Notification(
            title="Volt Maintenance Reminder",
            message="\n".join(lines),
            tag=task.notification_id,
            group=GROUP,
            kind="maintenance",
            deliver_at=notify_time,
            created_at=now,
            fish_id=task.fish_id
        )
        db.session.add(notification)
        db.session.commit()
        logger.debug("Reminder for task %s at %s", task.id, notify_time)
        return notification

    def cancel_notification(self, task):
        removed = self._remove_by_tag(task.notification_id)
        db.session.commit()
        return removed

    def show_notification(self, title, message, kind="info", fish_id=None, now=None):
        now = now or datetime.now()
        notification = Notification(
            title=title,
            message=message,
            kind=kind,
            deliver_at=now,
            created_at=now,
            fish_id=fish_id
        )
        db.session.add(notification)
        db.session.commit()
        return notification

    def clear_all_scheduled_notifications(self):
        removed = Notification.query.filter_by(group=GROUP).delete()
        db.session.commit()
        return removed

    def check_upcoming_tasks(self, now=None):
        now = now or datetime.now()
        tasks = MaintenanceTask.query.filter_by(notifications_enabled=True).all()

        scheduled = []
        for task in tasks:
            time_until_due = task.scheduled_datetime - now
            if REMINDER_LEAD_TIME < time_until_due <= UPCOMING_WINDOW:
                notification = self.schedule_notification(task, now=now)
                if notification:
                    scheduled.append(notification)

        return scheduled

    def check_for_overdue_tasks(self, now=None):
        now = now or datetime.now()
        tasks = MaintenanceTask.query.filter_by(notifications_enabled=True).all()

        shown = []
        for task in tasks:
            if task.get_status(now) != MaintenanceStatus.OVERDUE:
                continue
            shown.append(self.show_notification(
                "Overdue Maintenance Task",
                f"{task.title} was scheduled for {task.scheduled_datetime:%Y-%m-%d %H:%M} and is now overdue.",
                kind="overdue",
                fish_id=task.fish_id,
                now=now))

        return shown

    def _remove_by_tag(self, tag):
        return Notification.query.filter_by(tag=tag, group=GROUP).delete()
