# app/services/notifications.py
"""
Fire-and-forget notification delivery.

Score changes tell the linked user through an in-app notification. The write
is queued on the request's BackgroundTasks, so it runs with its own database
session after the response has been sent, and a failing delivery is logged
here instead of reaching the caller.
"""
import logging
from typing import Callable, Optional
from uuid import UUID

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models.all_models import Notification

logger = logging.getLogger(__name__)


def deliver_notification(user_id: str, message: str, session_factory: Callable[[], Session] = SessionLocal) -> Optional[int]:
    """Store an in-app notification. Returns its id, or None when delivery failed."""
    try:
        db = session_factory()
    except Exception as e:
        logger.error(f"Error delivering notification to user {user_id}: {e}")
        return None

    try:
        notification = Notification(user_id=UUID(str(user_id)), message=message)
        db.add(notification)
        db.commit()
        logger.info(f"Notification {notification.id} delivered to user {user_id}")
        return notification.id
    except Exception as e:
        db.rollback()
        logger.error(f"Error delivering notification to user {user_id}: {e}")
        return None
    finally:
        db.close()


class NotificationSink:
    """Interface the score service talks to"""

    def notify(self, user_id: str, message: str) -> None:
        raise NotImplementedError


class BackgroundNotificationSink(NotificationSink):
    def __init__(self, background_tasks: BackgroundTasks, session_factory: Callable[[], Session] = SessionLocal):
        self.background_tasks = background_tasks
        self.session_factory = session_factory

    def notify(self, user_id: str, message: str) -> None:
        self.background_tasks.add_task(deliver_notification, user_id, message, self.session_factory)


def get_notifier(background_tasks: BackgroundTasks) -> NotificationSink:
    """Sink bound to the current request's background tasks"""
    return BackgroundNotificationSink(background_tasks)
