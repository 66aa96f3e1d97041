"""
Notification Service — in-app messages for a user
"""
import logging
from typing import List

from core.repositories.notification_repository import NotificationRepository
from core.models.entities import Notification
from utils.exceptions import NotFoundException
from utils.validators import FinanceValidator

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "info"

class NotificationService:
    def __init__(self, repo: NotificationRepository = None):
        self.repo = repo or NotificationRepository()

    def notify(self, user_id: str, title: str, message: str, n_type: str = DEFAULT_TYPE) -> int:
        """Store an unread notification and return its id"""
        FinanceValidator.validate_user_id(user_id)
        notification_id = self.repo.create_notification(
            Notification(user_id=user_id, type=n_type, title=title, content=message, is_read=False)
        )
        logger.info(f"Notification {notification_id} ({n_type}) for user {user_id}: {title}")
        return notification_id

    def get_unread(self, user_id: str) -> List[Notification]:
        return self.repo.get_unread_notifications(user_id)

    def mark_as_read(self, notification_id: int, user_id: str) -> bool:
        if not self.repo.mark_read(notification_id, user_id):
            raise NotFoundException(f"Notification {notification_id} not found")
        return True
