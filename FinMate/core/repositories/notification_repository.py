"""
Notification Repository
In-app messages such as budget alerts
"""

from typing import List
from datetime import datetime

from core.repositories.base_repository import BaseRepository
from core.models.entities import Notification
from utils.exceptions import ValidationException

UNREAD_LIMIT = 50

class NotificationRepository(BaseRepository):

    def __init__(self, db=None):
        super().__init__('notifications', 'notification_id', db)

    def create_notification(self, notification: Notification) -> int:
        if not notification.type or not notification.content:
            raise ValidationException("Notification type and content are required")

        return self.create({
            'user_id': notification.user_id,
            'type': notification.type,
            'title': notification.title,
            'content': notification.content,
            'is_read': notification.is_read,
            'created_at': notification.created_at or datetime.now(),
        })

    def get_unread_notifications(self, user_id: str, limit: int = UNREAD_LIMIT) -> List[Notification]:
        """Unread notifications for user_id, newest first"""
        query = (f"SELECT * FROM {self.table_name} WHERE user_id = %s AND is_read = FALSE "
                 f"ORDER BY created_at DESC LIMIT %s")
        rows = self._run("load unread notifications", query, (user_id, limit), fetch_all=True)
        return [self._to_notification(row) for row in rows or []]

    def mark_read(self, notification_id: int, user_id: str) -> bool:
        return self.update(notification_id, user_id, {'is_read': True})

    @staticmethod
    def _to_notification(row: dict) -> Notification:
        return Notification(
            notification_id=row['notification_id'],
            user_id=row['user_id'],
            type=row['type'],
            title=row.get('title', ''),
            content=row['content'],
            is_read=bool(row.get('is_read')),
            created_at=row.get('created_at'),
        )
