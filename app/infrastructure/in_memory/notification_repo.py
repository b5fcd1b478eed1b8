from app.application.interfaces.notification_repo import NotificationRepo
from app.domain.entities.notification import Notification


class InMemoryNotificationRepo(NotificationRepo):
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    async def create(self, notification: Notification) -> None:
        self.notifications.append(notification)

    async def list_by_user(self, user_id: str) -> list[Notification]:
        return [n for n in reversed(self.notifications) if n.user_id == user_id]
